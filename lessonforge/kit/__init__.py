"""
The lesson kit: the only capabilities a generated lesson module can reach.

Each allowlisted import namespace maps to a table of exports. Tables are
built fresh for every call so no two loaded lessons share a mutable scope.
"""

from typing import Any, Callable, Dict

from lessonforge.kit import charts, dates, icons, ui

NAMESPACE_BUILDERS: Dict[str, Callable[[], Dict[str, Any]]] = {
    "lessonkit.ui": ui.exports,
    "lessonkit.icons": icons.exports,
    "lessonkit.charts": charts.exports,
    "lessonkit.dates": dates.exports,
}


def kit_namespaces() -> Dict[str, Dict[str, Any]]:
    return {name: build() for name, build in NAMESPACE_BUILDERS.items()}
