"""
Capability-scoped execution context for lesson modules.

The scope is a closed table: a reduced builtins map with value helpers only
(no ``__import__``, ``open``, ``eval``, ``exec``, ``getattr``, ``globals``,
``type`` or ``object``) plus the kit bindings a module's imports asked for.
It is rebuilt for every load.
"""

import builtins
from types import SimpleNamespace
from typing import Any, Dict

SAFE_BUILTINS = (
    "abs", "all", "any", "bool", "chr", "dict", "divmod", "enumerate", "filter",
    "float", "format", "frozenset", "int", "isinstance", "len", "list", "map",
    "max", "min", "next", "ord", "pow", "range", "repr", "reversed", "round",
    "set", "slice", "sorted", "str", "sum", "tuple", "zip",
    "ArithmeticError", "Exception", "IndexError", "KeyError", "StopIteration",
    "TypeError", "ValueError", "ZeroDivisionError",
    "__build_class__",
)

MODULE_NAME = "lesson_module"


def safe_builtins() -> Dict[str, Any]:
    return {name: getattr(builtins, name) for name in SAFE_BUILTINS}


def namespace_object(exports: Dict[str, Any]) -> SimpleNamespace:
    """Attribute-style view of an export table, for ``import lessonkit.x as x``."""
    return SimpleNamespace(**exports)


def build_capability_scope(bindings: Dict[str, Any]) -> Dict[str, Any]:
    scope: Dict[str, Any] = {
        "__builtins__": safe_builtins(),
        "__name__": MODULE_NAME,
    }
    scope.update(bindings)
    return scope
