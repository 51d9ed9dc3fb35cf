"""Stroke icons for lesson modules (the ``lessonkit.icons`` namespace)."""

from typing import Any, Callable, Dict, Tuple

from lessonforge.kit.ui import Element

_ICON_PATHS: Dict[str, Tuple[str, ...]] = {
    "Check": ("M20 6 9 17l-5-5",),
    "X": ("M18 6 6 18", "m6 6 12 12"),
    "Plus": ("M5 12h14", "M12 5v14"),
    "Minus": ("M5 12h14",),
    "ArrowRight": ("M5 12h14", "m12 5 7 7-7 7"),
    "ArrowLeft": ("m12 19-7-7 7-7", "M19 12H5"),
    "Play": ("M6 3 20 12 6 21 6 3z",),
    "Pause": ("M6 4h4v16H6z", "M14 4h4v16h-4z"),
    "RotateCcw": ("M3 12a9 9 0 1 0 9-9 9.75 9.75 0 0 0-6.74 2.74L3 8", "M3 3v5h5"),
    "Star": ("M12 2l3.09 6.26L22 9.27l-5 4.87 1.18 6.88L12 17.77l-6.18 3.25L7 14.14 2 9.27l6.91-1.01L12 2z",),
    "Lightbulb": ("M9 18h6", "M10 22h4", "M12 2a7 7 0 0 0-4 12.74V17h8v-2.26A7 7 0 0 0 12 2z"),
    "BookOpen": ("M2 4h6a4 4 0 0 1 4 4v13a3 3 0 0 0-3-3H2z", "M22 4h-6a4 4 0 0 0-4 4v13a3 3 0 0 1 3-3h7z"),
    "Trophy": ("M8 21h8", "M12 17v4", "M7 4h10v5a5 5 0 0 1-10 0V4z", "M17 5h3v2a3 3 0 0 1-3 3", "M7 5H4v2a3 3 0 0 0 3 3"),
    "Sparkles": ("M12 3l1.9 5.1L19 10l-5.1 1.9L12 17l-1.9-5.1L5 10l5.1-1.9z",),
    "HelpCircle": ("M12 22a10 10 0 1 0 0-20 10 10 0 0 0 0 20z", "M9.09 9a3 3 0 0 1 5.83 1c0 2-3 3-3 3", "M12 17h.01"),
    "Info": ("M12 22a10 10 0 1 0 0-20 10 10 0 0 0 0 20z", "M12 16v-4", "M12 8h.01"),
    "Clock": ("M12 22a10 10 0 1 0 0-20 10 10 0 0 0 0 20z", "M12 6v6l4 2"),
    "Target": ("M12 22a10 10 0 1 0 0-20 10 10 0 0 0 0 20z", "M12 18a6 6 0 1 0 0-12 6 6 0 0 0 0 12z", "M12 14a2 2 0 1 0 0-4 2 2 0 0 0 0 4z"),
}


def _make_icon(name: str, paths: Tuple[str, ...]) -> Callable[..., Element]:
    def icon(size: int = 20, color: str = "currentColor", stroke_width: float = 2,
             class_name: str = None, **_ignored: Any) -> Element:
        props = {
            "xmlns": "http://www.w3.org/2000/svg",
            "width": size,
            "height": size,
            "view_box": "0 0 24 24",
            "fill": "none",
            "stroke": color,
            "stroke_width": stroke_width,
            "stroke_linecap": "round",
            "stroke_linejoin": "round",
            "aria_hidden": "true",
        }
        if class_name:
            props["class_name"] = class_name
        return Element("svg", props, tuple(Element("path", {"d": d}) for d in paths))

    icon.__name__ = name
    icon.__qualname__ = name
    return icon


ICONS: Dict[str, Callable[..., Element]] = {
    name: _make_icon(name, paths) for name, paths in _ICON_PATHS.items()
}


def Icon(name: str, **props: Any) -> Element:
    """Render an icon by name; unknown names fall back to ``HelpCircle``."""
    return ICONS.get(name, ICONS["HelpCircle"])(**props)


def exports() -> Dict[str, Any]:
    names: Dict[str, Any] = dict(ICONS)
    names["Icon"] = Icon
    return names
