"""
UI primitives for lesson modules (the ``lessonkit.ui`` namespace).

Lessons describe their interface as a tree of ``Element`` values built with
``h()`` or one of the tag helpers::

    div(
        h1("Fractions", class_name="text-3xl font-bold"),
        button("Check", class_name="bg-blue-200 px-4 py-2", on_click=check),
        class_name="p-6",
    )

Props use snake_case; ``class_name`` becomes ``class`` and ``on_<event>``
props take Python callables that the renderer wires to client events.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple, Union

from lessonforge.kit.hooks import use_callback, use_effect, use_memo, use_ref, use_state

Tag = Union[str, Callable[..., Any]]


@dataclass(frozen=True)
class Element:
    tag: Tag
    props: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple[Any, ...] = ()

    @property
    def key(self):
        return self.props.get("key")


def _flatten(children: Iterable[Any]) -> Tuple[Any, ...]:
    flat = []
    for child in children:
        if isinstance(child, (list, tuple)) or _is_generator(child):
            flat.extend(_flatten(child))
        else:
            flat.append(child)
    return tuple(flat)


def _is_generator(value: Any) -> bool:
    return hasattr(value, "__next__") and hasattr(value, "__iter__")


def h(tag: Tag, props: Mapping[str, Any] = None, *children: Any) -> Element:
    """Create an element. ``tag`` is an HTML/SVG tag name or a component function."""
    return Element(tag, dict(props or {}), _flatten(children))


def Fragment(*children: Any) -> Element:
    return Element("", {}, _flatten(children))


def element(tag: str) -> Callable[..., Element]:
    def factory(*children: Any, **props: Any) -> Element:
        return Element(tag, props, _flatten(children))

    factory.__name__ = tag
    factory.__qualname__ = tag
    return factory


def export_default(component: Callable) -> Callable:
    """Mark the lesson's entry component. The sandbox strips the marker."""
    return component


TAG_NAMES = (
    "div", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "section", "article", "header", "footer", "main", "nav", "aside",
    "button", "input", "label", "textarea", "select", "option", "form",
    "ul", "ol", "li", "strong", "em", "small", "code", "pre", "blockquote",
    "table", "thead", "tbody", "tr", "th", "td",
    "details", "summary", "progress", "br", "hr",
)

_TAG_HELPERS: Dict[str, Callable[..., Element]] = {name: element(name) for name in TAG_NAMES}


def exports() -> Dict[str, Any]:
    """Names a lesson may import from ``lessonkit.ui``. Built fresh on every call."""
    names: Dict[str, Any] = dict(_TAG_HELPERS)
    names.update({
        "h": h,
        "Fragment": Fragment,
        "Element": Element,
        "export_default": export_default,
        "use_state": use_state,
        "use_effect": use_effect,
        "use_memo": use_memo,
        "use_ref": use_ref,
        "use_callback": use_callback,
    })
    return names
