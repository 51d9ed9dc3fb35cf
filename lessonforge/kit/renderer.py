"""
Server-side renderer for lesson element trees.

A ``LessonRuntime`` owns the hook state of one loaded lesson. ``render()``
returns escaped HTML; callable ``on_*`` props are registered as handlers and
emitted as ``data-lf-<event>`` attributes so a client can report events back
through ``dispatch()``, which runs the handler and re-renders.
"""

import inspect
import logging
import re
from html import escape
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from lessonforge.exceptions import RenderError
from lessonforge.kit.hooks import EffectSlot, HookFrame, hook_frame
from lessonforge.kit.ui import Element

logger = logging.getLogger(__name__)

VOID_TAGS = frozenset({"input", "br", "hr", "path", "circle", "line", "rect", "polyline", "polygon", "ellipse"})
BLOCKED_TAGS = frozenset({"script", "style", "iframe", "object", "embed", "link", "meta", "base", "frame", "frameset"})
ATTRIBUTE_ALIASES = {
    "class_name": "class",
    "html_for": "for",
    "view_box": "viewBox",
    "preserve_aspect_ratio": "preserveAspectRatio",
}
URL_ATTRIBUTES = frozenset({"href", "src", "action", "formaction", "xlink:href"})
UNSAFE_URL_SCHEMES = ("javascript:", "data:", "vbscript:")
SKIPPED_PROPS = frozenset({"key", "children"})

# Browsers drop whitespace and control characters anywhere in a URL scheme
_URL_IGNORED = re.compile(r"[\x00-\x20\x7f]+")

_TAG_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")
_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_:.-]*$")


def _is_unsafe_url(text: str) -> bool:
    return _URL_IGNORED.sub("", text).lower().startswith(UNSAFE_URL_SCHEMES)


def _css(style: Dict[str, Any]) -> str:
    declarations = []
    for name, value in style.items():
        if value is None or value is False:
            continue
        declarations.append(f"{str(name).replace('_', '-')}: {value}")
    return "; ".join(declarations)


def _accepts_argument(handler: Callable) -> bool:
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return True
    # Defaulted parameters stay untouched: ``lambda i=index: choose(i)``
    for parameter in signature.parameters.values():
        if parameter.kind == parameter.VAR_POSITIONAL:
            return True
        if (parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
                and parameter.default is parameter.empty):
            return True
    return False


class LessonRuntime:
    """Hook storage, event handlers and render loop for one loaded lesson."""

    MAX_RENDER_PASSES = 25

    def __init__(self, entry: Callable[[], Any], module_id: Optional[str] = None):
        self.entry = entry
        self.module_id = module_id
        self._hooks: Dict[str, List[Any]] = {}
        self._handlers: Dict[str, Callable] = {}
        self._pending_effects: List[Tuple[EffectSlot, Callable, Optional[tuple]]] = []
        self._mounted: Set[str] = set()
        self._dirty = False
        self.html: Optional[str] = None

    # Called by hooks
    def invalidate(self):
        self._dirty = True

    def schedule_effect(self, slot: EffectSlot, effect: Callable, deps: Optional[tuple]):
        self._pending_effects.append((slot, effect, deps))

    def render(self) -> str:
        try:
            for _ in range(self.MAX_RENDER_PASSES):
                self._dirty = False
                self._handlers = {}
                self._pending_effects = []
                self._mounted = set()
                html = self._render_node(Element(self.entry), "root")
                self._unmount_missing()
                self._run_effects()
                if not self._dirty:
                    self.html = html
                    return html
        except RenderError:
            raise
        except Exception as e:
            logger.warning(f"[RENDER] Lesson {self.module_id} failed to render: {type(e).__name__}: {e}")
            raise RenderError(f"{type(e).__name__}: {e}") from e
        raise RenderError("Lesson keeps updating its state during render")

    def dispatch(self, handler_id: str, value: Any = None) -> str:
        handler = self._handlers.get(handler_id)
        if handler is None:
            raise RenderError(f"Unknown event handler: {handler_id}")
        try:
            if _accepts_argument(handler):
                handler(value)
            else:
                handler()
        except Exception as e:
            logger.warning(f"[RENDER] Handler {handler_id} of lesson {self.module_id} failed: {e}")
            raise RenderError(f"Event handler failed: {type(e).__name__}: {e}") from e
        return self.render()

    def close(self):
        """Run every pending effect cleanup; the runtime is unusable afterwards."""
        for slots in self._hooks.values():
            for slot in slots:
                if isinstance(slot, EffectSlot):
                    self._run_cleanup(slot)
        self._hooks.clear()
        self._handlers.clear()

    @property
    def handler_ids(self) -> List[str]:
        return list(self._handlers)

    def _render_node(self, node: Any, path: str) -> str:
        if node is None or isinstance(node, bool):
            return ""
        if isinstance(node, str):
            return escape(node, quote=False)
        if isinstance(node, (int, float)):
            return escape(str(node), quote=False)
        if isinstance(node, (list, tuple)):
            return self._render_children(node, path)
        if isinstance(node, Element):
            if callable(node.tag):
                return self._render_component(node, path)
            return self._render_tag(node, path)
        return escape(str(node), quote=False)

    def _render_children(self, children, path: str) -> str:
        rendered = []
        for index, child in enumerate(children):
            key = child.key if isinstance(child, Element) else None
            child_path = f"{path}.k{key}" if key is not None else f"{path}.{index}"
            rendered.append(self._render_node(child, child_path))
        return "".join(rendered)

    def _render_component(self, node: Element, path: str) -> str:
        component = node.tag
        name = getattr(component, "__name__", "component")
        hook_key = f"{path}:{name}"
        props = {key: value for key, value in node.props.items() if key != "key"}
        if node.children:
            props["children"] = node.children

        slots = self._hooks.setdefault(hook_key, [])
        self._mounted.add(hook_key)
        frame = HookFrame(self, slots)
        with hook_frame(frame):
            result = component(**props)
        frame.finish()
        return self._render_node(result, hook_key)

    def _render_tag(self, node: Element, path: str) -> str:
        tag = node.tag
        if tag == "":
            return self._render_children(node.children, path)
        if not _TAG_NAME.match(tag):
            raise RenderError(f"Invalid element name: {tag!r}")
        if tag.lower() in BLOCKED_TAGS:
            raise RenderError(f"<{tag}> elements are not allowed in lessons")

        attributes = "".join(self._render_attribute(name, value) for name, value in node.props.items())
        if tag in VOID_TAGS and not node.children:
            return f"<{tag}{attributes} />" if tag not in ("input", "br", "hr") else f"<{tag}{attributes}>"
        return f"<{tag}{attributes}>{self._render_children(node.children, path)}</{tag}>"

    def _render_attribute(self, name: str, value: Any) -> str:
        if name in SKIPPED_PROPS or value is None or value is False:
            return ""
        if name.startswith("on_"):
            if not callable(value):
                raise RenderError(f"Event prop {name} must be a function")
            handler_id = f"h{len(self._handlers)}"
            self._handlers[handler_id] = value
            return f' data-lf-{name[3:].replace("_", "-")}="{handler_id}"'

        attribute = ATTRIBUTE_ALIASES.get(name, name.replace("_", "-"))
        if not _ATTRIBUTE_NAME.match(attribute):
            raise RenderError(f"Invalid attribute name: {name!r}")
        if attribute.lower().startswith("on"):
            raise RenderError(f"Inline event attribute not allowed: {attribute}")
        if value is True:
            return f" {attribute}"
        if attribute == "style" and isinstance(value, dict):
            value = _css(value)
        text = str(value)
        if attribute.lower() in URL_ATTRIBUTES and _is_unsafe_url(text):
            raise RenderError(f"Unsafe URL in {attribute}")
        return f' {attribute}="{escape(text, quote=True)}"'

    def _unmount_missing(self):
        for hook_key in [key for key in self._hooks if key not in self._mounted]:
            for slot in self._hooks.pop(hook_key):
                if isinstance(slot, EffectSlot):
                    self._run_cleanup(slot)

    def _run_cleanup(self, slot: EffectSlot):
        # A failing cleanup is logged; the remaining cleanups still run
        try:
            slot.run_cleanup()
        except Exception as e:
            logger.warning(f"[RENDER] Effect cleanup of lesson {self.module_id} failed: {type(e).__name__}: {e}")

    def _run_effects(self):
        effects, self._pending_effects = self._pending_effects, []
        for slot, effect, deps in effects:
            if not slot.should_run(deps):
                continue
            slot.run_cleanup()
            result = effect()
            slot.cleanup = result if callable(result) else None
            slot.deps = deps


def render_lesson(entry: Callable[[], Any], module_id: Optional[str] = None) -> str:
    """Render an entry component once and release its effects."""
    runtime = LessonRuntime(entry, module_id)
    try:
        return runtime.render()
    finally:
        runtime.close()
