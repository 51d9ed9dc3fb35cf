"""
State and effect primitives available to lesson modules.

Hooks only work while a LessonRuntime is rendering a component. Each
component owns an ordered list of slots; the n-th hook call in a render
reads the n-th slot, so hooks must be called in the same order every time.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, List, Optional, Sequence, Tuple

_UNSET = object()

_current_frame: ContextVar[Optional["HookFrame"]] = ContextVar("lessonkit_hook_frame", default=None)


class StateSlot:
    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value


class EffectSlot:
    __slots__ = ("deps", "cleanup")

    def __init__(self):
        self.deps: Any = _UNSET
        self.cleanup: Optional[Callable[[], Any]] = None

    def should_run(self, deps: Optional[Tuple[Any, ...]]) -> bool:
        return deps is None or self.deps is _UNSET or self.deps != deps

    def run_cleanup(self):
        cleanup, self.cleanup = self.cleanup, None
        if cleanup is not None:
            cleanup()


class MemoSlot:
    __slots__ = ("deps", "value")

    def __init__(self):
        self.deps: Any = _UNSET
        self.value: Any = None


class Ref:
    """Mutable box that survives re-renders without triggering one."""
    __slots__ = ("current",)

    def __init__(self, current: Any = None):
        self.current = current

    def __repr__(self):
        return f"Ref({self.current!r})"


class HookFrame:
    def __init__(self, runtime, slots: List[Any]):
        self.runtime = runtime
        self.slots = slots
        self.index = 0
        self.initial_size = len(slots)

    def next_slot(self, factory: Callable[[], Any], kind: type) -> Any:
        if self.index == len(self.slots):
            if self.initial_size:
                raise RuntimeError("Hooks must be called in the same order on every render")
            self.slots.append(factory())
        slot = self.slots[self.index]
        if not isinstance(slot, kind):
            raise RuntimeError("Hooks must be called in the same order on every render")
        self.index += 1
        return slot

    def finish(self):
        if self.initial_size and self.index != self.initial_size:
            raise RuntimeError("Hooks must be called in the same order on every render")


@contextmanager
def hook_frame(frame: HookFrame):
    token = _current_frame.set(frame)
    try:
        yield frame
    finally:
        _current_frame.reset(token)


def _frame() -> HookFrame:
    frame = _current_frame.get()
    if frame is None:
        raise RuntimeError("Hooks can only be called while a lesson is rendering")
    return frame


def _normalize_deps(deps: Optional[Sequence[Any]]) -> Optional[Tuple[Any, ...]]:
    return None if deps is None else tuple(deps)


def use_state(initial: Any):
    """Return ``(value, set_value)``. The setter takes a value or a function of the previous value."""
    frame = _frame()
    slot = frame.next_slot(lambda: StateSlot(initial() if callable(initial) else initial), StateSlot)
    runtime = frame.runtime

    def set_state(value):
        new_value = value(slot.value) if callable(value) else value
        if new_value is slot.value or new_value == slot.value:
            return
        slot.value = new_value
        runtime.invalidate()

    return slot.value, set_state


def use_effect(effect: Callable[[], Any], deps: Optional[Sequence[Any]] = None):
    """Run ``effect`` after the render when ``deps`` changed; a returned callable is used as cleanup."""
    frame = _frame()
    slot = frame.next_slot(EffectSlot, EffectSlot)
    frame.runtime.schedule_effect(slot, effect, _normalize_deps(deps))


def use_memo(factory: Callable[[], Any], deps: Optional[Sequence[Any]] = None):
    frame = _frame()
    slot = frame.next_slot(MemoSlot, MemoSlot)
    normalized = _normalize_deps(deps)
    if normalized is None or slot.deps is _UNSET or slot.deps != normalized:
        slot.value = factory()
        slot.deps = normalized
    return slot.value


def use_callback(callback: Callable, deps: Optional[Sequence[Any]] = None):
    return use_memo(lambda: callback, deps)


def use_ref(initial: Any = None) -> Ref:
    frame = _frame()
    return frame.next_slot(lambda: Ref(initial), Ref)
