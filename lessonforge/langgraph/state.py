from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, ConfigDict


class Phase(str, Enum):
    initialized = "initialized"
    analyzed = "analyzed"
    rejected = "rejected"
    generated = "generated"
    validated = "validated"
    validation_failed = "validation_failed"
    fixed = "fixed"
    saved = "saved"
    save_failed = "save_failed"
    completed = "completed"
    failed = "failed"


TERMINAL_PHASES: FrozenSet[Phase] = frozenset({Phase.rejected, Phase.completed, Phase.failed})

TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.initialized: frozenset({Phase.analyzed, Phase.rejected}),
    Phase.analyzed: frozenset({Phase.generated}),
    Phase.generated: frozenset({Phase.validated, Phase.validation_failed}),
    Phase.fixed: frozenset({Phase.validated, Phase.validation_failed}),
    Phase.validation_failed: frozenset({Phase.fixed, Phase.failed}),
    Phase.validated: frozenset({Phase.saved, Phase.save_failed}),
    Phase.saved: frozenset({Phase.completed}),
    Phase.save_failed: frozenset({Phase.failed}),
    Phase.rejected: frozenset(),
    Phase.completed: frozenset(),
    Phase.failed: frozenset(),
}

_missing = set(Phase) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Phases without transitions: {sorted(p.value for p in _missing)}")


def can_transition(current: Phase, target: Phase) -> bool:
    return target in TRANSITIONS[current]


class Route(str, Enum):
    generate = "generate"
    fix = "fix"
    save = "save"
    finalize = "finalize"


def next_step(phase: Phase, accepted: bool, attempt: int, actionable_count: int, max_attempts: int) -> Route:
    """
    Single routing decision for every conditional edge of the graph.

    A failed validation goes back to the fixer only while ``attempt`` is
    below ``max_attempts`` and something actionable is left to fix;
    everything that cannot make progress is sent to ``finalize``.
    """
    if phase == Phase.analyzed:
        return Route.generate
    if phase == Phase.validated and accepted:
        return Route.save
    if phase == Phase.validation_failed and attempt < max_attempts and actionable_count > 0:
        return Route.fix
    return Route.finalize


class GenerationState(BaseModel):
    """
    Immutable snapshot threaded through the pipeline.
    Nodes return only the fields they change; LangGraph builds the next snapshot.
    """
    model_config = ConfigDict(frozen=True)

    # Request
    prompt: str
    audience: Optional[str] = None
    tone: Optional[str] = None
    owner_id: Optional[int] = None

    # Pipeline progress
    title: Optional[str] = None
    source_text: str = ""
    violations: List[str] = []
    # Subset of violations the fixer is asked to repair
    actionable: List[str] = []
    attempt: int = 0
    accepted: bool = False
    record_id: Optional[int] = None

    phase: Phase = Phase.initialized
    failure_reason: Optional[str] = None
