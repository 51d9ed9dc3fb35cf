from typing import Any, Dict
from lessonforge.compiler.validator import actionable_violations, validate_lesson_code
from lessonforge.exceptions import PersistenceError
from lessonforge.langgraph.state import GenerationState, Phase, can_transition
import logging

logger = logging.getLogger(__name__)


def _advance(state: GenerationState, target: Phase, **changes: Any) -> Dict[str, Any]:
    if not can_transition(state.phase, target):
        raise RuntimeError(f"Illegal phase transition {state.phase.value} -> {target.value}")
    changes["phase"] = target
    return changes


class GenerationNodes:
    """
    Pipeline stages. Each node reads the current snapshot and returns only
    the fields it changes.
    """

    def __init__(self, analyzer, generator, fixer, persister, max_fix_attempts: int = 3):
        self.analyzer = analyzer
        self.generator = generator
        self.fixer = fixer
        self.persister = persister
        self.max_fix_attempts = max_fix_attempts

    async def analyze(self, state: GenerationState) -> Dict[str, Any]:
        logger.info(f"[ANALYZE] Classifying request: {state.prompt[:80]!r}")
        result = await self.analyzer.analyze(state.prompt)

        if not result.accepted:
            logger.info(f"[ANALYZE] Rejected: {result.reason}")
            return _advance(state, Phase.rejected, failure_reason=result.reason)

        logger.info(f"[ANALYZE] Accepted with title '{result.title}'")
        return _advance(state, Phase.analyzed, title=result.title)

    async def generate(self, state: GenerationState) -> Dict[str, Any]:
        logger.info(f"[GENERATE] Generating lesson '{state.title}'")
        source_text = await self.generator.generate(state.prompt, state.title, state.audience, state.tone)
        logger.info(f"[GENERATE] Received {len(source_text)} characters of source")
        return _advance(state, Phase.generated, source_text=source_text)

    async def validate(self, state: GenerationState) -> Dict[str, Any]:
        result = validate_lesson_code(state.source_text)
        blocking = actionable_violations(result)

        if not blocking:
            for advisory in result.violations:
                logger.info(f"[VALIDATE] Advisory: {advisory}")
            logger.info("[VALIDATE] Lesson accepted")
            return _advance(state, Phase.validated, accepted=True, violations=[], actionable=[])

        attempt = state.attempt + 1
        logger.warning(f"[VALIDATE] Attempt {attempt}/{self.max_fix_attempts} failed with {len(blocking)} error(s): {blocking}")
        return _advance(
            state,
            Phase.validation_failed,
            accepted=False,
            attempt=attempt,
            violations=list(result.violations),
            actionable=blocking,
        )

    async def fix(self, state: GenerationState) -> Dict[str, Any]:
        logger.info(f"[FIX] Repairing {len(state.actionable)} error(s) after attempt {state.attempt}")
        source_text = await self.fixer.fix(state.source_text, state.actionable)
        return _advance(state, Phase.fixed, source_text=source_text)

    async def save(self, state: GenerationState) -> Dict[str, Any]:
        try:
            record_id = await self.persister.save(
                title=state.title,
                prompt=state.prompt,
                source_code=state.source_text,
                owner_id=state.owner_id,
                audience=state.audience,
                tone=state.tone,
            )
        except PersistenceError as e:
            logger.error(f"[SAVE] {e}")
            return _advance(state, Phase.save_failed, failure_reason=str(e))
        return _advance(state, Phase.saved, record_id=record_id)

    async def finalize(self, state: GenerationState) -> Dict[str, Any]:
        if state.phase == Phase.saved:
            logger.info(f"[FINALIZE] Lesson {state.record_id} completed")
            return _advance(state, Phase.completed)

        if state.phase == Phase.rejected:
            return {"failure_reason": state.failure_reason}

        if state.phase == Phase.validation_failed:
            reason = f"Validation failed after {state.attempt} attempts: " + "; ".join(state.actionable or state.violations)
        else:
            reason = state.failure_reason or f"Generation stopped in phase {state.phase.value}"

        logger.warning(f"[FINALIZE] Generation failed: {reason}")
        return _advance(state, Phase.failed, failure_reason=reason)
