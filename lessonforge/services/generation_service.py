from typing import Any, Dict, Optional
from functools import lru_cache
from lessonforge.config import settings
from lessonforge.langgraph.state import GenerationState, Phase
from lessonforge.langgraph.workflow import LessonGenerationWorkflow
from lessonforge.services.lesson_ai import CodeFixer, CodeGenerator, PromptAnalyzer
from lessonforge.services.lesson_service import LessonPersister
from lessonforge.utils.azure_openai import get_model_client
import asyncio
import logging

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Lesson generated successfully"


class GenerationService:

    def __init__(self, workflow: LessonGenerationWorkflow, timeout_seconds: Optional[float] = None):
        self.workflow = workflow
        self.timeout_seconds = timeout_seconds

    async def generate_lesson(self, prompt: str, audience: Optional[str] = None, tone: Optional[str] = None,
                              owner_id: Optional[int] = None) -> GenerationState:
        """Run the whole pipeline; raises asyncio.TimeoutError past the configured deadline"""
        return await asyncio.wait_for(
            self.workflow.run(prompt=prompt, audience=audience, tone=tone, owner_id=owner_id),
            timeout=self.timeout_seconds
        )

    @staticmethod
    def build_response(state: GenerationState) -> Dict[str, Any]:
        if state.phase == Phase.completed:
            return {
                "success": True,
                "lessonId": state.record_id,
                "title": state.title,
                "message": SUCCESS_MESSAGE,
            }
        return {
            "success": False,
            "error": state.failure_reason or "Lesson generation failed",
        }


def build_generation_service(client=None, persister=None) -> GenerationService:
    client = client or get_model_client()
    workflow = LessonGenerationWorkflow(
        analyzer=PromptAnalyzer(client, settings.title_fallback_length),
        generator=CodeGenerator(client),
        fixer=CodeFixer(client),
        persister=persister or LessonPersister(),
        max_fix_attempts=settings.max_fix_attempts,
    )
    return GenerationService(workflow, timeout_seconds=settings.generation_timeout_seconds)


@lru_cache()
def get_generation_service() -> GenerationService:
    return build_generation_service()
