from langgraph.graph import StateGraph, START, END
from lessonforge.langgraph.state import GenerationState, Route, next_step
from lessonforge.langgraph.nodes import GenerationNodes
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class LessonGenerationWorkflow:
    """
    analyze -> generate -> validate -> (fix -> validate)* -> save -> finalize

    Rejections and exhausted retries go straight to finalize. The graph is
    compiled without a checkpointer: a run's state never outlives the request.
    """

    def __init__(self, analyzer, generator, fixer, persister, max_fix_attempts: int = 3):
        self.max_fix_attempts = max_fix_attempts
        self.nodes = GenerationNodes(analyzer, generator, fixer, persister, max_fix_attempts)
        self._compiled_workflow = self._build_workflow().compile()

    @property
    def recursion_limit(self) -> int:
        # analyze, generate, save, finalize plus one validate per attempt and one fix between attempts
        return 2 * self.max_fix_attempts + 4

    def _route(self, state: GenerationState) -> str:
        route = next_step(
            state.phase,
            state.accepted,
            state.attempt,
            len(state.actionable),
            self.max_fix_attempts,
        )
        logger.info(f"[ROUTING] {state.phase.value} -> {route.value}")
        return route.value

    def _build_workflow(self) -> StateGraph:
        workflow = StateGraph(GenerationState)

        workflow.add_node("analyze", self.nodes.analyze)
        workflow.add_node("generate", self.nodes.generate)
        workflow.add_node("validate", self.nodes.validate)
        workflow.add_node("fix", self.nodes.fix)
        workflow.add_node("save", self.nodes.save)
        workflow.add_node("finalize", self.nodes.finalize)

        workflow.add_edge(START, "analyze")
        workflow.add_conditional_edges("analyze", self._route, {
            Route.generate.value: "generate",
            Route.finalize.value: "finalize",
        })
        workflow.add_edge("generate", "validate")
        workflow.add_conditional_edges("validate", self._route, {
            Route.fix.value: "fix",
            Route.save.value: "save",
            Route.finalize.value: "finalize",
        })
        workflow.add_edge("fix", "validate")
        workflow.add_edge("save", "finalize")
        workflow.add_edge("finalize", END)
        return workflow

    async def run(self, prompt: str, audience: Optional[str] = None, tone: Optional[str] = None,
                  owner_id: Optional[int] = None) -> GenerationState:
        initial_state = GenerationState(prompt=prompt, audience=audience, tone=tone, owner_id=owner_id)
        logger.info(f"[WORKFLOW] Starting generation for owner {owner_id}")

        result = await self._compiled_workflow.ainvoke(
            initial_state,
            config={"recursion_limit": self.recursion_limit}
        )
        final_state = GenerationState(**result)

        logger.info(f"[WORKFLOW] Finished in phase {final_state.phase.value} after {final_state.attempt} failed validation(s)")
        return final_state
