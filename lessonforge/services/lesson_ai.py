from dataclasses import dataclass
from typing import List, Optional
from lessonforge.compiler.extractor import extract_component_code
from lessonforge.utils.azure_openai import parse_json_reply
from lessonforge.utils.prompts import (
    ANALYZER_SYSTEM_PROMPT,
    build_fixer_system_prompt,
    build_fixer_user_content,
    build_generator_system_prompt,
    build_generator_user_content,
)
import logging

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Not an educational topic"


@dataclass(frozen=True)
class AnalysisResult:
    accepted: bool
    title: Optional[str] = None
    reason: Optional[str] = None


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


class PromptAnalyzer:
    def __init__(self, client, title_fallback_length: int = 100):
        self.client = client
        self.title_fallback_length = title_fallback_length

    def fallback_title(self, prompt: str) -> str:
        return prompt.strip()[:self.title_fallback_length]

    async def analyze(self, prompt: str) -> AnalysisResult:
        """Classify the request and derive a title; unparseable replies are treated as accepted"""
        reply = await self.client.complete(ANALYZER_SYSTEM_PROMPT, prompt, temperature=0.0)
        data = parse_json_reply(reply)

        if data is None or "is_educational" not in data:
            logger.warning("[ANALYZE] Could not parse analyzer reply, using the request as title")
            return AnalysisResult(accepted=True, title=self.fallback_title(prompt))

        if not _truthy(data.get("is_educational")):
            reason = str(data.get("reason") or "").strip() or DEFAULT_REJECTION_REASON
            return AnalysisResult(accepted=False, reason=reason)

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            title = self.fallback_title(prompt)
        return AnalysisResult(accepted=True, title=title.strip())


class CodeGenerator:
    def __init__(self, client):
        self.client = client

    async def generate(self, prompt: str, title: str, audience: Optional[str] = None,
                       tone: Optional[str] = None) -> str:
        reply = await self.client.complete(
            build_generator_system_prompt(),
            build_generator_user_content(prompt, title, audience, tone)
        )
        return extract_component_code(reply)


class CodeFixer:
    def __init__(self, client, temperature: float = 0.2):
        self.client = client
        self.temperature = temperature

    async def fix(self, source_text: str, violations: List[str]) -> str:
        """Targeted repair of the listed violations only"""
        reply = await self.client.complete(
            build_fixer_system_prompt(),
            build_fixer_user_content(source_text, violations),
            temperature=self.temperature
        )
        return extract_component_code(reply)
