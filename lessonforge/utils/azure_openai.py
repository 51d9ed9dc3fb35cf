from openai import AsyncAzureOpenAI, OpenAIError
from lessonforge.config import settings
from lessonforge.exceptions import ModelServiceError
from functools import lru_cache
from typing import Any, Dict, Optional
import json
import re
import logging

logger = logging.getLogger(__name__)

JSON_SPAN_PATTERN = re.compile(r'\{.*\}', re.DOTALL)


class AzureOpenAIClient:
    def __init__(self, endpoint: str = None, api_key: str = None, api_version: str = None,
                 deployment_name: str = None, timeout: float = None):
        self.deployment_name = deployment_name or settings.azure_openai_deployment_name
        self.client = AsyncAzureOpenAI(
            azure_endpoint=endpoint or settings.azure_openai_endpoint,
            api_key=api_key or settings.azure_openai_api_key,
            api_version=api_version or settings.azure_openai_api_version,
            timeout=timeout or settings.model_timeout_seconds
        )

    async def complete(self, system_prompt: str, user_content: str, temperature: Optional[float] = None) -> str:
        """Single system+user round-trip; returns the raw reply text"""
        if temperature is None:
            temperature = settings.model_temperature

        try:
            response = await self.client.chat.completions.create(
                model=self.deployment_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                temperature=temperature
            )
        except OpenAIError as e:
            logger.error(f"[MODEL] Request to {self.deployment_name} failed: {e}")
            raise ModelServiceError(f"Model service request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def parse_json_reply(content: str) -> Optional[Dict[str, Any]]:
    """JSON object from a model reply, trying the first {...} span as a fallback"""
    if not content:
        return None
    try:
        data = json.loads(content.strip())
    except json.JSONDecodeError:
        json_match = JSON_SPAN_PATTERN.search(content)
        if not json_match:
            return None
        try:
            data = json.loads(json_match.group())
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


@lru_cache()
def get_model_client() -> AzureOpenAIClient:
    return AzureOpenAIClient()
