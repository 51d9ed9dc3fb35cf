from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from lessonforge.dependencies.dependencies import get_current_user
from lessonforge.exceptions import ModelServiceError
from lessonforge.models.user import User
from lessonforge.schemas.generation import GenerationRequest, GenerationResponse
from lessonforge.services.generation_service import GenerationService, get_generation_service
import asyncio
import json
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/generation", tags=["generation"])


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.post("", response_model=GenerationResponse, response_model_exclude_none=True)
async def generate_lesson(
    request: Request,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Generate, validate and store a lesson for the given topic"""
    try:
        payload = GenerationRequest.model_validate(await request.json())
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid prompt")
    if not payload.prompt.strip():
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid prompt")

    try:
        state = await generation_service.generate_lesson(
            prompt=payload.prompt.strip(),
            audience=payload.audience,
            tone=payload.tone,
            owner_id=current_user.id
        )
    except asyncio.TimeoutError:
        logger.error(f"[GENERATION] Timed out for user {current_user.id}")
        return _failure(status.HTTP_504_GATEWAY_TIMEOUT, "Lesson generation timed out")
    except ModelServiceError as e:
        logger.error(f"[GENERATION] Model service failure for user {current_user.id}: {e}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate lesson")
    except Exception as e:
        logger.exception(f"[GENERATION] Unexpected failure for user {current_user.id}: {e}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate lesson")

    return generation_service.build_response(state)
