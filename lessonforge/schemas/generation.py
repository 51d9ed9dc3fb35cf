from pydantic import BaseModel, StrictStr
from typing import Optional

class GenerationRequest(BaseModel):
    prompt: StrictStr
    audience: Optional[str] = None
    tone: Optional[str] = None

class GenerationResponse(BaseModel):
    success: bool
    lessonId: Optional[int] = None
    title: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
