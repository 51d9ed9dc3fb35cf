from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class LessonListResponse(BaseModel):
    id: int
    title: str
    audience: Optional[str] = None
    tone: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LessonResponse(BaseModel):
    id: int
    title: str
    prompt: str
    source_code: str
    owner_id: Optional[int] = None
    audience: Optional[str] = None
    tone: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
