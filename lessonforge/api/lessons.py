from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import List
from lessonforge.database import get_db
from lessonforge.dependencies.dependencies import get_current_user
from lessonforge.models.user import User
from lessonforge.schemas.lessons import LessonListResponse, LessonResponse
from lessonforge.services.lesson_service import lesson_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/lessons", tags=["lessons"])


def _get_lesson_or_404(db: Session, lesson_id: int):
    lesson = lesson_service.get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found")
    return lesson


@router.get("", response_model=List[LessonListResponse])
async def list_lessons(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return lesson_service.get_lessons_for_user(db, current_user)


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _get_lesson_or_404(db, lesson_id)


# Sync route: lesson code runs in the threadpool, not on the event loop
@router.get("/{lesson_id}/render", response_class=HTMLResponse)
def render_lesson(lesson_id: int, db: Session = Depends(get_db)):
    """Server-rendered lesson page; load and render failures show an error panel instead"""
    lesson = _get_lesson_or_404(db, lesson_id)
    return HTMLResponse(lesson_service.render_lesson_page(lesson))


@router.delete("/{lesson_id}")
async def delete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    lesson = _get_lesson_or_404(db, lesson_id)
    if not lesson_service.can_manage(lesson, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owner can delete this lesson")
    lesson_service.delete_lesson(db, lesson)
    return {"message": "Lesson deleted successfully"}
