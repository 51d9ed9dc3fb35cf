from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from lessonforge.database import SessionLocal
from lessonforge.services.lesson_service import lesson_service
from lessonforge.websocket.manager import lesson_session_manager
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws", tags=["websocket"])


@router.websocket("/lessons/{lesson_id}")
async def lesson_session(websocket: WebSocket, lesson_id: int):
    """Interactive lesson: client events in, re-rendered markup out"""
    db = SessionLocal()
    try:
        lesson = lesson_service.get_lesson(db, lesson_id)
        source_code = lesson.source_code if lesson else None
    finally:
        db.close()

    if source_code is None:
        await websocket.close(code=4004, reason="Lesson not found")
        return

    session = await lesson_session_manager.connect(websocket, lesson_id, source_code)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue
            await session.handle_message(data)
    except WebSocketDisconnect:
        logger.info(f"[WS] Client left lesson {lesson_id}")
    finally:
        await lesson_session_manager.disconnect(session)
