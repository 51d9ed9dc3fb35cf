from typing import Any, Dict, Optional
from fastapi import WebSocket
from fastapi.concurrency import run_in_threadpool
from lessonforge.exceptions import RenderError
from lessonforge.kit.renderer import LessonRuntime
from lessonforge.sandbox import sandbox_loader
import json
import logging

logger = logging.getLogger(__name__)


class LessonSession:
    """One websocket connection driving one freshly loaded lesson"""

    def __init__(self, websocket: WebSocket, lesson_id: int, runtime: Optional[LessonRuntime]):
        self.websocket = websocket
        self.lesson_id = lesson_id
        self.runtime = runtime

    async def send(self, message: Dict[str, Any]):
        await self.websocket.send_text(json.dumps(message))

    async def send_render(self, html: str):
        await self.send({"type": "render", "html": html})

    async def send_error(self, error: str):
        await self.send({"type": "error", "error": error})

    async def handle_message(self, raw: str):
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            await self.send_error("Messages must be JSON")
            return
        if not isinstance(message, dict) or not isinstance(message.get("handler"), str):
            await self.send_error("Messages must look like {\"handler\": \"h0\", \"value\": ...}")
            return
        if self.runtime is None:
            await self.send_error("Lesson is not loaded")
            return

        try:
            html = await run_in_threadpool(self.runtime.dispatch, message["handler"], message.get("value"))
        except RenderError as e:
            await self.send_error(str(e))
            return
        await self.send_render(html)

    def close(self):
        if self.runtime is not None:
            self.runtime.close()
            self.runtime = None


class LessonSessionManager:
    def __init__(self):
        # active sessions keyed by connection id
        self.active_sessions: Dict[int, LessonSession] = {}

    async def connect(self, websocket: WebSocket, lesson_id: int, source_code: str) -> LessonSession:
        """Accept the connection, load the lesson into a fresh sandbox and send the first render"""
        await websocket.accept()

        # Lesson code never runs on the event loop
        result = await run_in_threadpool(sandbox_loader.load, source_code, module_id=str(lesson_id))
        session = LessonSession(websocket, lesson_id, LessonRuntime(result.entry, str(lesson_id)) if result.ok else None)
        self.active_sessions[id(websocket)] = session
        logger.info(f"[WS] Session opened for lesson {lesson_id} ({len(self.active_sessions)} active)")

        if not result.ok:
            await session.send_error(result.error)
            return session
        try:
            await session.send_render(await run_in_threadpool(session.runtime.render))
        except RenderError as e:
            await session.send_error(str(e))
        return session

    async def disconnect(self, session: LessonSession):
        await run_in_threadpool(session.close)
        self.active_sessions.pop(id(session.websocket), None)
        logger.info(f"[WS] Session closed for lesson {session.lesson_id}")


lesson_session_manager = LessonSessionManager()
