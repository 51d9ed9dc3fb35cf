from typing import List, Optional
from html import escape
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from lessonforge.database import SessionLocal
from lessonforge.exceptions import PersistenceError, RenderError
from lessonforge.kit.renderer import LessonRuntime
from lessonforge.models.lesson import Lesson
from lessonforge.models.user import User, UserRole
from lessonforge.sandbox import sandbox_loader
import asyncio
import logging

logger = logging.getLogger(__name__)


class LessonPersister:
    """Writes accepted lessons; the only code path that creates Lesson rows"""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    async def save(self, title: str, prompt: str, source_code: str, owner_id: Optional[int] = None,
                   audience: Optional[str] = None, tone: Optional[str] = None) -> int:
        return await asyncio.to_thread(
            self._save, title, prompt, source_code, owner_id, audience, tone
        )

    def _save(self, title, prompt, source_code, owner_id, audience, tone) -> int:
        db = self.session_factory()
        try:
            lesson = Lesson(
                title=title,
                prompt=prompt,
                source_code=source_code,
                owner_id=owner_id,
                audience=audience,
                tone=tone
            )
            db.add(lesson)
            db.commit()
            db.refresh(lesson)
            logger.info(f"[SAVE] Stored lesson {lesson.id}: {title}")
            return lesson.id
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[SAVE] Failed to store lesson '{title}': {e}")
            raise PersistenceError(f"Failed to save lesson: {e.__class__.__name__}: {e}") from e
        finally:
            db.close()


class LessonService:

    @staticmethod
    def get_lessons_for_user(db: Session, user: User) -> List[Lesson]:
        return db.query(Lesson).filter(
            Lesson.owner_id == user.id
        ).order_by(desc(Lesson.created_at), desc(Lesson.id)).all()

    @staticmethod
    def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
        return db.query(Lesson).filter(Lesson.id == lesson_id).first()

    @staticmethod
    def can_manage(lesson: Lesson, user: User) -> bool:
        return user.role == UserRole.admin or lesson.owner_id == user.id

    @staticmethod
    def delete_lesson(db: Session, lesson: Lesson):
        db.delete(lesson)
        db.commit()
        logger.info(f"[DELETE] Removed lesson {lesson.id}")

    @staticmethod
    def render_lesson_markup(lesson: Lesson) -> str:
        """Lesson body HTML, or an error panel when it cannot be loaded or rendered"""
        result = sandbox_loader.load(lesson.source_code, module_id=str(lesson.id))
        if not result.ok:
            return error_panel("This lesson could not be loaded", result.error)

        runtime = LessonRuntime(result.entry, module_id=str(lesson.id))
        try:
            return runtime.render()
        except RenderError as e:
            return error_panel("This lesson failed to render", str(e))
        finally:
            runtime.close()

    @staticmethod
    def render_lesson_page(lesson: Lesson) -> str:
        return PAGE_TEMPLATE.format(
            title=escape(lesson.title),
            lesson_id=lesson.id,
            body=LessonService.render_lesson_markup(lesson)
        )


def error_panel(heading: str, detail: Optional[str]) -> str:
    return (
        '<div class="lesson-error rounded-lg bg-red-100 p-6 text-red-800">'
        f'<h2 class="text-xl font-bold">{escape(heading)}</h2>'
        f'<pre class="mt-2 whitespace-pre-wrap text-sm">{escape(detail or "Unknown error")}</pre>'
        '</div>'
    )


# Client events are relayed to /ws/lessons/{id}; the server answers with fresh markup
PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-white">
<main id="lesson-root" class="mx-auto max-w-4xl p-6">{body}</main>
<script>
(function () {{
  var root = document.getElementById("lesson-root");
  var scheme = location.protocol === "https:" ? "wss://" : "ws://";
  var socket = new WebSocket(scheme + location.host + "/ws/lessons/{lesson_id}");
  function send(handler, value) {{
    if (handler && socket.readyState === 1) socket.send(JSON.stringify({{handler: handler, value: value}}));
  }}
  socket.onmessage = function (event) {{
    var message = JSON.parse(event.data);
    if (message.type === "render") root.innerHTML = message.html;
    if (message.type === "error") console.warn(message.error);
  }};
  root.addEventListener("click", function (event) {{
    var target = event.target.closest("[data-lf-click]");
    if (target) send(target.getAttribute("data-lf-click"), null);
  }});
  ["change", "input"].forEach(function (name) {{
    root.addEventListener(name, function (event) {{
      var target = event.target;
      var value = target.type === "checkbox" ? target.checked : target.value;
      send(target.getAttribute("data-lf-" + name), value);
    }});
  }});
  root.addEventListener("submit", function (event) {{
    var target = event.target.closest("[data-lf-submit]");
    if (target) {{ event.preventDefault(); send(target.getAttribute("data-lf-submit"), null); }}
  }});
}})();
</script>
</body>
</html>
"""

lesson_service = LessonService()
