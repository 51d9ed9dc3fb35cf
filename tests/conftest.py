import os
import sys
from pathlib import Path

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
os.environ.setdefault("AZURE_OPENAI_API_KEY", "test-key")
os.environ.setdefault("AZURE_OPENAI_API_VERSION", "2024-02-01")
os.environ.setdefault("AZURE_OPENAI_DEPLOYMENT_NAME", "gpt-test")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-password")

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

import json

import pytest

from lessonforge.database import Base, engine
from lessonforge.exceptions import PersistenceError
import lessonforge.models  # noqa: F401


VALID_LESSON = '''from lessonkit.ui import div, h1, p, button, use_state, export_default

@export_default
def Lesson():
    count, set_count = use_state(0)
    return div(
        h1("Fractions", class_name="text-3xl font-bold animate-pulse"),
        p(f"You have cut the pizza into {count + 1} slices"),
        button("Cut again", class_name="bg-blue-200 px-4 py-2", on_click=lambda: set_count(count + 1)),
        class_name="p-6",
    )
'''

HOVER_LESSON = VALID_LESSON.replace("bg-blue-200 px-4", "bg-blue-200 hover:bg-blue-300 px-4")

DISALLOWED_IMPORT_LESSON = "import requests\n" + VALID_LESSON

FAILING_CLEANUP_LESSON = '''from lessonkit.ui import div, p, use_effect, export_default

@export_default
def Lesson():
    def start():
        return lambda: 1 / 0

    use_effect(start, [])
    return div(p("Cleanup lesson"))
'''

# Walks from a caught exception back to the host frame's real builtins
FRAME_WALK_LESSON = '''from lessonkit.ui import div, p, export_default

def host_builtins():
    try:
        1 / 0
    except ZeroDivisionError as e:
        frame = e.__traceback__.tb_frame
        while frame.f_back is not None:
            frame = frame.f_back
        return sorted(frame.f_builtins)[:3]

@export_default
def Lesson():
    return div(p(str(host_builtins())))
'''


def fenced(source: str) -> str:
    return f"Here is your lesson:\n```python\n{source}```\nEnjoy!"


def analysis_reply(is_educational: bool = True, title: str = "Introduction to Fractions", reason: str = "") -> str:
    return json.dumps({"is_educational": is_educational, "title": title, "reason": reason})


class FakeModelClient:
    """Replays scripted replies and records every request"""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, system_prompt, user_content, temperature=None):
        self.calls.append({"system_prompt": system_prompt, "user_content": user_content, "temperature": temperature})
        if not self.replies:
            raise AssertionError("Model called more often than scripted")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakePersister:
    def __init__(self, error: str = None):
        self.error = error
        self.saved = []

    async def save(self, **record):
        if self.error:
            raise PersistenceError(self.error)
        self.saved.append(record)
        return len(self.saved)


@pytest.fixture
def persister():
    return FakePersister()


@pytest.fixture
def db_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
