import ast
from types import SimpleNamespace

import pytest

from lessonforge.kit.renderer import render_lesson
from lessonforge.exceptions import SandboxError
from lessonforge.sandbox.loader import FACTORY_NAME, ModuleLowering, SandboxLoader
from lessonforge.sandbox.scope import SAFE_BUILTINS, build_capability_scope

from conftest import DISALLOWED_IMPORT_LESSON, FRAME_WALK_LESSON, HOVER_LESSON, VALID_LESSON

loader = SandboxLoader()


def test_valid_lesson_loads_into_callable_entry():
    result = loader.load(VALID_LESSON, module_id="1")
    assert result.ok
    assert result.error is None
    assert result.entry_name == "Lesson"
    assert callable(result.entry)
    assert "Fractions" in render_lesson(result.entry)


def test_unaccepted_text_is_never_executed():
    calls = []

    def counting_namespaces():
        calls.append(1)
        return {}

    result = SandboxLoader(namespaces_factory=counting_namespaces).load(HOVER_LESSON, module_id="2")
    assert not result.ok
    assert result.error.startswith("Lesson module has not passed validation: ")
    assert "hover:bg-blue-300" in result.error
    assert calls == []


def test_disallowed_import_is_refused():
    result = loader.load(DISALLOWED_IMPORT_LESSON)
    assert not result.ok
    assert "Import not allowed: requests" in result.error


def test_empty_source_fails_closed():
    assert loader.load("").error == "Lesson module is empty"
    assert not loader.load(None).ok


def test_unknown_export_fails_closed():
    code = VALID_LESSON.replace("use_state, export_default", "use_state, export_default, teleport")
    code = code.replace('class_name="p-6"', 'teleport(), class_name="p-6"')
    result = loader.load(code)
    assert not result.ok
    assert result.error == "lessonkit.ui has no export named 'teleport'"


def test_module_body_errors_are_reported_not_raised():
    code = VALID_LESSON.replace("@export_default", "RATIO = 1 / 0\n\n@export_default")
    result = loader.load(code)
    assert not result.ok
    assert result.error.startswith("Lesson module failed to load: ZeroDivisionError")


def test_non_callable_entry_is_rejected():
    code = (
        "from lessonkit.ui import export_default\n\n"
        "@export_default\n"
        "def Lesson():\n"
        "    return 1\n\n"
        "Lesson = 5\n"
    )
    result = loader.load(code)
    assert not result.ok
    assert result.error == "Generated lesson is not a valid component"


def test_typing_and_future_imports_are_dropped():
    code = "from __future__ import annotations\nfrom typing import List\n" + VALID_LESSON
    result = loader.load(code)
    assert result.ok


def test_module_alias_and_package_imports_bind_namespaces():
    code = '''import lessonkit.ui as ui
import lessonkit.icons
from lessonkit.ui import export_default

@export_default
def Lesson():
    value, set_value = ui.use_state(2)
    return ui.div(lessonkit.icons.Star(), str(value * 2))
'''
    result = loader.load(code)
    assert result.ok, result.error
    html = render_lesson(result.entry)
    assert "<svg" in html
    assert "4" in html


def test_star_import_binds_every_export():
    code = '''from lessonkit.ui import *

@export_default
def Lesson():
    return div(span("star"))
'''
    result = loader.load(code)
    assert result.ok, result.error
    assert render_lesson(result.entry) == "<div><span>star</span></div>"


def test_helper_functions_and_module_state_survive_lowering():
    code = '''from lessonkit.ui import div, p, export_default

TOTAL = 0

def bump():
    global TOTAL
    TOTAL = TOTAL + 1
    return TOTAL

@export_default
def Lesson():
    return div(p(str(bump())), p(str(bump())))
'''
    result = loader.load(code)
    assert result.ok, result.error
    assert render_lesson(result.entry) == "<div><p>1</p><p>2</p></div>"


def test_nested_imports_are_refused():
    code = '''from lessonkit.ui import div, export_default

@export_default
def Lesson():
    from lessonkit.icons import Star
    return div(Star())
'''
    result = loader.load(code)
    assert not result.ok
    assert result.error == "Imports are only allowed at the top of a lesson module"


def test_scope_holds_only_safe_builtins():
    scope = build_capability_scope({"div": object()})
    builtins = scope["__builtins__"]
    assert set(builtins) == set(SAFE_BUILTINS)
    for name in ("__import__", "open", "eval", "exec", "getattr", "globals", "type", "object"):
        assert name not in builtins
    assert "div" in scope
    assert FACTORY_NAME not in scope


def test_loads_are_isolated():
    first = loader.load(VALID_LESSON)
    second = loader.load(VALID_LESSON)
    assert first.entry is not second.entry
    assert first.entry.__globals__ is not second.entry.__globals__


def test_sandbox_denies_builtins_not_in_the_table():
    code = '''from lessonkit.ui import div, export_default

@export_default
def Lesson():
    return div(str(type(1)))
'''
    result = loader.load(code)
    assert result.ok
    # the lookup of ``type`` only happens at render time
    try:
        render_lesson(result.entry)
    except Exception as e:
        assert "type" in str(e)
    else:
        raise AssertionError("type() should not be reachable from a lesson")


def test_namespace_factory_is_called_per_load():
    tables = []

    def namespaces():
        table = {"lessonkit.ui": {"export_default": lambda f: f, "div": lambda *c, **p: SimpleNamespace()}}
        tables.append(table)
        return table

    custom = SandboxLoader(namespaces_factory=namespaces)
    code = "from lessonkit.ui import div, export_default\n\n@export_default\ndef Lesson():\n    return div()\n"
    assert custom.load(code).ok
    assert custom.load(code).ok
    assert len(tables) == 2


def test_frame_walk_never_reaches_host_builtins():
    result = loader.load(FRAME_WALK_LESSON, module_id="9")
    assert not result.ok
    assert result.entry is None
    assert result.error.startswith("Lesson module has not passed validation: ")
    assert "__traceback__ access is not allowed" in result.error


def test_lowering_refuses_blocked_attributes():
    tree = ast.parse(
        "def Lesson():\n"
        "    try:\n"
        "        1 / 0\n"
        "    except ZeroDivisionError as e:\n"
        "        return e.__traceback__.tb_frame\n"
    )
    with pytest.raises(SandboxError, match="Attribute not allowed in lessons: tb_frame"):
        ModuleLowering("Lesson").lower(tree)


def test_lowering_keeps_allowed_dunders():
    tree = ast.parse("def Lesson():\n    return Lesson.__name__\n")
    lowered = ModuleLowering("Lesson").lower(tree)
    assert lowered.body[0].name == FACTORY_NAME
