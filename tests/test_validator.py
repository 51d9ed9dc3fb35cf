import pytest

from lessonforge.compiler.validator import (
    DiagnosticCode,
    actionable_violations,
    find_entry_name,
    find_imports,
    is_acceptable,
    validate_lesson_code,
)

from conftest import DISALLOWED_IMPORT_LESSON, FRAME_WALK_LESSON, HOVER_LESSON, VALID_LESSON


def test_minimal_lesson_has_no_violations():
    result = validate_lesson_code(VALID_LESSON)
    assert result.accepted
    assert result.violations == []
    assert result.diagnostics == ()


def test_validation_is_deterministic():
    first = validate_lesson_code(HOVER_LESSON)
    second = validate_lesson_code(HOVER_LESSON)
    assert first == second


@pytest.mark.parametrize("snippet, message", [
    ("eval('1 + 1')", "eval() is not allowed"),
    ("exec('x = 1')", "exec() is not allowed"),
    ("__import__('os')", "__import__ is not allowed"),
    ("open('notes.txt')", "open() is not allowed"),
    ("getattr(count, 'real')", "getattr() is not allowed"),
    ("().__class__.__bases__", "__class__ access is not allowed"),
    ("p(inner_html='<b>x</b>')", "inner_html is not allowed"),
])
def test_blocked_capabilities_are_always_reported(snippet, message):
    code = VALID_LESSON.replace("    count, set_count = use_state(0)\n",
                                f"    count, set_count = use_state(0)\n    {snippet}\n")
    result = validate_lesson_code(code)
    assert not result.accepted
    assert message in result.violations
    assert message in actionable_violations(result)


def test_frame_walk_is_rejected():
    result = validate_lesson_code(FRAME_WALK_LESSON)
    assert not result.accepted
    assert "__traceback__ access is not allowed" in result.violations
    assert "Frame and traceback attributes are not allowed" in result.violations
    assert "Dunder attribute access is not allowed" in actionable_violations(result)


@pytest.mark.parametrize("snippet", [
    "count.__reduce_ex__(2)",
    "(lambda: 1).__closure__",
    "'{0.__traceback__}'.format(count)",
    "gen.gi_frame",
    "task.cr_frame.f_locals",
])
def test_frame_and_dunder_attributes_are_blocked(snippet):
    code = VALID_LESSON.replace("    count, set_count = use_state(0)\n",
                                f"    count, set_count = use_state(0)\n    {snippet}\n")
    assert actionable_violations(validate_lesson_code(code))


def test_harmless_dunders_are_allowed():
    code = VALID_LESSON.replace('p(f"You', 'p(Lesson.__name__, f"You')
    assert validate_lesson_code(code).violations == []


def test_disallowed_import_reports_module():
    result = validate_lesson_code(DISALLOWED_IMPORT_LESSON)
    assert result.violations == ["Import not allowed: requests"]
    assert result.diagnostics[0].code == DiagnosticCode.import_not_allowed


def test_dotted_child_of_allowed_namespace_is_allowed():
    code = "from lessonkit.ui.extra import thing\n" + VALID_LESSON.replace("p(f", "p(thing, f")
    assert "Import not allowed: lessonkit.ui.extra" not in validate_lesson_code(code).violations


def test_lookalike_namespace_is_rejected():
    code = "from lessonkit.uix import div as d2\n" + VALID_LESSON.replace("class_name=\"p-6\"", "d2()")
    assert "Import not allowed: lessonkit.uix" in validate_lesson_code(code).violations


def test_unbalanced_parentheses_skip_parse():
    code = VALID_LESSON.replace('class_name="p-6",\n    )', 'class_name="p-6",\n')
    result = validate_lesson_code(code)
    assert "Mismatched parentheses: 7 opening, 6 closing" in result.violations
    assert not any(v.startswith("Syntax error") for v in result.violations)


def test_syntax_error_reports_line():
    code = VALID_LESSON.replace("count, set_count = use_state(0)", "count set_count = use_state(0)")
    result = validate_lesson_code(code)
    assert any(v.startswith("Syntax error:") and "(line 5)" in v for v in result.violations)


def test_missing_export_marker_and_return():
    code = "from lessonkit.ui import div\n\ndef Lesson():\n    div()\n"
    result = validate_lesson_code(code)
    assert "Component must be marked with @export_default" in result.violations
    assert "Component function must return an element" in result.violations


def test_hook_without_import_is_reported_once():
    code = VALID_LESSON.replace("use_state, export_default", "export_default")
    code = code.replace("return div(", "other, set_other = use_state(1)\n    return div(")
    result = validate_lesson_code(code)
    assert result.violations.count("use_state is used but not imported from 'lessonkit.ui'") == 1


def test_hook_through_module_alias_is_traced():
    code = '''import lessonkit.ui as ui
from lessonkit.ui import export_default

@export_default
def Lesson():
    value, set_value = ui.use_state(0)
    return ui.div(str(value), on_click=lambda: set_value(value + 1))
'''
    assert validate_lesson_code(code).violations == []


def test_hover_classes_are_violations():
    result = validate_lesson_code(HOVER_LESSON)
    assert result.violations == ["Hover styling is not allowed: hover:bg-blue-300"]
    code = VALID_LESSON.replace("text-3xl", "group-hover:text-4xl text-3xl")
    assert "Hover styling is not allowed: group-hover:text-4xl" in validate_lesson_code(code).violations


def test_typing_import_is_not_actionable():
    code = "from typing import List\n" + VALID_LESSON
    result = validate_lesson_code(code)
    assert not result.accepted
    assert result.violations == ["Type-only import ignored: typing"]
    assert actionable_violations(result) == []
    assert is_acceptable(result)


def test_unused_import_is_advisory():
    code = VALID_LESSON.replace("use_state, export_default", "use_state, use_ref, export_default")
    result = validate_lesson_code(code)
    assert result.violations == ["Imported name 'use_ref' is never used"]
    assert result.diagnostics[0].code == DiagnosticCode.unused_import
    assert is_acceptable(result)


def test_future_import_is_ignored():
    code = "from __future__ import annotations\n" + VALID_LESSON
    assert validate_lesson_code(code).violations == []


def test_empty_source():
    assert validate_lesson_code("   \n").violations == ["Component source is empty"]


def test_violations_are_distinct():
    code = VALID_LESSON.replace("    count, set_count", "    eval('1')\n    eval('2')\n    count, set_count")
    assert validate_lesson_code(code).violations.count("eval() is not allowed") == 1


def test_find_imports_handles_parenthesised_lists():
    code = "from lessonkit.ui import (\n    div,\n    span as s,  # inline\n)\nimport lessonkit.icons as icons\n"
    imports = find_imports(code)
    assert [statement.module for statement in imports] == ["lessonkit.ui", "lessonkit.icons"]
    assert imports[0].names == (("div", "div"), ("span", "s"))
    assert imports[1].bound == "icons"


def test_find_entry_name():
    assert find_entry_name(VALID_LESSON) == "Lesson"
    assert find_entry_name("@export_default\n# the lesson\ndef FractionLab():\n    return 1") == "FractionLab"
    assert find_entry_name("def Lesson():\n    return 1") is None
