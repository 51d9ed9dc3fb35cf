"""
Static validation of generated lesson modules.

``validate_lesson_code`` is a pure function of the source text: it runs every
pass, never stops at the first problem, and returns the distinct violations in
a stable order (pass order, then position in the source). No network, clock or
randomness is involved, so the same text always yields the same result.
"""

import ast
import enum
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

ALLOWED_IMPORTS = (
    "lessonkit.ui",
    "lessonkit.icons",
    "lessonkit.charts",
    "lessonkit.dates",
)
UI_MODULE = "lessonkit.ui"
TYPE_ONLY_MODULES = ("typing", "typing_extensions")
DIRECTIVE_MODULES = ("__future__",)
HOOK_NAMES = ("use_state", "use_effect", "use_memo", "use_ref", "use_callback")


class DiagnosticCode(str, enum.Enum):
    empty_source = "empty-source"
    blocked_capability = "blocked-capability"
    import_not_allowed = "import-not-allowed"
    unbalanced_delimiters = "unbalanced-delimiters"
    syntax_error = "syntax-error"
    missing_default_export = "missing-default-export"
    missing_return = "missing-return"
    hook_not_imported = "hook-not-imported"
    hover_style = "hover-style"
    type_only_import = "type-only-import"
    unused_import = "unused-import"


# Findings that never affect runtime safety or the required shape
NON_ACTIONABLE_CODES = frozenset({
    DiagnosticCode.type_only_import,
    DiagnosticCode.unused_import,
})


@dataclass(frozen=True)
class Diagnostic:
    code: DiagnosticCode
    message: str

    @property
    def actionable(self) -> bool:
        return self.code not in NON_ACTIONABLE_CODES


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    violations: List[str] = field(default_factory=list)
    diagnostics: Tuple[Diagnostic, ...] = ()


def _call(name: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![\w]){re.escape(name)}\s*\(")


# Attributes that walk from a lesson value to frames, code objects or real builtins
FRAME_ATTRIBUTES = frozenset({
    "tb_frame", "tb_next",
    "f_back", "f_builtins", "f_globals", "f_locals", "f_code",
    "gi_frame", "gi_code", "cr_frame", "cr_code", "ag_frame", "ag_code",
})
ALLOWED_DUNDER_ATTRIBUTES = frozenset({"__init__", "__name__", "__doc__"})

_FRAME_PATTERN = re.compile(r"\b(?:" + "|".join(sorted(FRAME_ATTRIBUTES)) + r")\b")
_DUNDER_ATTRIBUTE_PATTERN = re.compile(
    r"\.\s*(?!(?:" + "|".join(sorted(ALLOWED_DUNDER_ATTRIBUTES)) + r")(?!\w))__\w+__"
)


def is_blocked_attribute(name: str) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return name not in ALLOWED_DUNDER_ATTRIBUTES
    return name in FRAME_ATTRIBUTES


# Capability blocklist. A match is always a violation.
DANGEROUS_PATTERNS = [
    (_call("eval"), "eval() is not allowed"),
    (_call("exec"), "exec() is not allowed"),
    (_call("compile"), "compile() is not allowed"),
    (re.compile(r"__import__"), "__import__ is not allowed"),
    (re.compile(r"\bimportlib\b"), "importlib is not allowed"),
    (re.compile(r"dangerously_set_inner_html"), "dangerously_set_inner_html is not allowed"),
    (re.compile(r"\binner_html\b"), "inner_html is not allowed"),
    (_call("Markup"), "Markup() is not allowed"),
    (re.compile(r"__class__"), "__class__ access is not allowed"),
    (re.compile(r"__bases__"), "__bases__ access is not allowed"),
    (re.compile(r"__mro__"), "__mro__ access is not allowed"),
    (re.compile(r"__subclasses__"), "__subclasses__ access is not allowed"),
    (re.compile(r"__globals__"), "__globals__ access is not allowed"),
    (re.compile(r"__builtins__"), "__builtins__ access is not allowed"),
    (re.compile(r"__code__"), "__code__ access is not allowed"),
    (re.compile(r"__dict__"), "__dict__ access is not allowed"),
    (re.compile(r"__traceback__"), "__traceback__ access is not allowed"),
    (_FRAME_PATTERN, "Frame and traceback attributes are not allowed"),
    (_DUNDER_ATTRIBUTE_PATTERN, "Dunder attribute access is not allowed"),
    (_call("getattr"), "getattr() is not allowed"),
    (_call("setattr"), "setattr() is not allowed"),
    (_call("delattr"), "delattr() is not allowed"),
    (_call("globals"), "globals() is not allowed"),
    (_call("locals"), "locals() is not allowed"),
    (_call("vars"), "vars() is not allowed"),
    (_call("open"), "open() is not allowed"),
    (re.compile(r"\.write\s*\("), "Raw .write() calls are not allowed"),
]

DELIMITERS = (
    ("braces", "{", "}"),
    ("parentheses", "(", ")"),
    ("brackets", "[", "]"),
)

ENTRY_PATTERN = re.compile(
    r"^[ \t]*@export_default[ \t]*(?:\(\s*\))?[ \t]*(?:#[^\n]*)?\r?\n"
    r"(?:[ \t]*(?:@[^\n]*|#[^\n]*)?\r?\n)*"
    r"[ \t]*def[ \t]+([A-Za-z_]\w*)",
    re.MULTILINE,
)
RETURN_PATTERN = re.compile(r"\breturn\b")
HOVER_PATTERN = re.compile(r"(?<![\w-])((?:group-|peer-)?hover:[^\s\"'`,)\]}]+)")

_IMPORT_PATTERN = re.compile(r"^[ \t]*import[ \t]+([^\n#;]+)", re.MULTILINE)
_FROM_IMPORT_PATTERN = re.compile(
    r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]+(\([^)]*\)?|[^\n#;]+)",
    re.MULTILINE,
)
_IMPORT_ITEM = re.compile(r"^([\w.*]+)(?:\s+as\s+(\w+))?$")


@dataclass(frozen=True)
class ImportStatement:
    module: str
    # (imported name, bound name); empty for plain ``import module``
    names: Tuple[Tuple[str, str], ...]
    bound: Optional[str]
    span: Tuple[int, int]


def _split_items(text: str) -> List[str]:
    cleaned = text.replace("\\\n", " ").strip().strip("()")
    items = []
    for raw in re.split(r"[,\n]", cleaned):
        item = raw.split("#", 1)[0].strip()
        if item:
            items.append(" ".join(item.split()))
    return items


def find_imports(code: str) -> List[ImportStatement]:
    """Every import statement in the text, in source order. Total: never raises."""
    statements = []
    for match in _IMPORT_PATTERN.finditer(code):
        for item in _split_items(match.group(1)):
            parsed = _IMPORT_ITEM.match(item)
            module = parsed.group(1) if parsed else item
            alias = parsed.group(2) if parsed else None
            bound = alias or module.split(".")[0]
            statements.append(ImportStatement(module, (), bound, match.span()))
    for match in _FROM_IMPORT_PATTERN.finditer(code):
        module = match.group(1) or "."
        names = []
        for item in _split_items(match.group(2)):
            parsed = _IMPORT_ITEM.match(item)
            if parsed:
                names.append((parsed.group(1), parsed.group(2) or parsed.group(1)))
        statements.append(ImportStatement(module, tuple(names), None, match.span()))
    return sorted(statements, key=lambda statement: statement.span)


def is_allowed_module(module: str) -> bool:
    return any(module == allowed or module.startswith(allowed + ".") for allowed in ALLOWED_IMPORTS)


def find_entry_name(code: str) -> Optional[str]:
    """Name of the function marked with ``@export_default``, if any."""
    match = ENTRY_PATTERN.search(code or "")
    return match.group(1) if match else None


def _check_capabilities(code: str) -> List[Diagnostic]:
    return [
        Diagnostic(DiagnosticCode.blocked_capability, message)
        for pattern, message in DANGEROUS_PATTERNS
        if pattern.search(code)
    ]


def _check_imports(imports: List[ImportStatement]) -> List[Diagnostic]:
    diagnostics = []
    for statement in imports:
        if statement.module in DIRECTIVE_MODULES:
            continue
        if statement.module.split(".")[0] in TYPE_ONLY_MODULES:
            diagnostics.append(Diagnostic(DiagnosticCode.type_only_import, f"Type-only import ignored: {statement.module}"))
        elif not is_allowed_module(statement.module):
            diagnostics.append(Diagnostic(DiagnosticCode.import_not_allowed, f"Import not allowed: {statement.module}"))
    return diagnostics


def _check_structure(code: str) -> List[Diagnostic]:
    diagnostics = []
    for label, opening, closing in DELIMITERS:
        opened, closed = code.count(opening), code.count(closing)
        if opened != closed:
            diagnostics.append(Diagnostic(
                DiagnosticCode.unbalanced_delimiters,
                f"Mismatched {label}: {opened} opening, {closed} closing",
            ))
    if diagnostics:
        return diagnostics

    try:
        ast.parse(code)
    except SyntaxError as e:
        diagnostics.append(Diagnostic(DiagnosticCode.syntax_error, f"Syntax error: {e.msg} (line {e.lineno})"))
    except (ValueError, RecursionError, MemoryError) as e:
        diagnostics.append(Diagnostic(DiagnosticCode.syntax_error, f"Syntax error: {type(e).__name__}"))
    return diagnostics


def _check_shape(code: str, imports: List[ImportStatement]) -> List[Diagnostic]:
    diagnostics = []
    if find_entry_name(code) is None:
        diagnostics.append(Diagnostic(
            DiagnosticCode.missing_default_export,
            "Component must be marked with @export_default",
        ))
    if not RETURN_PATTERN.search(code):
        diagnostics.append(Diagnostic(DiagnosticCode.missing_return, "Component function must return an element"))

    imported_hooks = set()
    ui_aliases = set()
    for statement in imports:
        if statement.module != UI_MODULE:
            continue
        if statement.names:
            imported_hooks.update(name for name, _ in statement.names)
        elif statement.bound:
            ui_aliases.add(statement.bound if statement.bound != "lessonkit" else UI_MODULE)

    for hook in HOOK_NAMES:
        for match in re.finditer(rf"(?<![\w])(?:([\w.]+)\.)?{hook}\s*\(", code):
            qualifier = match.group(1)
            traced = qualifier in ui_aliases if qualifier else (hook in imported_hooks or "*" in imported_hooks)
            if not traced:
                diagnostics.append(Diagnostic(
                    DiagnosticCode.hook_not_imported,
                    f"{hook} is used but not imported from '{UI_MODULE}'",
                ))
                break
    return diagnostics


def _check_palette(code: str) -> List[Diagnostic]:
    return [
        Diagnostic(DiagnosticCode.hover_style, f"Hover styling is not allowed: {match.group(1)}")
        for match in HOVER_PATTERN.finditer(code)
    ]


def _check_unused_imports(code: str, imports: List[ImportStatement]) -> List[Diagnostic]:
    body = code
    for statement in sorted(imports, key=lambda item: item.span, reverse=True):
        start, end = statement.span
        body = body[:start] + body[end:]

    diagnostics = []
    for statement in imports:
        if not is_allowed_module(statement.module):
            continue
        bound_names = [bound for name, bound in statement.names if name != "*"]
        if not statement.names and statement.bound:
            bound_names.append(statement.bound)
        for bound in bound_names:
            if not re.search(rf"(?<![\w]){re.escape(bound)}(?![\w])", body):
                diagnostics.append(Diagnostic(DiagnosticCode.unused_import, f"Imported name '{bound}' is never used"))
    return diagnostics


def _distinct(diagnostics: List[Diagnostic]) -> Tuple[Diagnostic, ...]:
    seen = set()
    unique = []
    for diagnostic in diagnostics:
        if diagnostic.message in seen:
            continue
        seen.add(diagnostic.message)
        unique.append(diagnostic)
    return tuple(unique)


def validate_lesson_code(code: str) -> ValidationResult:
    if not isinstance(code, str) or not code.strip():
        diagnostic = Diagnostic(DiagnosticCode.empty_source, "Component source is empty")
        return ValidationResult(accepted=False, violations=[diagnostic.message], diagnostics=(diagnostic,))

    imports = find_imports(code)
    diagnostics = _distinct(
        _check_capabilities(code)
        + _check_imports(imports)
        + _check_structure(code)
        + _check_shape(code, imports)
        + _check_palette(code)
        + _check_unused_imports(code, imports)
    )
    return ValidationResult(
        accepted=not diagnostics,
        violations=[diagnostic.message for diagnostic in diagnostics],
        diagnostics=diagnostics,
    )


def actionable_violations(result: ValidationResult) -> List[str]:
    """Violations worth spending a fix attempt on."""
    return [diagnostic.message for diagnostic in result.diagnostics if diagnostic.actionable]


def is_acceptable(result: ValidationResult) -> bool:
    return not actionable_violations(result)
