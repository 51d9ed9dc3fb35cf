from lessonforge.compiler.extractor import extract_component_code
from lessonforge.compiler.validator import (
    ALLOWED_IMPORTS,
    NON_ACTIONABLE_CODES,
    Diagnostic,
    DiagnosticCode,
    ValidationResult,
    actionable_violations,
    find_entry_name,
    is_acceptable,
    validate_lesson_code,
)
