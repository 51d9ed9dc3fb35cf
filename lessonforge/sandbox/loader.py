"""
Loads an accepted lesson module into its capability scope.

Steps: find the ``@export_default`` entry, strip directives, imports and the
export marker, wrap the module body in a factory that returns the entry,
compile it, execute the factory definition inside a fresh scope holding only
the requested kit bindings, call it and check the result is callable.

Every failure becomes a ``LoadResult`` with an error message; nothing raises
to the page that asked for the lesson.
"""

import __future__
import ast
import logging
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

from lessonforge.compiler.validator import (
    DIRECTIVE_MODULES,
    TYPE_ONLY_MODULES,
    actionable_violations,
    find_entry_name,
    is_blocked_attribute,
    validate_lesson_code,
)
from lessonforge.exceptions import SandboxError
from lessonforge.kit import kit_namespaces
from lessonforge.sandbox.scope import build_capability_scope, namespace_object

logger = logging.getLogger(__name__)

FACTORY_NAME = "__lesson_factory__"
EXPORT_MARKER = "export_default"


@dataclass
class ImportBinding:
    module: str
    # None binds the whole namespace, "*" binds every export
    name: Optional[str]
    alias: str


@dataclass
class LoadResult:
    module_id: Optional[str]
    entry: Optional[Callable[[], Any]] = None
    entry_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.entry is not None


def _is_export_marker(decorator: ast.expr) -> bool:
    target = decorator.func if isinstance(decorator, ast.Call) else decorator
    if isinstance(target, ast.Name):
        return target.id == EXPORT_MARKER
    return isinstance(target, ast.Attribute) and target.attr == EXPORT_MARKER


class _GlobalsToNonlocals(ast.NodeTransformer):
    """Module-level names become factory locals, so nested ``global`` must become ``nonlocal``."""

    def visit_Global(self, node: ast.Global):
        return ast.copy_location(ast.Nonlocal(names=node.names), node)


@dataclass
class ModuleLowering:
    entry_name: str
    imports: List[ImportBinding] = field(default_factory=list)

    def lower(self, tree: ast.Module) -> ast.Module:
        body: List[ast.stmt] = []
        for node in tree.body:
            if isinstance(node, ast.Import):
                self.imports.extend(ImportBinding(alias.name, None, alias.asname or alias.name.split(".")[0]) for alias in node.names)
                continue
            if isinstance(node, ast.ImportFrom):
                if node.level:
                    raise SandboxError("Relative imports are not allowed in lessons")
                self.imports.extend(ImportBinding(node.module or "", alias.name, alias.asname or alias.name) for alias in node.names)
                continue
            if isinstance(node, ast.Global):
                continue
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                node.decorator_list = [item for item in node.decorator_list if not _is_export_marker(item)]
            body.append(node)

        for node in body:
            for child in ast.walk(node):
                if isinstance(child, (ast.Import, ast.ImportFrom)):
                    raise SandboxError("Imports are only allowed at the top of a lesson module")
                if isinstance(child, ast.Attribute) and is_blocked_attribute(child.attr):
                    raise SandboxError(f"Attribute not allowed in lessons: {child.attr}")

        body = [_GlobalsToNonlocals().visit(node) for node in body]

        factory_module = ast.parse(f"def {FACTORY_NAME}():\n    return {self.entry_name}\n")
        factory = factory_module.body[0]
        factory.body = body + factory.body
        return ast.fix_missing_locations(factory_module)


class SandboxLoader:
    def __init__(self, namespaces_factory: Callable[[], Dict[str, Dict[str, Any]]] = kit_namespaces):
        self.namespaces_factory = namespaces_factory

    def load(self, source_text: str, module_id: Optional[str] = None) -> LoadResult:
        try:
            entry_name, entry = self._load(source_text, module_id)
        except SandboxError as e:
            logger.warning(f"[SANDBOX] Refused lesson {module_id}: {e}")
            return LoadResult(module_id=module_id, error=str(e))
        except Exception as e:
            # Raised by the lesson's own module body
            logger.warning(f"[SANDBOX] Lesson {module_id} failed while loading: {type(e).__name__}: {e}")
            return LoadResult(module_id=module_id, error=f"Lesson module failed to load: {type(e).__name__}: {e}")

        logger.info(f"[SANDBOX] Loaded lesson {module_id} with entry '{entry_name}'")
        return LoadResult(module_id=module_id, entry=entry, entry_name=entry_name)

    def _load(self, source_text: str, module_id: Optional[str]):
        if not isinstance(source_text, str) or not source_text.strip():
            raise SandboxError("Lesson module is empty")

        blocking = actionable_violations(validate_lesson_code(source_text))
        if blocking:
            raise SandboxError("Lesson module has not passed validation: " + "; ".join(blocking))

        entry_name = find_entry_name(source_text)
        if not entry_name:
            raise SandboxError("No default exported component found. Expected: @export_default above def Lesson():")

        try:
            tree = ast.parse(source_text, filename=f"<lesson {module_id}>")
        except SyntaxError as e:
            raise SandboxError(f"Syntax error: {e.msg} (line {e.lineno})") from e

        lowering = ModuleLowering(entry_name)
        lowered = lowering.lower(tree)
        scope = build_capability_scope(self._resolve_imports(lowering.imports))

        code = compile(
            lowered,
            f"<lesson {module_id}>",
            "exec",
            flags=__future__.annotations.compiler_flag,
            dont_inherit=True,
        )
        exec(code, scope)
        entry = scope[FACTORY_NAME]()

        if not callable(entry):
            raise SandboxError("Generated lesson is not a valid component")
        return entry_name, entry

    def _resolve_imports(self, imports: List[ImportBinding]) -> Dict[str, Any]:
        namespaces = self.namespaces_factory()
        bindings: Dict[str, Any] = {}
        for binding in imports:
            if binding.module in DIRECTIVE_MODULES or binding.module.split(".")[0] in TYPE_ONLY_MODULES:
                continue
            exports = namespaces.get(binding.module)
            if exports is None:
                raise SandboxError(f"Import not allowed: {binding.module}")

            if binding.name is None:
                if binding.alias == binding.module.split(".")[0] and "." in binding.module:
                    # ``import lessonkit.ui`` binds the package root
                    bindings[binding.alias] = self._package_root(namespaces)
                else:
                    bindings[binding.alias] = namespace_object(exports)
            elif binding.name == "*":
                bindings.update(exports)
            elif binding.name in exports:
                bindings[binding.alias] = exports[binding.name]
            else:
                raise SandboxError(f"{binding.module} has no export named '{binding.name}'")
        return bindings

    @staticmethod
    def _package_root(namespaces: Dict[str, Dict[str, Any]]) -> SimpleNamespace:
        root = SimpleNamespace()
        for module, exports in namespaces.items():
            setattr(root, module.split(".", 1)[1], namespace_object(exports))
        return root
