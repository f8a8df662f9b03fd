"""
Static analysis of generated analysis scripts.

Detects the third-party libraries a script imports and the variables it
defines at module level, so they can be tracked on the project.
"""

import ast
import logging
import sys
from typing import Dict, List, Optional

from cedar.models.project import Library, VariableInfo

logger = logging.getLogger(__name__)

# Import names whose distribution on the package index differs
IMPORT_TO_DISTRIBUTION: Dict[str, str] = {
    "sklearn": "scikit-learn",
    "PIL": "Pillow",
    "cv2": "opencv-python",
    "yaml": "PyYAML",
    "bs4": "beautifulsoup4",
}

_CALL_TYPE_HINTS: Dict[str, str] = {
    "DataFrame": "DataFrame",
    "read_csv": "DataFrame",
    "read_json": "DataFrame",
    "read_parquet": "DataFrame",
    "read_excel": "DataFrame",
    "Series": "Series",
    "array": "ndarray",
    "zeros": "ndarray",
    "ones": "ndarray",
    "arange": "ndarray",
    "linspace": "ndarray",
    "dict": "dict",
    "list": "list",
    "set": "set",
}


def _stdlib_modules() -> frozenset:
    return frozenset(getattr(sys, "stdlib_module_names", ())) | frozenset(sys.builtin_module_names)


def _parse(code: str) -> Optional[ast.Module]:
    try:
        return ast.parse(code)
    except SyntaxError as e:
        logger.warning(f"Could not parse analysis script: {e}")
        return None


def detect_libraries(code: str, required_by: str = "code") -> List[Library]:
    """
    List third-party libraries imported by a script, in first-import order.

    Standard-library and relative imports are ignored.
    """
    tree = _parse(code)
    if tree is None:
        return []

    stdlib = _stdlib_modules()
    seen: Dict[str, Library] = {}

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            roots = [alias.name.split(".")[0] for alias in node.names]
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            roots = [node.module.split(".")[0]]
        else:
            continue

        for root in roots:
            if root in stdlib or root in seen:
                continue
            seen[root] = Library(
                name=IMPORT_TO_DISTRIBUTION.get(root, root),
                source="auto_detected",
                status="pending",
                required_by=[required_by],
            )

    return list(seen.values())


def _infer_type(value: ast.AST) -> str:
    if isinstance(value, ast.Constant):
        return type(value.value).__name__
    if isinstance(value, (ast.List, ast.ListComp)):
        return "list"
    if isinstance(value, (ast.Dict, ast.DictComp)):
        return "dict"
    if isinstance(value, (ast.Set, ast.SetComp)):
        return "set"
    if isinstance(value, ast.Tuple):
        return "tuple"
    if isinstance(value, ast.Call):
        func = value.func
        name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", "")
        return _CALL_TYPE_HINTS.get(name, "unknown")
    return "unknown"


def detect_variables(code: str) -> List[VariableInfo]:
    """
    List variables assigned at module level, in first-assignment order.

    Only plain names are reported; attribute and subscript targets are not.
    """
    tree = _parse(code)
    if tree is None:
        return []

    found: Dict[str, VariableInfo] = {}

    for node in tree.body:
        if isinstance(node, ast.Assign):
            targets = node.targets
            value = node.value
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            targets = [node.target]
            value = node.value
        else:
            continue

        for target in targets:
            names = target.elts if isinstance(target, ast.Tuple) else [target]
            for name_node in names:
                if not isinstance(name_node, ast.Name) or name_node.id in found:
                    continue
                example = ""
                if isinstance(value, ast.Constant):
                    example = repr(value.value)
                found[name_node.id] = VariableInfo(
                    name=name_node.id,
                    type_name=_infer_type(value) if len(names) == 1 else "unknown",
                    example_value=example,
                    source="code",
                )

    return list(found.values())
