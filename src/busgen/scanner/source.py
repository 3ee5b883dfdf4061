from __future__ import annotations

import ast
import fnmatch
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from busgen.core.errors import AmbiguousDeclaration, DeclarationNotFound, SourceParseError
from busgen.core.model import SourceFile

GENERATED_TOKENS = ("Code generated", "DO NOT EDIT")
TEST_FILE_PATTERNS = ("test_*.py", "*_test.py", "conftest.py")
MAPPING_ANNOTATIONS = ("dict", "Dict", "Mapping", "MutableMapping")

Binding = Union[ast.Assign, ast.AnnAssign]


@dataclass(frozen=True)
class Declaration:
    """
    The one dict literal bound to the target name.
    """

    file: SourceFile
    stmt: Binding
    literal: ast.Dict
    binding_name: str

    @property
    def lineno(self) -> int:
        return self.stmt.lineno


def is_generated(text: str) -> bool:
    """
    True when the leading comment block carries the provenance marker, i.e.
    the module is a previous busgen output (or any other generated module).
    """
    for line in text.splitlines():
        s = line.strip()
        if not s:
            continue
        if not s.startswith("#"):
            return False
        if all(tok in s for tok in GENERATED_TOKENS):
            return True
    return False


def is_test_file(name: str) -> bool:
    return any(fnmatch.fnmatch(name, pat) for pat in TEST_FILE_PATTERNS)


def find_declaration(files: Iterable[SourceFile], binding_name: str) -> Declaration:
    matches: List[Declaration] = []
    scanned = 0
    for f in sorted(files, key=lambda s: s.path):
        if is_test_file(f.name) or is_generated(f.text):
            continue
        scanned += 1
        try:
            tree = ast.parse(f.text, filename=f.path)
        except SyntaxError as e:
            raise SourceParseError(f.path, e.lineno, e.msg or "invalid syntax") from e

        for stmt in tree.body:
            literal = _match(stmt, binding_name)
            if literal is not None and isinstance(stmt, (ast.Assign, ast.AnnAssign)):
                matches.append(Declaration(file=f, stmt=stmt, literal=literal, binding_name=binding_name))

    if not matches:
        raise DeclarationNotFound(binding_name, scanned)
    if len(matches) > 1:
        raise AmbiguousDeclaration(binding_name, ["%s:%d" % (m.file.path, m.lineno) for m in matches])
    return matches[0]


def _match(stmt: ast.stmt, binding_name: str) -> Optional[ast.Dict]:
    if isinstance(stmt, ast.Assign):
        if len(stmt.targets) != 1:
            return None
        target = stmt.targets[0]
    elif isinstance(stmt, ast.AnnAssign):
        if stmt.value is None or not _is_str_mapping(stmt.annotation):
            return None
        target = stmt.target
    else:
        return None

    if not isinstance(target, ast.Name) or target.id != binding_name:
        return None
    if not isinstance(stmt.value, ast.Dict):
        return None
    return stmt.value


def _is_str_mapping(annotation: ast.expr) -> bool:
    # dict, Dict[str, Any], typing.Mapping[str, object], "Dict[str, Any]" ...
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            annotation = ast.parse(annotation.value, mode="eval").body
        except SyntaxError:
            return False

    base = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    if _terminal_name(base) not in MAPPING_ANNOTATIONS:
        return False
    if not isinstance(annotation, ast.Subscript):
        return True

    params = annotation.slice
    if isinstance(params, ast.Tuple) and params.elts:
        key = params.elts[0]
    else:
        key = params
    return _terminal_name(key) == "str"


def _terminal_name(expr: ast.expr) -> str:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return ""
