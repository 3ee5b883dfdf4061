"""
Module-level string constant collection.

Event keys may name constants declared anywhere in the scanned directory:

    ORDER_CREATED = "order.created"          # literal
    CREATED, SHIPPED = "o.created", "o.shipped"
    PRIMARY = FALLBACK = "order.created"     # every target shares the value
    ALIAS: Final = ORDER_CREATED             # reference to a known constant

Every module keeps its own table. The declaring module sees its own names
first, bound top to bottom and only up to the declaration. Names from other
modules are visible when those modules agree on the value; a name bound to
different strings elsewhere is reported as ambiguous, never guessed.
"""

from __future__ import annotations

import ast
import itertools
from collections import ChainMap
from dataclasses import dataclass
from operator import attrgetter
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from busgen.core.model import ConstantTable, SourceFile

# Forward references across files are caught by the second pass; longer
# chains declared out of order stay unresolved.
RESOLUTION_PASSES = 2

_Slot = Optional[ast.expr]


@dataclass(frozen=True)
class _Assignment:
    path: str
    lineno: int
    names: List[str]
    values: Sequence[_Slot]


def collect_string_constants(
    files: Iterable[SourceFile],
    *,
    home: Optional[str] = None,
    before: Optional[int] = None,
) -> ConstantTable:
    """
    Constants visible from the module at path `home`.

    Assignments in `home` at or after line `before` are ignored. Without
    `home` the result is the view from outside every module.
    """
    assignments = [
        a
        for a in _assignments(files)
        if not (a.path == home and before is not None and a.lineno >= before)
    ]

    tables: Dict[str, Dict[str, str]] = {}
    for _ in range(RESOLUTION_PASSES):
        for path, group in itertools.groupby(assignments, key=attrgetter("path")):
            # Rebuilt each pass so a module's own names bind top to bottom.
            own: Dict[str, str] = {}
            scope = ChainMap(own, _shared(tables, exclude=path))
            for a in group:
                resolved = _resolve_values(a.values, scope)
                for i, name in enumerate(a.names):
                    value = resolved[i] if i < len(resolved) else None
                    if name and value is not None:
                        own[name] = value
            tables[path] = own

    consts = _shared(tables, exclude=home)
    own = tables.get(home or "", {})
    consts.update(own)
    for name in own:
        consts.ambiguous.pop(name, None)
    return consts


def _shared(tables: Mapping[str, Dict[str, str]], *, exclude: Optional[str]) -> ConstantTable:
    by_name: Dict[str, Dict[str, str]] = {}
    for path, table in tables.items():
        if path == exclude:
            continue
        for name, value in table.items():
            by_name.setdefault(name, {})[path] = value

    shared = ConstantTable()
    for name, by_path in by_name.items():
        values = set(by_path.values())
        if len(values) == 1:
            shared[name] = values.pop()
        else:
            shared.ambiguous[name] = tuple(sorted(by_path))
    return shared


def _assignments(files: Iterable[SourceFile]) -> Iterator[_Assignment]:
    for f in sorted(files, key=lambda s: s.path):
        try:
            tree = ast.parse(f.text, filename=f.path)
        except SyntaxError:
            # Reported by the scanner; constants from other files still count.
            continue
        for stmt in tree.body:
            if isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    for names, values in _bind(target, stmt.value):
                        yield _Assignment(f.path, stmt.lineno, names, values)
            elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None and stmt.simple:
                for names, values in _bind(stmt.target, stmt.value):
                    yield _Assignment(f.path, stmt.lineno, names, values)


def _bind(target: ast.expr, value: ast.expr) -> Iterator[Tuple[List[str], Sequence[_Slot]]]:
    if isinstance(target, ast.Name):
        yield [target.id], [value]
        return
    if isinstance(target, (ast.Tuple, ast.List)) and isinstance(value, (ast.Tuple, ast.List)):
        names = [t.id if isinstance(t, ast.Name) else "" for t in target.elts]
        if any(isinstance(v, ast.Starred) for v in value.elts):
            return
        yield names, list(value.elts)


def _resolve_values(values: Sequence[_Slot], consts: Mapping[str, str]) -> List[Optional[str]]:
    """
    Positional string values; unresolvable slots are None so multi-name
    assignments keep their alignment.
    """
    out: List[Optional[str]] = []
    for expr in values:
        if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
            out.append(expr.value)
        elif isinstance(expr, ast.Name) and expr.id in consts:
            out.append(consts[expr.id])
        else:
            out.append(None)
    return out
