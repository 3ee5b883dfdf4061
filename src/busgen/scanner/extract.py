from __future__ import annotations

import ast
import io
import tokenize
from typing import Dict, List, Mapping, Optional, Tuple

from busgen.core.errors import (
    AmbiguousConstant,
    InvalidKeyExpression,
    InvalidValueExpression,
    UnresolvedConstant,
)
from busgen.core.model import ConstantTable, EventDef, Schema, derive_prefix
from busgen.scanner.source import Declaration

DIRECTIVE = "busgen:prefix"


def extract_schema(decl: Declaration, consts: ConstantTable, *, source_package: str) -> Schema:
    """
    Unvalidated, unsorted schema for a matched declaration.
    """
    events = extract_events(decl.literal, consts)

    prefix = find_prefix_directive(decl.file.text, decl.stmt)
    if prefix is None:
        prefix = derive_prefix(decl.binding_name)

    return Schema(
        source_package=source_package,
        source_module=decl.file.module,
        binding_name=decl.binding_name,
        prefix=prefix,
        events=tuple(events),
    )


def extract_events(literal: ast.Dict, consts: Mapping[str, str]) -> List[EventDef]:
    events: List[EventDef] = []
    for key, value in zip(literal.keys, literal.values):
        if key is None:
            raise InvalidKeyExpression("a ** unpacking entry", value.lineno)
        name = resolve_key(key, consts)
        events.append(EventDef(name=name, payload_type=resolve_payload_type(name, value)))
    return events


def resolve_key(key: ast.expr, consts: Mapping[str, str]) -> str:
    if isinstance(key, ast.Constant):
        if not isinstance(key.value, str):
            raise InvalidKeyExpression("a %s literal" % type(key.value).__name__, key.lineno)
        return key.value

    if isinstance(key, ast.Name):
        return _lookup(key.id, consts)

    if isinstance(key, ast.Call):
        # str(CONSTANT)
        if (
            isinstance(key.func, ast.Name)
            and key.func.id == "str"
            and len(key.args) == 1
            and not key.keywords
            and isinstance(key.args[0], ast.Name)
        ):
            return _lookup(key.args[0].id, consts)

    raise InvalidKeyExpression(_describe(key), key.lineno)


def resolve_payload_type(event: str, value: ast.expr) -> str:
    if not isinstance(value, ast.Call):
        raise InvalidValueExpression(event, _describe(value))
    if value.args or value.keywords:
        raise InvalidValueExpression(event, "a call with arguments (%s)" % _describe(value))

    func = value.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
        return "%s.%s" % (func.value.id, func.attr)
    raise InvalidValueExpression(event, "an unsupported type expression (%s)" % _describe(func))


def _lookup(name: str, consts: Mapping[str, str]) -> str:
    if name in consts:
        return consts[name]
    paths = getattr(consts, "ambiguous", {}).get(name)
    if paths:
        raise AmbiguousConstant(name, paths)
    raise UnresolvedConstant(name)


def _describe(expr: ast.expr) -> str:
    try:
        return ast.unparse(expr)
    except Exception:
        return type(expr).__name__


def find_prefix_directive(text: str, stmt: ast.stmt) -> Optional[str]:
    """
    Prefix override for the binding, or None when no directive is present.

    The trailing comment on the binding line wins over the comment block
    directly above the statement. An empty directive yields "".
    """
    comments = _comments(text)
    lineno = stmt.lineno

    own = comments.get(lineno)
    if own is not None and not own[1]:
        val = parse_directive(own[0])
        if val is not None:
            return val

    block: List[str] = []
    line = lineno - 1
    while line in comments and comments[line][1]:
        block.append(comments[line][0])
        line -= 1
    for c in reversed(block):
        val = parse_directive(c)
        if val is not None:
            return val
    return None


def parse_directive(comment: str) -> Optional[str]:
    body = comment.lstrip("#").strip()
    if not body.startswith(DIRECTIVE):
        return None
    rest = body[len(DIRECTIVE):]
    if rest and not rest[0].isspace():
        return None
    return rest.strip()


def _comments(text: str) -> Dict[int, Tuple[str, bool]]:
    """
    line -> (comment text, whether the comment is alone on its line)
    """
    out: Dict[int, Tuple[str, bool]] = {}
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(text).readline))
    except (tokenize.TokenError, SyntaxError):
        return out

    code_lines = set()
    for tok in tokens:
        if tok.type == tokenize.COMMENT:
            continue
        if tok.type in (tokenize.NL, tokenize.NEWLINE, tokenize.INDENT, tokenize.DEDENT, tokenize.ENDMARKER):
            continue
        for line in range(tok.start[0], tok.end[0] + 1):
            code_lines.add(line)

    for tok in tokens:
        if tok.type == tokenize.COMMENT:
            row = tok.start[0]
            out[row] = (tok.string, row not in code_lines)
    return out
