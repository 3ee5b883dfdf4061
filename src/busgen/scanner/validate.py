from __future__ import annotations

import dataclasses
from typing import Dict, Optional, Set, Tuple

from busgen.core.errors import (
    DuplicateEventName,
    EmptySchema,
    InvalidEventName,
    InvalidPayloadIdentifier,
    InvalidPrefix,
    SymbolCollision,
)
from busgen.core.model import SEPARATORS, Schema


def validate(schema: Schema) -> Schema:
    """
    Check a freshly extracted schema and return it with events sorted by name.

    Raises the first violation found, checking events in declaration order.
    """
    if not schema.events:
        raise EmptySchema(schema.binding_name)

    seen: Set[str] = set()
    # normalized symbol, enum member and method suffix -> original name
    emitted: Tuple[Dict[str, str], ...] = ({}, {}, {})

    for e in schema.events:
        if not e.name:
            raise InvalidEventName(e.name)

        bad = first_invalid_char(e.name)
        if bad is not None:
            raise InvalidEventName(e.name, bad)

        if e.name in seen:
            raise DuplicateEventName(e.name)
        seen.add(e.name)

        # Case mapping is lossy ("ß".upper() == "SS"), so each emitted form is checked.
        for names, sym in zip(emitted, (e.symbol, e.member_name, e.method_suffix)):
            prev = names.get(sym)
            if prev is not None:
                raise SymbolCollision(prev, e.name, sym)
            names[sym] = e.name

        if not is_valid_type_ref(e.payload_type):
            raise InvalidPayloadIdentifier(e.name, e.payload_type)

    if schema.prefix and not schema.prefix.isidentifier():
        raise InvalidPrefix(schema.prefix)

    return dataclasses.replace(schema, events=tuple(sorted(schema.events, key=lambda e: e.name)))


def first_invalid_char(name: str) -> Optional[str]:
    for ch in name:
        if ch.isalpha() or ch.isdecimal() or ch in SEPARATORS:
            continue
        return ch
    return None


def is_valid_type_ref(s: str) -> bool:
    """
    "MyType" or "pkg.MyType"; anything with a second dot fails on the "." check.
    """
    if not s:
        return False
    for part in s.split(".", 1):
        if not part:
            return False
        for i, ch in enumerate(part):
            if i == 0 and not (ch.isalpha() or ch == "_"):
                return False
            if i > 0 and not (ch.isalpha() or ch.isdecimal() or ch == "_"):
                return False
    return True
