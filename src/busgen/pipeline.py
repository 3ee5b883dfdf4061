from __future__ import annotations

from typing import Optional, Sequence

from busgen.core.errors import BusgenError
from busgen.core.model import Schema, SourceFile
from busgen.emitter.render import render
from busgen.scanner.constants import collect_string_constants
from busgen.scanner.extract import extract_schema
from busgen.scanner.source import find_declaration
from busgen.scanner.validate import validate


def build_schema(
    files: Sequence[SourceFile],
    binding_name: str,
    *,
    source_package: str,
    target: Optional[str] = None,
) -> Schema:
    """
    Declaration -> constants -> extraction -> validation for one target.

    Any failure carries `target` so callers can report which target broke.
    """
    try:
        decl = find_declaration(files, binding_name)
        consts = collect_string_constants(files, home=decl.file.path, before=decl.lineno)
        schema = extract_schema(decl, consts, source_package=source_package)
        return validate(schema)
    except BusgenError as e:
        if target and not e.target:
            e.target = target
        raise


def generate(
    files: Sequence[SourceFile],
    binding_name: str,
    *,
    source_package: str,
    target: Optional[str] = None,
) -> str:
    return render(build_schema(files, binding_name, source_package=source_package, target=target))
