from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from busgen.core.errors import InvalidTarget, NotADirectory
from busgen.core.model import SourceFile


@dataclass(frozen=True)
class Target:
    spec: str
    dir: str
    binding: str

    @property
    def package(self) -> str:
        return Path(self.dir).resolve().name


def parse_target(spec: str) -> Target:
    """
    Split "path/to/dir.VarName" on the last dot.

    A bare ".Events" means the current directory.
    """
    i = spec.rfind(".")
    if i < 0:
        raise InvalidTarget(spec, "missing '.' separator")

    dir_, binding = spec[:i], spec[i + 1:]
    if not binding:
        raise InvalidTarget(spec, "empty variable name")
    if not binding.isidentifier():
        raise InvalidTarget(spec, "%r is not a valid variable name" % binding)
    return Target(spec=spec, dir=dir_ or ".", binding=binding)


def load_source_files(dir_: str) -> List[SourceFile]:
    root = Path(dir_)
    if not root.is_dir():
        raise NotADirectory(dir_)
    return [
        SourceFile(path=str(p), text=p.read_text(encoding="utf-8"))
        for p in sorted(root.glob("*.py"))
        if p.is_file()
    ]


def default_output_filename(prefix: str) -> str:
    # "" -> eventbus_gen.py, "Order" -> orderbus_gen.py
    if not prefix:
        return "eventbus_gen.py"
    return "%sbus_gen.py" % prefix.lower()
