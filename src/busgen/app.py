from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from busgen.config import BusgenSettings
from busgen.core.errors import BusgenError, OutputConflict
from busgen.core.logging import get_logger
from busgen.emitter.render import render
from busgen.pipeline import build_schema
from busgen.targets import default_output_filename, load_source_files, parse_target


@dataclass(frozen=True)
class TargetResult:
    target: str
    output: Optional[str] = None
    events: int = 0
    prefix: str = ""
    error: Optional[BusgenError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GenerateApp:
    """
    Runs `generate` for one or more "dir.VarName" targets.

    Each target is compiled completely before its file is written, so a
    failing target never leaves partial output behind.
    """

    def __init__(
        self,
        settings: BusgenSettings,
        *,
        output: Optional[str] = None,
        keep_going: bool = False,
    ) -> None:
        self._settings = settings
        self._output = output
        self._keep_going = keep_going
        self._log = get_logger(component="generate")

    def run(self, specs: Sequence[str]) -> List[TargetResult]:
        specs = list(specs) or [self._settings.default_target]
        if self._output and len(specs) > 1:
            raise OutputConflict(self._output, specs)

        results: List[TargetResult] = []
        for spec in specs:
            try:
                results.append(self._run_target(spec))
            except BusgenError as e:
                if not e.target:
                    e.target = spec
                if not self._keep_going:
                    raise
                self._log.error("target_failed", target=spec, error=e.message)
                results.append(TargetResult(target=spec, error=e))
        return results

    def _run_target(self, spec: str) -> TargetResult:
        target = parse_target(spec)
        self._log.debug("parsing_target", target=spec, dir=target.dir, binding=target.binding)

        files = load_source_files(target.dir)
        schema = build_schema(files, target.binding, source_package=target.package, target=spec)

        output = self._output or os.path.join(target.dir, default_output_filename(schema.prefix))
        self._log.debug("generating", target=spec, events=len(schema.events), prefix=schema.prefix)
        _atomic_write(Path(output), render(schema))

        self._log.info("generated", target=spec, output=output, events=len(schema.events))
        return TargetResult(target=spec, output=output, events=len(schema.events), prefix=schema.prefix)


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    os.replace(tmp_path, path)
