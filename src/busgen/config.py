from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _strip_quotes(s: str) -> str:
    s = (s or "").strip()
    if len(s) >= 2 and ((s[0] == s[-1]) and s[0] in ("'", '"')):
        s = s[1:-1].strip()
    return s


class BusgenSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", alias="BUSGEN_LOG_LEVEL")
    # https://no-color.org: any non-empty value disables colour.
    no_color: bool = Field(default=False, alias="NO_COLOR")
    # Used by `busgen generate` when no --package is given.
    default_target: str = Field(default=".Events", alias="BUSGEN_DEFAULT_TARGET")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: object) -> str:
        s = _strip_quotes(str(v or "")).upper()
        if s == "WARN":
            s = "WARNING"
        if s not in LOG_LEVELS:
            raise ValueError("log level must be one of %s" % ", ".join(LOG_LEVELS))
        return s

    @field_validator("no_color", mode="before")
    @classmethod
    def _truthy(cls, v: object) -> bool:
        if isinstance(v, bool):
            return v
        s = _strip_quotes(str(v or "")).lower()
        return s not in ("", "0", "false", "no")

    @field_validator("default_target", mode="before")
    @classmethod
    def _normalize_target(cls, v: object) -> str:
        return _strip_quotes(str(v or "")) or ".Events"
