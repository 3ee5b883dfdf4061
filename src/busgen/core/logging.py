from __future__ import annotations

import logging
from typing import Any, Dict

import structlog
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape


def configure_logging(level: str, *, no_color: bool = False) -> None:
    """
    Compact stderr logs for a short-lived generator run.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True, no_color=no_color),
                rich_tracebacks=True,
                markup=not no_color,
                show_time=False,
                show_level=True,
                show_path=False,
            )
        ],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _plain_renderer if no_color else _pretty_rich_renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        cache_logger_on_first_use=True,
    )


def get_logger(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger().bind(**kwargs)


def _pretty_rich_renderer(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> str:  # pragma: no cover
    """
    Final renderer for structlog -> RichHandler.
    """
    event = str(event_dict.pop("event", method_name))
    level = str(event_dict.pop("level", "")).lower()

    icon = _icon_for(event, level)
    title = _style_for(level, "%s %s" % (icon, event)).strip()
    return _with_fields(title, event_dict, markup=True)


def _plain_renderer(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    event = str(event_dict.pop("event", method_name))
    event_dict.pop("level", None)
    return _with_fields(event, event_dict)


def _with_fields(title: str, event_dict: Dict[str, Any], markup: bool = False) -> str:
    # Prefer a few well-known keys first, then the rest sorted.
    preferred = ("component", "target", "dir", "binding", "output", "events", "prefix")
    parts: list[str] = []
    for k in preferred:
        if k in event_dict:
            parts.append("%s=%r" % (k, event_dict.pop(k)))

    for k in sorted(event_dict.keys()):
        parts.append("%s=%r" % (k, event_dict[k]))

    if parts:
        fields = " ".join(parts)
        return "%s  %s" % (title, escape(fields) if markup else fields)
    return title


def _style_for(level: str, text: str) -> str:
    if level in ("error", "critical"):
        return "[bold red]%s[/bold red]" % text
    if level == "warning":
        return "[bold yellow]%s[/bold yellow]" % text
    return "[bold cyan]%s[/bold cyan]" % text


def _icon_for(event: str, level: str) -> str:
    if event in ("parsing_target",):
        return "🔎"
    if event in ("generating",):
        return "🧩"
    if event in ("generated",):
        return "📝"

    if level in ("error", "critical"):
        return "❌"
    if level == "warning":
        return "⚠️"
    return "✅"
