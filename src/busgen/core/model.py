from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Dict, Tuple

DEFAULT_BINDING = "Events"
BINDING_SUFFIX = "Events"
SEPARATORS = (".", "-", "_")


class ConstantTable(Dict[str, str]):
    """
    Identifier -> resolved string, as seen from the declaring module.

    `ambiguous` maps names that other modules bind to different strings to
    those modules' paths. Such names are left out of the table itself.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.ambiguous: Dict[str, Tuple[str, ...]] = {}


@dataclass(frozen=True)
class SourceFile:
    path: str
    text: str

    @property
    def name(self) -> str:
        return PurePath(self.path).name

    @property
    def module(self) -> str:
        return PurePath(self.path).stem


@dataclass(frozen=True)
class EventDef:
    name: str  # e.g. "order.created"
    payload_type: str  # e.g. "OrderCreated" or "models.OrderCreated"

    @property
    def symbol(self) -> str:
        return pascal_case(self.name)

    @property
    def method_suffix(self) -> str:
        return snake_case(self.symbol)

    @property
    def member_name(self) -> str:
        # "order.created" -> ORDER_CREATED, "2fa.enabled" -> E_2FA_ENABLED
        name = self.method_suffix.upper()
        if not name[:1].isidentifier():
            name = "E_" + name
        return name


@dataclass(frozen=True)
class Schema:
    source_package: str
    source_module: str
    binding_name: str
    prefix: str
    events: Tuple[EventDef, ...]


def derive_prefix(binding_name: str) -> str:
    """
    Naming root for generated symbols when no directive overrides it.

      "Events" -> "", "OrderEvents" -> "Order", "Commands" -> "Commands"
    """
    if binding_name == DEFAULT_BINDING:
        return ""
    if binding_name.endswith(BINDING_SUFFIX):
        rest = binding_name[: -len(BINDING_SUFFIX)]
        if rest:
            return rest
    return binding_name


def pascal_case(name: str) -> str:
    """
    "shopping_list.cleanup" -> "ShoppingListCleanup", "a.b.c" -> "ABC".
    """
    out = []
    upper_next = True
    for ch in name:
        if ch in SEPARATORS:
            upper_next = True
            continue
        if upper_next:
            out.append(ch.upper())
            upper_next = False
        else:
            out.append(ch)
    return "".join(out)


def snake_case(symbol: str) -> str:
    """
    Method-name form of a normalized symbol: "OrderCreated" -> "order_created".

    Every uppercase character after the first starts a new word, so distinct
    symbols keep distinct snake forms.
    """
    out = []
    for i, ch in enumerate(symbol):
        if ch.isupper():
            if i > 0:
                out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)
