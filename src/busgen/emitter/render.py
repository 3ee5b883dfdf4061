from __future__ import annotations

from typing import List

from busgen.core.model import Schema

HEADER = "# Code generated by busgen. DO NOT EDIT."
SOURCE_ALIAS = "_source"


def render(schema: Schema) -> str:
    """
    Python source for a typed bus over a validated (sorted) schema.

    Pure and deterministic: the same schema always renders the same text.
    """
    p = schema.prefix
    enum_name = "%sEvent" % p
    bus_name = "%sEventBus" % p
    payload_name = "%sPayload" % p
    origin = "%s.%s.%s" % (schema.source_package, schema.source_module, schema.binding_name)

    out: List[str] = []
    out.append(HEADER)
    out.append("# source: %s" % origin)
    out.append("")
    out.append("from __future__ import annotations")
    out.append("")
    out.append("import enum")
    out.append("from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union")
    out.append("")
    out.append("from busgen.bus import runtime as _runtime")
    out.append("")
    out.append("if TYPE_CHECKING:")
    out.append("    %s" % _source_import(schema))
    out.append("")
    out.append("")

    out.append("class %s(str, enum.Enum):" % enum_name)
    out.append('    """Event identifiers declared by %s."""' % origin)
    out.append("")
    for e in schema.events:
        out.append("    %s = %s" % (e.member_name, _quote(e.name)))
    out.append("")
    out.append("")

    payload_types: List[str] = []
    for e in schema.events:
        if e.payload_type not in payload_types:
            payload_types.append(e.payload_type)
    out.append("%s = Union[" % payload_name)
    for t in payload_types:
        out.append('    "%s",' % _qualified(t))
    out.append("]")
    out.append("")
    out.append("")

    out.append("class %s(_runtime.Bus[%s]):" % (bus_name, enum_name))
    out.append('    """')
    out.append("    Typed bus for %s." % origin)
    out.append("")
    out.append("    Construct with a queue capacity, subscribe handlers, then run the")
    out.append("    dispatcher with `await bus.run(stop)`.")
    out.append('    """')
    for e in schema.events:
        member = "%s.%s" % (enum_name, e.member_name)
        payload = _qualified(e.payload_type)
        out.append("")
        out.append("    def publish_%s(self, payload: %s) -> bool:" % (e.method_suffix, payload))
        out.append("        return self.publish(%s, payload)" % member)
        out.append("")
        out.append("    def subscribe_%s(" % e.method_suffix)
        out.append("        self, handler: Callable[[%s], Optional[Awaitable[None]]]" % payload)
        out.append("    ) -> None:")
        out.append("        self.subscribe(%s, handler)" % member)

    return "\n".join(out) + "\n"


def _source_import(schema: Schema) -> str:
    # Type-checking only, so the declaring module may import the generated one.
    if schema.source_module == "__init__":
        return "import %s as %s" % (schema.source_package, SOURCE_ALIAS)
    return "from . import %s as %s" % (schema.source_module, SOURCE_ALIAS)


def _qualified(payload_type: str) -> str:
    return "%s.%s" % (SOURCE_ALIAS, payload_type)


def _quote(s: str) -> str:
    # Event names are letters, digits and . - _ only.
    return '"%s"' % s
