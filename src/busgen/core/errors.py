from __future__ import annotations

from typing import Optional, Sequence


class BusgenError(Exception):
    """
    Base for every failure that aborts a target.

    The pipeline stamps `target` (e.g. "./events.Events") onto the error so the
    message stays actionable when several targets run in one invocation.
    """

    def __init__(self, message: str, *, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        if self.target:
            return "%s: %s" % (self.target, self.message)
        return self.message


class InvalidTarget(BusgenError):
    def __init__(self, spec: str, reason: str) -> None:
        super().__init__("invalid target %r: %s" % (spec, reason))
        self.spec = spec
        self.reason = reason


class NotADirectory(BusgenError):
    def __init__(self, path: str) -> None:
        super().__init__("source directory %s does not exist" % path)
        self.path = path


class OutputConflict(BusgenError):
    def __init__(self, output: str, targets: Sequence[str]) -> None:
        super().__init__(
            "--output %s cannot be used with multiple targets (%s)" % (output, ", ".join(targets))
        )
        self.output = output
        self.targets = list(targets)


class SourceParseError(BusgenError):
    def __init__(self, path: str, lineno: Optional[int], detail: str) -> None:
        where = "%s:%d" % (path, lineno) if lineno else path
        super().__init__("cannot parse %s: %s" % (where, detail))
        self.path = path
        self.lineno = lineno


class DeclarationNotFound(BusgenError):
    def __init__(self, binding: str, scanned: int) -> None:
        super().__init__("no dict literal bound to %r found (%d modules scanned)" % (binding, scanned))
        self.binding = binding


class AmbiguousDeclaration(BusgenError):
    def __init__(self, binding: str, paths: Sequence[str]) -> None:
        super().__init__("multiple dict literals bound to %r found: %s" % (binding, ", ".join(paths)))
        self.binding = binding
        self.paths = list(paths)


class UnresolvedConstant(BusgenError):
    def __init__(self, name: str) -> None:
        super().__init__(
            "constant %r not found; only module-level string constants are supported" % name
        )
        self.name = name


class AmbiguousConstant(BusgenError):
    def __init__(self, name: str, paths: Sequence[str]) -> None:
        super().__init__(
            "constant %r has different values in %s; define it in the declaring module"
            % (name, ", ".join(paths))
        )
        self.name = name
        self.paths = list(paths)


class InvalidKeyExpression(BusgenError):
    def __init__(self, detail: str, lineno: Optional[int] = None) -> None:
        msg = "dict key must be a string literal, a constant, or str(CONSTANT); got %s" % detail
        if lineno:
            msg = "%s (line %d)" % (msg, lineno)
        super().__init__(msg)
        self.detail = detail
        self.lineno = lineno


class InvalidValueExpression(BusgenError):
    def __init__(self, event: str, detail: str) -> None:
        super().__init__(
            "value for %r must instantiate a type with no arguments (e.g. MyType() or pkg.MyType()); got %s"
            % (event, detail)
        )
        self.event = event
        self.detail = detail


class EmptySchema(BusgenError):
    def __init__(self, binding: str) -> None:
        super().__init__("%s contains no event definitions" % binding)
        self.binding = binding


class InvalidEventName(BusgenError):
    def __init__(self, name: str, char: str = "") -> None:
        if not name:
            msg = "event name must not be empty"
        else:
            msg = (
                "event name %r contains invalid character %r; only letters, digits, "
                "dots, hyphens, and underscores are allowed" % (name, char)
            )
        super().__init__(msg)
        self.name = name
        self.char = char


class DuplicateEventName(BusgenError):
    def __init__(self, name: str) -> None:
        super().__init__("duplicate event name %r" % name)
        self.name = name


class SymbolCollision(BusgenError):
    def __init__(self, first: str, second: str, symbol: str) -> None:
        super().__init__(
            "event names %r and %r produce the same generated symbol %r" % (first, second, symbol)
        )
        self.first = first
        self.second = second
        self.symbol = symbol


class InvalidPayloadIdentifier(BusgenError):
    def __init__(self, event: str, payload_type: str) -> None:
        super().__init__(
            "payload type %r for event %r is not a valid (optionally qualified) identifier"
            % (payload_type, event)
        )
        self.event = event
        self.payload_type = payload_type


class InvalidPrefix(BusgenError):
    def __init__(self, prefix: str) -> None:
        super().__init__("prefix %r is not a valid Python identifier" % prefix)
        self.prefix = prefix
