"""Exception types shared by the translator and the sync engine.

I/O failures are not wrapped: they surface as the builtin ``OSError``
and are handled at the same boundary as the errors defined here.
"""


class GmxMirrorError(Exception):
    """Base class for all gmx-mirror errors."""


class ParseError(GmxMirrorError):
    """A native or mirror document could not be parsed.

    Attributes:
        line: 1-based line number where parsing failed (0 if unknown).
        reason: Human-readable description of the problem.
    """

    def __init__(self, line: int, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"line {line}: {reason}")


class UnknownGroupError(GmxMirrorError):
    """The manifest has no group with the requested name."""

    def __init__(self, group: str) -> None:
        self.group = group
        super().__init__(f"manifest has no group named '{group}'")
