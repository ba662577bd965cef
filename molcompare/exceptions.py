"""Custom exceptions for molcompare."""

from __future__ import annotations


class CompareError(Exception):
    """Base exception for molecular graph comparison errors."""
    pass


class MalformedGraph(CompareError):
    """Graph or pattern construction violated a structural invariant.

    Raised for dangling edge indices, duplicate edges and self-loops.
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        edge: tuple[int, int] | None = None,
    ):
        self.message = message
        self.reason = reason
        self.edge = edge

        if edge is not None:
            super().__init__(f"{message} (edge {edge[0]}-{edge[1]})")
        else:
            super().__init__(message)


class IncompatibleKind(CompareError):
    """Requested common-subgraph kind is not supported."""

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Unsupported common subgraph kind: {kind!r}")


class ParseError(CompareError):
    """Boundary adapter could not turn text into a graph."""

    def __init__(self, message: str, text: str | None = None, fmt: str | None = None):
        self.message = message
        self.text = text
        self.fmt = fmt

        if text is not None and fmt is not None:
            super().__init__(f"{message} ({fmt}): {text}")
        elif text is not None:
            super().__init__(f"{message} in: {text}")
        else:
            super().__init__(message)
