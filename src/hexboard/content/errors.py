from __future__ import annotations


class InvalidArgumentError(ValueError):
    """A required input (board, sink, node) was not supplied."""


class InvalidStructureError(ValueError):
    """A board document does not have the required shape."""
