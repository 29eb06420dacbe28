from __future__ import annotations

from typing import Any


class ResolutionError(RuntimeError):
    """Base class for failures raised while resolving a type."""

    def __init__(self, msg: str, token: Any = None) -> None:
        super().__init__(msg)
        self.token = token


class BindingError(ResolutionError):
    """An interface was requested but no implementation is bound to it."""


class InstantiationError(ResolutionError):
    """Zero-argument construction of a concrete type failed."""


class AccessError(ResolutionError):
    """An injectable field could not be read or assigned."""
