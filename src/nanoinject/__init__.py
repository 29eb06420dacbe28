"""Minimal object-graph resolver.

This package resolves a requested type to a single, fully-initialized instance,
recursively constructing and caching every dependency it needs. Dependencies
are declared as annotated class attributes instead of constructor parameters.

Exports:
- `Resolver`: Cache of singletons plus the recursive construction algorithm.
- `Binder`: Explicit mapping from interfaces (Protocols, ABCs) to implementations.
- `Dependency`: Marker used as `Annotated[SomeType, Dependency]` on injectable fields.
- `Service`: Base class whose `init()` is called once its fields are injected.
- `ResolutionError` and its subclasses `BindingError`, `InstantiationError`, `AccessError`.
"""

from ._binder import Binder
from ._errors import AccessError, BindingError, InstantiationError, ResolutionError
from ._markers import (
    Dependency,
    FieldDescriptor,
    LifecycleHook,
    Service,
    ServiceLifecycle,
    fields_of,
    has_dependency_marker,
)
from ._resolver import ImplementationBinder, Resolver


__all__ = [
    "AccessError",
    "Binder",
    "BindingError",
    "Dependency",
    "FieldDescriptor",
    "ImplementationBinder",
    "InstantiationError",
    "LifecycleHook",
    "ResolutionError",
    "Resolver",
    "Service",
    "ServiceLifecycle",
    "fields_of",
    "has_dependency_marker",
]
