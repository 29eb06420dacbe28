from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, overload

from ._binder import Binder, is_interface
from ._errors import AccessError, BindingError, InstantiationError, ResolutionError
from ._markers import FieldDescriptor, LifecycleHook, ServiceLifecycle, has_dependency_marker, injectable_fields


if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ImplementationBinder(Protocol):
    def implementation_for(self, interface: type) -> type | None: ...


class Resolver:
    """Singleton object-graph resolver.

    - resolve a type to its one cached instance, constructing it on first request
    - map interfaces to implementations through a binder
    - inject `Annotated[X, Dependency]` fields recursively
    - call the lifecycle hook once fields are populated.

    An instance is cached before its fields are injected, so a dependency cycle
    resolves to the cached, possibly partially-injected, instance.
    """

    def __init__(
        self,
        binder: ImplementationBinder | Mapping[type, type] | None = None,
        *,
        is_injectable: Callable[[FieldDescriptor], bool] = has_dependency_marker,
        lifecycle: LifecycleHook | None = None,
    ) -> None:
        if binder is None or isinstance(binder, Mapping):
            binder = Binder(binder)
        self._binder = binder
        self._is_injectable = is_injectable
        self._lifecycle = lifecycle if lifecycle is not None else ServiceLifecycle()

        self._instances: dict[type, object] = {Resolver: self}
        self._instances[type(self)] = self

    @property
    def binder(self) -> ImplementationBinder:
        return self._binder

    def bind(self, interface: type, impl: type, *, replace: bool = False) -> None:
        """Shortcut for `resolver.binder.bind(...)` when the binder is a `Binder`."""
        if not isinstance(self._binder, Binder):
            msg = f"{type(self._binder).__name__} does not support bind(); register bindings on it directly"
            raise TypeError(msg)
        self._binder.bind(interface, impl, replace=replace)

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: Any) -> object: ...

    def resolve(self, token: Any) -> object:
        """Resolve the type to its singleton instance.

        - If already cached: return it.
        - If the type is an interface: construct the bound implementation.
        - Otherwise construct the type itself with no arguments.
        """
        if token in self._instances:
            return self._instances[token]

        if not inspect.isclass(token):
            msg = f"Only classes can be resolved, got {token!r}"
            raise TypeError(msg)

        concrete = self._concrete_type(token)
        if concrete in self._instances:
            logger.debug("Aliasing %s to cached %s", token.__name__, concrete.__name__)
            instance = self._instances[token] = self._instances[concrete]
            return instance

        instance = self._instantiate(token, concrete)

        # cache before injection: a cycle back to `token` must hit this entry
        self._instances[token] = instance
        self._instances[concrete] = instance

        self.inject_dependencies(instance)

        if self._lifecycle.has_hook(instance):
            self._lifecycle.invoke(instance)

        return instance

    def inject_dependencies(self, obj: T) -> T:
        """Populate every injectable field of `obj` with its resolved dependency.

        `obj` itself is neither cached nor passed to the lifecycle hook.
        """
        for field in injectable_fields(type(obj), self._is_injectable):
            dependency = self.resolve(field.declared_type)
            logger.debug("Injecting %s.%s", field.owner.__name__, field.name)
            try:
                field.set(obj, dependency)
            except (AttributeError, TypeError) as exc:
                msg = f"Cannot assign injectable field '{field.name}' on {type(obj).__name__}: {exc}"
                raise AccessError(msg, token=type(obj)) from exc
        return obj

    def is_resolved(self, token: Any) -> bool:
        return token in self._instances

    def resolved_types(self) -> frozenset[type]:
        return frozenset(self._instances)

    def __contains__(self, token: object) -> bool:
        return token in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def _concrete_type(self, token: type) -> type:
        if not is_interface(token):
            return token

        impl = self._binder.implementation_for(token)
        if impl is None:
            msg = f"No implementation bound for interface: {token.__name__}"
            raise BindingError(msg, token=token)

        logger.debug("Resolved binding %s -> %s", token.__name__, impl.__name__)
        return impl

    def _instantiate(self, token: type, concrete: type) -> object:
        logger.debug("Constructing %s", concrete.__name__)
        try:
            return concrete()
        except ResolutionError:
            raise
        except Exception as exc:
            msg = f"Cannot construct {concrete.__name__} (requested as {token.__name__}) with no arguments: {exc}"
            raise InstantiationError(msg, token=token) from exc
