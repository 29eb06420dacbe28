from __future__ import annotations

import inspect
import logging
import typing
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, get_type_hints


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

T = TypeVar("T")

logger = logging.getLogger(__name__)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: Any) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return inspect.isclass(tp) and tp is not Protocol and getattr(tp, "_is_protocol", False) is True


def is_interface(tp: Any) -> bool:
    """A type needs a binding when it is a Protocol or an ABC with abstract members."""
    return is_protocol(tp) or inspect.isabstract(tp)


class Binder:
    """Explicit interface -> implementation mapping.

    - bind an interface to a concrete class
    - validate the implementation at bind time
    - answer `implementation_for` lookups from the resolver.
    """

    def __init__(self, bindings: Mapping[type, type] | None = None) -> None:
        self._bindings: dict[type, type] = {}
        for interface, impl in (bindings or {}).items():
            self.bind(interface, impl)

    def bind(self, interface: type, impl: type, *, replace: bool = False) -> None:
        """Bind `impl` as the concrete type for `interface`.

        Example:
          binder.bind(Logger, ConsoleLogger)

        """
        if not inspect.isclass(interface) or not inspect.isclass(impl):
            msg = f"Bindings must map classes to classes, got {interface!r} -> {impl!r}"
            raise TypeError(msg)

        if is_interface(impl):
            msg = f"Implementation {impl.__name__} for {interface.__name__} must be concrete"
            raise TypeError(msg)

        _validate_impl(interface, impl)

        if not replace and interface in self._bindings:
            msg = f"Interface {interface.__name__} is already bound. Pass replace=True to overwrite."
            raise KeyError(msg)

        logger.debug("Binding %s -> %s", interface.__name__, impl.__name__)
        self._bindings[interface] = impl

    def implements(self, interface: type) -> Callable[[type[T]], type[T]]:
        """Class decorator binding the decorated class to `interface`."""

        def decorator(impl: type[T]) -> type[T]:
            self.bind(interface, impl)
            return impl

        return decorator

    def implementation_for(self, interface: type) -> type | None:
        return self._bindings.get(interface)

    def bindings(self) -> Mapping[type, type]:
        return MappingProxyType(self._bindings)

    def __contains__(self, interface: object) -> bool:
        return interface in self._bindings


def _validate_impl(cls: type, impl: type) -> None:
    """Validate that 'impl' implements 'cls'.

    - For normal classes/ABCs: require issubclass(impl, cls).
    - For Protocols: nominal via MRO, otherwise structural presence of members.
    """
    if not is_protocol(cls):
        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)
        return

    if cls in getattr(impl, "__mro__", ()):
        return

    missing: list[str] = []

    try:
        proto_hints = get_type_hints(cls)
    except (NameError, TypeError):
        proto_hints = {}

    for name in proto_hints:
        if not name.startswith("_") and not hasattr(impl, name):
            missing.append(name)

    for name, member in cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(member):
            continue
        if not callable(getattr(impl, name, None)):
            missing.append(name)

    if missing:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{cls.__name__}: missing members: {', '.join(missing)}"
        )
        raise TypeError(msg)
