from __future__ import annotations

import builtins
import functools
import inspect
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    ClassVar,
    ForwardRef,
    Protocol,
    get_args,
    get_origin,
    get_type_hints,
)

from ._errors import AccessError


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

if sys.version_info >= (3, 14):
    import annotationlib


logger = logging.getLogger(__name__)


class Dependency:
    """Marks a class attribute for injection.

    Example:
      class OrderService:
          repo: Annotated[OrderRepository, Dependency]
          mailer: Annotated[Mailer, Dependency()]

    """

    def __repr__(self) -> str:
        return "Dependency()"


@dataclass(frozen=True)
class FieldDescriptor:
    owner: type
    name: str
    declared_type: Any
    metadata: tuple[Any, ...] = ()
    # False when the annotation could not be evaluated; declared_type is then the raw annotation
    resolved: bool = True

    def get(self, obj: object, default: Any = None) -> Any:
        return getattr(obj, self.name, default)

    def set(self, obj: object, value: object) -> None:
        setattr(obj, self.name, value)


def has_dependency_marker(field: FieldDescriptor) -> bool:
    """Default injectable predicate: `Dependency` appears in the Annotated extras."""
    return any(m is Dependency or isinstance(m, Dependency) for m in field.metadata)


@functools.lru_cache(maxsize=256)
def fields_of(cls: type) -> tuple[FieldDescriptor, ...]:
    """Return every annotated attribute of `cls` (MRO included) as a FieldDescriptor.

    `ClassVar` annotations are skipped. When some annotation cannot be evaluated
    (e.g. a name imported only under TYPE_CHECKING), annotations are evaluated one
    by one and the failing ones come back with `resolved=False`.
    """
    try:
        hints = get_type_hints(cls, include_extras=True)
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        return tuple(_fields_one_by_one(cls))

    return tuple(f for name, hint in hints.items() if (f := _describe(cls, name, hint)) is not None)


def injectable_fields(
    cls: type,
    is_injectable: Callable[[FieldDescriptor], bool] = has_dependency_marker,
) -> list[FieldDescriptor]:
    """Fields of `cls` accepted by `is_injectable`.

    Raises AccessError for an injectable field whose annotation cannot be evaluated.
    """
    fields = [f for f in fields_of(cls) if is_injectable(f)]
    for field in fields:
        if not field.resolved:
            msg = (
                f"Cannot evaluate annotation of injectable field '{field.name}' on {cls.__name__}: "
                f"{field.declared_type!r}"
            )
            raise AccessError(msg, token=cls)
    return fields


def _describe(owner: type, name: str, hint: Any) -> FieldDescriptor | None:
    if hint is ClassVar or get_origin(hint) is ClassVar:
        return None

    if get_origin(hint) is Annotated:
        declared, *extras = get_args(hint)
        return FieldDescriptor(owner=owner, name=name, declared_type=declared, metadata=tuple(extras))
    return FieldDescriptor(owner=owner, name=name, declared_type=hint)


def _fields_one_by_one(cls: type) -> Iterator[FieldDescriptor]:
    fields: dict[str, FieldDescriptor | None] = {}

    for base in reversed(cls.__mro__):
        if base is object:
            continue
        globalns = getattr(sys.modules.get(base.__module__), "__dict__", {})
        localns = dict(vars(base))

        for name, value in _raw_annotations(base).items():
            holder = type(base.__name__, (), {"__annotations__": {name: value}, "__module__": base.__module__})
            try:
                hint = get_type_hints(holder, localns=localns, include_extras=True)[name]
            except NameError as exc:
                logger.warning("Cannot evaluate annotation of %s.%s: %s", cls.__name__, name, exc)
                fields[name] = _unresolved(cls, name, value, globalns, localns)
            else:
                fields[name] = _describe(cls, name, hint)

    yield from (f for f in fields.values() if f is not None)


def _raw_annotations(base: type) -> Mapping[str, Any]:
    if sys.version_info >= (3, 14):
        return annotationlib.get_annotations(base, format=annotationlib.Format.FORWARDREF)
    return inspect.get_annotations(base)


class _LenientNamespace(dict):
    """Evaluation namespace that stands `Any` in for undefined names."""

    def __init__(self, localns: Mapping[str, Any], globalns: Mapping[str, Any]) -> None:
        super().__init__(localns)
        self._globalns = globalns

    def __missing__(self, key: str) -> Any:
        if key in self._globalns:
            return self._globalns[key]
        return getattr(builtins, key, Any)


def _unresolved(
    owner: type,
    name: str,
    value: Any,
    globalns: Mapping[str, Any],
    localns: Mapping[str, Any],
) -> FieldDescriptor | None:
    """Describe a field whose type is unknown, keeping its Annotated metadata when it can be read."""
    expr = value.__forward_arg__ if isinstance(value, ForwardRef) else value
    hint = expr
    if isinstance(expr, str):
        try:
            hint = eval(expr, dict(globalns), _LenientNamespace(localns, globalns))  # noqa: S307
        except Exception as exc:  # noqa: BLE001
            logger.debug("Cannot read metadata of %s.%s: %s", owner.__name__, name, exc)
            return FieldDescriptor(owner=owner, name=name, declared_type=value, resolved=False)

    if hint is ClassVar or get_origin(hint) is ClassVar:
        return None
    metadata = tuple(get_args(hint)[1:]) if get_origin(hint) is Annotated else ()
    return FieldDescriptor(owner=owner, name=name, declared_type=value, metadata=metadata, resolved=False)


class Service(ABC):
    """Base class for objects that want a callback once their dependencies are injected."""

    @abstractmethod
    def init(self) -> None: ...


class LifecycleHook(Protocol):
    def has_hook(self, obj: object) -> bool: ...

    def invoke(self, obj: object) -> None: ...


class ServiceLifecycle:
    """Default lifecycle hook: calls `init()` on `Service` instances."""

    def has_hook(self, obj: object) -> bool:
        return isinstance(obj, Service)

    def invoke(self, obj: object) -> None:
        logger.debug("Invoking init() on %s", type(obj).__name__)
        obj.init()  # type: ignore[attr-defined]
