from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, ClassVar

import pytest

from nanoinject import AccessError, Dependency, FieldDescriptor, Resolver, fields_of


if TYPE_CHECKING:
    from decimal import Context


class Clock: ...


class Billing:
    clock: Annotated[Clock, Dependency]
    context: Context | None = None
    instances: ClassVar[int] = 0


class MeteredBilling(Billing):
    meter: Annotated[Clock, Dependency]


class Invoice:
    context: Context | None = None


class Ledger:
    context: Annotated[Context, Dependency]
    clock: Annotated[Clock, Dependency]


def test_type_checking_only_annotation_on_plain_field_is_skipped():
    r = Resolver()

    billing = r.resolve(Billing)

    assert billing.clock is r.resolve(Clock)
    assert billing.context is None


def test_inject_dependencies_with_type_checking_only_annotation():
    r = Resolver()

    billing = r.inject_dependencies(Billing())

    assert billing.clock is r.resolve(Clock)
    assert not r.is_resolved(Billing)


def test_inherited_fields_are_evaluated_one_by_one():
    r = Resolver()

    billing = r.resolve(MeteredBilling)

    assert billing.clock is r.resolve(Clock)
    assert billing.meter is billing.clock


def test_unevaluable_field_is_described_as_unresolved():
    fields = {f.name: f for f in fields_of(Billing)}

    assert set(fields) == {"clock", "context"}
    assert fields["clock"].resolved
    assert fields["clock"].declared_type is Clock
    assert not fields["context"].resolved
    assert fields["context"].metadata == ()


def test_unevaluable_annotation_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="nanoinject"):
        fields_of(Invoice)

    assert "Context" in caplog.text


def test_unevaluable_injectable_field_raises_access_error():
    r = Resolver()

    with pytest.raises(AccessError, match="context") as ctx:
        r.resolve(Ledger)

    assert ctx.value.token is Ledger
    assert not r.is_resolved(Clock)


def test_custom_predicate_selecting_unevaluable_field_raises_access_error():
    def wants_context(field: FieldDescriptor) -> bool:
        return field.name == "context"

    r = Resolver(is_injectable=wants_context)

    with pytest.raises(AccessError):
        r.resolve(Invoice)


def test_field_cache_is_bounded():
    assert fields_of.cache_info().maxsize is not None
