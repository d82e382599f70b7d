import asyncio

import pytest

from conftest import FakeField, RecordingConfirm, add_group

from nl_address.group.models import ReconciliationOutcome
from nl_address.group.registry import GroupRegistry
from nl_address.reconcile.engine import ReconciliationEngine, resolve_fetched_value
from nl_address.utils.config_loader import SchemaSettings

FETCHED = {"street": "Mainstreet", "city": "Example", "postalCode": "1234AB", "houseNumber": "10"}


def build(confirm=None, **fields):
    registry = GroupRegistry()
    confirm = confirm or RecordingConfirm()
    group = add_group(registry, "g", **fields)
    return registry, ReconciliationEngine(registry, confirm), confirm, group


def address_fields(city=""):
    return {
        "postalcode": FakeField("1234AB"),
        "number": FakeField("10"),
        "street": FakeField(),
        "city": FakeField(city),
    }


def test_empty_fields_are_filled_silently():
    fields = address_fields()
    _, engine, confirm, group = build(**fields)

    outcome = asyncio.run(engine.apply("g", FETCHED))

    assert outcome is ReconciliationOutcome.UPDATED
    assert fields["street"].value == "Mainstreet"
    assert fields["city"].value == "Example"
    assert confirm.calls == []
    assert fields["postalcode"].writes == []
    assert fields["number"].writes == []
    assert group.applying is False


def test_conflicting_city_is_suggested_and_decline_is_remembered():
    fields = address_fields(city="Oldcity")
    _, engine, confirm, group = build(RecordingConfirm(False), **fields)

    outcome = asyncio.run(engine.apply("g", FETCHED))

    assert outcome is ReconciliationOutcome.DECLINED
    assert fields["street"].value == "Mainstreet"
    assert fields["city"].value == "Oldcity"
    assert confirm.calls == [[("city", "Oldcity", "Example")]]
    assert group.last_declined_signature == "city:oldcity->example"

    fields["street"].value = "Mainstreet"
    repeat = asyncio.run(engine.apply("g", FETCHED))
    assert repeat is ReconciliationOutcome.SUPPRESSED
    assert len(confirm.calls) == 1
    assert fields["city"].value == "Oldcity"


def test_accepting_suggestion_overwrites_and_clears_decline_memory():
    fields = address_fields(city="Oldcity")
    _, engine, confirm, group = build(RecordingConfirm(True), **fields)
    group.last_declined_signature = "city:othercity->example"

    outcome = asyncio.run(engine.apply("g", FETCHED))

    assert outcome is ReconciliationOutcome.ACCEPTED
    assert fields["city"].value == "Example"
    assert group.last_declined_signature is None


def test_changed_conflict_set_prompts_again_after_decline():
    fields = address_fields(city="Oldcity")
    _, engine, confirm, group = build(RecordingConfirm(False, False), **fields)

    asyncio.run(engine.apply("g", FETCHED))
    fields["city"].value = "Othercity"
    outcome = asyncio.run(engine.apply("g", FETCHED))

    assert outcome is ReconciliationOutcome.DECLINED
    assert len(confirm.calls) == 2
    assert confirm.calls[1] == [("city", "Othercity", "Example")]


def test_equal_values_after_normalization_are_left_alone():
    fields = address_fields(city="  EXAMPLE ")
    fields["street"].value = "mainstreet"
    _, engine, confirm, _ = build(**fields)

    outcome = asyncio.run(engine.apply("g", FETCHED))

    assert outcome is ReconciliationOutcome.NOOP
    assert confirm.calls == []
    assert fields["city"].writes == []
    assert fields["street"].writes == []


def test_country_defaults_to_domestic_value():
    country = FakeField()
    _, engine, _, _ = build(country=country, postalcode=FakeField("1234AB"), number=FakeField("10"))

    asyncio.run(engine.apply("g", FETCHED))

    assert country.value == "Nederland"


def test_detached_field_is_skipped():
    street = FakeField(attached=False)
    _, engine, _, _ = build(street=street, city=FakeField())

    asyncio.run(engine.apply("g", FETCHED))

    assert street.writes == []


def test_async_confirmation_is_awaited():
    async def confirm(suggestions):
        await asyncio.sleep(0)
        return True

    fields = address_fields(city="Oldcity")
    _, engine, _, _ = build(confirm, **fields)

    assert asyncio.run(engine.apply("g", FETCHED)) is ReconciliationOutcome.ACCEPTED
    assert fields["city"].value == "Example"


def test_guard_is_released_when_confirmation_fails():
    def confirm(suggestions):
        raise RuntimeError("prompt closed")

    fields = address_fields(city="Oldcity")
    _, engine, _, group = build(confirm, **fields)

    with pytest.raises(RuntimeError):
        asyncio.run(engine.apply("g", FETCHED))
    assert group.applying is False
    assert fields["street"].value == "Mainstreet"


def test_applying_flag_is_set_during_writes():
    seen = []

    class ObservingField(FakeField):
        async def write(self, value):
            seen.append(group.applying)
            await super().write(value)

    registry = GroupRegistry()
    group = add_group(registry, "g", street=ObservingField())
    engine = ReconciliationEngine(registry, RecordingConfirm())

    asyncio.run(engine.apply("g", FETCHED))
    assert seen == [True]


def test_no_actionable_difference_is_a_noop():
    _, engine, _, _ = build(street=FakeField())
    assert asyncio.run(engine.apply("g", {"city": "Example"})) is ReconciliationOutcome.NOOP
    assert asyncio.run(engine.apply("unknown", FETCHED)) is ReconciliationOutcome.NOOP


def test_resolve_fetched_value_uses_first_non_empty_source_key():
    keys = SchemaSettings().source_keys
    assert resolve_fetched_value("street", {"street": "", "roadName": "Laan"}, keys) == "Laan"
    assert resolve_fetched_value("city", {"city": "A", "municipality": "B"}, keys) == "A"
    assert resolve_fetched_value("city", {}, keys) is None
    assert resolve_fetched_value("country", {}, keys, "Nederland") == "Nederland"
    assert resolve_fetched_value("country", {"country": "Belgie"}, keys, "Nederland") == "Belgie"
