import asyncio
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from nl_address.binder import AddressBinder
from nl_address.group.registry import GroupRegistry
from nl_address.utils.config_loader import AddressBinderSettings, BinderSettings, reload_settings


class FakeField:
    """In-memory field handle."""

    def __init__(self, value="", attached=True, fail_on_write=False):
        self.value = value
        self.attached = attached
        self.fail_on_write = fail_on_write
        self.writes = []

    async def is_attached(self):
        return self.attached

    async def read(self):
        return self.value

    async def write(self, value):
        if self.fail_on_write:
            raise RuntimeError("element is not editable")
        self.writes.append(value)
        self.value = value


class FakeTransport:
    """Records lookups; per-query gates hold a lookup open until set."""

    def __init__(self, responses=None, default=None):
        self.calls = []
        self.responses = responses or {}
        self.default = default if default is not None else {
            "street": "Mainstreet",
            "city": "Example",
            "postalCode": "1234AB",
            "houseNumber": "10",
        }
        self.gates = {}

    async def fetch(self, postalcode, number):
        self.calls.append((postalcode, number))
        gate = self.gates.get((postalcode, number))
        if gate is not None:
            await gate.wait()
        result = self.responses.get((postalcode, number), self.default)
        if isinstance(result, Exception):
            raise result
        return dict(result)


class RecordingConfirm:
    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, suggestions):
        self.calls.append(list(suggestions))
        return self.answers.pop(0) if self.answers else False


def make_settings(debounce_ms=10, **binder_overrides):
    return AddressBinderSettings(binder=BinderSettings(debounce_ms=debounce_ms, **binder_overrides))


def add_group(registry: GroupRegistry, group_id="address", **fields):
    for role, handle in fields.items():
        registry.register_field(group_id, role, handle)
    return registry.get(group_id)


async def settle(binder: AddressBinder, rounds=3):
    """Wait for pending debounce timers, evaluations and lookups to finish."""
    for _ in range(rounds):
        await asyncio.sleep(binder.settings.binder.debounce_ms / 1000.0 + 0.02)
        await binder.scheduler.drain()
        tasks = [g.in_flight.task for g in binder.registry if g.in_flight and g.in_flight.task]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    monkeypatch.delenv("NL_ADDRESS_CONFIG", raising=False)
    monkeypatch.delenv("PLAYWRIGHT_HEADLESS", raising=False)
    reload_settings()
    yield
    reload_settings()
