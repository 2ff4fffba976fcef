"""
Unit tests for the Playwright-facing adapters, using a fake page object.
"""

import asyncio
import json

import pytest
from playwright.async_api import Error as PlaywrightError

from src.browser.navigation import PageNotifier, PlaywrightNavigator
from src.browser.surfaces import parse_total
from src.traversal.control import ControlSignalChannel
from src.traversal.keyboard import BINDING_NAME, STOP_MESSAGE, KeyboardControlBinding
from tests.conftest import HW_LIST, FakeNotifier, hw_item


class FakePage:
    """The handful of Page methods the adapters call."""

    def __init__(self, url=HW_LIST, goto_failures=0):
        self.url = url
        self.goto_failures = goto_failures
        self.goto_calls = []
        self.waits = []
        self.exposed = {}
        self.init_scripts = []
        self.evaluated = []
        self.handlers = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        if self.goto_failures:
            self.goto_failures -= 1
            raise PlaywrightError("net::ERR_CONNECTION_RESET")
        self.url = url

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def expose_function(self, name, fn):
        self.exposed[name] = fn

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def evaluate(self, expression, arg=None):
        self.evaluated.append((expression, arg))

    def once(self, event, handler):
        self.handlers.append((event, handler))


def _error_records(tmp_path):
    records = []
    for path in (tmp_path / "errors").glob("errors_*.jsonl"):
        records.extend(json.loads(line) for line in path.read_text().splitlines() if line)
    return records


class TestPlaywrightNavigator:
    """Test navigation retries."""

    def test_success_first_try(self):
        page = FakePage()
        navigator = PlaywrightNavigator(page, "hellowork", timeout_ms=1000)

        assert asyncio.run(navigator.goto(hw_item(1))) is True
        assert navigator.current_url == hw_item(1)
        assert page.goto_calls == [(hw_item(1), "domcontentloaded", 1000)]

    def test_retries_transient_failure(self):
        page = FakePage(goto_failures=2)
        navigator = PlaywrightNavigator(page, "hellowork", max_retries=3)

        assert asyncio.run(navigator.goto(hw_item(2))) is True
        assert len(page.goto_calls) == 3

    def test_gives_up_and_logs(self, tmp_path):
        page = FakePage(goto_failures=5)
        navigator = PlaywrightNavigator(page, "linkedin", max_retries=2)

        assert asyncio.run(navigator.goto(hw_item(3))) is False
        assert len(page.goto_calls) == 2
        record = _error_records(tmp_path)[-1]
        assert record["error_type"] == "navigation_error"
        assert record["metadata"]["attempts"] == 2
        assert navigator.current_url == HW_LIST


class TestPageNotifier:
    def test_alert_shown_with_message(self):
        page = FakePage()
        asyncio.run(PageNotifier(page, "hellowork").notify("Login required"))

        assert page.evaluated[-1][1] == "Login required"
        assert page.handlers[0][0] == "dialog"


class TestKeyboardControlBinding:
    """Test the key listener adapter."""

    def test_install(self, memory_store):
        page = FakePage()
        binding = KeyboardControlBinding(page, ControlSignalChannel(memory_store))

        asyncio.run(binding.install())

        assert page.exposed[BINDING_NAME] == binding.handle
        assert BINDING_NAME in page.init_scripts[0]
        assert page.evaluated[0][0] == page.init_scripts[0]

    def test_pause_key(self, memory_store, four_item_state):
        asyncio.run(memory_store.save(four_item_state))
        binding = KeyboardControlBinding(FakePage(), ControlSignalChannel(memory_store))

        asyncio.run(binding.handle("pause-or-resume"))

        assert asyncio.run(memory_store.load()).is_paused is True

    def test_stop_key_notifies(self, memory_store, four_item_state):
        asyncio.run(memory_store.save(four_item_state))
        notifier = FakeNotifier()
        binding = KeyboardControlBinding(FakePage(), ControlSignalChannel(memory_store), notifier)

        asyncio.run(binding.handle("stop"))

        assert asyncio.run(memory_store.load()).in_progress is False
        assert notifier.messages == [STOP_MESSAGE]

    def test_stop_without_traversal_is_silent(self, memory_store):
        notifier = FakeNotifier()
        binding = KeyboardControlBinding(FakePage(), ControlSignalChannel(memory_store), notifier)

        asyncio.run(binding.handle("stop"))

        assert notifier.messages == []

    def test_unknown_command_ignored(self, memory_store, four_item_state):
        asyncio.run(memory_store.save(four_item_state))
        binding = KeyboardControlBinding(FakePage(), ControlSignalChannel(memory_store))

        asyncio.run(binding.handle("reboot"))

        assert asyncio.run(memory_store.load()) == four_item_state


@pytest.mark.parametrize("raw,expected", [
    ("Résultats : 123 candidats", 123),
    ("42", 42),
    ("aucun résultat", None),
    ("", None),
    (None, None),
])
def test_parse_total(raw, expected):
    assert parse_total(raw) == expected
