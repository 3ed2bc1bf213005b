"""Tests for the prompt-driven tabset commands."""

from __future__ import annotations

import asyncio

import pytest

from tabset.core import codec
from tabset.core.manager import TabManager
from tabset.core.models import Tab, TabSet
from tabset.ui.commands import TabsetCommands

from tests.helpers import FAST_TIMEOUT, FILES, FakePrompter, RecordingStore, make_surface


def _manager_with(*tabsets: TabSet, store: RecordingStore | None = None) -> TabManager:
    store = store or RecordingStore()
    if tabsets:
        store.values["tabs"] = codec.dumps_tabsets(tabsets)
    return TabManager(store, make_surface(FILES), close_timeout=FAST_TIMEOUT)


class TestSwitch:
    @pytest.mark.asyncio
    async def test_switch_activates_picked_tabset(self) -> None:
        manager = _manager_with(TabSet("0", True), TabSet("work", False, [Tab("file:///work/a.py")]))
        prompter = FakePrompter(["work"])
        commands = TabsetCommands(manager, prompter)

        await commands.switch()

        assert manager.find_active().name == "work"
        assert prompter.prompts == [("pick_one", ["work"])]

    @pytest.mark.asyncio
    async def test_dismissed_switch_writes_nothing(self) -> None:
        store = RecordingStore()
        manager = _manager_with(TabSet("0", True), TabSet("work"), store=store)
        commands = TabsetCommands(manager, FakePrompter([None]))

        await commands.switch()

        assert manager.find_active().name == "0"
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_switch_without_other_tabsets_warns(self, manager: TabManager) -> None:
        prompter = FakePrompter()
        commands = TabsetCommands(manager, prompter)

        await commands.switch()

        assert prompter.warnings == ["There are no other tabsets to switch to"]
        assert prompter.prompts == []

    @pytest.mark.asyncio
    async def test_lost_active_flag_surfaces_reset_hint(self, manager: TabManager) -> None:
        manager.find_active().active = False
        prompter = FakePrompter()
        commands = TabsetCommands(manager, prompter)

        await commands.switch()

        assert len(prompter.errors) == 1
        assert "reset" in prompter.errors[0]


class TestNew:
    @pytest.mark.asyncio
    async def test_new_creates_and_activates(self, manager: TabManager, store: RecordingStore) -> None:
        prompter = FakePrompter(["feature"])
        commands = TabsetCommands(manager, prompter)

        await commands.new()

        assert prompter.prompts == [("ask_text", "1")]
        assert manager.find_active().name == "feature"
        assert [tabset.name for tabset in codec.loads_tabsets(store.values["tabs"])] == ["0", "feature"]

    @pytest.mark.asyncio
    async def test_dismissed_new_writes_nothing(self, manager: TabManager, store: RecordingStore) -> None:
        commands = TabsetCommands(manager, FakePrompter([None]))

        await commands.new()

        assert len(manager.tabsets) == 1
        assert store.writes == []


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_only_offers_inactive_tabsets(self) -> None:
        manager = _manager_with(TabSet("0", True), TabSet("a"), TabSet("b"))
        prompter = FakePrompter([["a"]])
        commands = TabsetCommands(manager, prompter)

        await commands.delete()

        assert prompter.prompts == [("pick_many", ["a", "b"])]
        assert [tabset.name for tabset in manager.tabsets] == ["0", "b"]

    @pytest.mark.asyncio
    async def test_delete_last_tabset_shows_error(self, manager: TabManager, store: RecordingStore) -> None:
        prompter = FakePrompter()
        commands = TabsetCommands(manager, prompter)

        await commands.delete()

        assert prompter.errors == ["Cannot delete only tabset"]
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_empty_selection_writes_nothing(self) -> None:
        store = RecordingStore()
        manager = _manager_with(TabSet("0", True), TabSet("a"), store=store)
        commands = TabsetCommands(manager, FakePrompter([[]]))

        await commands.delete()

        assert len(manager.tabsets) == 2
        assert store.writes == []


class TestRenameAndReset:
    @pytest.mark.asyncio
    async def test_rename_defaults_to_current_name(self, manager: TabManager) -> None:
        prompter = FakePrompter(["main"])
        commands = TabsetCommands(manager, prompter)

        await commands.rename()

        assert prompter.prompts == [("ask_text", "0")]
        assert manager.find_active().name == "main"

    @pytest.mark.asyncio
    async def test_reset_requires_confirmation(self, store: RecordingStore) -> None:
        manager = _manager_with(TabSet("0"), TabSet("main", True), store=store)
        store.writes.clear()
        commands = TabsetCommands(manager, FakePrompter([False]))

        await commands.reset()

        assert [tabset.name for tabset in manager.tabsets] == ["0", "main"]
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_confirmed_reset_reseeds(self, store: RecordingStore) -> None:
        manager = _manager_with(TabSet("0"), TabSet("main", True), store=store)
        commands = TabsetCommands(manager, FakePrompter([True]))

        await commands.reset()

        assert manager.tabsets == (TabSet("0", True, []),)


class TestMenuAndNotifications:
    @pytest.mark.asyncio
    async def test_menu_dispatches_selected_command(self, manager: TabManager) -> None:
        prompter = FakePrompter(["Rename", "renamed"])
        commands = TabsetCommands(manager, prompter)

        await commands.menu()

        assert prompter.prompts[0] == ("pick_one", ["Switch", "New", "Delete", "Rename", "Reset"])
        assert manager.find_active().name == "renamed"

    @pytest.mark.asyncio
    async def test_reopen_failures_become_warnings(self) -> None:
        manager = _manager_with(TabSet("0", True), TabSet("next", False, [Tab("file:///gone.py")]))
        prompter = FakePrompter(["next"])
        commands = TabsetCommands(manager, prompter)

        await commands.switch()

        assert manager.find_active().name == "next"
        assert len(prompter.warnings) == 1
        assert "file:///gone.py" in prompter.warnings[0]

    def test_startup_recovery_is_reported(self) -> None:
        store = RecordingStore({"tabs": "[{broken"})
        manager = TabManager(store, make_surface(FILES))
        prompter = FakePrompter()

        TabsetCommands(manager, prompter)

        assert len(prompter.warnings) == 1
        assert "tabs.corrupt" in prompter.warnings[0]

    @pytest.mark.asyncio
    async def test_commands_run_one_at_a_time(self) -> None:
        manager = _manager_with(TabSet("0", True), TabSet("work"))
        gate = asyncio.Event()
        order: list[str] = []

        class _SlowPrompter(FakePrompter):
            async def pick_one(self, items, *, title):
                order.append("pick")
                await gate.wait()
                return items[0]

            async def ask_text(self, prompt, *, default=""):
                order.append("ask")
                return "renamed"

        commands = TabsetCommands(manager, _SlowPrompter())
        switching = asyncio.ensure_future(commands.switch())
        await asyncio.sleep(0)
        renaming = asyncio.ensure_future(commands.rename())
        await asyncio.sleep(0)

        assert commands.busy
        assert order == ["pick"]
        gate.set()
        await asyncio.gather(switching, renaming)

        assert order == ["pick", "ask"]
        assert manager.find_active().name == "renamed"
        assert [tabset.name for tabset in manager.tabsets] == ["0", "renamed"]
