"""Tests for pyweave.hooks.manager: event callbacks, named hooks and route hooks."""

import logging

import pytest

from pyweave.errors import Abort
from pyweave.hooks import HookManager, LifecycleEvents, LogHook, NamedHook
from pyweave.response import Response

from tests.conftest import HOOKS_DIR


def _recorder(calls, name, result=None):
    def callback(data):
        calls.append(name)
        return result
    return callback


class CountingHook(NamedHook):
    instances = 0

    def __init__(self):
        CountingHook.instances += 1
        self.seen = []

    def handle(self, data, *args, **kwargs):
        self.seen.append((args, kwargs))
        data.setdefault("trail", []).append("counting")
        return data


class HaltingHook(NamedHook):
    def handle(self, data):
        data.setdefault("trail", []).append("halting")
        self.halt()
        return data


class FailingHook(NamedHook):
    def handle(self, data):
        raise ValueError("broken hook")


class TrailHook(NamedHook):
    def handle(self, data, label="trail"):
        data.setdefault("trail", []).append(label)
        return data


@pytest.fixture(autouse=True)
def reset_counter():
    CountingHook.instances = 0


class TestTrigger:
    def test_priority_order(self, hooks: HookManager) -> None:
        calls = []
        hooks.register("evt", _recorder(calls, 20), priority=20)
        hooks.register("evt", _recorder(calls, 5), priority=5)
        hooks.register("evt", _recorder(calls, 10), priority=10)

        hooks.trigger("evt")

        assert calls == [5, 10, 20]

    def test_equal_priority_keeps_registration_order(self, hooks: HookManager) -> None:
        calls = []
        for name in ("a", "b", "c"):
            hooks.register("evt", _recorder(calls, name), priority=10)
        hooks.trigger("evt")
        assert calls == ["a", "b", "c"]

    def test_late_registration_is_sorted_on_next_trigger(self, hooks: HookManager) -> None:
        calls = []
        hooks.register("evt", _recorder(calls, 10), priority=10)
        hooks.register("evt", _recorder(calls, 20), priority=20)
        hooks.trigger("evt")

        hooks.register("evt", _recorder(calls, 1), priority=1)
        calls.clear()
        hooks.trigger("evt")

        assert calls == [1, 10, 20]

    def test_return_value_replaces_data(self, hooks: HookManager) -> None:
        hooks.register("evt", lambda data: {**data, "a": 1})
        hooks.register("evt", lambda data: None)
        hooks.register("evt", lambda data: {**data, "b": 2})

        assert hooks.trigger("evt", {"x": 0}) == {"x": 0, "a": 1, "b": 2}

    def test_no_callbacks_returns_data_unchanged(self, hooks: HookManager) -> None:
        data = {"x": 1}
        assert hooks.trigger("nothing", data) is data

    def test_halt_stops_remaining_callbacks(self, hooks: HookManager) -> None:
        calls = []

        def first(data):
            calls.append("first")
            hooks.halt()
            return {"modified": True}

        hooks.register("evt", first, priority=1)
        hooks.register("evt", _recorder(calls, "second"), priority=2)

        result = hooks.trigger("evt", {"modified": False})

        assert calls == ["first"]
        assert result == {"modified": True}
        assert hooks.is_halted()

    def test_halt_resets_on_next_trigger(self, hooks: HookManager) -> None:
        calls = []
        hooks.register("stop", lambda data: hooks.halt())
        hooks.register("stop", _recorder(calls, "never"))
        hooks.register("evt", _recorder(calls, "runs"))

        hooks.trigger("stop")
        hooks.trigger("evt")

        assert calls == ["runs"]

    def test_failing_callback_is_isolated(self, hooks: HookManager, caplog) -> None:
        calls = []

        def broken(data):
            raise RuntimeError("bad callback")

        hooks.register("evt", broken, priority=1)
        hooks.register("evt", _recorder(calls, "after"), priority=2)

        with caplog.at_level(logging.WARNING):
            hooks.trigger("evt", {})

        assert calls == ["after"]
        assert "bad callback" in caplog.text

    def test_abort_propagates(self, hooks: HookManager) -> None:
        def deny(data):
            raise Abort(Response(status_code=403))

        hooks.register("evt", deny)
        with pytest.raises(Abort) as exc_info:
            hooks.trigger("evt")
        assert exc_info.value.response.status_code == 403

    def test_non_callable_is_ignored(self, hooks: HookManager) -> None:
        hooks.register("evt", "not a function")
        assert not hooks.has("evt")

    def test_decorator(self, hooks: HookManager) -> None:
        @hooks.on("evt", priority=3)
        def handler(data):
            return "handled"

        assert hooks.trigger("evt") == "handled"
        assert handler(None) == "handled"


class TestIntrospection:
    def test_has_count_clear(self, hooks: HookManager) -> None:
        hooks.register("evt", lambda data: None)
        hooks.register("evt", lambda data: None)

        assert hooks.has("evt")
        assert hooks.count("evt") == 2
        assert len(hooks.get_all()["evt"]) == 2

        hooks.clear("evt")
        assert not hooks.has("evt")
        assert hooks.count("evt") == 0

    def test_clear_all(self, hooks: HookManager) -> None:
        hooks.register("evt", lambda data: None)
        hooks.register_class("log", LogHook)
        hooks.attach_to_route("GET", "/", "log")

        hooks.clear_all()

        assert hooks.get_all() == {}
        assert not hooks.has_named("log")
        assert hooks.get_route_hooks("GET", "/") == []

    def test_execution_log_only_in_debug(self) -> None:
        quiet = HookManager()
        quiet.register("evt", lambda data: None)
        quiet.trigger("evt")
        assert quiet.get_execution_log() == []

        verbose = HookManager(debug=True)
        verbose.register("evt", lambda data: None)
        verbose.trigger("evt")
        log = verbose.get_execution_log()
        assert len(log) == 1
        assert log[0]["hook"] == "evt"
        assert log[0]["callbacks"] == 1

    def test_available_hooks(self) -> None:
        available = HookManager.get_available_hooks()
        for event in (
            LifecycleEvents.BEFORE_ROUTE_MATCH,
            LifecycleEvents.AFTER_ROUTE_MATCH,
            LifecycleEvents.BEFORE_CONTROLLER_LOAD,
            LifecycleEvents.AFTER_CONTROLLER_INSTANTIATE,
            LifecycleEvents.BEFORE_ACTION_EXECUTE,
            LifecycleEvents.AFTER_ACTION_EXECUTE,
            LifecycleEvents.ON_404,
            LifecycleEvents.ON_ERROR,
            LifecycleEvents.FRAMEWORK_SHUTDOWN,
        ):
            assert event in available


class TestNamedHooks:
    def test_register_class_by_path(self, hooks: HookManager) -> None:
        hooks.register_class("log", "pyweave.hooks.builtin:LogHook")
        hooks.register_class("log2", "pyweave.hooks.builtin.LogHook", LifecycleEvents.BEFORE_ACTION_EXECUTE, 3)

        named = hooks.get_named_hooks()
        assert named["log"].target is LogHook
        assert named["log2"].priority == 3

    def test_unknown_class_is_not_registered(self, hooks: HookManager, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            hooks.register_class("ghost", "pyweave.hooks.builtin:GhostHook")
        assert not hooks.has_named("ghost")
        assert "GhostHook" in caplog.text

    def test_instance_is_cached(self, hooks: HookManager) -> None:
        hooks.register_class("count", CountingHook)
        hooks.attach_to_route("GET", "/a", "count")
        hooks.attach_to_route("GET", "/b", ["count"])

        hooks.trigger_route_hooks("GET", "/a", {})
        hooks.trigger_route_hooks("GET", "/a", {})
        hooks.trigger_route_hooks("GET", "/b", {})

        assert CountingHook.instances == 1

    def test_reregistering_alias_drops_instance(self, hooks: HookManager) -> None:
        hooks.register_class("count", CountingHook)
        hooks.attach_to_route("GET", "/a", "count")
        hooks.trigger_route_hooks("GET", "/a", {})

        hooks.register_class("count", CountingHook)
        hooks.trigger_route_hooks("GET", "/a", {})

        assert CountingHook.instances == 2

    def test_sequence_params_are_positional(self, hooks: HookManager) -> None:
        hooks.register_class("count", CountingHook, params=["admin", 3])
        hooks.attach_to_route("GET", "/", "count")
        hooks.trigger_route_hooks("GET", "/", {})

        instance = hooks._resolve("count").instance
        assert instance.seen == [(("admin", 3), {})]

    def test_mapping_params_are_keywords(self, hooks: HookManager) -> None:
        hooks.register_class("trail", TrailHook, params={"label": "custom"})
        hooks.attach_to_route("GET", "/", "trail")

        assert hooks.trigger_route_hooks("GET", "/", {}) == {"trail": ["custom"]}

    def test_route_hooks_run_in_attachment_order(self, hooks: HookManager) -> None:
        hooks.register_class("first", TrailHook, params={"label": "first"})
        hooks.register_class("second", TrailHook, params={"label": "second"})
        hooks.attach_to_route("POST", "/x", ["second", "first"])

        assert hooks.trigger_route_hooks("post", "/x", {}) == {"trail": ["second", "first"]}

    def test_unknown_alias_is_skipped(self, hooks: HookManager) -> None:
        hooks.register_class("trail", TrailHook)
        hooks.attach_to_route("GET", "/", ["missing", "trail"])

        assert hooks.trigger_route_hooks("GET", "/", {}) == {"trail": ["trail"]}

    def test_no_attachment_returns_data(self, hooks: HookManager) -> None:
        data = {"x": 1}
        assert hooks.trigger_route_hooks("GET", "/none", data) is data

    def test_named_hook_halt(self, hooks: HookManager) -> None:
        hooks.register_class("halt", HaltingHook)
        hooks.register_class("trail", TrailHook)
        hooks.attach_to_route("GET", "/", ["halt", "trail"])

        assert hooks.trigger_route_hooks("GET", "/", {}) == {"trail": ["halting"]}

    def test_named_hook_fault_is_isolated(self, hooks: HookManager, caplog) -> None:
        hooks.register_class("fail", FailingHook)
        hooks.register_class("trail", TrailHook)
        hooks.attach_to_route("GET", "/", ["fail", "trail"])

        with caplog.at_level(logging.WARNING):
            result = hooks.trigger_route_hooks("GET", "/", {})

        assert result == {"trail": ["trail"]}
        assert "broken hook" in caplog.text

    def test_detach_route(self, hooks: HookManager) -> None:
        hooks.attach_to_route("GET", "/", ["a", "b"])
        hooks.detach_route("GET", "/")
        assert hooks.get_route_hooks("GET", "/") == []


class TestHookFiles:
    def test_load_hook_files(self, hooks: HookManager, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            loaded = hooks.load_hook_files(HOOKS_DIR)

        # broken.py fails to import, _disabled.py is skipped
        assert loaded == 1
        assert hooks.has_named("auth")
        assert hooks.trigger(LifecycleEvents.FRAMEWORK_START) == {"started": True}
        assert "broken.py" in caplog.text

    def test_missing_directory(self, hooks: HookManager, tmp_path) -> None:
        assert hooks.load_hook_files(tmp_path / "missing") == 0
