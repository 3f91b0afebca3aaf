"""Tests for watch option resolution."""

import pytest
from pydantic import ValidationError

from suspensecache import DefaultOptions, build_watch_options


class TestBuildWatchOptions:
    def test_builtin_defaults(self):
        options = build_watch_options("op")
        assert options.operation == "op"
        assert options.fetch_policy == "cache-first"
        assert options.error_policy == "none"
        assert options.suspense_policy == "always"
        assert options.variables == {}

    def test_never_fetches_on_first_subscribe(self):
        options = build_watch_options("op", {"fetch_on_first_subscribe": True})
        assert options.fetch_on_first_subscribe is False
        assert "fetch_on_first_subscribe" not in options.extra

    def test_call_options_win_over_defaults(self):
        defaults = DefaultOptions(fetch_policy="network-only", error_policy="all")
        options = build_watch_options("op", {"fetch_policy": "no-cache"}, defaults)
        assert options.fetch_policy == "no-cache"
        assert options.error_policy == "all"

    def test_variables_merged_and_compacted(self):
        defaults = DefaultOptions(variables={"locale": "en", "limit": 10})
        options = build_watch_options(
            "op", {"variables": {"limit": 20, "after": None}}, defaults
        )
        assert options.variables == {"locale": "en", "limit": 20}

    def test_notify_follows_suspense_policy(self):
        assert build_watch_options("op").notify_on_network_status_change is True
        initial = build_watch_options("op", {"suspense_policy": "initial"})
        assert initial.notify_on_network_status_change is False

    def test_extra_options_pass_through(self):
        options = build_watch_options("op", {"poll_interval": 5})
        assert options.extra == {"poll_interval": 5}

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError, match="fetch_policy"):
            build_watch_options("op", {"fetch_policy": "sometimes"})
        with pytest.raises(ValidationError, match="suspense_policy"):
            build_watch_options("op", {"suspense_policy": "never"})

    def test_options_are_frozen(self):
        options = build_watch_options("op")
        with pytest.raises(ValidationError):
            options.fetch_policy = "no-cache"
