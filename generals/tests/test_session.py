"""
Tests for the match manager and engine configuration.
"""

import logging

import pytest

from ..config import EngineConfig, configure_logging
from ..engine_core.clock import TimeoutPolicy
from ..engine_core.state import MatchPhase
from ..errors import MatchNotFound
from ..session import MatchManager
from .conftest import START


class TestMatchManager:
    @pytest.fixture
    def manager(self):
        return MatchManager(game_clock_seconds=600.0)

    def test_create_match(self, manager):
        match = manager.create_match("alice", "bob", now=START)

        assert match.phase == MatchPhase.SETUP
        assert match.clock.limit_seconds == 600.0
        assert match.player1_username == "alice"
        assert manager.get_match(match.match_id) is match

    def test_explicit_id(self, manager):
        match = manager.create_match("alice", "bob", match_id="m1")
        assert match.match_id == "m1"
        assert manager.list_matches() == ["m1"]

    def test_same_player_twice(self, manager):
        with pytest.raises(ValueError):
            manager.create_match("alice", "alice")

    def test_unknown_match(self, manager):
        with pytest.raises(MatchNotFound) as exc_info:
            manager.get_match("missing")
        assert exc_info.value.context == {"match_id": "missing"}

    def test_update_replaces_value(self, manager):
        match = manager.create_match("alice", "bob", match_id="m1")
        newer = match._copy_with(player1_setup=True)
        manager.update(newer)
        assert manager.get_match("m1").player1_setup

    def test_update_unknown(self, manager, new_match):
        with pytest.raises(MatchNotFound):
            manager.update(new_match)

    def test_cleanup_keeps_unfinished(self, manager):
        match = manager.create_match("alice", "bob", match_id="m1", now=START)
        done = manager.create_match("carol", "dave", match_id="m2", now=START)
        manager.update(done._copy_with(phase=MatchPhase.FINISHED))

        assert manager.list_active_matches() == ["m1"]
        assert manager.cleanup_stale_matches(max_age_seconds=60, now=START + 30) == []
        assert manager.cleanup_stale_matches(max_age_seconds=60, now=START + 61) == ["m2"]
        assert manager.list_matches() == [match.match_id]

    def test_end_match(self, manager):
        manager.create_match("alice", "bob", match_id="m1")
        assert manager.end_match("m1").match_id == "m1"
        assert manager.end_match("m1") is None


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config.game_clock_seconds == 900.0
        assert config.setup_clock_seconds == 300.0
        assert config.timeout_policy == TimeoutPolicy.MORE_MATERIAL_WINS
        assert config.allowed_origins == ["*"]
        assert not config.is_production

    def test_from_environment(self):
        config = EngineConfig.from_env({
            "GENERALS_ENV": "production",
            "GENERALS_GAME_CLOCK_SECONDS": "120",
            "GENERALS_TIMEOUT_POLICY": "draw_on_equal_material",
            "ALLOWED_ORIGINS": "https://a.example, https://b.example",
            "GENERALS_LOG_LEVEL": "debug",
        })
        assert config.is_production
        assert config.game_clock_seconds == 120.0
        assert config.timeout_policy == TimeoutPolicy.DRAW_ON_EQUAL_MATERIAL
        assert config.allowed_origins == ["https://a.example", "https://b.example"]
        assert config.log_level == "DEBUG"

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid engine configuration"):
            EngineConfig.from_env({"GENERALS_TIMEOUT_POLICY": "coin_flip"})

    def test_configure_logging(self):
        configure_logging(EngineConfig(log_level="WARNING"))
        assert logging.getLogger("generals").getEffectiveLevel() <= logging.WARNING
