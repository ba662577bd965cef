"""Tests for search budgets and engine configuration."""

from __future__ import annotations

import json
import logging

import pytest

from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig, resolve_config
from molcompare.logging_config import get_logger, setup_logging


class TestSearchBudget:

    def test_unlimited(self) -> None:
        budget = SearchBudget.unlimited()
        assert budget.is_unlimited
        clock = budget.start()
        assert all(clock.tick() for _ in range(1000))
        assert clock.expanded == 1000
        assert not clock.exhausted

    def test_node_limit(self) -> None:
        clock = SearchBudget(max_nodes=3).start()
        assert [clock.tick() for _ in range(5)] == [True, True, True, False, False]
        assert clock.exhausted
        assert clock.expanded == 3

    def test_zero_nodes(self) -> None:
        clock = SearchBudget(max_nodes=0).start()
        assert clock.tick() is False

    def test_expired_deadline(self) -> None:
        clock = SearchBudget(timeout=0.0).start()
        assert clock.tick() is False
        assert clock.exhausted

    def test_negative_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            SearchBudget(timeout=-1.0)
        with pytest.raises(ValueError):
            SearchBudget(max_nodes=-1)

    def test_budget_is_shareable(self) -> None:
        """Each search gets its own clock."""
        budget = SearchBudget(max_nodes=1)
        first = budget.start()
        assert first.tick()
        assert not first.tick()
        assert budget.start().tick()


class TestEngineConfig:

    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.mcs_timeout == 60.0
        assert config.match_timeout == 10.0
        assert config.topological_diameter == 8
        assert config.topological_tolerance == 1
        assert config.mcs_budget == SearchBudget(timeout=60.0)
        assert config.match_budget == SearchBudget(timeout=10.0)
        assert config.workers >= 1

    def test_from_env(self) -> None:
        environ = {
            "MOLCOMPARE_MCS_TIMEOUT": "none",
            "MOLCOMPARE_MCS_MAX_NODES": "5000",
            "MOLCOMPARE_MAX_WORKERS": "2",
            "UNRELATED": "1",
        }
        config = EngineConfig.from_env(environ)
        assert config.mcs_timeout is None
        assert config.mcs_budget == SearchBudget(max_nodes=5000)
        assert config.workers == 2
        assert config.match_timeout == 10.0

    def test_from_env_bad_value(self) -> None:
        with pytest.raises(ValueError):
            EngineConfig.from_env({"MOLCOMPARE_MAX_WORKERS": "many"})

    def test_from_dict_ignores_unknown(self) -> None:
        config = EngineConfig.from_dict({"topological_diameter": 4, "colour": "blue"})
        assert config.topological_diameter == 4

    def test_from_file(self, tmp_path) -> None:
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"mcs_timeout": 5, "max_workers": 3}))
        config = EngineConfig.from_file(path)
        assert config.mcs_timeout == 5
        assert config.workers == 3
        assert config.to_dict()["max_workers"] == 3

    def test_from_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            EngineConfig.from_file(tmp_path / "missing.json")

    def test_validation(self) -> None:
        with pytest.raises(ValueError):
            EngineConfig(max_workers=0)
        with pytest.raises(ValueError):
            EngineConfig(topological_tolerance=-1)

    def test_resolve_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOLCOMPARE_MATCH_TIMEOUT", "2.5")
        assert resolve_config(None).match_timeout == 2.5
        explicit = EngineConfig(match_timeout=1.0)
        assert resolve_config(explicit) is explicit


class TestLogging:

    def test_get_logger_namespace(self) -> None:
        assert get_logger("batch").name == "molcompare.batch"
        assert get_logger("molcompare.mcs").name == "molcompare.mcs"

    def test_setup_logging(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "run.log"
        package = setup_logging("DEBUG", log_file=log_file)
        try:
            get_logger("test").debug("hello")
            assert "hello" in log_file.read_text()
            assert package.level == logging.DEBUG

            setup_logging("WARNING")
            assert len(package.handlers) == 2  # NullHandler and the new console handler
            assert not any(isinstance(h, logging.FileHandler) for h in package.handlers)
        finally:
            for handler in list(package.handlers):
                if not isinstance(handler, logging.NullHandler):
                    package.removeHandler(handler)
            package.setLevel(logging.NOTSET)

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            setup_logging("LOUD")
