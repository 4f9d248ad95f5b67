"""Tests for settings, logging setup and CLI argument handling."""

import io
import logging

import pytest

from app import cli
from app.config import Settings
from app.logging_config import setup_logging


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CRON_SECRET", raising=False)
        monkeypatch.delenv("LLM_PROVIDER", raising=False)

        settings = Settings(_env_file=None)

        assert settings.cron_secret is None
        assert settings.llm_provider == "anthropic"
        assert settings.article_retention_hours == 48
        assert settings.sentiment_history_limit == 100
        assert settings.snapshot_cache_ttl_seconds == 10.0
        assert settings.refresh_period_minutes == 30
        assert settings.max_domains_per_call == 5
        assert settings.analysis_post_limit == 50

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRON_SECRET", "from-env")
        monkeypatch.setenv("ARTICLE_RETENTION_HOURS", "72")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = Settings(_env_file=None)

        assert settings.cron_secret == "from-env"
        assert settings.article_retention_hours == 72
        assert settings.is_development is False


class TestLogging:
    def test_replaces_handlers(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", io.StringIO())
            stream = io.StringIO()
            setup_logging("warning", stream)

            logging.getLogger("app.test").info("hidden")
            logging.getLogger("app.test").warning("shown")

            assert len(root.handlers) == 1
            assert "shown" in stream.getvalue()
            assert "hidden" not in stream.getvalue()
            assert " - app.test - WARNING - " in stream.getvalue()
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_unknown_level_falls_back_to_info(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("chatty", io.StringIO())
            assert root.level == logging.INFO
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestCli:
    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)

    def test_refresh_passes_lookback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        received = []

        async def fake_refresh(args: cli.RefreshArgs) -> None:
            received.append(args)

        monkeypatch.setattr(cli, "run_refresh", fake_refresh)

        assert cli.main(["refresh", "--hours", "12"]) == 0
        assert received[0].hours == 12

    def test_invalid_arguments_exit_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        called = []

        async def fake_refresh(args: cli.RefreshArgs) -> None:
            called.append(args)

        monkeypatch.setattr(cli, "run_refresh", fake_refresh)

        assert cli.main(["refresh", "--hours", "-3"]) == 2
        assert called == []

    def test_failure_exit_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing_init_db() -> None:
            raise ConnectionRefusedError("postgres is down")

        monkeypatch.setattr(cli, "run_init_db", failing_init_db)

        assert cli.main(["init-db"]) == 1

    def test_watch_arguments(self, monkeypatch: pytest.MonkeyPatch) -> None:
        received = []

        async def fake_watch(args: cli.WatchArgs) -> None:
            received.append(args)

        monkeypatch.setattr(cli, "run_watch", fake_watch)

        code = cli.main(
            ["watch", "--base-url", "http://radar:8000", "--auto-refresh-minutes", "5"]
        )

        assert code == 0
        assert received[0].base_url == "http://radar:8000"
        assert received[0].auto_refresh_minutes == 5
        assert received[0].catchup_delay == 2
