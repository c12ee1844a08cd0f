"""Tests for the command line front end."""

import asyncio
import json
import logging
import sys

import pytest

from swim_meet import cli
from swim_meet.config import Config
from swim_meet.logging_config import resolve_level, setup_logging
from swim_meet.models import Mode, ResponseStatus
from swim_meet.orchestration import Orchestrator, Submission
from swim_meet.store import MemoryStore


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    config_path = tmp_path / "swim-meet.yaml"
    store_path = tmp_path / "store.json"
    config_path.write_text(
        f"user_id: tester\nstore_path: {store_path}\nlog_level: WARNING\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SWIM_MEET_CONFIG", str(config_path))
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return tmp_path


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["swim-meet", *argv])
    cli.main()


class TestParser:
    def test_dive_arguments(self):
        args = cli.build_parser().parse_args(["dive", "Why?", "-p", "openai", "grok"])
        assert args.command == "dive"
        assert args.query == "Why?"
        assert args.providers == ["openai", "grok"]
        assert args.conversation is None

    def test_verify_requires_verifier(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["verify", "r-1"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_fact_check_defaults_to_perplexity(self):
        args = cli.build_parser().parse_args(["fact-check", "r-1"])
        assert args.command == "fact-check"
        assert args.checker == "perplexity"

    def test_reply_arguments(self):
        args = cli.build_parser().parse_args(["reply", "r-1", "--context", "for a class"])
        assert args.provider == "anthropic"
        assert args.context == "for a class"


class TestCommands:
    def test_init_writes_sample_config(self, tmp_path, monkeypatch):
        config_path = tmp_path / "fresh.yaml"
        monkeypatch.setenv("SWIM_MEET_CONFIG", str(config_path))
        run_cli(monkeypatch, "init")
        assert "providers:" in config_path.read_text(encoding="utf-8")

    def test_history_creates_user_in_store(self, workspace, monkeypatch):
        run_cli(monkeypatch, "history")
        data = json.loads((workspace / "store.json").read_text(encoding="utf-8"))
        assert [u["id"] for u in data["users"]] == ["tester"]

    def test_stats_on_empty_store(self, workspace, monkeypatch, capsys):
        run_cli(monkeypatch, "stats")
        assert "No responses recorded yet." in capsys.readouterr().out

    def test_unknown_conversation_exits_nonzero(self, workspace, monkeypatch):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "show", "missing")
        assert exc_info.value.code == 1


class TestLogging:
    def test_verbose_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert resolve_level(verbose=True) == "DEBUG"

    def test_environment_over_default(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "info")
        assert resolve_level(default="WARNING") == "INFO"

    def test_default_level(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert resolve_level(default="ERROR") == "ERROR"

    def test_setup_sets_package_level(self):
        setup_logging("info")
        assert logging.getLogger("swim_meet").level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING


class TestWatchDive:
    @pytest.mark.asyncio
    async def test_stops_when_no_call_is_left_running(self):
        store = MemoryStore()
        orchestrator = Orchestrator(store, Config())
        conversation = await store.create_conversation("u1", "q", Mode.DIVE)
        orphan = await store.create_response(conversation.id, "openai")

        await asyncio.wait_for(
            cli.watch_dive(orchestrator, Submission(conversation.id, [orphan])),
            timeout=5,
        )

        assert (await store.get_response(orphan.id)).status == ResponseStatus.PENDING
