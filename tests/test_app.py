"""Tests for the CLI configuration, the app wiring and the screen layout."""

from __future__ import annotations

import io
import logging
import threading
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

from hgtui.app import AppContext, build_context, dispatcher_worker, handle_notification
from hgtui.config import AppConfig, configure_logging, init_config, parse_args
from hgtui.events import Dispatcher, Notify
from hgtui.fetch import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from hgtui.models import AppMode, Message, MessageLevel, Project
from hgtui.render import build_screen, truncate

NOW = datetime(2024, 5, 1, 12, 30, 0)


def make_config(tmp_path: Path, **overrides) -> AppConfig:
    values = {
        "config_path": tmp_path,
        "show_help": False,
        "debug": False,
        "base_url": "https://hellogithub.test/periodical",
        "timeout_seconds": 5,
    }
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def ctx(tmp_path: Path, fetcher) -> AppContext:
    return build_context(make_config(tmp_path), fetcher=fetcher)


def screen_text(ctx: AppContext, width: int = 160) -> str:
    console = Console(width=width, height=40, record=True, file=io.StringIO(), color_system=None)
    console.print(build_screen(ctx.state, NOW, width))
    return console.export_text()


# ── Configuration ────────────────────────────────────────────────────────────


def test_parse_args_defaults(monkeypatch) -> None:
    monkeypatch.delenv("HGTUI_CONFIG_PATH", raising=False)
    monkeypatch.delenv("HGTUI_BASE_URL", raising=False)

    config = parse_args([])

    assert config.config_path == Path.home()
    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert not config.show_help
    assert not config.debug


def test_parse_args_flags_and_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HGTUI_BASE_URL", "http://localhost:8000/periodical")

    config = parse_args(["-p", str(tmp_path), "-s", "--debug", "--timeout", "3"])

    assert config.config_path == tmp_path
    assert config.show_help
    assert config.debug
    assert config.timeout_seconds == 3
    assert config.base_url == "http://localhost:8000/periodical"


@pytest.mark.parametrize(
    "argv",
    [["--timeout", "0"], ["--base-url", "ftp://hellogithub.com"]],
)
def test_parse_args_rejects_bad_values(argv: list[str]) -> None:
    with pytest.raises(ValueError):
        parse_args(argv)


def test_init_config_reports_first_run_once(tmp_path: Path) -> None:
    assert init_config(tmp_path) is True
    assert (tmp_path / ".hgtui.toml").exists()
    assert init_config(tmp_path) is False


def test_init_config_unwritable_path_is_not_first_run(tmp_path: Path) -> None:
    assert init_config(tmp_path / "missing" / "dir") is False


def test_configure_logging_without_debug_disables_logging(tmp_path: Path) -> None:
    try:
        configure_logging(make_config(tmp_path))
        assert not logging.getLogger("hgtui").isEnabledFor(logging.CRITICAL)
        assert not (tmp_path / ".hgtui.log").exists()
    finally:
        logging.disable(logging.NOTSET)


def test_configure_logging_with_debug_writes_log_file(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    root_handlers = list(logging.root.handlers)
    root_level = logging.root.level
    try:
        configure_logging(make_config(log_dir, debug=True))
        logging.getLogger("hgtui.test").debug("hello log")
        for handler in logging.root.handlers:
            handler.flush()

        assert "hello log" in (log_dir / ".hgtui.log").read_text(encoding="utf-8")
    finally:
        for handler in logging.root.handlers:
            if handler not in root_handlers:
                logging.root.removeHandler(handler)
                handler.close()
        logging.root.setLevel(root_level)


def test_configure_logging_with_unwritable_path_falls_back(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    root_handlers = list(logging.root.handlers)
    try:
        warning = configure_logging(make_config(blocker / "hgtui", debug=True))

        assert "Debug log disabled" in warning
        assert logging.root.handlers == root_handlers
        assert not logging.getLogger("hgtui").isEnabledFor(logging.CRITICAL)
    finally:
        logging.disable(logging.NOTSET)


# ── Wiring ───────────────────────────────────────────────────────────────────


def test_build_context_loads_global_info(ctx: AppContext, session) -> None:
    assert ctx.info.max_volume == 80
    assert ctx.state.status.max_volume == 80
    assert ctx.state.mode is AppMode.SEARCH
    assert session.paths() == ["/"]


def test_handle_notification(ctx: AppContext) -> None:
    assert handle_notification(ctx, Notify.REDRAW)
    assert handle_notification(ctx, Notify.TICK)
    assert ctx.state.mode is AppMode.SEARCH

    message = Message(MessageLevel.ERROR, "boom")
    assert handle_notification(ctx, message)
    assert ctx.state.mode is AppMode.POPUP
    assert ctx.state.message == message

    assert not handle_notification(ctx, Notify.QUIT)


def test_dispatcher_worker_records_unexpected_failure(ctx: AppContext) -> None:
    class BrokenDispatcher(Dispatcher):
        def run(self) -> None:
            raise RuntimeError("broken")

    dispatcher = BrokenDispatcher(ctx.state, ctx.lock, ctx.bus, ctx.stop_event)

    dispatcher_worker(ctx, dispatcher)

    assert isinstance(ctx.failure, RuntimeError)
    assert ctx.bus.notifications.get_nowait() is Notify.QUIT


def test_dispatcher_worker_quits_cleanly(ctx: AppContext) -> None:
    dispatcher = Dispatcher(ctx.state, ctx.lock, ctx.bus, ctx.stop_event)
    ctx.bus.emit_key("CTRL_C")

    thread = threading.Thread(target=dispatcher_worker, args=(ctx, dispatcher))
    thread.start()
    thread.join(timeout=5)

    assert ctx.failure is None
    assert ctx.bus.notifications.get(timeout=1) is Notify.QUIT


# ── Screen ───────────────────────────────────────────────────────────────────


def test_search_screen_shows_frame(ctx: AppContext) -> None:
    text = screen_text(ctx)

    assert "HelloGitHub" in text
    assert "Search" in text
    assert "Search mode" in text
    assert "2024-05-01 12:30:00" in text
    assert "68.5k" in text


def test_search_box_title_follows_typed_sigil(ctx: AppContext) -> None:
    ctx.state.search("#80")
    ctx.state.switch_to_search()
    for char in "$py":
        ctx.state.handle_char(char)

    text = screen_text(ctx)

    assert "Search · category" in text
    assert "Volume 80" in text


def test_results_screen_lists_projects(ctx: AppContext) -> None:
    ctx.state.search("#80")

    text = screen_text(ctx)

    for name in ("kilo", "nob.h", "rich", "fd"):
        assert name in text
    assert "Volume 80" in text


def test_popup_screen_shows_message(ctx: AppContext) -> None:
    ctx.state.popup(Message(MessageLevel.WARN, "No results. Check the search keyword."))

    text = screen_text(ctx)

    assert "Warning" in text
    assert "No results. Check the search keyword." in text
    assert "Press any key to close" in text


def test_detail_screen_shows_counters(ctx: AppContext) -> None:
    ctx.state.search("#80")
    ctx.state.display_detail()

    text = screen_text(ctx)

    assert "Name: kilo" in text
    assert "Star: 6.8k" in text
    assert "Fork: 700" in text


@pytest.mark.parametrize(
    ("value", "width", "expected"),
    [("abcdef", 10, "abcdef"), ("abcdefghijkl", 8, "abcde..."), ("abcdef", 2, "ab")],
)
def test_truncate(value: str, width: int, expected: str) -> None:
    assert truncate(value, width) == expected


def test_unknown_category_rows_still_render(ctx: AppContext) -> None:
    ctx.state.results.replace([Project("x", 1, "Mystery", "u", "d")])
    ctx.state.switch_to_view()

    assert "Mystery" in screen_text(ctx)
