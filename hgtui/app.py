from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from datetime import datetime

from dotenv import load_dotenv
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape

from hgtui.config import AppConfig, configure_logging, init_config, parse_args
from hgtui.errors import HgTuiError
from hgtui.events import (
    HELP_TEXT,
    Dispatcher,
    EventBus,
    Notify,
    input_worker,
    raw_terminal,
    ticker_worker,
)
from hgtui.fetch import Fetcher
from hgtui.models import GlobalInfo, Message, MessageLevel
from hgtui.render import build_screen
from hgtui.state import AppState

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: AppConfig
    info: GlobalInfo
    state: AppState
    lock: threading.Lock
    bus: EventBus
    stop_event: threading.Event
    failure: BaseException | None = None


def build_context(config: AppConfig, fetcher: Fetcher | None = None) -> AppContext:
    if fetcher is None:
        fetcher = Fetcher(config.base_url, timeout_seconds=config.timeout_seconds)
    info = fetcher.fetch_global_info()
    logger.info(
        "Loaded stats: max_volume=%d projects=%d stars=%s",
        info.max_volume,
        info.project_count,
        info.star_count,
    )
    return AppContext(
        config=config,
        info=info,
        state=AppState(fetcher, info),
        lock=threading.Lock(),
        bus=EventBus(),
        stop_event=threading.Event(),
    )


def dispatcher_worker(ctx: AppContext, dispatcher: Dispatcher) -> None:
    try:
        dispatcher.run()
    except Exception as exc:
        logger.exception("Dispatcher stopped on an unexpected error")
        ctx.failure = exc
        ctx.bus.notify(Notify.QUIT)


def handle_notification(ctx: AppContext, notification: Notify | Message) -> bool:
    if notification is Notify.QUIT:
        return False
    if isinstance(notification, Message):
        with ctx.lock:
            ctx.state.popup(notification)
    return True


def draw(ctx: AppContext, console: Console) -> Layout:
    with ctx.lock:
        return build_screen(ctx.state, datetime.now(), console.size.width)


def start_workers(ctx: AppContext) -> list[threading.Thread]:
    dispatcher = Dispatcher(ctx.state, ctx.lock, ctx.bus, ctx.stop_event)
    threads = [
        threading.Thread(
            target=input_worker,
            args=(ctx.bus, ctx.stop_event),
            name="hgtui-input",
            daemon=True,
        ),
        threading.Thread(
            target=ticker_worker,
            args=(ctx.bus, ctx.stop_event),
            name="hgtui-ticker",
            daemon=True,
        ),
        threading.Thread(
            target=dispatcher_worker,
            args=(ctx, dispatcher),
            name="hgtui-dispatcher",
            daemon=True,
        ),
    ]
    for thread in threads:
        thread.start()
    return threads


def run(ctx: AppContext, console: Console, show_help: bool = False) -> int:
    if show_help:
        ctx.bus.message(MessageLevel.TIPS, HELP_TEXT)

    with raw_terminal(), Live(
        draw(ctx, console),
        console=console,
        screen=True,
        auto_refresh=False,
    ) as live:
        threads = start_workers(ctx)
        try:
            while True:
                notification = ctx.bus.notifications.get()
                if not handle_notification(ctx, notification):
                    break
                live.update(draw(ctx, console), refresh=True)
        finally:
            ctx.stop_event.set()
            for thread in threads:
                thread.join(timeout=2)

    if ctx.failure is not None:
        raise ctx.failure
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    console = Console()
    try:
        config = parse_args(argv if argv is not None else sys.argv[1:])
    except Exception as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        return 2

    log_warning = configure_logging(config)
    if log_warning:
        console.print(log_warning, style="yellow", markup=False)
    first_run = init_config(config.config_path)

    try:
        ctx = build_context(config)
    except HgTuiError as exc:
        console.print(f"[red]Could not load HelloGitHub stats:[/red] {escape(str(exc))}")
        return 1

    try:
        return run(ctx, console, show_help=first_run or config.show_help)
    except KeyboardInterrupt:
        console.print("\n[bold]Stopped.[/bold]")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
