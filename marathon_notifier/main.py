"""marathon-notifier entry point: wires the notifier to an event source."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from marathon_notifier import __version__
from marathon_notifier.config import Settings, load_settings
from marathon_notifier.listener.server import CallbackServer
from marathon_notifier.listener.stream import EventStreamConsumer
from marathon_notifier.service import Notifier
from marathon_notifier.utils.logging import get_logger, setup_logging

log = get_logger(__name__)


async def run(settings: Settings, mode: str = "callback", dry_run: bool = False) -> None:
    notifier = Notifier(settings, dry_run=dry_run)
    source: CallbackServer | EventStreamConsumer
    if mode == "stream":
        source = EventStreamConsumer(settings.stream, notifier)
    else:
        source = CallbackServer(settings.listener, notifier)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    log.info("marathon_notifier_starting", version=__version__, mode=mode)
    await notifier.start()
    await source.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await source.stop()
        await notifier.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option(
    "--mode",
    type=click.Choice(["callback", "stream"]),
    default="callback",
    show_default=True,
    help="Receive events via HTTP callback subscription or the /v2/events stream",
)
@click.option("--dry-run", is_flag=True, help="Render messages and log them instead of posting")
def cli(config_path: str | None, log_level: str | None, mode: str, dry_run: bool) -> None:
    """Relay Marathon lifecycle events to Slack webhooks."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    if not settings.slack.webhook_url and not settings.slack.projects and not dry_run:
        raise click.UsageError(
            "No webhook configured. Set MARATHON_NOTIFIER_SLACK__WEBHOOK_URL or slack.webhook_url."
        )
    asyncio.run(run(settings, mode=mode, dry_run=dry_run))


if __name__ == "__main__":
    cli()
