"""
Dispatch hook: fans one entry out to every configured sink.

Each sink is paired with its ShouldReport predicate in a Route. For every
entry the hook evaluates each predicate and fires the matching sinks. A
failing predicate or sink is reported on the diagnostics channel and never
stops the remaining routes.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .diagnostics import get_logger
from .messages import FormatMessageArgs
from .notifiers import Notifier, SlackNotifier, WorkplaceNotifier
from .sinks import ChatSink, DocumentStoreSink, Sink
from .types import ALL_LEVELS, Level, ReportFunc, default_report

if TYPE_CHECKING:
    from .config import Config
    from .entry import Entry

logger = get_logger("relaylog.hooks")


@dataclass(frozen=True)
class Route:
    """A sink and the predicate gating it."""

    name: str
    sink: Sink
    should_report: ReportFunc = default_report


class DispatchHook:
    """Routes entries to chat and document store sinks.

    Slow sinks (the document store) run on their own worker and serialize on
    the hook's shared lock. Chat sinks only enqueue, so firing them is cheap.
    """

    def __init__(self, config: Config, routes: tuple[Route, ...] = (), lock: Optional[threading.Lock] = None):
        self.config = config
        self.routes = tuple(routes)
        self.lock = lock or threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        workplace_notifier: Optional[Notifier] = None,
        slack_notifier: Optional[Notifier] = None,
    ) -> DispatchHook:
        """Build routes for every enabled sink. Startup failures propagate."""
        lock = threading.Lock()
        args = FormatMessageArgs(service=config.service, version=config.version, prefix=config.prefix)
        routes: list[Route] = []

        if config.workplace.enabled:
            notifier = workplace_notifier or WorkplaceNotifier(
                config.workplace.token.get_secret_value(), timeout=config.notify_timeout
            )
            sink = ChatSink(
                "workplace",
                notifier,
                config.workplace.thread,
                args=args,
                format_message=config.workplace.format_message,
                queue_size=config.queue_size,
            )
            routes.append(Route("workplace", sink, config.workplace.should_report))

        if config.slack.enabled:
            notifier = slack_notifier or SlackNotifier(
                config.slack.token.get_secret_value(), timeout=config.notify_timeout
            )
            sink = ChatSink(
                "slack",
                notifier,
                config.slack.channel,
                args=args,
                format_message=config.slack.format_message,
                queue_size=config.queue_size,
            )
            routes.append(Route("slack", sink, config.slack.should_report))

        if config.document_store.enabled:
            try:
                sink = DocumentStoreSink.create(
                    config.document_store.collection,
                    expiration_levels=config.document_store.expiration_levels,
                    lock=lock,
                    queue_size=config.queue_size,
                )
            except Exception:
                for route in routes:
                    route.sink.close()
                raise
            routes.append(Route("document_store", sink, config.document_store.should_report))

        return cls(config, tuple(routes), lock)

    def fire(self, entry: Optional[Entry]) -> None:
        if entry is None:
            return None
        for route in self.routes:
            try:
                if not route.should_report(entry):
                    continue
                route.sink.fire(entry)
            except Exception as exc:
                # Keep going, the remaining sinks still get the entry
                logger.error("sink_fire_failed", sink=route.name, error=str(exc))
        return None

    def levels(self) -> frozenset[Level]:
        return ALL_LEVELS

    def close(self) -> None:
        for route in self.routes:
            route.sink.close()
