"""Background scheduler - hourly auto-close and daily auto-generation of books"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.orm import sessionmaker

from weekbook.config import settings
from weekbook.infrastructure.clients.notifier import build_dispatcher
from weekbook.infrastructure.database.session import SessionLocal
from weekbook.infrastructure.observability.metrics import scheduler_ticks_counter
from weekbook.services.books import BookLifecycleManager
from weekbook.services.notifications import build_new_book_notifications
from weekbook.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class BookScheduler:
    """
    Owns the two periodic book-management tasks.

    Each tick can be invoked directly (tests do this) or driven by start()/stop(),
    which run them on independent timers. A failing tick is logged and the
    loop waits for the next interval; there is no backoff.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        dispatcher=None,
        auto_close_interval: float | None = None,
        auto_generate_interval: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher or build_dispatcher()
        self.auto_close_interval = auto_close_interval or settings.auto_close_interval_seconds
        self.auto_generate_interval = auto_generate_interval or settings.auto_generate_interval_seconds
        self.clock = clock
        self._tasks: List[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def run_hourly_tick(self) -> int:
        """Close overdue books. Returns how many were closed"""
        with self.session_factory() as db:
            closed = BookLifecycleManager(db).auto_close(now=self.clock())

        if closed > 0:
            logger.info("Auto-closed %d expired book(s)", closed, extra={"closed_count": closed})
        return closed

    def _generate_next(self) -> Optional[uuid.UUID]:
        with self.session_factory() as db:
            book = BookLifecycleManager(db).auto_generate_next()
            if book is None:
                return None
            logger.info("Auto-generated new book: %s", book.title, extra={"book_id": str(book.id)})
            return book.id

    async def run_daily_tick(self) -> Optional[uuid.UUID]:
        """Open the next book if none is active, then notify users about it"""
        book_id = await asyncio.to_thread(self._generate_next)
        if book_id is not None:
            await self.notify_users(book_id)
        return book_id

    def _collect_notifications(self, book_id: uuid.UUID):
        with self.session_factory() as db:
            return build_new_book_notifications(db, book_id)

    async def notify_users(self, book_id: uuid.UUID) -> int:
        """
        Hand one notification intent per ACTIVE user to the dispatcher.

        Delivery failures are logged and swallowed so a flaky channel never
        fails the tick that opened the book.

        Returns:
            Number of recipients handed to the dispatcher (0 on failure)
        """
        batch = await asyncio.to_thread(self._collect_notifications, book_id)
        if batch is None:
            return 0

        try:
            await self.dispatcher.dispatch(batch)
        except Exception:
            logger.exception("Failed to dispatch new book notifications", extra={"book_id": str(book_id)})
            return 0
        return len(batch.intents)

    async def _auto_close_tick(self) -> None:
        await asyncio.to_thread(self.run_hourly_tick)

    async def _run_periodically(self, name: str, interval: float, tick: Callable[[], Awaitable]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await tick()
                scheduler_ticks_counter.labels(tick=name, outcome="ok").inc()
            except asyncio.CancelledError:
                raise
            except Exception:
                scheduler_ticks_counter.labels(tick=name, outcome="error").inc()
                logger.exception("Scheduler tick failed", extra={"tick": name})

    async def start(self) -> None:
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(
                self._run_periodically("auto_close", self.auto_close_interval, self._auto_close_tick),
                name="weekbook-auto-close",
            ),
            asyncio.create_task(
                self._run_periodically("auto_generate", self.auto_generate_interval, self.run_daily_tick),
                name="weekbook-auto-generate",
            ),
        ]
        logger.info(
            "Book scheduler started",
            extra={
                "auto_close_interval_seconds": self.auto_close_interval,
                "auto_generate_interval_seconds": self.auto_generate_interval,
            },
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Book scheduler stopped")
