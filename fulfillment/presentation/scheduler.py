import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from fulfillment.domain.models import PassSummary
from fulfillment.application.reserve_stock import ReserveStockUseCase
from fulfillment.application.run_fulfillment_pass import RunFulfillmentPassUseCase

logger = logging.getLogger(__name__)


class FulfillmentScheduler:
    """Запускает проход по PENDING заказам раз в interval_ms.

    Проходы не пересекаются: тик, пришедший во время прохода, пропускается
    (skip-if-busy). stop() отменяет будущие тики, но текущий проход
    всегда доходит до конца.
    """

    def __init__(self, run_pass: Callable[[], Awaitable[PassSummary]], interval_ms: int = 120000):
        self._run_pass = run_pass
        self._interval_ms = interval_ms
        self._ticker: Optional[asyncio.Task] = None
        self._current: Optional[asyncio.Task] = None
        self.last_summary: Optional[PassSummary] = None
        self.last_run_at: Optional[datetime] = None
        self.skipped_ticks = 0

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def is_active(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    @property
    def is_running(self) -> bool:
        return self._current is not None and not self._current.done()

    def describe(self) -> str:
        state = "running a pass" if self.is_running else "idle"
        if not self.is_active:
            return f"Order Processing Scheduler is stopped ({state})."
        description = (
            f"Order Processing Scheduler is active ({state}). "
            f"Runs every {self._interval_ms / 1000:g} seconds to process pending orders."
        )
        if self.last_run_at:
            description += f" Last pass finished at {self.last_run_at.isoformat()}."
        if self.last_summary:
            s = self.last_summary
            description += (
                f" Last pass: {s.processed_count} processed, {s.cancelled_count} cancelled"
                f" ({s.failed_count} failed), {s.skipped_count} skipped."
            )
        if self.skipped_ticks:
            description += f" Skipped ticks: {self.skipped_ticks}."
        return description

    def start(self) -> None:
        if self.is_active:
            return
        self._ticker = asyncio.create_task(self._tick_loop())
        logger.info(f"Fulfillment scheduler запущен, интервал {self._interval_ms} ms")

    async def stop(self, wait: bool = True) -> None:
        if self._ticker:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None
            logger.info("Fulfillment scheduler остановлен")

        if wait and self.is_running:
            logger.info("Ожидание завершения текущего прохода")
            await asyncio.shield(self._current)

    def tick(self) -> bool:
        """Запускает проход, если предыдущий завершен. True — проход запущен."""
        if self.is_running:
            self.skipped_ticks += 1
            logger.warning("Предыдущий проход еще выполняется, тик пропущен")
            return False
        self._current = asyncio.create_task(self._run_guarded())
        return True

    async def run_now(self) -> Optional[PassSummary]:
        if not self.tick():
            return None
        # Отмена вызывающего не должна прерывать сам проход
        return await asyncio.shield(self._current)

    async def _tick_loop(self):
        while True:
            self.tick()
            await asyncio.sleep(self._interval_ms / 1000)

    async def _run_guarded(self) -> Optional[PassSummary]:
        logger.info(f"=== Старт прохода по заказам {datetime.now(timezone.utc).isoformat()} ===")
        try:
            summary = await self._run_pass()
            self.last_summary = summary
            return summary
        except asyncio.CancelledError:
            logger.warning("Проход по заказам прерван отменой задачи")
            raise
        except Exception as e:
            logger.error(f"Ошибка в проходе по заказам: {e}", exc_info=True)
            return None
        finally:
            self.last_run_at = datetime.now(timezone.utc)


def build_fulfillment_scheduler(unit_of_work, cache_invalidator, settings) -> FulfillmentScheduler:
    reserve_stock = ReserveStockUseCase(unit_of_work, max_attempts=settings.RESERVATION_MAX_ATTEMPTS)
    run_pass = RunFulfillmentPassUseCase(
        unit_of_work=unit_of_work,
        reserve_stock=reserve_stock,
        cache_invalidator=cache_invalidator,
        concurrency=settings.FULFILLMENT_CONCURRENCY
    )
    return FulfillmentScheduler(run_pass, interval_ms=settings.FULFILLMENT_INTERVAL_MS)
