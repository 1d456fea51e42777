import asyncio
import logging
import signal

from fulfillment.config import settings
from fulfillment.database import AsyncSessionLocal, engine
from fulfillment.infrastructure.cache import create_cache_invalidator
from fulfillment.infrastructure.unit_of_work import UnitOfWork
from fulfillment.presentation.scheduler import build_fulfillment_scheduler

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def fulfillment_worker():
    """Worker без HTTP: только планировщик проходов"""
    logger.info("Fulfillment worker запущен")

    cache_invalidator = create_cache_invalidator(settings.REDIS_URL, settings.CACHE_KEY_PREFIX)
    scheduler = build_fulfillment_scheduler(UnitOfWork(AsyncSessionLocal), cache_invalidator, settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    scheduler.start()
    try:
        await stop_event.wait()
    finally:
        # Текущий проход дорабатывает до конца
        await scheduler.stop(wait=True)
        await cache_invalidator.close()
        await engine.dispose()
        logger.info("Fulfillment worker остановлен")


async def main():
    await fulfillment_worker()


if __name__ == "__main__":
    asyncio.run(main())
