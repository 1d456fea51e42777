import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from fulfillment.config import settings
from fulfillment.database import AsyncSessionLocal, engine
from fulfillment.infrastructure.cache import create_cache_invalidator
from fulfillment.infrastructure.unit_of_work import UnitOfWork
from fulfillment.presentation.api import router
from fulfillment.presentation.scheduler import build_fulfillment_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    cache_invalidator = create_cache_invalidator(settings.REDIS_URL, settings.CACHE_KEY_PREFIX)
    scheduler = build_fulfillment_scheduler(UnitOfWork(AsyncSessionLocal), cache_invalidator, settings)
    app.state.cache_invalidator = cache_invalidator
    app.state.scheduler = scheduler

    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Fulfillment scheduler отключен (SCHEDULER_ENABLED=false)")

    yield

    logger.info("Приложение останавливается...")
    await scheduler.stop(wait=True)
    await cache_invalidator.close()
    await engine.dispose()


app = FastAPI(
    title="Order Fulfillment Service",
    description="Резервирование склада под PENDING заказы по расписанию",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "healthy",
        "scheduler": "active" if scheduler and scheduler.is_active else "stopped"
    }
