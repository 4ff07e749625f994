"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Rate limiting: fastapi-limiter sur Redis, fallback mémoire ou désactivation
  selon Settings.rate_limit_storage ("redis" | "memory" | "disabled")
- Purge périodique des tokens CSRF et des compteurs mémoire du rate limiting
  (tâches asyncio annulées à l'arrêt)
- Vérification SMTP non bloquante en développement
"""
import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from redis import asyncio as aioredis

from storefront.csrf.sweeper import start_sweeper
from storefront.utils.rate_limit import BACKEND_MEMORY, BACKEND_REDIS, prune_memory_store

logger = logging.getLogger("uvicorn.error")

# Fenêtre de la limite par route de GET /csrf-token
CSRF_LIMIT_WINDOW_SECONDS = 60


async def init_rate_limiter(app: FastAPI) -> None:
    """
    Configure le backend de rate limiting et journalise l'état effectif.
    Si Redis est injoignable au démarrage, le rate limiting reste actif
    en mémoire du process.
    """
    settings = app.state.settings
    storage = settings.rate_limit_storage
    app.state.rate_limit_store = {}

    if storage == "disabled":
        app.state.rate_limit_backend = None
        logger.info("Rate limiting disabled by RATE_LIMIT_STORAGE=disabled")
        return
    if storage == BACKEND_MEMORY:
        app.state.rate_limit_backend = BACKEND_MEMORY
        logger.info("Rate limiting enabled (in-memory)")
        return

    try:
        r = aioredis.from_url(settings.rate_limit_redis_url, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(r)
        app.state.rate_limit_backend = BACKEND_REDIS
        logger.info("Rate limiting enabled (redis)")
    except Exception as e:
        app.state.rate_limit_backend = BACKEND_MEMORY
        logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")


async def run_rate_limit_pruner(app: FastAPI, interval_seconds: float, max_age_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        removed = prune_memory_store(app.state.rate_limit_store, max_age_seconds)
        if removed:
            logger.info("rate_limit.pruned keys=%d", removed)


async def _verify_email_later(app: FastAPI, delay: float = 1.0) -> None:
    await asyncio.sleep(delay)
    await app.state.notifier.verify()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = time.monotonic()
    await init_rate_limiter(app)

    settings = app.state.settings
    tasks = []
    sweeper = start_sweeper(app.state.csrf_store, settings.csrf_sweep_interval_seconds)
    if sweeper is not None:
        tasks.append(sweeper)
    if app.state.rate_limit_backend == BACKEND_MEMORY and settings.csrf_sweep_interval_seconds > 0:
        max_age = max(CSRF_LIMIT_WINDOW_SECONDS, settings.rate_limit_window_minutes * 60)
        tasks.append(asyncio.create_task(
            run_rate_limit_pruner(app, settings.csrf_sweep_interval_seconds, max_age),
            name="rate-limit-pruner",
        ))
    if settings.environment == "development" and settings.email_configured:
        tasks.append(asyncio.create_task(_verify_email_later(app), name="smtp-verify"))

    logger.info("%s ready environment=%s base_url=%s", settings.service_name, settings.environment, settings.base_url)
    logger.info("Stripe key: %s", "loaded" if settings.stripe_secret_key else "MISSING")
    logger.info("Email: %s", "configured" if settings.email_configured else "MISSING")

    yield

    for task in tasks:
        task.cancel()
    for task in tasks:
        with contextlib.suppress(asyncio.CancelledError):
            await task
    if app.state.rate_limit_backend == BACKEND_REDIS:
        await FastAPILimiter.close()
    logger.info("Graceful shutdown completed")
