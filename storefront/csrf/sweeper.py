import asyncio
import logging

from .store import CsrfTokenStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


async def run_sweeper(store: CsrfTokenStore, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
    """
    Boucle de purge des tokens expirés, lancée en tâche de fond par le lifespan.
    S'arrête sur annulation (arrêt de l'application).
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = store.sweep()
        except Exception:
            logger.exception("csrf.sweep failed")
            continue
        if removed:
            logger.info("csrf.sweep removed=%s remaining=%s", removed, len(store))


def start_sweeper(store: CsrfTokenStore, interval_seconds: float) -> "asyncio.Task[None] | None":
    """Démarre la purge périodique; interval_seconds <= 0 la désactive."""
    if interval_seconds <= 0:
        return None
    return asyncio.create_task(run_sweeper(store, interval_seconds), name="csrf-sweeper")
