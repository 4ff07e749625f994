from typing import Optional, Dict, Any
from urllib.parse import urlparse
import logging
import math
import time

from fastapi import Request, Response, HTTPException

logger = logging.getLogger(__name__)

# Valeurs possibles de app.state.rate_limit_backend (posé par le lifespan)
BACKEND_REDIS = "redis"
BACKEND_MEMORY = "memory"


def client_key(request: Request, per_path: bool = True) -> str:
    """Clé de comptage: adresse du client (+ chemin pour les limites par route)."""
    ip = request.client.host if request.client else "local"
    if not per_path:
        return f"ip:{ip}:*"
    return f"ip:{ip}:{request.url.path}"


def _too_many(detail: Any, retry_after: int) -> HTTPException:
    return HTTPException(status_code=429, detail=detail, headers={"Retry-After": str(max(retry_after, 1))})


def prune_memory_store(store: Dict[str, list], max_age_seconds: float, now: Optional[float] = None) -> int:
    """
    Supprime les clés dont le dernier hit est plus vieux que max_age_seconds
    (fenêtre la plus longue utilisée par les limites).
    Retour: nombre de clés supprimées.
    """
    now = time.monotonic() if now is None else now
    stale = [key for key, hits in store.items() if not hits or now - hits[-1] >= max_age_seconds]
    for key in stale:
        del store[key]
    return len(stale)


def client_rate_limit(times: int, seconds: int, detail: Any = "Too Many Requests", per_path: bool = True):
    """
    Dépendance de rate limiting par adresse client (fenêtre de `seconds`).
    - backend "redis": fastapi-limiter (initialisé dans le lifespan)
    - backend "memory": fenêtre glissante en mémoire du process (dev/tests)
    - backend absent: aucune limite (RATE_LIMIT_STORAGE=disabled)
    - per_path=False: un seul compteur par client, toutes routes confondues
    """
    async def _dep(request: Request, response: Response):
        backend = getattr(request.app.state, "rate_limit_backend", None)

        if backend == BACKEND_MEMORY:
            now = time.monotonic()
            key = client_key(request, per_path)
            store: Dict[str, list] = request.app.state.rate_limit_store
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                store[key] = hits
                raise _too_many(detail, math.ceil(seconds - (now - hits[0])))
            hits.append(now)
            store[key] = hits
            return

        if backend != BACKEND_REDIS:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return client_key(req, per_path)

        async def _callback(req: Request, resp: Response, pexpire: int):
            raise _too_many(detail, math.ceil(pexpire / 1000))

        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier, callback=_callback)(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible en cours de route: on laisse passer plutôt que bloquer le checkout
            logger.warning("rate_limit.redis unavailable path=%s", request.url.path, exc_info=True)

    return _dep


def rate_limit_health_info(request: Request, redis_url: Optional[str] = None) -> Dict[str, Any]:
    backend = getattr(request.app.state, "rate_limit_backend", None)
    info: Dict[str, Any] = {
        "enabled": backend is not None,
        "backend": backend,
    }
    if backend == BACKEND_REDIS and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {
            "scheme": p.scheme,
            "host": p.hostname,
            "port": p.port,
        }
    return info
