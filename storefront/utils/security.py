import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from storefront.config import Settings
from storefront.dependencies import get_settings

ADMIN_KEY_HEADER = "X-Admin-Key"


def require_admin(
    x_admin_key: Optional[str] = Header(default=None, alias=ADMIN_KEY_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Protège les routes /admin/* par une clé partagée (ADMIN_API_KEY).
    - 503 si aucune clé n'est configurée (endpoint désactivé)
    - 401 si l'en-tête est absent, 403 si la clé ne correspond pas
    """
    if not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin endpoints are disabled")
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="Admin key required")
    if not secrets.compare_digest(x_admin_key.encode(), settings.admin_api_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid admin key")


def require_test_endpoints(settings: Settings = Depends(get_settings)) -> None:
    """Les endpoints de test répondent 404 en production sauf si ENABLE_TEST_ENDPOINTS est actif."""
    if not settings.test_endpoints_enabled:
        raise HTTPException(status_code=404, detail="Test endpoints are disabled in production")
