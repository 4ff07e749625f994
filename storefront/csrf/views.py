from fastapi import APIRouter, Depends

from storefront.csrf.store import CsrfTokenStore
from storefront.dependencies import get_token_store
from storefront.utils.rate_limit import client_rate_limit

router = APIRouter(tags=["CSRF"])

CSRF_HEADER_NAME = "X-CSRF-Token"
TOO_MANY_TOKENS = {
    "error": "Too many CSRF token requests from this IP. Please wait before requesting another token.",
    "retryAfter": 60,
}


@router.get("/csrf-token", dependencies=[Depends(client_rate_limit(times=10, seconds=60, detail=TOO_MANY_TOKENS))])
def issue_csrf_token(store: CsrfTokenStore = Depends(get_token_store)):
    """
    Délivre un token CSRF à usage unique (valable 15 minutes).
    - Sécurité: rate limit 10 requêtes / 60s par adresse client
    - Le front l'envoie ensuite dans l'en-tête X-CSRF-Token du checkout
    """
    return {"token": store.issue()}
