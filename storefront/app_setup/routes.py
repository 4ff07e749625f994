"""
Routes simples (hors routers) pour les pages de la boutique.
- /, /success, /cancel, /contact, pages légales: fichiers HTML de public/pages
- /admin: formulaire d'envoi d'email de suivi (l'API reste protégée par X-Admin-Key)
- /index.html, /contact.html: redirections permanentes vers les URLs propres
- /favicon.ico: pas de contenu (204) pour éviter des 404 dans les logs
"""
from fastapi import FastAPI
from fastapi.responses import FileResponse, RedirectResponse, Response
from starlette.status import HTTP_204_NO_CONTENT, HTTP_301_MOVED_PERMANENTLY

from storefront.config import PAGES_DIR

# URL publique -> fichier de public/pages
STATIC_PAGES = {
    "/contact": "contact.html",
    "/privacy-policy": "privacy-policy.html",
    "/terms-of-service": "terms-of-service.html",
    "/refund-policy": "refund-policy.html",
}

LEGACY_REDIRECTS = {
    "/index.html": "/",
    "/contact.html": "/contact",
}


def _page(name: str) -> FileResponse:
    return FileResponse(str(PAGES_DIR / name), media_type="text/html")


def _add_page(app: FastAPI, path: str, name: str) -> None:
    app.add_api_route(path, lambda: _page(name), methods=["GET"], include_in_schema=False)


def _add_redirect(app: FastAPI, path: str, target: str) -> None:
    app.add_api_route(
        path,
        lambda: RedirectResponse(url=target, status_code=HTTP_301_MOVED_PERMANENTLY),
        methods=["GET"],
        include_in_schema=False,
    )


def register_routes(app: FastAPI) -> None:
    @app.get("/", include_in_schema=False)
    def home():
        return _page("index.html")

    @app.get("/success", include_in_schema=False)
    def success_page():
        """Page de retour Stripe (?session_id=...), vide le panier côté navigateur."""
        return _page("success.html")

    @app.get("/cancel", include_in_schema=False)
    def cancel_page():
        return _page("cancel.html")

    @app.get("/admin", include_in_schema=False)
    def admin_page():
        return _page("admin.html")

    for path, name in STATIC_PAGES.items():
        _add_page(app, path, name)
    for path, target in LEGACY_REDIRECTS.items():
        _add_redirect(app, path, target)

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=HTTP_204_NO_CONTENT)
