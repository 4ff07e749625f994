"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: uvicorn, gunicorn -k uvicorn.workers.UvicornWorker)
  importe `storefront.asgi:app`.
- Toute la configuration est centralisée dans storefront.app_setup.factory,
  ce fichier ne fait qu'exposer l'instance `app`.
"""
import logging

from storefront.app_setup.factory import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()
