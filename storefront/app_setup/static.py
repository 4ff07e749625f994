"""
Montage des fichiers statiques.
Expose /public -> tout le répertoire public (images, css, js du front).
"""
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from storefront.config import PUBLIC_DIR


def mount_static_files(app: FastAPI) -> None:
    app.mount("/public", StaticFiles(directory=str(PUBLIC_DIR)), name="public")
