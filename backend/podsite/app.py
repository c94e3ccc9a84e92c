"""ASGI entrypoint: ``uvicorn podsite.app:app``."""
from .main import create_app

app = create_app()
