"""ASGI entry point: `uvicorn suitebook.api.app:app`."""

from .factory import create_app

app = create_app()
