"""
Name: Backend ASGI Entrypoint (corbez.main)

Responsibilities:
  - Re-export the FastAPI app for ASGI servers (uvicorn corbez.main:app)
  - Keep this module side-effect free beyond importing corbez.api.main
"""

from corbez.api.main import app

__all__ = ["app"]
