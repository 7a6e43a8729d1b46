"""
Development server launcher.

    cd backend && python -m server.main

Production deployments point uvicorn/gunicorn at server.asgi:app.
"""

from __future__ import annotations

import os

import uvicorn
from dotenv import load_dotenv

from config import AppConfig


def run(config: AppConfig | None = None) -> None:
    """Serve server.asgi:app with uvicorn."""
    if config is None:
        load_dotenv()
        config = AppConfig.load_from_env()
    uvicorn.run(
        "server.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        log_level=config.log_level.lower(),
        reload=config.env == "dev",
    )


if __name__ == "__main__":
    run()
