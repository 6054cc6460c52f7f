"""
ASGI Entry Point for the timeline API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads `.env` first so `TIMELINE_REGISTRY` / `TIMELINE_APP` are visible
before the application factory runs.

Usage
-----
Run via the module entry point:
    $ python -m timelinemapper.api.server

Or via uvicorn directly:
    $ uvicorn timelinemapper.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from timelinemapper.api.app import create_app
from timelinemapper.core.settings import load_settings

load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    current = load_settings()
    print(f"[Server] registry={current.registry_path} app={current.app_id or '(first)'}")

    uvicorn.run(
        "timelinemapper.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=current.is_dev,
        log_level=current.log_level.lower(),
    )


if __name__ == "__main__":
    main()
