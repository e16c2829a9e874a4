"""Read-only web page listing the current user's notes."""

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from note_cli.models.schema import Note

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_app(notes: Sequence[Note], username: str) -> FastAPI:
    """Build the viewer app around a snapshot of ``notes``."""
    app = FastAPI(title="note-cli viewer", docs_url=None, redoc_url=None)
    snapshot = list(notes)

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return templates.TemplateResponse(
            request,
            "notes.html",
            {"notes": snapshot, "username": username},
        )

    return app


def serve(
    notes: Sequence[Note],
    username: str,
    host: str = "127.0.0.1",
    port: int = 5000,
    open_browser: bool = True,
) -> None:
    """Serve the viewer until interrupted, optionally opening a browser tab."""
    app = create_app(notes, username)
    url = f"http://localhost:{port}"
    logger.info(f"Serving {len(notes)} notes for {username} on {host}:{port}")
    if open_browser:
        # Give uvicorn a moment to bind before the browser asks for the page
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()
    uvicorn.run(app, host=host, port=port, log_level="warning")
