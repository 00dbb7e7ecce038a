from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from omegaconf import DictConfig

from .callback import CallbackHandlers
from .client import OnlyOfficeClient
from .configuration import load_settings
from .errors import TransportError, ValidationError
from .models import Callback, Config, ConvertOptions, ConvertResult, EditorParams, HistoryVersion
from .store import SavedDocument, SavedDocumentStore
from .utils import ensure_directory, extension_from_url, sanitize_filename

logger = logging.getLogger(__name__)


def make_save_handler(client: OnlyOfficeClient, store: SavedDocumentStore, storage_root: Path):
    """Handler for SAVE and FORCE_SAVE: download the edited file, keep a copy, record its history."""

    def save_document(cb: Callback) -> None:
        url = client.get_download_url(cb)
        logger.info(f"Downloading saved document key={cb.key} from {url}")
        content = client.download_file(url)

        ext = extension_from_url(url) or "docx"
        stem = sanitize_filename(Path(cb.filename).stem if cb.filename else "", fallback="document")
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        destination = ensure_directory(store.saved_dir) / f"{stem}-{timestamp}.{ext}"
        destination.write_bytes(content)

        client.record_history(cb, storage_root)
        record = store.add(cb.key, destination)
        logger.info(f"Saved document key={cb.key} to {destination} ({record.size_bytes} bytes)")

    return save_document


def _log_status(label: str):
    def handler(cb: Callback) -> None:
        logger.info(f"{label} - key={cb.key} users={cb.users}")

    return handler


def create_app(settings: Optional[DictConfig] = None, session: Optional[requests.Session] = None) -> FastAPI:
    settings = settings if settings is not None else load_settings()
    client = OnlyOfficeClient(settings, session=session)
    storage_root = ensure_directory(Path(settings.storage_root))
    store = SavedDocumentStore(saved_dir=storage_root / "saved")

    app = FastAPI(title="ONLYOFFICE Bridge", version="0.1.0")
    app.state.client = client
    app.state.store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    save_document = make_save_handler(client, store, storage_root)
    receiver = client.callback_receiver(
        CallbackHandlers(
            on_editing=_log_status("Document is being edited"),
            on_save=save_document,
            on_save_error=_log_status("Document save failed"),
            on_close=_log_status("Document closed without changes"),
            on_force_save=save_document,
            on_corrupt=_log_status("Document is corrupted"),
        )
    )
    app.include_router(receiver.router("/callback"))

    def get_client(request: Request) -> OnlyOfficeClient:
        return request.app.state.client

    def get_store(request: Request) -> SavedDocumentStore:
        return request.app.state.store

    @app.get("/healthz")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/config")
    def editor_config(
        filename: str = "",
        user_id: str = "uid-1",
        user_name: str = "John Smith",
        user_email: str = "",
        mode: str = "edit",
        lang: str = "en",
        client: OnlyOfficeClient = Depends(get_client),
    ) -> Dict[str, Any]:
        if filename:
            base_path = storage_root.resolve()
            file_path = (base_path / filename).resolve()
            if not str(file_path).startswith(str(base_path)):
                raise HTTPException(status_code=400, detail="Invalid path request")
            if not file_path.is_file():
                raise HTTPException(status_code=404, detail="File not found")

        params = EditorParams(
            filename=filename,
            mode=mode,
            language=lang,
            user_id=user_id,
            user_name=user_name,
            user_email=user_email,
            callback_url=f"{settings.public_base_url}/callback",
            can_edit=True,
            can_download=True,
        )
        try:
            config: Config = client.build_editor_config(params, f"{settings.public_base_url}/files/{quote(filename)}")
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return config.to_wire()

    @app.get("/saved", response_model=list[SavedDocument])
    def saved_documents(store: SavedDocumentStore = Depends(get_store)) -> list[SavedDocument]:
        return store.list_documents()

    @app.get("/history/{filename}", response_model=list[HistoryVersion])
    def history(filename: str, client: OnlyOfficeClient = Depends(get_client)) -> list[HistoryVersion]:
        return client.list_history(filename, storage_root)

    @app.post("/convert", response_model=ConvertResult)
    def convert(options: ConvertOptions, client: OnlyOfficeClient = Depends(get_client)) -> ConvertResult:
        if not client.can_convert(options.from_ext or extension_from_url(options.document_url)):
            raise HTTPException(status_code=400, detail="Unsupported source format")
        try:
            return client.convert(options)
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    # Mounted last so the routes above take precedence.
    app.mount("/files", StaticFiles(directory=storage_root), name="files")
    return app


app = create_app()


def run() -> None:
    """Run the demo server with uvicorn on HOST:PORT (default 0.0.0.0:8083)."""
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8083"))
    uvicorn.run("onlyoffice_bridge.main:app", host=host, port=port)


if __name__ == "__main__":
    run()
