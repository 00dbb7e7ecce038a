from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import requests
from omegaconf import DictConfig

from . import callback as callbacks
from .callback import CallbackHandlers, CallbackReceiver
from .configuration import load_settings
from .conversion import ConversionClient, can_convert, internal_extension
from .editor_config import build_editor_config
from .history import HistoryRecorder
from .models import Callback, Config, ConvertOptions, ConvertResult, EditorParams, HistoryVersion, TokenClaims
from .tokens import TokenService


class OnlyOfficeClient:
    """
    Entry point wiring the token service, config builder, conversion client,
    callback receiver and history recorder from one set of settings.

    Example:
        >>> client = OnlyOfficeClient(load_settings({"jwt_enabled": True, "jwt_secret": "s3cret"}))
        >>> config = client.build_editor_config(EditorParams(filename="report.docx"), "http://files/report.docx")
    """

    def __init__(self, settings: Optional[DictConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings if settings is not None else load_settings()
        self.tokens = TokenService.from_settings(self.settings)
        self.converter = ConversionClient(
            self.settings.document_server_url,
            self.tokens,
            timeout=self.settings.request_timeout,
            session=session,
        )
        self.history = HistoryRecorder(self.tokens)

    # Tokens

    def create_token(self, claims: Union[TokenClaims, Mapping[str, Any]]) -> str:
        return self.tokens.sign(claims)

    def parse_token(self, token: str) -> Dict[str, Any]:
        return self.tokens.verify(token)

    def generate_document_key(self, filename: str) -> str:
        return self.tokens.generate_document_key(filename)

    # Editor config

    def build_editor_config(self, params: EditorParams, file_url: str) -> Config:
        return build_editor_config(params, file_url, self.tokens)

    # Conversion

    def convert(self, options: ConvertOptions) -> ConvertResult:
        return self.converter.convert(options)

    def can_convert(self, ext: str) -> bool:
        return can_convert(ext)

    def internal_extension(self, ext: str) -> str:
        return internal_extension(ext)

    def download_file(self, file_url: str) -> bytes:
        return self.converter.download_file(file_url)

    # Callbacks

    def parse_callback(self, body: bytes, authorization: Optional[str] = None) -> Callback:
        return callbacks.parse_callback(body, authorization, self.tokens)

    def validate_callback(self, callback: Callback) -> None:
        callbacks.validate_callback(callback)

    def get_download_url(self, callback: Callback) -> str:
        return callbacks.get_download_url(callback)

    def callback_receiver(self, handlers: CallbackHandlers) -> CallbackReceiver:
        return CallbackReceiver(self.tokens, handlers)

    # History

    def record_history(self, callback: Callback, storage_root: Union[str, Path]) -> Path:
        return self.history.record(callback, storage_root)

    def list_history(self, filename: str, storage_root: Union[str, Path]) -> list[HistoryVersion]:
        return self.history.list_versions(filename, storage_root)

    def count_versions(self, storage_root: Union[str, Path]) -> int:
        return self.history.count_versions(storage_root)

    def generate_history_key(self, filename: str) -> str:
        return self.history.generate_history_key(filename)
