"""
ONLYOFFICE Bridge - client library for the ONLYOFFICE Document Server

This package covers the host-application side of an ONLYOFFICE integration:

- Building the editor configuration object passed to the browser widget
- Signing and verifying the JWTs the document server exchanges with hosts
- Requesting document conversions from ConvertService.ashx
- Receiving, authenticating and dispatching save callbacks
- Recording per-document change history on disk

Key Components:
    - client: OnlyOfficeClient, one object wiring everything from settings
    - tokens: JWT signing/verification and document key generation
    - editor_config: editor configuration builder
    - conversion: conversion client and extension tables
    - callback: callback parsing, validation and the FastAPI receiver
    - history: change history recorder
    - configuration: layered settings (defaults, config.yaml, environment)
    - main: demo FastAPI application using all of the above

Usage:
    Run the demo server with:
        uvicorn onlyoffice_bridge.main:app --reload --port 8083
"""

from .callback import CallbackHandlers, CallbackReceiver, get_download_url, parse_callback, validate_callback
from .client import OnlyOfficeClient
from .configuration import load_settings
from .conversion import ConversionClient, can_convert, internal_extension
from .editor_config import build_editor_config, document_type_for
from .errors import (
    AuthError,
    BadRequest,
    BridgeError,
    CorruptedDocument,
    InternalError,
    MethodNotAllowed,
    TransportError,
    Unauthorized,
    UnknownStatus,
    ValidationError,
)
from .history import HistoryRecorder
from .models import (
    Callback,
    CallbackStatus,
    Config,
    ConvertOptions,
    ConvertResult,
    EditorParams,
    History,
    HistoryVersion,
)
from .tokens import TokenService
