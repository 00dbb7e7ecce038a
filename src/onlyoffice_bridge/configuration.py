from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

from .errors import ValidationError

load_dotenv()

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:4]]

CONFIG_ENV_VAR = "ONLYOFFICE_BRIDGE_CONFIG"

KEY_STRATEGIES = ("timestamp", "filename")

# environment variable -> settings key
ENV_OVERRIDES: Dict[str, str] = {
    "ONLYOFFICE_URL": "document_server_url",
    "JWT_SECRET": "jwt_secret",
    "JWT_ENABLED": "jwt_enabled",
    "REQUEST_TIMEOUT": "request_timeout",
    "CONFIG_TOKEN_TTL": "config_token_ttl",
    "DOCUMENT_KEY_STRATEGY": "document_key_strategy",
    "STORAGE_ROOT": "storage_root",
    "PUBLIC_BASE_URL": "public_base_url",
}


@dataclass
class BridgeSettings:
    document_server_url: str = "http://localhost"
    jwt_secret: str = ""
    jwt_enabled: bool = False
    request_timeout: float = 30.0
    config_token_ttl: int = 300
    document_key_strategy: str = "timestamp"
    storage_root: str = "./storage"
    public_base_url: str = "http://localhost:8083"


def find_config_file() -> Optional[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points at {path}, which does not exist")
        return path
    return next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)


def _env_overrides() -> Dict[str, Any]:
    return {key: os.environ[name] for name, key in ENV_OVERRIDES.items() if name in os.environ}


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    """
    Build the runtime settings.

    Layers, later ones winning: dataclass defaults, config.yaml, environment
    variables, explicit ``overrides``. Unknown keys are rejected.
    """
    base = OmegaConf.structured(BridgeSettings)
    layers = []

    config_path = find_config_file()
    if config_path is not None:
        layers.append(OmegaConf.load(config_path))

    layers.append(OmegaConf.create(_env_overrides()))
    layers.append(OmegaConf.create(overrides or {}))

    merged = DictConfig(OmegaConf.merge(base, *layers))

    if merged.document_key_strategy not in KEY_STRATEGIES:
        raise ValidationError(
            f"document_key_strategy must be one of {', '.join(KEY_STRATEGIES)}, got {merged.document_key_strategy!r}"
        )
    return merged
