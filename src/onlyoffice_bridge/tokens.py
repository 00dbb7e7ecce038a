from __future__ import annotations

import hashlib
import time
from typing import Any, Dict, Mapping, Union

import jwt

from .errors import AuthError, ValidationError
from .models import TokenClaims, WireModel

SIGNING_ALGORITHM = "HS256"
# Only the symmetric HMAC family is accepted on verification.
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]


class TokenService:
    """
    Signs and verifies the JWTs exchanged with the document server.

    Tokens are HMAC-signed with a secret shared with the server. When token
    auth is disabled, signing returns an empty string and verification
    accepts anything, returning no claims.
    """

    def __init__(
        self,
        secret: str = "",
        enabled: bool = False,
        config_token_ttl: int = 300,
        key_strategy: str = "timestamp",
    ) -> None:
        self.secret = secret
        self.enabled = enabled
        self.config_token_ttl = config_token_ttl
        self.key_strategy = key_strategy

    @classmethod
    def from_settings(cls, settings: Any) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            enabled=settings.jwt_enabled,
            config_token_ttl=settings.config_token_ttl,
            key_strategy=settings.document_key_strategy,
        )

    def sign(self, claims: Union[TokenClaims, Mapping[str, Any]]) -> str:
        if not self.enabled or not self.secret:
            return ""
        payload = claims.to_wire() if isinstance(claims, WireModel) else dict(claims)
        return jwt.encode(payload, self.secret, algorithm=SIGNING_ALGORITHM)

    def verify(self, token: str) -> Dict[str, Any]:
        if not self.enabled:
            return {}
        try:
            return jwt.decode(token, self.secret, algorithms=ACCEPTED_ALGORITHMS)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token has expired") from exc
        except jwt.InvalidAlgorithmError as exc:
            raise AuthError(f"unexpected signing method: {jwt.get_unverified_header(token).get('alg')}") from exc
        except jwt.PyJWTError as exc:
            raise AuthError(f"invalid token: {exc}") from exc

    def expiry(self) -> int:
        """Unix timestamp ``config_token_ttl`` seconds from now."""
        return int(time.time()) + self.config_token_ttl

    def generate_document_key(self, filename: str) -> str:
        """
        SHA-1 hex key identifying one editing session of ``filename``.

        With the ``timestamp`` strategy the current time is mixed in, so every
        call yields a new key. The ``filename`` strategy hashes the name alone
        and is reproducible.
        """
        if self.key_strategy == "timestamp":
            material = f"{filename}{time.time_ns()}"
        elif self.key_strategy == "filename":
            material = filename
        else:
            raise ValidationError(f"unknown document key strategy: {self.key_strategy}")
        return hashlib.sha1(material.encode("utf-8")).hexdigest()
