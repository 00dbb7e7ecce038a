from __future__ import annotations

import logging
from typing import Dict, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from .errors import InternalError, TransportError
from .models import ConversionPayload, ConvertOptions, ConvertResult
from .tokens import TokenService
from .utils import extension_from_url

logger = logging.getLogger(__name__)

CONVERT_PATH = "/ConvertService.ashx"

CONVERTIBLE_EXTENSIONS = frozenset(
    ["doc", "docx", "odt", "rtf", "xls", "xlsx", "ods", "csv", "ppt", "pptx", "odp", "pdf", "txt", "html", "htm"]
)

# Legacy and open formats -> the OOXML container the editor works on internally
INTERNAL_EXTENSIONS: Dict[str, str] = {
    **dict.fromkeys(["doc", "odt", "rtf"], "docx"),
    **dict.fromkeys(["xls", "ods", "csv"], "xlsx"),
    **dict.fromkeys(["ppt", "odp"], "pptx"),
}


def can_convert(ext: str) -> bool:
    return ext.lower() in CONVERTIBLE_EXTENSIONS


def internal_extension(ext: str) -> str:
    return INTERNAL_EXTENSIONS.get(ext.lower(), ext)


class ConversionClient:
    """
    Talks to the document server's conversion service.

    One request per call, no retries. The caller must inspect
    ``ConvertResult.error``: a non-zero code from the server is returned,
    not raised.
    """

    def __init__(
        self,
        server_url: str,
        tokens: TokenService,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.tokens = tokens
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_payload(self, options: ConvertOptions) -> Dict[str, object]:
        payload = ConversionPayload(
            url=options.document_url,
            outputtype=options.to_ext,
            filetype=options.from_ext or extension_from_url(options.document_url),
            title=options.title,
            key=options.document_key,
            asynchronous=options.asynchronous,
        )
        body: Dict[str, object] = payload.to_wire()
        if self.tokens.enabled:
            body["token"] = self.tokens.sign(payload)
        return body

    def convert(self, options: ConvertOptions) -> ConvertResult:
        """
        Ask the server to convert ``options.document_url`` to ``options.to_ext``.

        Raises:
            TransportError: On connection failure or a non-200 answer
            InternalError: If the server's answer is not a conversion result
        """
        url = f"{self.server_url}{CONVERT_PATH}"
        body = self.build_payload(options)
        logger.info(f"Converting {options.document_url} ({body['filetype']} -> {options.to_ext}) via {url}")

        try:
            response = self.session.post(
                url,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"conversion request failed: {exc}") from exc

        if response.status_code != 200:
            raise TransportError(f"conversion failed with status {response.status_code}: {response.text}")

        try:
            result = ConvertResult.model_validate_json(response.content)
        except PydanticValidationError as exc:
            raise InternalError(f"unexpected conversion response: {response.text}") from exc

        if result.error:
            logger.warning(f"Conversion of {options.document_url} returned error code {result.error}")
        return result

    def download_file(self, file_url: str) -> bytes:
        try:
            response = self.session.get(file_url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"download failed: {exc}") from exc

        if response.status_code != 200:
            raise TransportError(f"download failed with status {response.status_code}")
        return response.content
