"""
Editor configuration builder.

Produces the object passed to ``new DocsAPI.DocEditor(...)`` in the browser:
document metadata, permissions, the editing user, and, when token auth is
enabled, a signed token over the security-relevant subset of those fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from .errors import ValidationError
from .models import (
    ClaimsDocument,
    ClaimsEditorConfig,
    ClaimsUser,
    Config,
    ConfigClaims,
    Customization,
    Document,
    EditorConfig,
    EditorParams,
    MetaInfo,
    Permissions,
    ReferenceData,
    UserInfo,
)
from .tokens import TokenService
from .utils import file_extension

UPLOADED_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_DOCUMENT_TYPE = "word"

DOCUMENT_TYPES: Dict[str, str] = {
    **dict.fromkeys(["docx", "doc", "odt", "rtf", "txt", "html", "htm", "mht", "pdf"], "text"),
    **dict.fromkeys(["xlsx", "xls", "ods", "csv"], "spreadsheet"),
    **dict.fromkeys(["pptx", "ppt", "odp"], "presentation"),
}


def document_type_for(ext: str) -> str:
    return DOCUMENT_TYPES.get(ext.lower(), DEFAULT_DOCUMENT_TYPE)


def build_editor_config(params: EditorParams, file_url: str, tokens: TokenService) -> Config:
    """
    Assemble the editor configuration for ``params.filename`` served at ``file_url``.

    Raises:
        ValidationError: If the filename is empty
        AuthError: If signing the config token fails
    """
    if not params.filename:
        raise ValidationError("filename is required")

    ext = file_extension(params.filename)
    file_key = tokens.generate_document_key(params.filename)

    config = Config(
        document_type=document_type_for(ext),
        document=Document(
            file_type=ext,
            key=file_key,
            title=params.filename,
            url=file_url,
            info=MetaInfo(
                owner=params.user_id,
                uploaded=datetime.now().strftime(UPLOADED_FORMAT),
            ),
            permissions=Permissions(
                chat=True,
                download=params.can_download,
                edit=params.can_edit,
                fill_forms=True,
                print=True,
            ),
            reference_data=ReferenceData(file_key=file_key),
        ),
        editor_config=EditorConfig(
            user=UserInfo(id=params.user_id, name=params.user_name, email=params.user_email),
            callback_url=params.callback_url,
            lang=params.language or None,
            mode=params.mode or None,
            customization=Customization(about=True, feedback=True),
        ),
    )

    if tokens.enabled:
        claims = ConfigClaims(
            document=ClaimsDocument(key=file_key, url=file_url, file_type=ext),
            editor_config=ClaimsEditorConfig(user=ClaimsUser(id=params.user_id)),
            exp=tokens.expiry(),
        )
        config.token = tokens.sign(claims) or None

    return config
