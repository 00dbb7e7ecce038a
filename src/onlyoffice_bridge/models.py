from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WireModel(BaseModel):
    """Base for every shape exchanged with the document server.

    Fields use snake_case in Python and camelCase aliases on the wire.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CallbackStatus(IntEnum):
    EDITING = 1
    SAVE = 2
    SAVE_ERROR = 3
    CLOSED = 4
    FORCE_SAVE = 6
    CORRUPTED = 7


# Callback and history


class User(WireModel):
    id: str = ""
    name: str = ""
    email: str = ""
    group: Optional[str] = None
    review_groups: Optional[List[str]] = Field(default=None, alias="reviewGroups")
    comment_groups: Optional[Dict[str, Any]] = Field(default=None, alias="commentGroups")
    user_info_groups: Optional[List[str]] = Field(default=None, alias="userInfoGroups")
    favorite: Optional[int] = None
    denied_permissions: Optional[List[str]] = Field(default=None, alias="deniedPermissions")
    description: Optional[List[str]] = None
    templates: Optional[bool] = None
    avatar: Optional[bool] = None


class Change(WireModel):
    created: str = ""
    user: User = Field(default_factory=User)


class History(WireModel):
    changes: List[Change] = Field(default_factory=list)
    server_version: Optional[str] = Field(default=None, alias="serverVersion")
    created: Optional[str] = None
    key: Optional[str] = None
    user: Optional[User] = None
    version: Optional[int] = None


class Action(WireModel):
    type: int = 0
    user_id: str = Field(default="", alias="userid")


class Callback(WireModel):
    actions: List[Action] = Field(default_factory=list)
    changes_url: str = Field(default="", alias="changesurl")
    history: Optional[History] = None
    key: str = ""
    status: int = 0
    users: List[str] = Field(default_factory=list)
    url: str = ""
    token: Optional[str] = None
    filename: Optional[str] = None
    user_address: Optional[str] = Field(default=None, alias="userAddress")

    @field_validator("actions", "users", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class HistoryVersion(BaseModel):
    """One stored history entry plus the directory it was read from."""

    version: str
    key: str = ""
    created: Optional[datetime] = None
    user: Optional[User] = None
    changes: List[Change] = Field(default_factory=list)


# Editor configuration


class EditorParams(BaseModel):
    filename: str = ""
    mode: str = ""
    language: str = ""
    user_id: str = ""
    user_name: str = ""
    user_email: str = ""
    callback_url: str = ""
    can_edit: bool = False
    can_download: bool = False


class MetaInfo(WireModel):
    owner: str = ""
    uploaded: str = ""
    favorite: Optional[Any] = None


class Permissions(WireModel):
    chat: bool = False
    comment: Optional[bool] = None
    download: bool = False
    edit: bool = False
    fill_forms: Optional[bool] = Field(default=None, alias="fillForms")
    print: Optional[bool] = None
    review: Optional[bool] = None
    protect: Optional[bool] = None
    review_groups: Optional[List[str]] = Field(default=None, alias="reviewGroups")
    user_info_groups: Optional[List[str]] = Field(default=None, alias="userInfoGroups")
    comment_groups: Optional[Dict[str, Any]] = Field(default=None, alias="commentGroups")


class ReferenceData(WireModel):
    file_key: str = Field(default="", alias="fileKey")
    link: Optional[Any] = None


class Document(WireModel):
    file_type: str = Field(alias="fileType")
    key: str = ""
    title: str = ""
    url: str = ""
    info: MetaInfo = Field(default_factory=MetaInfo)
    version: Optional[str] = None
    permissions: Permissions = Field(default_factory=Permissions)
    reference_data: ReferenceData = Field(default_factory=ReferenceData, alias="referenceData")


class UserInfo(WireModel):
    id: str = ""
    name: str = ""
    email: str = ""
    image: Optional[str] = None


class Goback(WireModel):
    request_close: bool = Field(default=False, alias="requestClose")


class Customization(WireModel):
    about: bool = False
    comments: Optional[bool] = None
    feedback: bool = False
    forcesave: Optional[bool] = None
    submit_form: Optional[bool] = Field(default=None, alias="submitForm")
    goback: Optional[Goback] = None
    close: Optional[Dict[str, Any]] = None


class Template(WireModel):
    image: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None


class EditorConfig(WireModel):
    user: UserInfo = Field(default_factory=UserInfo)
    callback_url: str = Field(default="", alias="callbackUrl")
    customization: Customization = Field(default_factory=Customization)
    lang: Optional[str] = None
    mode: Optional[str] = None
    templates: Optional[List[Template]] = None


class Config(WireModel):
    type: str = "desktop"
    document: Document
    document_type: str = Field(alias="documentType")
    editor_config: EditorConfig = Field(default_factory=EditorConfig, alias="editorConfig")
    token: Optional[str] = None


# Conversion


class ConvertOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_url: str
    to_ext: str
    from_ext: str = ""
    document_key: str = ""
    title: str = ""
    asynchronous: bool = Field(default=False, alias="async")


class ConvertResult(WireModel):
    file_url: str = Field(default="", alias="fileUrl")
    file_type: str = Field(default="", alias="fileType")
    percent: int = 0
    end_convert: bool = Field(default=False, alias="endConvert")
    error: int = 0
    key: str = ""


# Signed claim sets


class ClaimsUser(WireModel):
    id: str = ""


class ClaimsEditorConfig(WireModel):
    user: ClaimsUser = Field(default_factory=ClaimsUser)


class ClaimsDocument(WireModel):
    key: str
    url: str
    file_type: str = Field(alias="fileType")


class ConfigClaims(WireModel):
    """Claims signed into an editor config token."""

    document: ClaimsDocument
    editor_config: ClaimsEditorConfig = Field(default_factory=ClaimsEditorConfig, alias="editorConfig")
    exp: int


class ConversionPayload(WireModel):
    """Body of a ConvertService.ashx request; also the claim set of its token."""

    url: str
    outputtype: str
    filetype: str
    title: str = ""
    key: str = ""
    asynchronous: bool = Field(default=False, alias="async")
    region: str = "en"
    embedded: bool = False
    can_download: bool = Field(default=True, alias="canDownload")


TokenClaims = Union[ConfigClaims, ConversionPayload]
