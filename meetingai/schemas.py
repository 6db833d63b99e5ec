"""Request bodies accepted by the JSON API.

Handlers call ``Model.model_validate(request.get_json(silent=True) or {})``
before touching the database; a ``ValidationError`` becomes a 400
``VALIDATION_ERROR`` response.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SUPPORTED_LANGUAGES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "pl": "Polish",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
}

MAX_NOTES_LENGTH = 50000
SHARE_TOKEN_PATTERN = r"^[0-9a-f]{8}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    email: str
    password: str


class ActionItem(BaseModel):
    id: Optional[str] = None
    task: str = Field(min_length=1, max_length=500)
    assignee: Optional[str] = None
    due_date: Optional[str] = None
    priority: Literal["high", "medium", "low"] = "medium"
    completed: bool = False


class MeetingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    audio_url: Optional[str] = None
    participants: List[str] = Field(default_factory=list)
    recorded_at: Optional[datetime] = None


class MeetingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    participants: Optional[List[str]] = None
    action_items: Optional[List[ActionItem]] = None


class TranslateRequest(_CamelModel):
    target_language: str = Field(alias="targetLanguage")
    force_retranslate: bool = Field(default=False, alias="forceRetranslate")

    @field_validator("target_language")
    @classmethod
    def _supported(cls, v):
        if v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language '{v}'")
        return v


class InsightsRequest(BaseModel):
    force: bool = False


class Selection(_CamelModel):
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    text: str
    context_before: Optional[str] = Field(default=None, alias="contextBefore")
    context_after: Optional[str] = Field(default=None, alias="contextAfter")
    paragraph_id: Optional[str] = Field(default=None, alias="paragraphId")
    speaker_name: Optional[str] = Field(default=None, alias="speakerName")

    @model_validator(mode="after")
    def _ordered(self):
        if self.end < self.start:
            raise ValueError("selection end must not precede start")
        return self


class CommentCreate(_CamelModel):
    text: str = Field(min_length=1, max_length=1000)
    selection: Selection
    parent_id: Optional[str] = Field(default=None, alias="parentId")


class CommentUpdate(BaseModel):
    text: str = Field(min_length=1, max_length=1000)


class ExportRequest(_CamelModel):
    format: Literal["txt", "docx", "pdf"] = "txt"
    include_transcript: bool = Field(default=True, alias="includeTranscript")
    include_summary: bool = Field(default=True, alias="includeSummary")
    include_action_items: bool = Field(default=True, alias="includeActionItems")
    include_comments: bool = Field(default=False, alias="includeComments")


class EmailExportRequest(ExportRequest):
    recipients: List[str] = Field(min_length=1, max_length=10)
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("recipients")
    @classmethod
    def _emails(cls, v):
        import re
        bad = [r for r in v if not re.match(EMAIL_PATTERN, r)]
        if bad:
            raise ValueError(f"invalid email address: {', '.join(bad)}")
        return v


class ShareCreate(_CamelModel):
    password: Optional[str] = Field(default=None, min_length=6)
    expires_in: Literal["1h", "24h", "7d", "30d", "never"] = Field(default="7d", alias="expiresIn")


class ShareAccess(BaseModel):
    password: Optional[str] = None


class EditorInfo(_CamelModel):
    name: str
    color: str
    session_id: str = Field(alias="sessionId")


class NotesWrite(BaseModel):
    meeting_id: str
    share_token: str = Field(pattern=SHARE_TOKEN_PATTERN)
    content: str = Field(max_length=MAX_NOTES_LENGTH)
    last_edited_by: EditorInfo


class AnnotationUser(EditorInfo):
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class AnnotationCreate(BaseModel):
    meeting_id: str
    share_token: str = Field(pattern=SHARE_TOKEN_PATTERN)
    user_info: AnnotationUser
    type: Literal["highlight", "comment", "note"]
    content: str = Field(max_length=5000)
    position: Optional[Any] = None
    parent_id: Optional[str] = None


class AnnotationUpdate(_CamelModel):
    id: str
    share_token: str = Field(pattern=SHARE_TOKEN_PATTERN)
    session_id: str = Field(alias="sessionId")
    content: str = Field(max_length=5000)


class AnnotationDelete(_CamelModel):
    id: str
    share_token: str = Field(pattern=SHARE_TOKEN_PATTERN)
    session_id: str = Field(alias="sessionId")


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    title_template: str = Field(min_length=1, max_length=255)
    description_template: Optional[str] = Field(default=None, max_length=500)
    participants: List[str] = Field(default_factory=list)
    is_default: bool = False


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    title_template: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description_template: Optional[str] = Field(default=None, max_length=500)
    participants: Optional[List[str]] = None
    is_default: Optional[bool] = None


class TemplateApply(BaseModel):
    date: Optional[datetime] = None
    participant: Optional[str] = None
    project: Optional[str] = None
    topic: Optional[str] = None
