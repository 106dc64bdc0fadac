"""
Payload models for the answer API.

Validation is lenient: missing or null fields fall back to empty values so
that a partially populated body still renders. A body that is not a JSON
object, or whose top-level fields carry the wrong types, is rejected by the
client. Citations are repaired item by item instead.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

TERMINAL_JOB_STATUSES = frozenset({"done", "error"})


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _line_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class Citation(BaseModel):
    """
    A source reference returned with an answer.

    Malformed line numbers become None (rendered as "?") so one bad citation
    never rejects the whole answer.
    """

    url: str = ""
    start_line: int | None = None
    end_line: int | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _url_as_text(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("start_line", "end_line", mode="before")
    @classmethod
    def _line_number(cls, value: Any) -> Any:
        return _line_or_none(value)


class AnswerRequest(BaseModel):
    """Body for POST /answer."""

    question: str
    allowlist: str = ""
    k: int = 18
    short: bool = True
    previous_answer: str = ""
    previous_user: str = ""


class AnswerResult(BaseModel):
    """Structured answer from POST /answer."""

    answer: str = ""
    citations: list[Citation] = Field(default_factory=list)
    settings_summary: str = ""

    @field_validator("answer", "settings_summary", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("citations", mode="before")
    @classmethod
    def _citation_items(cls, value: Any) -> Any:
        return [item for item in _as_list(value) if isinstance(item, (dict, Citation))]


class IngestJob(BaseModel):
    """Response of POST /ingest/url."""

    job_id: str = ""

    @field_validator("job_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return "" if value is None else str(value)


class IngestStatus(BaseModel):
    """Response of GET /ingest/status/{job_id}."""

    status: str = ""
    stage: str = ""
    detail: str = ""
    chunks_inserted: int | None = None
    embeddings_inserted: int | None = None

    @field_validator("status", "stage", "detail", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    @property
    def has_counts(self) -> bool:
        return bool(self.chunks_inserted or self.embeddings_inserted)


class SpecsSyncResult(BaseModel):
    """Response of POST /admin/sync/iphone-specs."""

    status: str = ""
    rows_written: int = 0
    duplicate_slugs: list[str] = Field(default_factory=list)
    slugs_all_missing: list[str] = Field(default_factory=list)
    slugs_some_missing: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _status_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("rows_written", mode="before")
    @classmethod
    def _rows_or_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("duplicate_slugs", "slugs_all_missing", "slugs_some_missing", mode="before")
    @classmethod
    def _slug_list(cls, value: Any) -> Any:
        return [str(item) for item in _as_list(value)]
