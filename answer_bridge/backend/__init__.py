"""Client for the RACEN answer API."""

from answer_bridge.backend.client import AnswerAPIClient
from answer_bridge.backend.errors import (
    BackendError,
    BackendUnavailableError,
    InvalidResponseError,
    NotAuthorizedError,
)
from answer_bridge.backend.models import (
    AnswerRequest,
    AnswerResult,
    Citation,
    IngestJob,
    IngestStatus,
    SpecsSyncResult,
)

__all__ = [
    "AnswerAPIClient",
    "AnswerRequest",
    "AnswerResult",
    "BackendError",
    "BackendUnavailableError",
    "Citation",
    "IngestJob",
    "IngestStatus",
    "InvalidResponseError",
    "NotAuthorizedError",
    "SpecsSyncResult",
]
