"""Error taxonomy for the interview pipeline.

Every error carries a stable ``code``, an HTTP-ish ``status_code`` and a
``public_message`` that is safe to show to a non-administrative caller. The
``message`` passed to the constructor is for logs only and may contain
diagnostic detail; it is never returned by the API layer.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class InterviewError(Exception):
    code = "INTERVIEW_ERROR"
    status_code = 500
    public_message = "Unexpected interview error."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.public_message
        self.details = details or {}
        super().__init__(f"[{self.code}] {self.message}")


class UpstreamError(InterviewError):  # Base for model gateway failures
    code = "UPSTREAM_ERROR"
    status_code = 503
    public_message = "The AI service is temporarily unavailable. Please try again later."


class UpstreamConfigError(UpstreamError):
    code = "UPSTREAM_CONFIG"
    status_code = 500
    public_message = "AI service is not configured. Please contact administrator."


class UpstreamAuthError(UpstreamError):
    code = "UPSTREAM_AUTH"
    status_code = 502


class UpstreamRequestError(UpstreamError):
    code = "UPSTREAM_REQUEST"


class CoercionError(InterviewError):
    code = "COERCION_FAILED"
    status_code = 503
    public_message = "The AI service returned an unusable response. Please try again later."

    def __init__(self, message: Optional[str] = None, raw_text: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.raw_text = raw_text


class NotFoundError(InterviewError):
    code = "NOT_FOUND"
    status_code = 404
    public_message = "Requested resource was not found."


class InterviewDisabled(InterviewError):
    code = "INTERVIEW_DISABLED"
    status_code = 400
    public_message = "AI interview is not enabled for this job."


class InvalidAnswer(InterviewError):
    code = "INVALID_ANSWER"
    status_code = 400
    public_message = "Answer text is required."


class AlreadyCompleted(InterviewError):
    code = "ALREADY_COMPLETED"
    status_code = 400
    public_message = "AI interview has already been completed."


class UnknownQuestion(InterviewError):
    code = "UNKNOWN_QUESTION"
    status_code = 404
    public_message = "Question not found."


class DuplicateAnswer(InterviewError):
    code = "DUPLICATE_ANSWER"
    status_code = 409
    public_message = "This question has already been answered."


class PreconditionFailed(InterviewError):
    code = "PRECONDITION_FAILED"
    status_code = 400
    public_message = "No interview responses found for this application."


__all__ = [
    "AlreadyCompleted",
    "CoercionError",
    "DuplicateAnswer",
    "InterviewDisabled",
    "InterviewError",
    "InvalidAnswer",
    "NotFoundError",
    "PreconditionFailed",
    "UnknownQuestion",
    "UpstreamAuthError",
    "UpstreamConfigError",
    "UpstreamError",
    "UpstreamRequestError",
]
