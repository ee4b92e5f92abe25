"""Coerce free-text model output into validated interview records.

Each response shape has a ``parse_*`` function returning a tagged result,
either :class:`Ok` with a validated pydantic record or :class:`ParseFailure`
carrying the raw text, and a ``coerce_*`` function applying the shape's
failure policy:

* question lists fall back to a line-oriented extractor,
* answer analyses fall back to a neutral default that keeps the raw text,
* evaluation reports raise :class:`CoercionError`.

Nothing unvalidated leaves this module.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import ValidationError

from interview.errors import CoercionError
from interview.types import (
    EXPECTED_ANSWER_LIMIT,
    PENDING_ANALYSIS,
    QUESTION_CATEGORIES,
    QUESTION_TEXT_LIMIT,
    SUITABILITY_RATINGS,
    AnswerAnalysis,
    EvaluationReport,
    GeneratedQuestion,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_QUESTION_CAP = 5
FALLBACK_EXPECTED_ANSWER = "Detailed response expected"
DEFAULT_ANSWER_SCORE = 5
DEFAULT_REPORT_SCORE = 50
DEFAULT_RATING = "average"
_MISSING_SCORE = -1  # Below every clamp range

_REPORT_FIELDS = (
    ("overallAssessment", "overall_assessment"),
    ("technicalSkillsScore", "technical_skills_score"),
    ("communicationScore", "communication_score"),
    ("culturalFitScore", "cultural_fit_score"),
    ("strengths",),
    ("weaknesses",),
    ("suitabilityRating", "suitability_rating"),
    ("recommendations",),
    ("overallScore", "overall_score"),
)

_NUMBERED_LINE = re.compile(r"^\d+\.")
_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")
_FIRST_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_JSON_KEY = re.compile(r'^"(\w+)"\s*:\s*')
_QUOTED_VALUE = re.compile(r'^"((?:[^"\\]|\\.)*)"')

_RATING_ALIASES = {
    "outstanding": "excellent",
    "exceptional": "excellent",
    "very-good": "good",
    "above-average": "good",
    "strong": "good",
    "fair": "average",
    "satisfactory": "average",
    "below": "below-average",
    "weak": "below-average",
    "very-poor": "poor",
    "bad": "poor",
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseFailure:
    raw_text: str
    reason: str


ParseResult = Union[Ok[T], ParseFailure]


def _strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text


def _load_json(raw: str, opener: str, closer: str) -> Any:
    """Parse ``raw`` as JSON, retrying on the outermost ``opener``..``closer`` slice."""

    cleaned = _strip_code_fences(raw or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start == -1 or end <= start:
            raise
        return json.loads(cleaned[start : end + 1])


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or default


def _str_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [_text(item) for item in value if _text(item)]


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = _FIRST_NUMBER.search(value)
        if not match:
            return default
        value = match.group(0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    if math.isinf(number):
        return high if number > 0 else low
    return int(max(low, min(high, round(number))))


def _category(value: Any) -> str:
    candidate = _text(value).lower()
    return candidate if candidate in QUESTION_CATEGORIES else "general"


def normalize_rating(value: Any) -> str:
    """Map free-text suitability labels onto the closed rating set."""

    candidate = re.sub(r"[\s_]+", "-", _text(value).lower())
    if candidate in SUITABILITY_RATINGS:
        return candidate
    return _RATING_ALIASES.get(candidate, DEFAULT_RATING)


# ----------------------------------------------------------------------
# Question lists
# ----------------------------------------------------------------------
def parse_question_list(raw: str, requested: int) -> ParseResult[List[GeneratedQuestion]]:
    try:
        data = _load_json(raw, "[", "]")
    except json.JSONDecodeError as exc:
        return ParseFailure(raw_text=raw, reason=f"invalid JSON: {exc.msg}")
    if isinstance(data, dict):
        nested = _pick(data, "questions", "interviewQuestions")
        if isinstance(nested, list):
            data = nested
    if not isinstance(data, list):
        return ParseFailure(raw_text=raw, reason="expected a JSON array")

    questions: List[GeneratedQuestion] = []
    for item in data:
        if isinstance(item, str):
            item = {"question": item}
        if not isinstance(item, dict):
            continue
        text = _text(_pick(item, "question", "text"))
        if not text:
            continue
        questions.append(
            GeneratedQuestion(
                text=text[:QUESTION_TEXT_LIMIT],
                category=_category(_pick(item, "type", "category")),
                expected_answer_hint=_text(
                    _pick(item, "expectedAnswer", "expected_answer", "expectedAnswerHint"),
                    FALLBACK_EXPECTED_ANSWER,
                )[:EXPECTED_ANSWER_LIMIT],
            )
        )
    if not questions:
        return ParseFailure(raw_text=raw, reason="array held no usable questions")
    return Ok(questions[: max(1, requested)])


def extract_questions_from_text(raw: str, cap: int = FALLBACK_QUESTION_CAP) -> List[GeneratedQuestion]:
    """Salvage questions from numbered or question-mark lines of free text.

    Lines of a truncated JSON reply are accepted too: a ``"question":`` key
    and the surrounding quotes and commas are dropped, and lines keyed by any
    other field are skipped.
    """

    questions: List[GeneratedQuestion] = []
    for line in (raw or "").splitlines():
        stripped = line.strip()
        if not (_NUMBERED_LINE.match(stripped) or "?" in stripped):
            continue
        text = _NUMBER_PREFIX.sub("", stripped).strip().lstrip("{[").strip()
        key = _JSON_KEY.match(text)
        if key:
            if key.group(1) not in ("question", "text"):
                continue
            text = text[key.end() :]
        quoted = _QUOTED_VALUE.match(text)
        if quoted:
            text = quoted.group(1).replace('\\"', '"')
        text = text.strip().strip('",').strip()
        if not text:
            continue
        questions.append(
            GeneratedQuestion(
                text=text[:QUESTION_TEXT_LIMIT],
                category="general",
                expected_answer_hint=FALLBACK_EXPECTED_ANSWER,
            )
        )
    return questions[: max(1, cap)]


def coerce_question_list(raw: str, requested: int) -> List[GeneratedQuestion]:
    """Return a non-empty question list or raise :class:`CoercionError`."""

    result = parse_question_list(raw, requested)
    if isinstance(result, Ok):
        return result.value
    logger.warning("Question list parse failed (%s); using text extractor", result.reason)
    extracted = extract_questions_from_text(raw, cap=requested or FALLBACK_QUESTION_CAP)
    if not extracted:
        raise CoercionError("No questions could be extracted from model output", raw_text=raw)
    return extracted


# ----------------------------------------------------------------------
# Answer analyses
# ----------------------------------------------------------------------
def parse_answer_analysis(raw: str) -> ParseResult[AnswerAnalysis]:
    try:
        data = _load_json(raw, "{", "}")
    except json.JSONDecodeError as exc:
        return ParseFailure(raw_text=raw, reason=f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return ParseFailure(raw_text=raw, reason="expected a JSON object")
    try:
        analysis = AnswerAnalysis(
            score=_clamp_int(data.get("score"), 0, 10, DEFAULT_ANSWER_SCORE),
            strengths=_str_list(data.get("strengths")) or [],
            concerns=_str_list(_pick(data, "concerns", "weaknesses")) or [],
            analysis=_text(data.get("analysis"), "Analysis completed"),
            relevance_to_role=_text(_pick(data, "relevanceToRole", "relevance_to_role")),
        )
    except ValidationError as exc:  # pragma: no cover - fields are pre-coerced
        return ParseFailure(raw_text=raw, reason=str(exc))
    return Ok(analysis)


def default_analysis(raw: str) -> AnswerAnalysis:
    """Neutral record kept when the model's analysis cannot be parsed."""

    return AnswerAnalysis(
        score=DEFAULT_ANSWER_SCORE,
        strengths=["Response provided"],
        concerns=["Unable to analyze response properly"],
        analysis=raw or "Analysis unavailable",
        relevance_to_role="Analysis unavailable",
    )


def pending_analysis() -> AnswerAnalysis:
    """Placeholder recorded when the model could not be reached at all."""

    return AnswerAnalysis(
        score=DEFAULT_ANSWER_SCORE,
        strengths=[],
        concerns=[],
        analysis=PENDING_ANALYSIS,
        relevance_to_role="",
    )


def coerce_answer_analysis(raw: str) -> AnswerAnalysis:
    result = parse_answer_analysis(raw)
    if isinstance(result, Ok):
        return result.value
    logger.warning("Answer analysis parse failed (%s); keeping raw text", result.reason)
    return default_analysis(raw)


# ----------------------------------------------------------------------
# Evaluation reports
# ----------------------------------------------------------------------
def parse_evaluation_report(raw: str) -> ParseResult[EvaluationReport]:
    try:
        data = _load_json(raw, "{", "}")
    except json.JSONDecodeError as exc:
        return ParseFailure(raw_text=raw, reason=f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return ParseFailure(raw_text=raw, reason="expected a JSON object")
    if not any(_pick(data, *keys) is not None for keys in _REPORT_FIELDS):
        return ParseFailure(raw_text=raw, reason="object holds no report fields")
    overall = _clamp_int(_pick(data, "overallScore", "overall_score"), 0, 100, _MISSING_SCORE)
    if overall == _MISSING_SCORE:
        return ParseFailure(raw_text=raw, reason="overallScore missing or not numeric")

    def score(*keys: str) -> int:
        return _clamp_int(_pick(data, *keys), 0, 100, DEFAULT_REPORT_SCORE)

    strengths = _str_list(data.get("strengths"))
    weaknesses = _str_list(data.get("weaknesses"))
    try:
        report = EvaluationReport(
            overall_assessment=_text(
                _pick(data, "overallAssessment", "overall_assessment"), "Evaluation completed"
            ),
            strengths=strengths if strengths is not None else ["Completed interview"],
            weaknesses=weaknesses if weaknesses is not None else ["Areas for improvement identified"],
            recommendations=_text(data.get("recommendations"), "Further review recommended"),
            technical_skills_score=score("technicalSkillsScore", "technical_skills_score"),
            communication_score=score("communicationScore", "communication_score"),
            cultural_fit_score=score("culturalFitScore", "cultural_fit_score"),
            suitability_rating=normalize_rating(_pick(data, "suitabilityRating", "suitability_rating")),
            overall_score=overall,
        )
    except ValidationError as exc:  # pragma: no cover - fields are pre-coerced
        return ParseFailure(raw_text=raw, reason=str(exc))
    return Ok(report)


def coerce_evaluation_report(raw: str) -> EvaluationReport:
    """Return a clamped report or raise; placeholder reports are never produced."""

    result = parse_evaluation_report(raw)
    if isinstance(result, Ok):
        return result.value
    logger.error("Evaluation report parse failed: %s", result.reason)
    raise CoercionError(f"Evaluation report could not be parsed: {result.reason}", raw_text=raw)


__all__ = [
    "FALLBACK_QUESTION_CAP",
    "Ok",
    "ParseFailure",
    "ParseResult",
    "coerce_answer_analysis",
    "coerce_evaluation_report",
    "coerce_question_list",
    "default_analysis",
    "extract_questions_from_text",
    "normalize_rating",
    "parse_answer_analysis",
    "parse_evaluation_report",
    "parse_question_list",
    "pending_analysis",
]
