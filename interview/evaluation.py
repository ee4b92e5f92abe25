from __future__ import annotations  # Evaluation report aggregation

import logging
from typing import Optional, Protocol, Sequence

from config.interview_policy import EVALUATION_REPORT, InterviewPolicy
from interview.coercion import coerce_evaluation_report
from interview.prompts import build_evaluation_prompt
from interview.types import PENDING_ANALYSIS, CandidateProfile, EvaluationReport, InterviewResponse
from observability import span


logger = logging.getLogger(__name__)


class CompletionGateway(Protocol):  # What the aggregator needs from the model gateway
    def complete(self, prompt: str, system_preamble: str, temperature: float, max_tokens: int) -> str: ...


def generate_report(
    gateway: CompletionGateway,
    policy: InterviewPolicy,
    job_description: str,
    responses: Sequence[InterviewResponse],
    profile: CandidateProfile,
    *,
    ref: str = "",
) -> EvaluationReport:
    """Ask the model for a holistic report over the transcript.

    Raises :class:`~interview.errors.UpstreamError` when the model cannot be
    reached and :class:`~interview.errors.CoercionError` when its output is
    not a usable report.
    """

    params = policy.params_for(EVALUATION_REPORT)
    prompt = build_evaluation_prompt(job_description, responses, profile)
    with span("report_generate", ref, count=len(responses)) as extra:
        raw = gateway.complete(prompt, params.system_preamble, params.temperature, params.max_tokens)
        report = coerce_evaluation_report(raw)
        extra["score"] = report.overall_score
    return report


def fallback_overall_score(responses: Sequence[InterviewResponse]) -> Optional[int]:
    """Mean per-answer score rescaled from 0-10 to 0-100, or None without scores."""

    scores = [response.score for response in responses]
    if not scores:
        return None
    mean = sum(scores) / len(scores)
    return max(0, min(100, int(round(mean * 10))))


def analysed_responses(responses: Sequence[InterviewResponse]) -> list[InterviewResponse]:  # Drop pending placeholders
    return [response for response in responses if response.analysis_text != PENDING_ANALYSIS]


def subscore_average(report: EvaluationReport) -> int:  # Mean of the three categorical sub-scores
    total = report.technical_skills_score + report.communication_score + report.cultural_fit_score
    return int(round(total / 3))


def passes(score: Optional[int], passing_score: int) -> bool:
    if score is None:
        return False
    return score >= passing_score


__all__ = [
    "CompletionGateway",
    "analysed_responses",
    "fallback_overall_score",
    "generate_report",
    "passes",
    "subscore_average",
]
