"""Interview state machine.

An application moves ``NoQuestions -> QuestionsReady -> Answering ->
Completed``. Questions live on the job and are generated on first access;
answers are recorded per application and scored one by one; once every
question on the job has an answer the evaluation report is generated.

Answers are durable: scoring failures degrade to a pending analysis and a
failed report leaves ``interview_completed`` false so that
:meth:`InterviewService.generate_or_regenerate_report` can retry later.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from config.interview_policy import ANSWER_ANALYSIS, QUESTION_GENERATION, InterviewPolicy, current_policy
from interview.coercion import coerce_answer_analysis, coerce_question_list, pending_analysis
from interview.errors import (
    AlreadyCompleted,
    CoercionError,
    DuplicateAnswer,
    InterviewDisabled,
    InvalidAnswer,
    NotFoundError,
    PreconditionFailed,
    UnknownQuestion,
    UpstreamError,
)
from interview.evaluation import (
    CompletionGateway,
    analysed_responses,
    fallback_overall_score,
    generate_report,
    passes,
)
from interview.prompts import build_answer_analysis_prompt, build_question_prompt
from interview.types import (
    AnswerAnalysis,
    Application,
    CandidateProfile,
    EvaluationReport,
    InterviewResponse,
    InterviewState,
    InterviewView,
    JobPosting,
    Question,
    ReportView,
    SubmitResult,
)
from observability import log_event, span
from storage.applications import ApplicationStore
from storage.candidates import CandidateStore
from storage.jobs import JobStore


logger = logging.getLogger(__name__)

COMPLETED_STATUS = "ai-interview-completed"
COMPLETED_REASON = "AI interview completed"


class InterviewService:  # Orchestrates question generation, answering and evaluation
    def __init__(
        self,
        jobs: JobStore,
        applications: ApplicationStore,
        candidates: CandidateStore,
        gateway: CompletionGateway,
        policy_provider: Callable[[], InterviewPolicy] = current_policy,
    ) -> None:
        self._jobs = jobs
        self._applications = applications
        self._candidates = candidates
        self._gateway = gateway
        self._policy_provider = policy_provider

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------
    def ensure_questions(self, job_id: str, question_count: Optional[int] = None) -> List[Question]:
        """Return the job's questions, generating and storing them on first use."""

        job = self._job(job_id)
        if job.interview_questions:
            return job.interview_questions
        count = self._policy().clamp_question_count(question_count)
        questions = self._generate_questions(job, count)
        if self._jobs.save_questions_if_empty(job_id, questions):
            log_event("questions_saved", job_id, count=len(questions))
            return questions

        # Another request stored a set first; its questions win.
        winner = self._job(job_id).interview_questions
        logger.warning("Duplicate question generation for job %s; keeping the stored set", job_id)
        log_event("questions_duplicate_generation", job_id, level=logging.WARNING, count=len(winner))
        return winner

    def regenerate_questions(self, job_id: str, question_count: Optional[int] = None) -> List[Question]:
        """Administrative replace of a job's question set.

        Refused once any application has answered: recorded answers would no
        longer match the job's question ids.
        """

        job = self._job(job_id)
        if self._jobs.has_answers(job_id):
            raise PreconditionFailed("Questions cannot be regenerated after candidates have answered")
        count = self._policy().clamp_question_count(question_count)
        questions = self._generate_questions(job, count)
        if not self._jobs.replace_questions(job_id, questions):
            raise PreconditionFailed("Questions cannot be regenerated after candidates have answered")
        log_event("questions_replaced", job_id, count=len(questions))
        return questions

    def _generate_questions(self, job: JobPosting, count: int) -> List[Question]:
        params = self._policy().params_for(QUESTION_GENERATION)
        prompt = build_question_prompt(job.description, count)
        with span("question_generate", job.job_id, count=count) as extra:
            raw = self._gateway.complete(prompt, params.system_preamble, params.temperature, params.max_tokens)
            generated = coerce_question_list(raw, count)
            extra["count"] = len(generated)
        return [
            Question(
                id=uuid4().hex,
                text=item.text,
                category=item.category,
                expected_answer_hint=item.expected_answer_hint,
            )
            for item in generated
        ]

    # ------------------------------------------------------------------
    # Interview flow
    # ------------------------------------------------------------------
    def open_interview(self, application_id: str) -> InterviewView:
        application = self._application(application_id)
        job = self._job(application.job_id)
        if not job.ai_interview_enabled:
            raise InterviewDisabled(f"AI interview disabled for job {job.job_id}")
        questions = self.ensure_questions(job.job_id)
        job = job.model_copy(update={"interview_questions": questions})
        return InterviewView(
            application=application,
            job=job,
            questions=questions,
            responses=application.interview_responses,
        )

    def submit_answer(self, application_id: str, question_id: str, answer_text: str) -> SubmitResult:
        """Record one answer and complete the interview when it was the last one.

        All caller errors are raised before the model is contacted.
        """

        application = self._application(application_id)
        answer = (answer_text or "").strip()
        if not answer:
            raise InvalidAnswer("Answer text is required")
        if application.interview_completed:
            raise AlreadyCompleted("AI interview has already been completed")
        job = self._job(application.job_id)
        question = next((item for item in job.interview_questions if item.id == question_id), None)
        if question is None:
            raise UnknownQuestion("Question not found")
        if question_id in application.answered_ids():
            raise DuplicateAnswer("This question has already been answered")

        analysis = self._analyse(application_id, job, question, answer)
        response = InterviewResponse(
            question_id=question.id,
            question_text=question.text,
            answer_text=answer,
            analysis_text=analysis.analysis,
            score=analysis.score,
            answered_at=datetime.utcnow(),
        )
        if not self._applications.append_response(application_id, response):
            raise DuplicateAnswer("This question has already been answered")
        log_event("answer_recorded", application_id, question_id=question.id, score=response.score)

        application = self._application(application_id)
        remaining = _remaining(job, application)
        completed = False
        if remaining == 0:
            completed = self._complete(application, job)
        return SubmitResult(
            response=response,
            interview_completed=completed,
            questions_remaining=remaining,
            score=response.score,
        )

    def _analyse(self, application_id: str, job: JobPosting, question: Question, answer: str) -> AnswerAnalysis:
        params = self._policy().params_for(ANSWER_ANALYSIS)
        prompt = build_answer_analysis_prompt(question.text, answer, job.description)
        try:
            with span("answer_analysis", application_id, question_id=question.id) as extra:
                raw = self._gateway.complete(prompt, params.system_preamble, params.temperature, params.max_tokens)
                analysis = coerce_answer_analysis(raw)
                extra["score"] = analysis.score
        except UpstreamError as exc:
            logger.warning("Answer scoring unavailable for %s (%s); recording pending analysis", application_id, exc.code)
            log_event(
                "answer_analysis_pending",
                application_id,
                level=logging.WARNING,
                question_id=question.id,
                error=exc.code,
            )
            return pending_analysis()
        return analysis

    def _complete(self, application: Application, job: JobPosting) -> bool:  # Last answer in; try the report
        profile = self._profile(application.candidate_id)
        try:
            report = generate_report(
                self._gateway,
                self._policy(),
                job.description,
                application.interview_responses,
                profile,
                ref=application.application_id,
            )
        except (UpstreamError, CoercionError) as exc:
            logger.error(
                "Report generation failed for %s (%s); interview left open for regeneration",
                application.application_id,
                exc.code,
            )
            log_event("report_deferred", application.application_id, level=logging.WARNING, error=exc.code)
            return False
        if not self._save_report(application, report, completed=True, first_completion_only=True):
            # A concurrent final answer completed the interview first; its report stands.
            log_event("report_duplicate_completion", application.application_id, level=logging.WARNING)
        return True

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def generate_or_regenerate_report(self, application_id: str) -> EvaluationReport:
        """Administrative (re)generation; replaces any existing report in full."""

        application = self._application(application_id)
        if not application.interview_responses:
            raise PreconditionFailed("No interview responses found for this application")
        job = self._job(application.job_id)
        report = generate_report(
            self._gateway,
            self._policy(),
            job.description,
            application.interview_responses,
            self._profile(application.candidate_id),
            ref=application_id,
        )
        self._save_report(application, report, completed=_all_answered(job, application))
        return report

    def get_report(self, application_id: str) -> ReportView:
        application = self._application(application_id)
        if application.evaluation_report is None:
            raise NotFoundError("Evaluation report not found")
        job = self._job(application.job_id)
        return ReportView(
            application_id=application.application_id,
            interview_completed=application.interview_completed,
            interview_score=application.interview_score,
            evaluation_report=application.evaluation_report,
            interview_responses=application.interview_responses,
            candidate=self._candidates.get_candidate(application.candidate_id),
            job_title=job.title,
            meets_passing_score=passes(application.interview_score, self._policy().passing_score),
        )

    def apply_fallback_score(self, application_id: str) -> Optional[int]:
        """Store the mean answer score as ``interview_score`` when no report exists."""

        application = self._application(application_id)
        if application.evaluation_report is not None:
            logger.info("Application %s already has a report; fallback score skipped", application_id)
            return application.interview_score
        score = fallback_overall_score(analysed_responses(application.interview_responses))
        if score is None:
            logger.info("Application %s has no analysed answers; no fallback score", application_id)
            return None
        self._applications.set_interview_score(application_id, score)
        log_event("fallback_score", application_id, score=score, source="answers")
        return score

    def _save_report(
        self,
        application: Application,
        report: EvaluationReport,
        *,
        completed: bool,
        first_completion_only: bool = False,
    ) -> bool:
        saved = self._applications.save_report(
            application.application_id,
            report,
            completed=completed,
            status_change=(COMPLETED_STATUS, COMPLETED_REASON),
            first_completion_only=first_completion_only,
        )
        if saved or not first_completion_only:
            log_event("report_saved", application.application_id, score=report.overall_score, outcome=str(completed))
        return saved

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    def interview_state(self, application_id: str) -> InterviewState:
        application = self._application(application_id)
        if application.interview_completed:
            return "Completed"
        job = self._job(application.job_id)
        if not job.interview_questions:
            return "NoQuestions"
        if application.interview_responses:
            return "Answering"
        return "QuestionsReady"

    def _policy(self) -> InterviewPolicy:
        return self._policy_provider()

    def _application(self, application_id: str) -> Application:
        application = self._applications.get_application(application_id)
        if application is None:
            raise NotFoundError("Application not found")
        return application

    def _job(self, job_id: str) -> JobPosting:
        job = self._jobs.get_job(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    def _profile(self, candidate_id: str) -> CandidateProfile:
        profile = self._candidates.get_candidate(candidate_id)
        if profile is None:
            raise NotFoundError("Candidate not found")
        return profile


def _remaining(job: JobPosting, application: Application) -> int:  # Unanswered question count
    return len({question.id for question in job.interview_questions} - application.answered_ids())


def _all_answered(job: JobPosting, application: Application) -> bool:
    return bool(job.interview_questions) and _remaining(job, application) == 0


__all__ = ["InterviewService"]
