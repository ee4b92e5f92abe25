"""FastAPI routes for the AI interview flow."""
from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from api.schemas import (
    AnswerReq,
    AnswerResp,
    ConnectionResp,
    GenerateQuestionsReq,
    InterviewResp,
    QuestionsResp,
    ReportResp,
)
from config.settings import settings
from interview.errors import InterviewError
from interview.evaluation import CompletionGateway
from interview.orchestrator import InterviewService
from interview.types import ReportView
from llm_gateway import ModelGateway
from reports.pdf import generate_report_pdf
from storage.ai_settings import AiSettingsStore
from storage.applications import ApplicationStore
from storage.candidates import CandidateStore
from storage.jobs import JobStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interviews")


def get_gateway() -> ModelGateway:  # Gateway reading credentials from the settings record
    return ModelGateway(AiSettingsStore(settings.DB_PATH))


def get_service(gateway: CompletionGateway = Depends(get_gateway)) -> InterviewService:
    db_path = settings.DB_PATH
    return InterviewService(JobStore(db_path), ApplicationStore(db_path), CandidateStore(db_path), gateway)


def install_error_handler(app: FastAPI) -> None:
    """Map :class:`InterviewError` onto JSON error responses.

    Client errors carry their own message; server-side failures only ever
    expose the error's public message.
    """

    @app.exception_handler(InterviewError)
    async def _handle_interview_error(request: Request, exc: InterviewError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed code=%s: %s", request.method, request.url.path, exc.code, exc.message)
            detail = exc.public_message
        else:
            detail = exc.message
        return JSONResponse(status_code=exc.status_code, content={"detail": detail, "code": exc.code})


@router.get("/application/{application_id}", response_model=InterviewResp)
def open_interview(application_id: str, service: InterviewService = Depends(get_service)) -> InterviewResp:
    view = service.open_interview(application_id)
    answered = view.application.answered_ids()
    return InterviewResp(
        application_id=view.application.application_id,
        job_id=view.job.job_id,
        job_title=view.job.title,
        job_description=view.job.description,
        state=service.interview_state(application_id),
        questions=view.questions,
        responses=view.responses,
        interview_completed=view.application.interview_completed,
        questions_remaining=len([question for question in view.questions if question.id not in answered]),
    )


@router.post("/application/{application_id}/answer", response_model=AnswerResp)
def submit_answer(
    application_id: str,
    req: AnswerReq,
    service: InterviewService = Depends(get_service),
) -> AnswerResp:
    result = service.submit_answer(application_id, req.question_id, req.answer)
    message = "Interview completed" if result.interview_completed else "Answer submitted successfully"
    return AnswerResp(message=message, **result.model_dump())


@router.post("/application/{application_id}/generate-report", response_model=ReportResp)
def generate_report(application_id: str, service: InterviewService = Depends(get_service)) -> ReportResp:
    report = service.generate_or_regenerate_report(application_id)
    return ReportResp(
        message="Evaluation report generated successfully",
        evaluation_report=report,
        interview_score=report.overall_score,
    )


@router.get("/application/{application_id}/report", response_model=ReportView)
def fetch_report(application_id: str, service: InterviewService = Depends(get_service)) -> ReportView:
    return service.get_report(application_id)


@router.get("/application/{application_id}/report.pdf")
def fetch_report_pdf(application_id: str, service: InterviewService = Depends(get_service)) -> Response:
    view = service.get_report(application_id)
    payload = generate_report_pdf(view)
    candidate = _safe_slug(view.candidate.full_name) if view.candidate else ""
    filename = f"{application_id}-{candidate or 'candidate'}-{_safe_slug(view.job_title) or 'report'}.pdf"
    headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}
    return Response(content=payload, media_type="application/pdf", headers=headers)


@router.post("/job/{job_id}/generate-questions", response_model=QuestionsResp)
def regenerate_questions(
    job_id: str,
    req: GenerateQuestionsReq,
    service: InterviewService = Depends(get_service),
) -> QuestionsResp:
    questions = service.regenerate_questions(job_id, req.question_count)
    return QuestionsResp(job_id=job_id, questions=questions, count=len(questions))


@router.get("/ai/test-connection", response_model=ConnectionResp)
def test_connection(gateway: ModelGateway = Depends(get_gateway)) -> ConnectionResp:
    return ConnectionResp(**gateway.test_connection())


def _safe_slug(value: str) -> str:  # Sanitize value for filenames
    slug = re.sub(r"[^A-Za-z0-9]+", "-", value or "").strip("-").lower()
    return slug[:40]
