"""Pydantic schemas for the AI interview API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from interview.types import EvaluationReport, InterviewResponse, InterviewState, Question


class AnswerReq(BaseModel):
    question_id: str = Field(min_length=1)
    answer: str = ""


class GenerateQuestionsReq(BaseModel):
    question_count: Optional[int] = None


class InterviewResp(BaseModel):
    application_id: str
    job_id: str
    job_title: str
    job_description: str
    state: InterviewState
    questions: List[Question] = Field(default_factory=list)
    responses: List[InterviewResponse] = Field(default_factory=list)
    interview_completed: bool = False
    questions_remaining: int


class AnswerResp(BaseModel):
    message: str
    response: InterviewResponse
    interview_completed: bool
    questions_remaining: int
    score: Optional[int] = None


class ReportResp(BaseModel):
    message: str
    evaluation_report: EvaluationReport
    interview_score: int


class QuestionsResp(BaseModel):
    job_id: str
    questions: List[Question]
    count: int


class ConnectionResp(BaseModel):
    success: bool
    model: str
    response: Optional[str] = None
    error: Optional[str] = None


class ErrorResp(BaseModel):
    detail: str
    code: str
