"""Shared type definitions for the interview pipeline."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

QuestionCategory = Literal["technical", "behavioral", "situational", "general"]
SuitabilityRating = Literal["excellent", "good", "average", "below-average", "poor"]
ApplicationStatus = Literal[
    "pending",
    "under-review",
    "interview-scheduled",
    "ai-interview-completed",
    "rejected",
    "accepted",
    "withdrawn",
]
InterviewState = Literal["NoQuestions", "QuestionsReady", "Answering", "Completed"]

QUESTION_CATEGORIES = ("technical", "behavioral", "situational", "general")
SUITABILITY_RATINGS = ("excellent", "good", "average", "below-average", "poor")

QUESTION_TEXT_LIMIT = 500
EXPECTED_ANSWER_LIMIT = 1000

PENDING_ANALYSIS = "Analysis pending"


class Question(BaseModel):
    id: str
    text: str = Field(min_length=1, max_length=QUESTION_TEXT_LIMIT)
    category: QuestionCategory = "general"
    expected_answer_hint: str = Field(default="", max_length=EXPECTED_ANSWER_LIMIT)


class GeneratedQuestion(BaseModel):  # Question before an id is assigned
    text: str
    category: QuestionCategory = "general"
    expected_answer_hint: str = ""


class JobPosting(BaseModel):
    job_id: str
    title: str
    description: str = Field(min_length=1)
    ai_interview_enabled: bool = True
    interview_questions: List[Question] = Field(default_factory=list)
    created_at: str


class CandidateProfile(BaseModel):
    candidate_id: str
    first_name: str
    last_name: str
    email: str = ""
    experience_years: Optional[float] = None
    skills: List[str] = Field(default_factory=list)
    location: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class InterviewResponse(BaseModel):
    question_id: str
    question_text: str
    answer_text: str
    analysis_text: str
    score: int = Field(ge=0, le=10)
    answered_at: datetime


class AnswerAnalysis(BaseModel):
    score: int = Field(ge=0, le=10)
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    analysis: str
    relevance_to_role: str = ""


class EvaluationReport(BaseModel):
    overall_assessment: str
    strengths: List[str]
    weaknesses: List[str]
    recommendations: str
    technical_skills_score: int = Field(ge=0, le=100)
    communication_score: int = Field(ge=0, le=100)
    cultural_fit_score: int = Field(ge=0, le=100)
    suitability_rating: SuitabilityRating
    overall_score: int = Field(ge=0, le=100)


class StatusChange(BaseModel):
    status: str
    changed_at: str
    reason: Optional[str] = None


class Application(BaseModel):
    application_id: str
    job_id: str
    candidate_id: str
    status: ApplicationStatus = "pending"
    interview_responses: List[InterviewResponse] = Field(default_factory=list)
    interview_completed: bool = False
    interview_score: Optional[int] = Field(default=None, ge=0, le=100)
    evaluation_report: Optional[EvaluationReport] = None
    status_history: List[StatusChange] = Field(default_factory=list)
    created_at: str

    def answered_ids(self) -> set[str]:
        return {response.question_id for response in self.interview_responses}


class SubmitResult(BaseModel):
    response: InterviewResponse
    interview_completed: bool
    questions_remaining: int
    score: Optional[int] = None


class InterviewView(BaseModel):
    application: Application
    job: JobPosting
    questions: List[Question]
    responses: List[InterviewResponse]


class ReportView(BaseModel):
    application_id: str
    interview_completed: bool
    interview_score: Optional[int]
    evaluation_report: EvaluationReport
    interview_responses: List[InterviewResponse]
    candidate: Optional[CandidateProfile] = None
    job_title: str
    meets_passing_score: bool
