import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import observability.logger as event_logger
from config.interview_policy import InterviewPolicy
from config.settings import settings
from interview.orchestrator import InterviewService
from storage.ai_settings import AiSettingsStore
from storage.applications import ApplicationStore
from storage.candidates import CandidateStore
from storage.jobs import JobStore


QUESTIONS_REPLY = json.dumps(
    [
        {
            "question": "Describe a service you scaled under load.",
            "type": "technical",
            "expectedAnswer": "Concrete metrics and trade-offs",
        },
        {
            "question": "Tell me about a disagreement with a teammate.",
            "type": "behavioral",
            "expectedAnswer": "Ownership and resolution",
        },
    ]
)

ANALYSIS_REPLY = json.dumps(
    {
        "score": 8,
        "strengths": ["Clear structure"],
        "concerns": ["Light on metrics"],
        "analysis": "Solid answer with a relevant example.",
        "relevanceToRole": "Directly relevant",
    }
)

REPORT_REPLY = json.dumps(
    {
        "overallAssessment": "Strong backend candidate.",
        "technicalSkillsScore": 85,
        "communicationScore": 80,
        "culturalFitScore": 75,
        "strengths": ["Systems thinking"],
        "weaknesses": ["Limited frontend exposure"],
        "suitabilityRating": "good",
        "recommendations": "Proceed to onsite.",
        "overallScore": 82,
    }
)


class FakeGateway:
    """Canned completions keyed by which prompt builder produced the prompt."""

    def __init__(self) -> None:
        self.replies = {"questions": QUESTIONS_REPLY, "analysis": ANALYSIS_REPLY, "report": REPORT_REPLY}
        self.calls = []

    def complete(self, prompt, system_preamble, temperature, max_tokens):
        kind = _prompt_kind(prompt)
        self.calls.append(SimpleNamespace(kind=kind, prompt=prompt, temperature=temperature, max_tokens=max_tokens))
        reply = self.replies[kind]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def kinds(self):
        return [call.kind for call in self.calls]


def _prompt_kind(prompt: str) -> str:
    if "comprehensive evaluation report" in prompt:
        return "report"
    if "analyzing a candidate's response" in prompt:
        return "analysis"
    return "questions"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttpClient:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(payload={"choices": [{"message": {"content": "hello"}}]})
        self.error = error
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append(SimpleNamespace(url=url, json=json, headers=headers, timeout=timeout))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def tmp_db(tmp_path, monkeypatch):
    db_path = str(tmp_path / "hiring.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "", raising=False)
    monkeypatch.setattr(event_logger, "ENABLE_FILE_LOGS", False)
    monkeypatch.setattr(event_logger._logger, "handlers", [])
    return db_path


@pytest.fixture
def stores(tmp_db):
    return SimpleNamespace(
        jobs=JobStore(tmp_db),
        applications=ApplicationStore(tmp_db),
        candidates=CandidateStore(tmp_db),
        ai_settings=AiSettingsStore(tmp_db),
    )


@pytest.fixture
def policy():
    return InterviewPolicy()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def service(stores, fake_gateway, policy):
    return InterviewService(
        stores.jobs,
        stores.applications,
        stores.candidates,
        fake_gateway,
        policy_provider=lambda: policy,
    )


@pytest.fixture
def seeded(stores):
    job = stores.jobs.create_job(
        title="Backend Engineer",
        description="Build and operate Python services handling hiring workflows.",
    )
    candidate = stores.candidates.create_candidate(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        experience_years=6,
        skills=["Python", "SQL"],
        location="London",
    )
    application = stores.applications.create_application(job_id=job.job_id, candidate_id=candidate.candidate_id)
    return SimpleNamespace(job=job, candidate=candidate, application=application)


@pytest.fixture
def fake_http():
    return FakeHttpClient


@pytest.fixture
def fake_response():
    return FakeResponse
