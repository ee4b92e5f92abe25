"""Administrative commands for the AI interview pipeline.

Recovery actions (report regeneration, fallback scoring, question
regeneration) and AI settings maintenance, run against ``settings.DB_PATH``.
"""
from __future__ import annotations

import argparse
import json
from typing import List, Optional

from config.settings import settings
from interview.errors import InterviewError
from interview.orchestrator import InterviewService
from llm_gateway import ModelGateway, looks_like_credential
from storage.ai_settings import AiSettingsStore
from storage.applications import ApplicationStore
from storage.candidates import CandidateStore
from storage.jobs import JobStore


def _service(db_path: str) -> InterviewService:
    gateway = ModelGateway(AiSettingsStore(db_path))
    return InterviewService(JobStore(db_path), ApplicationStore(db_path), CandidateStore(db_path), gateway)


def regenerate_report(db_path: str, application_id: str) -> None:
    report = _service(db_path).generate_or_regenerate_report(application_id)
    print(f"{application_id}: report regenerated score={report.overall_score} rating={report.suitability_rating}")


def fallback_score(db_path: str, application_id: str) -> None:
    score = _service(db_path).apply_fallback_score(application_id)
    if score is None:
        print(f"{application_id}: no analysed answers; score unchanged")
    else:
        print(f"{application_id}: interview score={score}")


def regenerate_questions(db_path: str, job_id: str, count: Optional[int]) -> None:
    questions = _service(db_path).regenerate_questions(job_id, count)
    print(f"{job_id}: {len(questions)} questions")
    for index, question in enumerate(questions, start=1):
        print(f"  {index}. [{question.category}] {question.text}")


def test_connection(db_path: str) -> bool:
    result = ModelGateway(AiSettingsStore(db_path)).test_connection()
    if result["success"]:
        print(f"ok model={result['model']} reply={result['response']!r}")
    else:
        print(f"failed model={result['model']} error={result['error']}")
    return bool(result["success"])


def set_model(db_path: str, name: str) -> bool:
    store = AiSettingsStore(db_path)
    if looks_like_credential(name, store.get_credential_and_model().api_key):
        print("refusing to store a credential as the model name")
        return False
    store.set_model_name(name.strip())
    print(f"model set to {name.strip()}")
    return True


def show_report(db_path: str, application_id: str) -> None:
    view = _service(db_path).get_report(application_id)
    print(json.dumps(view.model_dump(mode="json"), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI interview administration")
    parser.add_argument("--db", default=None, help="SQLite database path (defaults to DB_PATH)")
    commands = parser.add_subparsers(dest="command", required=True)

    cmd = commands.add_parser("regenerate-report", help="Generate or replace an application's evaluation report")
    cmd.add_argument("application_id")
    cmd = commands.add_parser("fallback-score", help="Score an application from its answer scores")
    cmd.add_argument("application_id")
    cmd = commands.add_parser("regenerate-questions", help="Replace a job's interview questions")
    cmd.add_argument("job_id")
    cmd.add_argument("--count", type=int, default=None, help="Number of questions (clamped to policy maximum)")
    commands.add_parser("test-connection", help="Probe the configured AI service")
    cmd = commands.add_parser("set-model", help="Update the configured model name")
    cmd.add_argument("name")
    cmd = commands.add_parser("show-report", help="Print an application's evaluation report as JSON")
    cmd.add_argument("application_id")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    db_path = args.db or settings.DB_PATH
    try:
        if args.command == "regenerate-report":
            regenerate_report(db_path, args.application_id)
        elif args.command == "fallback-score":
            fallback_score(db_path, args.application_id)
        elif args.command == "regenerate-questions":
            regenerate_questions(db_path, args.job_id, args.count)
        elif args.command == "test-connection":
            return 0 if test_connection(db_path) else 1
        elif args.command == "set-model":
            return 0 if set_model(db_path, args.name) else 1
        elif args.command == "show-report":
            show_report(db_path, args.application_id)
    except InterviewError as exc:
        print(f"error [{exc.code}]: {exc.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
