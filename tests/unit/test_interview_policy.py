"""Tests for the YAML interview policy and environment settings."""
from __future__ import annotations

import os
import time

import pytest
from pydantic import ValidationError

from config.interview_policy import (
    ANSWER_ANALYSIS,
    DEFAULT_POLICY_PATH,
    EVALUATION_REPORT,
    QUESTION_GENERATION,
    InterviewPolicy,
    PolicyLoader,
)
from config.settings import Settings


def test_bundled_policy_matches_defaults():
    policy = PolicyLoader(str(DEFAULT_POLICY_PATH)).policy
    assert policy.default_question_count == 5
    assert policy.max_question_count == 10
    assert policy.passing_score == 70
    assert policy.params_for(QUESTION_GENERATION).temperature == 0.7
    assert policy.params_for(ANSWER_ANALYSIS).max_tokens == 1000
    assert policy.params_for(EVALUATION_REPORT).temperature == 0.2


def test_missing_file_uses_builtin_defaults(tmp_path):
    policy = PolicyLoader(str(tmp_path / "absent.yaml")).policy
    assert policy == InterviewPolicy()
    assert "HR interviewer" in policy.params_for(QUESTION_GENERATION).system_preamble


def test_partial_generation_override_merges_with_defaults(tmp_path):
    path = tmp_path / "interview.yaml"
    path.write_text(
        "passing_score: 60\n"
        "generation:\n"
        "  answer_analysis:\n"
        "    temperature: 0.1\n",
        encoding="utf-8",
    )
    policy = PolicyLoader(str(path)).policy
    params = policy.params_for(ANSWER_ANALYSIS)
    assert policy.passing_score == 60
    assert params.temperature == 0.1
    assert params.max_tokens == 1000
    assert params.system_preamble.startswith("You are an expert HR interviewer")


def test_policy_reloads_when_file_changes(tmp_path):
    path = tmp_path / "interview.yaml"
    path.write_text("default_question_count: 4\n", encoding="utf-8")
    loader = PolicyLoader(str(path))
    assert loader.policy.default_question_count == 4

    path.write_text("default_question_count: 6\n", encoding="utf-8")
    later = time.time() + 5
    os.utime(path, (later, later))
    assert loader.policy.default_question_count == 6


def test_invalid_policy_is_rejected(tmp_path):
    path = tmp_path / "interview.yaml"
    path.write_text("passing_score: 250\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        PolicyLoader(str(path))


@pytest.mark.parametrize("requested, expected", [(None, 5), (0, 1), (-4, 1), (3, 3), (10, 10), (50, 10)])
def test_question_count_clamping(requested, expected):
    assert InterviewPolicy().clamp_question_count(requested) == expected


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("LLM_TIMEOUT_S", "12.5")
    monkeypatch.setenv("DEFAULT_MODEL", "anthropic/claude-3-haiku")
    monkeypatch.setenv("DB_PATH", "/tmp/other.db")
    fresh = Settings(_env_file=None)
    assert fresh.LLM_TIMEOUT_S == 12.5
    assert fresh.DEFAULT_MODEL == "anthropic/claude-3-haiku"
    assert fresh.DB_PATH == "/tmp/other.db"


def test_settings_reject_non_positive_timeout(monkeypatch):
    monkeypatch.setenv("LLM_TIMEOUT_S", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
