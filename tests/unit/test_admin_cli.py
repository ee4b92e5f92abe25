import json

import admin_cli


def test_set_model_rejects_credentials(tmp_db, stores, capsys):
    assert admin_cli.main(["--db", tmp_db, "set-model", "sk-or-v1-abcdef0123456789abcdef"]) == 1
    assert "refusing" in capsys.readouterr().out
    assert admin_cli.main(["--db", tmp_db, "set-model", "meta-llama/llama-3-70b"]) == 0
    assert stores.ai_settings.get_credential_and_model().model_name == "meta-llama/llama-3-70b"


def test_test_connection_reports_missing_key(tmp_db, capsys):
    assert admin_cli.main(["test-connection"]) == 1
    out = capsys.readouterr().out
    assert "failed" in out
    assert "contact administrator" in out


def test_regenerate_report_without_answers_fails_cleanly(tmp_db, seeded, capsys):
    code = admin_cli.main(["regenerate-report", seeded.application.application_id])
    assert code == 1
    assert "PRECONDITION_FAILED" in capsys.readouterr().out


def test_fallback_and_show_report(tmp_db, service, seeded, fake_gateway, capsys):
    app_id = seeded.application.application_id
    questions = service.open_interview(app_id).questions
    fake_gateway.replies["report"] = "not a report"
    for question in questions:
        service.submit_answer(app_id, question.id, "Answer")

    assert admin_cli.main(["fallback-score", app_id]) == 0
    assert f"{app_id}: interview score=80" in capsys.readouterr().out

    assert admin_cli.main(["show-report", app_id]) == 1
    assert "NOT_FOUND" in capsys.readouterr().out

    fake_gateway.replies["report"] = json.dumps({"overallScore": 66})
    service.generate_or_regenerate_report(app_id)
    capsys.readouterr()
    assert admin_cli.main(["show-report", app_id]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["interview_score"] == 66
    assert shown["evaluation_report"]["overall_score"] == 66
