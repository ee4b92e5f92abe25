import json

from fastapi.testclient import TestClient

from api.routes import get_gateway
from api_server import create_app
from interview.errors import UpstreamRequestError


def _client(fake_gateway) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    return TestClient(app)


def test_full_interview_flow(fake_gateway, seeded):
    app_id = seeded.application.application_id
    with _client(fake_gateway) as client:
        opened = client.get(f"/api/interviews/application/{app_id}")
        assert opened.status_code == 200
        questions = opened.json()["questions"]

        again = client.get(f"/api/interviews/application/{app_id}").json()
        assert [q["id"] for q in again["questions"]] == [q["id"] for q in questions]

        first = client.post(
            f"/api/interviews/application/{app_id}/answer",
            json={"question_id": questions[0]["id"], "answer": "Partitioned the workload by tenant."},
        ).json()
        assert first["interview_completed"] is False
        assert first["questions_remaining"] == 1
        assert client.get(f"/api/interviews/application/{app_id}").json()["state"] == "Answering"

        second = client.post(
            f"/api/interviews/application/{app_id}/answer",
            json={"question_id": questions[1]["id"], "answer": "Listened first, then proposed a spike."},
        ).json()
        assert second["interview_completed"] is True

        report = client.get(f"/api/interviews/application/{app_id}/report").json()
        assert report["interview_completed"] is True
        assert report["interview_score"] == report["evaluation_report"]["overall_score"]
        assert [r["question_id"] for r in report["interview_responses"]] == [q["id"] for q in questions]

        late = client.post(
            f"/api/interviews/application/{app_id}/answer",
            json={"question_id": questions[0]["id"], "answer": "One more thing"},
        )
        assert late.status_code == 400
        assert late.json()["code"] == "ALREADY_COMPLETED"

    assert fake_gateway.kinds() == ["questions", "analysis", "analysis", "report"]


def test_outage_then_admin_recovery(fake_gateway, seeded):
    app_id = seeded.application.application_id
    with _client(fake_gateway) as client:
        questions = client.get(f"/api/interviews/application/{app_id}").json()["questions"]
        fake_gateway.replies["analysis"] = UpstreamRequestError("down")
        fake_gateway.replies["report"] = UpstreamRequestError("down")

        for question in questions:
            resp = client.post(
                f"/api/interviews/application/{app_id}/answer",
                json={"question_id": question["id"], "answer": "Answer during outage"},
            )
            assert resp.status_code == 200
            assert resp.json()["score"] == 5
        assert resp.json()["interview_completed"] is False
        assert client.get(f"/api/interviews/application/{app_id}/report").status_code == 404

        retry = client.post(f"/api/interviews/application/{app_id}/generate-report")
        assert retry.status_code == 503

        fake_gateway.replies["report"] = json.dumps({"overallScore": 58, "suitabilityRating": "Average"})
        recovered = client.post(f"/api/interviews/application/{app_id}/generate-report")
        assert recovered.status_code == 200

        report = client.get(f"/api/interviews/application/{app_id}/report").json()
        assert report["interview_completed"] is True
        assert report["interview_score"] == 58
        assert report["meets_passing_score"] is False
        assert all(r["analysis_text"] == "Analysis pending" for r in report["interview_responses"])
