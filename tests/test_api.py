"""Tests for the HTTP API."""

import json
import time

from fastapi.testclient import TestClient

from api.app import create_app

USER = {"X-User-Id": "user-1"}


class TestCatalogEndpoints:

    def test_list_tests(self, client):
        response = client.get("/api/tests")

        assert response.status_code == 200
        tests = {t["id"]: t for t in response.json()["tests"]}
        assert tests["t1"]["question_count"] == 3
        assert tests["t1"]["duration_minutes"] == 1
        assert tests["empty"]["question_count"] == 0

    def test_get_test(self, client):
        response = client.get("/api/tests/t1")
        assert response.status_code == 200
        assert response.json()["title"] == "Sample Test"

    def test_get_test_not_found(self, client):
        assert client.get("/api/tests/missing").status_code == 404

    def test_get_test_without_questions(self, client):
        response = client.get("/api/tests/empty")
        assert response.status_code == 422
        assert "No questions" in response.json()["detail"]

    def test_import_json(self, client):
        payload = [{"question_text": "New?", "options": ["a", "b"], "correct_answer": 1}]
        response = client.post("/api/tests/empty/questions/import", content=json.dumps(payload))

        assert response.status_code == 200
        assert response.json()["imported"] == 1
        assert client.get("/api/tests/empty").json()["question_count"] == 1

    def test_import_json_invalid(self, client):
        response = client.post("/api/tests/t1/questions/import", content="not json")
        assert response.status_code == 422

    def test_import_unknown_test(self, client):
        payload = [{"question_text": "New?", "options": ["a", "b"]}]
        response = client.post("/api/tests/missing/questions/import", content=json.dumps(payload))
        assert response.status_code == 404

    def test_import_csv_appends_after_existing(self, client):
        csv_text = (
            "question_text,option_a,option_b,option_c,option_d,correct_answer,explanation\n"
            "Extra?,x,y,,,1,\n"
        )
        response = client.post(
            "/api/tests/t1/questions/import-csv",
            files={"file": ("questions.csv", csv_text.encode("utf-8"), "text/csv")},
        )
        assert response.status_code == 200
        assert response.json()["imported"] == 1

        client.post("/api/attempt/start", json={"test_id": "t1"})
        last = client.get("/api/attempt/question/3").json()
        assert last["text"] == "Extra?"


class TestAttemptFlow:

    def test_start_attempt(self, client):
        response = client.post("/api/attempt/start", json={"test_id": "t1"})

        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "in_progress"
        assert data["remaining_seconds"] == 60
        assert data["total"] == 3
        assert data["answered"] == [False, False, False]

    def test_start_unknown_and_empty(self, client):
        assert client.post("/api/attempt/start", json={"test_id": "missing"}).status_code == 404
        assert client.post("/api/attempt/start", json={"test_id": "empty"}).status_code == 422

    def test_question_hides_answer(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        data = client.get("/api/attempt/question/0").json()

        assert data["position"] == 0
        assert data["saved_answer"] is None
        assert [o["label"] for o in data["options"]] == ["A", "B", "C", "D"]
        assert "correct_option_index" not in data
        assert "explanation" not in data

        assert client.get("/api/attempt/question/3").status_code == 404

    def test_full_attempt_and_review(self, client, recorder):
        client.post("/api/attempt/start", json={"test_id": "t1"}, headers=USER)
        for position, option in enumerate([1, 1, 2]):
            r = client.post("/api/attempt/answer", json={"position": position, "option_index": option})
            assert r.status_code == 200

        response = client.post("/api/attempt/submit")
        assert response.status_code == 200
        score = response.json()["score"]
        assert score["correct_count"] == 2
        assert score["wrong_count"] == 1
        assert score["percentage"] == 67

        again = client.post("/api/attempt/submit").json()["score"]
        assert again == score

        results = client.get("/api/attempt/results").json()
        assert results["band"] == "average"
        assert results["passed"] is True
        assert [row["is_correct"] for row in results["review"]] == [True, False, True]
        assert results["review"][1]["explanation"] == "because 0"

        history = client.get("/api/attempts", headers=USER).json()["attempts"]
        assert len(history) == 1
        assert history[0]["answers"] == [1, 1, 2]

    def test_answer_overwrite_and_clear(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        client.post("/api/attempt/answer", json={"position": 0, "option_index": 3})
        client.post("/api/attempt/answer", json={"position": 0, "option_index": 1})
        assert client.get("/api/attempt/question/0").json()["saved_answer"] == 1

        r = client.post("/api/attempt/answer", json={"position": 0, "option_index": None})
        assert r.json()["answered_count"] == 0

    def test_answer_validation(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        assert client.post("/api/attempt/answer", json={"position": 5, "option_index": 0}).status_code == 404
        assert client.post("/api/attempt/answer", json={"position": 0, "option_index": 4}).status_code == 400

    def test_answer_after_submit_rejected(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        client.post("/api/attempt/submit")
        response = client.post("/api/attempt/answer", json={"position": 0, "option_index": 1})
        assert response.status_code == 400

    def test_navigation(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})

        assert client.post("/api/attempt/previous").json()["position"] == 0
        assert client.post("/api/attempt/navigate", json={"position": 2}).json()["position"] == 2
        assert client.post("/api/attempt/next").json()["position"] == 2
        assert client.post("/api/attempt/navigate", json={"position": 7}).status_code == 400
        assert client.get("/api/attempt").json()["current_position"] == 2

    def test_results_before_submit(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        assert client.get("/api/attempt/results").status_code == 400

    def test_retake_and_begin(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        client.post("/api/attempt/answer", json={"position": 0, "option_index": 1})
        client.post("/api/attempt/submit")

        data = client.post("/api/attempt/retake").json()
        assert data["phase"] == "not_started"
        assert data["answered"] == [False, False, False]
        assert data["remaining_seconds"] == 60

        assert client.post("/api/attempt/submit").status_code == 400

        begun = client.post("/api/attempt/begin").json()
        assert begun["phase"] == "in_progress"
        assert client.post("/api/attempt/begin").status_code == 400

    def test_anonymous_attempt_not_recorded(self, client, recorder):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        client.post("/api/attempt/submit")
        assert recorder.list_attempts("user-1") == []
        assert client.get("/api/attempts").status_code == 401

    def test_no_attempt(self, client):
        assert client.get("/api/attempt").status_code == 404
        assert client.post("/api/attempt/submit").status_code == 404

    def test_reset(self, client):
        client.post("/api/attempt/start", json={"test_id": "t1"})
        assert client.post("/api/reset").json()["ok"] is True
        assert client.get("/api/attempt").status_code == 404


def test_failed_start_keeps_previous_attempt_running(catalog, recorder):
    app = create_app(catalog=catalog, recorder=recorder, tick_interval=0.01)
    with TestClient(app) as client:
        client.post("/api/attempt/start", json={"test_id": "t1"})
        time.sleep(0.1)

        assert client.post("/api/attempt/start", json={"test_id": "missing"}).status_code == 404
        assert client.post("/api/attempt/start", json={"test_id": "empty"}).status_code == 422

        before = client.get("/api/attempt").json()
        time.sleep(0.3)
        after = client.get("/api/attempt").json()

    assert before["test_id"] == "t1"
    assert after["remaining_seconds"] < before["remaining_seconds"]
