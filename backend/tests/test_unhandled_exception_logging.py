import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tourney_rank.exceptions import MatchNotDraft
from tourney_rank.main import domain_exception_handler, unhandled_exception_handler


def test_unhandled_exception_logs_traceback(caplog):
    app = FastAPI()
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/boom")
    def boom():
        raise ValueError("boom")

    client = TestClient(app, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR):
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["code"] == "internal_server_error"
    record = next((r for r in caplog.records if r.message == "Unhandled exception"), None)
    assert record is not None
    assert record.exc_info[0] is ValueError
    assert "ValueError: boom" in caplog.text


def test_domain_exception_renders_problem_detail():
    app = FastAPI()
    app.add_exception_handler(MatchNotDraft, domain_exception_handler)

    @app.get("/conflict")
    def conflict():
        raise MatchNotDraft("m1", "verified")

    response = TestClient(app).get("/conflict")
    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["code"] == "match_not_draft"
    assert body["status"] == 409
    assert "verified" in body["detail"]
