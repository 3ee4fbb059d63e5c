"""
tests/test_api.py — HTTP tests for the FastAPI app.

The pipeline and DB session are swapped via dependency_overrides; the
lifespan never runs (no `with TestClient(...)`), so nothing connects to
a real database or checks startup config.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.ai_engine.processor import QualificationAnalyzer
from app.db.models import Lead, LeadStatus
from app.db.session import get_db
from app.exceptions import LeadPersistenceError
from app.outreach.dispatcher import NotificationDispatcher
from app.security.rate_limiter import RateLimiter
from app.services.intake_service import IntakePipeline
from api.endpoints.intake_routes import get_pipeline
from api.main import app

VALID_FORM = {
    "name": "Jane Doe",
    "email": "jane@acme.io",
    "company": "Acme Bakery",
    "projectType": "web-development",
    "message": "We need a new website for our bakery with online ordering and a booking calendar.",
    "website": "",
}


@pytest.fixture
def mailer():
    mock = MagicMock()
    mock.send.return_value = True
    return mock


@pytest.fixture
def pipeline(store, mailer, qualification):
    return IntakePipeline(
        store=store,
        rate_limiter=RateLimiter(max_requests=3, window_seconds=3600),
        captcha_verifier=MagicMock(),
        analyzer=QualificationAnalyzer(lambda submission: qualification),
        dispatcher=NotificationDispatcher(
            mailer=mailer,
            admin_email="ops@uniqubit.ca",
            draft_reply=lambda sub, res: "Thanks!",
            draft_summary=lambda sub, res: "Summary.",
        ),
        captcha_required=False,
    )


@pytest.fixture
def client(pipeline, session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        finally:
            db.close()

    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ── POST /contact ─────────────────────────────────────────────────────────────

class TestContact:
    def test_accepted(self, client, session_factory):
        response = client.post("/contact", json=VALID_FORM)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert isinstance(body["lead_id"], int)

        with session_factory() as db:
            lead = db.get(Lead, body["lead_id"])
            assert lead.project_type == "web-development"

    def test_background_enrichment_runs(self, client, mailer, session_factory):
        lead_id = client.post("/contact", json=VALID_FORM).json()["lead_id"]

        # TestClient runs background tasks before returning
        with session_factory() as db:
            assert db.get(Lead, lead_id).ai_score == 99
        assert mailer.send.call_count == 2

    def test_enrichment_failure_still_succeeds(self, client, pipeline, session_factory):
        def broken(_):
            raise TimeoutError("model timed out")

        pipeline.analyzer = QualificationAnalyzer(broken)
        response = client.post("/contact", json=VALID_FORM)

        assert response.status_code == 200
        with session_factory() as db:
            lead = db.get(Lead, response.json()["lead_id"])
            assert lead.status == LeadStatus.NEW
            assert lead.ai_score is None

    def test_invalid(self, client):
        form = {"name": "Jo", "email": "jo@x.com", "message": "hi", "projectType": "web-development"}
        response = client.post("/contact", json=form)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "invalid"
        assert "message" in body["field_errors"]

    def test_missing_fields_use_the_same_shape(self, client):
        response = client.post("/contact", json={})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid"

    def test_spam(self, client):
        response = client.post(
            "/contact", json={**VALID_FORM, "message": "FREE MONEY!!! www.spam.biz CLICK HERE NOW!!!"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "spam"

    def test_honeypot(self, client, mailer):
        response = client.post("/contact", json={**VALID_FORM, "website": "https://bot.example"})
        assert response.status_code == 400
        assert response.json()["error"] == "spam"
        mailer.send.assert_not_called()

    def test_whitespace_honeypot(self, client, mailer):
        response = client.post("/contact", json={**VALID_FORM, "website": "\t \n"})
        assert response.status_code == 400
        assert response.json()["error"] == "spam"
        mailer.send.assert_not_called()

    def test_null_honeypot_accepted(self, client):
        response = client.post("/contact", json={**VALID_FORM, "website": None})
        assert response.status_code == 200

    @pytest.mark.parametrize("name", [None, 123])
    def test_non_string_field_uses_the_same_shape(self, client, name):
        response = client.post("/contact", json={**VALID_FORM, "name": name})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "invalid"
        assert "name" in body["field_errors"]

    def test_non_object_body_uses_the_same_shape(self, client):
        response = client.post("/contact", json=["not", "a", "form"])
        assert response.status_code == 422
        assert response.json()["error"] == "invalid"

    def test_rate_limited(self, client):
        for _ in range(3):
            assert client.post("/contact", json=VALID_FORM).status_code == 200

        response = client.post("/contact", json=VALID_FORM)
        assert response.status_code == 429
        body = response.json()
        assert body["error"] == "rate_limited"
        assert body["retry_after"] > 0
        assert response.headers["Retry-After"] == str(body["retry_after"])

    def test_forwarded_for_identifies_caller(self, client):
        for _ in range(3):
            client.post("/contact", json=VALID_FORM, headers={"X-Forwarded-For": "198.51.100.1"})

        blocked = client.post("/contact", json=VALID_FORM, headers={"X-Forwarded-For": "198.51.100.1"})
        other = client.post("/contact", json=VALID_FORM, headers={"X-Forwarded-For": "198.51.100.2"})
        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_forwarded_for_ignored_when_untrusted(self, client):
        with patch("api.endpoints.intake_routes.settings.trust_forwarded_headers", False):
            for n in range(3):
                client.post("/contact", json=VALID_FORM, headers={"X-Forwarded-For": f"198.51.100.{n}"})
            rotated = client.post("/contact", json=VALID_FORM, headers={"X-Forwarded-For": "198.51.100.9"})
        assert rotated.status_code == 429

    def test_captcha_failed(self, client, pipeline):
        pipeline.captcha_required = True
        response = client.post("/contact", json=VALID_FORM)
        assert response.status_code == 400
        assert response.json()["error"] == "captcha_failed"

    def test_store_failure_is_server_error(self, client, pipeline):
        pipeline.store = MagicMock()
        pipeline.store.create.side_effect = LeadPersistenceError("db down")

        response = client.post("/contact", json=VALID_FORM)
        assert response.status_code == 500
        assert "success" not in response.json()


# ── /leads ────────────────────────────────────────────────────────────────────

class TestLeads:
    def test_list_and_get(self, client):
        lead_id = client.post("/contact", json=VALID_FORM).json()["lead_id"]

        listed = client.get("/leads/")
        assert listed.status_code == 200
        assert [lead["id"] for lead in listed.json()] == [lead_id]

        fetched = client.get(f"/leads/{lead_id}")
        assert fetched.status_code == 200
        assert fetched.json()["ai_score"] == 99
        assert fetched.json()["status"] == "new"

    def test_filter_by_status(self, client):
        client.post("/contact", json=VALID_FORM)
        client.post("/contact", json={**VALID_FORM, "website": "bot"})

        spam = client.get("/leads/", params={"status": "spam"}).json()
        assert len(spam) == 1
        assert spam[0]["spam_detection"]["is_spam"] is True

    def test_stats(self, client):
        client.post("/contact", json=VALID_FORM)
        client.post("/contact", json={**VALID_FORM, "website": "bot"})

        stats = client.get("/leads/stats").json()
        assert stats["new"] == 1
        assert stats["spam"] == 1
        assert stats["total"] == 2

    def test_missing_lead(self, client):
        assert client.get("/leads/999").status_code == 404

    def test_patch_status(self, client):
        lead_id = client.post("/contact", json=VALID_FORM).json()["lead_id"]

        response = client.patch(f"/leads/{lead_id}/status", json={"status": "contacted"})
        assert response.status_code == 200
        assert response.json()["status"] == "contacted"

    def test_patch_rejects_unknown_status(self, client):
        lead_id = client.post("/contact", json=VALID_FORM).json()["lead_id"]
        assert client.patch(f"/leads/{lead_id}/status", json={"status": "qualified"}).status_code == 422


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "service": "inquiry-intake"}
