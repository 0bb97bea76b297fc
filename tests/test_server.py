"""
Test Suite for the HTTP Microservice
====================================
"""

from __future__ import annotations

import io
import json

import pytest

from exam_import import cache
from exam_import.server import create_app


@pytest.fixture
def app(db_path):
    return create_app({
        "TESTING": True,
        "CACHE_DB_PATH": db_path,
        "EXAM_GATEWAY": None,
        "EXAM_API_URL": None,
        "EXAM_API_TOKEN": None,
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway_client(app, gateway):
    app.config["EXAM_GATEWAY"] = gateway
    yield app.test_client()
    app.config["EXAM_GATEWAY"] = None


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════════════════════


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_info(self, client):
        data = client.get("/api/info").get_json()
        assert "text/plain" in data["supported_media_types"]
        assert "application/json" in data["supported_media_types"]
        assert "ASSIGNMENT" in data["question_types"]


# ═══════════════════════════════════════════════════════════════════════════════
# IMPORT
# ═══════════════════════════════════════════════════════════════════════════════


class TestImportEndpoint:

    def test_import_raw_text(self, client, sample_text):
        resp = client.post(
            "/api/import",
            data=sample_text.encode("utf-8"),
            content_type="text/plain; charset=utf-8",
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["exam"]["pointsToSucceeded"] == 13
        assert len(data["exam"]["questions"]) == 3
        assert data["report"]["total_points"] == 19
        assert data["report"]["questions_by_type"]["ASSIGNMENT"] == 1

    def test_import_multipart(self, client, sample_text):
        resp = client.post(
            "/api/import",
            data={"file": (io.BytesIO(sample_text.encode("utf-8")), "exam.txt")},
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        assert resp.get_json()["exam"]["name"] == "Imported Certificate"

    def test_import_json(self, client):
        document = {"name": "From JSON", "questions": []}
        resp = client.post(
            "/api/import",
            data=json.dumps(document),
            content_type="application/json",
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["exam"]["name"] == "From JSON"
        assert data["report"]["is_complete"] is False

    def test_unsupported_media_type(self, client):
        resp = client.post(
            "/api/import",
            data="<exam/>",
            content_type="application/xml",
        )

        assert resp.status_code == 415
        assert resp.get_json()["media_type"] == "application/xml"

    def test_malformed_json(self, client):
        resp = client.post(
            "/api/import",
            data="{broken",
            content_type="application/json",
        )
        assert resp.status_code == 422

    def test_missing_upload(self, client):
        resp = client.post("/api/import")
        assert resp.status_code == 400


class TestSubmitEndpoint:

    def test_no_gateway_configured(self, client, sample_text):
        resp = client.post(
            "/api/import/submit",
            data=sample_text,
            content_type="text/plain",
        )
        assert resp.status_code == 503

    def test_submit_stored(self, gateway_client, gateway, sample_text):
        resp = gateway_client.post(
            "/api/import/submit",
            data=sample_text,
            content_type="text/plain",
        )

        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
        assert gateway.created is not None

    def test_submit_rejected(self, gateway_client, gateway, db_path, sample_text):
        gateway.valid = False
        resp = gateway_client.post(
            "/api/import/submit",
            data=sample_text,
            content_type="text/plain",
        )

        data = resp.get_json()
        assert data["success"] is False
        assert data["errorType"] == "validation-error"
        assert cache.load_invalid_exam(data["invalidCacheId"], db_path=db_path)

    def test_submit_unsupported(self, gateway_client):
        resp = gateway_client.post(
            "/api/import/submit",
            data="<exam/>",
            content_type="application/xml",
        )

        assert resp.status_code == 200
        assert resp.get_json()["errorType"] == "error"


# ═══════════════════════════════════════════════════════════════════════════════
# REJECTED IMPORT CACHE
# ═══════════════════════════════════════════════════════════════════════════════


class TestCacheEndpoints:

    def test_list_empty(self, client):
        assert client.get("/api/cache").get_json() == []

    def test_list_and_show(self, client, db_path):
        cache_id = cache.add_invalid_exam('{"name": "Rejected"}', db_path=db_path)

        entries = client.get("/api/cache").get_json()
        assert [e["id"] for e in entries] == [cache_id]

        entry = client.get(f"/api/cache/{cache_id}").get_json()
        assert entry["exam"] == {"name": "Rejected"}
        assert entry["error_type"] == "validation-error"

    def test_show_missing(self, client):
        assert client.get("/api/cache/404").status_code == 404

    def test_statistics(self, client, db_path):
        cache.add_invalid_exam("{}", db_path=db_path)
        stats = client.get("/api/cache/statistics").get_json()
        assert stats["total"] == 1
        assert stats["validation_errors"] == 1

    def test_delete(self, client, db_path):
        cache_id = cache.add_invalid_exam("{}", db_path=db_path)

        assert client.delete(f"/api/cache/{cache_id}").status_code == 200
        assert client.delete(f"/api/cache/{cache_id}").status_code == 404

    def test_clear(self, client, db_path):
        cache.add_invalid_exam("{}", db_path=db_path)
        cache.add_invalid_exam("{}", db_path=db_path)

        resp = client.delete("/api/cache")
        assert resp.get_json()["deleted"] == 2
        assert cache.get_all_invalid_exams(db_path=db_path) == []

    def test_retry_without_gateway(self, client, db_path):
        cache_id = cache.add_invalid_exam("{}", db_path=db_path)
        assert client.post(f"/api/cache/{cache_id}/retry").status_code == 503

    def test_retry(self, gateway_client, gateway, db_path):
        cache_id = cache.add_invalid_exam(
            '{"name": "Fixed", "questions": []}', db_path=db_path
        )

        resp = gateway_client.post(f"/api/cache/{cache_id}/retry")

        assert resp.get_json()["success"] is True
        assert gateway.created.name == "Fixed"
        assert cache.load_invalid_exam(cache_id, db_path=db_path) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
