"""
HTTP Microservice
=================
Flask-based HTTP API for the exam importer.

Endpoints:
    POST   /api/import              → Decode an uploaded exam, return it
    POST   /api/import/submit       → Decode, validate and store an exam
    GET    /api/cache               → List rejected imports
    GET    /api/cache/statistics    → Rejected-import statistics
    GET    /api/cache/<id>          → One rejected import
    POST   /api/cache/<id>/retry    → Submit a rejected import again
    DELETE /api/cache/<id>          → Delete one rejected import
    DELETE /api/cache               → Delete all rejected imports
    GET    /api/health              → Health check
    GET    /api/info                → Importer version info

Uploads are either a multipart ``file`` part or the raw request body;
the media type comes from the part or the Content-Type header.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from . import cache
from .engine import (
    SUPPORTED_MEDIA_TYPES,
    ImportEngine,
    ImporterConfig,
    guess_media_type,
    normalize_media_type,
)
from .exceptions import DecodeError, UnsupportedFormatError
from .gateway import ExamGateway, HttpExamGateway
from .models import ImportFile, QuestionType
from .report import ImportReporter
from .service import ExamImportService

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("CACHE_DB_PATH", cache.get_db_path())
    app.config.setdefault("EXAM_API_URL", os.environ.get("EXAM_API_URL"))
    app.config.setdefault("EXAM_API_TOKEN", os.environ.get("EXAM_API_TOKEN"))
    app.config.setdefault("LOG_LEVEL", "INFO")
    app.config.setdefault("MAX_CONTENT_LENGTH", 10 * 1024 * 1024)  # 10MB

    cache.init_db(app.config["CACHE_DB_PATH"])
    return app


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _engine() -> ImportEngine:
    return ImportEngine(ImporterConfig(log_level=app.config.get("LOG_LEVEL", "INFO")))


def _gateway() -> Optional[ExamGateway]:
    """Configured gateway object, or an HTTP gateway from EXAM_API_URL."""
    gateway = app.config.get("EXAM_GATEWAY")
    if gateway is not None:
        return gateway
    base_url = app.config.get("EXAM_API_URL")
    if not base_url:
        return None
    return HttpExamGateway(base_url, token=app.config.get("EXAM_API_TOKEN"))


def _db_path() -> str:
    return app.config.get("CACHE_DB_PATH") or cache.get_db_path()


def _read_upload() -> Optional[ImportFile]:
    """Read the uploaded document from a multipart part or the raw body."""
    if "file" in request.files:
        file = request.files["file"]
        if not file.filename:
            return None
        media_type = file.mimetype
        if not media_type or media_type == "application/octet-stream":
            media_type = guess_media_type(file.filename)
        return ImportFile(
            id=str(uuid.uuid4()),
            name=file.filename,
            media_type=media_type,
            data=file.read(),
        )

    data = request.get_data()
    if not data:
        return None
    return ImportFile(
        id=str(uuid.uuid4()),
        name=request.args.get("name", "upload"),
        media_type=normalize_media_type(request.content_type),
        data=data,
    )


def _no_upload():
    return jsonify({
        "error": "Provide a file upload or a request body"
    }), 400


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "exam-import",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Importer version and capability info."""
    return jsonify({
        "version": __version__,
        "supported_media_types": list(SUPPORTED_MEDIA_TYPES),
        "question_types": [t.value for t in QuestionType],
    })


# ─── Import Endpoints ────────────────────────────────────────────────────────


@app.route("/api/import", methods=["POST"])
def import_exam():
    """
    Decode an exam document and return it without storing it.

    Returns the exam and its import report.
    """
    upload = _read_upload()
    if upload is None:
        return _no_upload()

    try:
        exam = _engine().import_document(upload.data, upload.media_type)
    except UnsupportedFormatError as e:
        return jsonify({"error": str(e), "media_type": e.media_type}), 415
    except DecodeError as e:
        return jsonify({"error": str(e)}), 422

    report = ImportReporter().summarize(exam)
    return jsonify({
        "exam": exam.to_json_dict(),
        "report": report.model_dump(mode="json"),
    }), 200


@app.route("/api/import/submit", methods=["POST"])
def submit_exam():
    """Run the full pipeline: decode, validate, store or cache."""
    gateway = _gateway()
    if gateway is None:
        return jsonify({"error": "No exam service configured"}), 503

    upload = _read_upload()
    if upload is None:
        return _no_upload()

    service = ExamImportService(gateway, engine=_engine(), db_path=_db_path())
    result = service.import_exam(upload)
    return jsonify(result.model_dump(by_alias=True, mode="json")), 200


# ─── Rejected Import Cache ───────────────────────────────────────────────────


@app.route("/api/cache", methods=["GET"])
def list_cached():
    entries = cache.get_all_invalid_exams(db_path=_db_path())
    return jsonify([e.model_dump(mode="json") for e in entries])


@app.route("/api/cache/statistics", methods=["GET"])
def cache_statistics():
    stats = cache.get_statistics(db_path=_db_path())
    return jsonify(stats.model_dump(mode="json"))


@app.route("/api/cache/<int:cache_id>", methods=["GET"])
def get_cached(cache_id: int):
    entry = cache.load_invalid_exam(cache_id, db_path=_db_path())
    if entry is None:
        return jsonify({"error": f"Cached import {cache_id} not found"}), 404

    data = entry.model_dump(mode="json")
    data["exam"] = json.loads(entry.exam)
    return jsonify(data)


@app.route("/api/cache/<int:cache_id>/retry", methods=["POST"])
def retry_cached(cache_id: int):
    gateway = _gateway()
    if gateway is None:
        return jsonify({"error": "No exam service configured"}), 503

    service = ExamImportService(gateway, engine=_engine(), db_path=_db_path())
    result = service.retry_cached(cache_id)
    return jsonify(result.model_dump(by_alias=True, mode="json")), 200


@app.route("/api/cache/<int:cache_id>", methods=["DELETE"])
def delete_cached(cache_id: int):
    if not cache.delete_invalid_exam(cache_id, db_path=_db_path()):
        return jsonify({"error": f"Cached import {cache_id} not found"}), 404
    return jsonify({"success": True})


@app.route("/api/cache", methods=["DELETE"])
def clear_cached():
    removed = cache.clear_invalid_exams(db_path=_db_path())
    return jsonify({"success": True, "deleted": removed})


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
