"""
Import Service Layer
====================
Full import pipeline around the decoders:

    file → ImportEngine → Exam → gateway.validate
        ├── rejected → rejected-import cache (for later retry)
        └── accepted → gateway.create

Failures never escape as exceptions: every file ends in an
ExamImportResult the caller can show to the user.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from . import cache
from .decoder import decode_exam
from .engine import ImportEngine
from .exceptions import ExamImportError, GatewayError
from .gateway import ExamGateway
from .models import Exam, ExamImportResult, ImportErrorType, ImportFile

logger = logging.getLogger(__name__)


class ExamImportService:
    """
    Coordinates decoding, validation, persistence and the rejected-import cache.
    """

    def __init__(
        self,
        gateway: ExamGateway,
        engine: Optional[ImportEngine] = None,
        db_path: Optional[str] = None,
    ):
        self.gateway = gateway
        self.engine = engine or ImportEngine()
        self.db_path = db_path

    def import_exams(self, files: list[ImportFile]) -> list[ExamImportResult]:
        """Import files in order. Clears the rejected-import cache first."""
        try:
            cache.clear_invalid_exams(db_path=self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Failed to clear the rejected-import cache: {e}")
        return [self.import_exam(f) for f in files]

    def import_exam(self, file: ImportFile) -> ExamImportResult:
        """Decode one file and hand it to the exam service."""
        logger.info(f"Importing exam from file: {file.name}")

        try:
            exam = self.engine.import_document(file.data, file.media_type)
            return self._submit(exam, file.id)
        except ExamImportError as e:
            logger.error(f"Failed to import exam from file {file.name}: {e}")
            return ExamImportResult(
                success=False,
                id=file.id,
                error_type=ImportErrorType.ERROR,
            )
        except Exception as e:
            logger.error(
                f"Unexpected error importing {file.name}: {e}", exc_info=True
            )
            return ExamImportResult(
                success=False,
                id=file.id,
                error_type=ImportErrorType.ERROR,
            )

    def retry_cached(self, cache_id: int) -> ExamImportResult:
        """
        Submit a previously rejected exam again.

        The cache entry is removed once the exam has been stored or
        rejected again.
        """
        result_id = str(cache_id)
        cached = cache.load_invalid_exam(cache_id, db_path=self.db_path)
        if cached is None:
            logger.error(f"No cached import with id {cache_id}")
            return ExamImportResult(
                success=False,
                id=result_id,
                error_type=ImportErrorType.ERROR,
            )

        try:
            exam = decode_exam(cached.exam)
        except ExamImportError as e:
            logger.error(f"Cached import {cache_id} is not decodable: {e}")
            return ExamImportResult(
                success=False,
                id=result_id,
                error_type=ImportErrorType.ERROR,
            )

        try:
            result = self._submit(exam, result_id)
        except Exception as e:
            logger.error(
                f"Unexpected error retrying cached import {cache_id}: {e}",
                exc_info=True,
            )
            return ExamImportResult(
                success=False,
                id=result_id,
                error_type=ImportErrorType.ERROR,
            )

        # a repeated rejection is cached under a new id
        if result.success or result.invalid_cache_id is not None:
            cache.delete_invalid_exam(cache_id, db_path=self.db_path)
        return result

    def _submit(self, exam: Exam, result_id: str) -> ExamImportResult:
        if not self._validate(exam):
            logger.error(f"Exam validation failed for exam: {exam.name}")
            cache_id = cache.add_invalid_exam(
                json.dumps(exam.to_json_dict(), ensure_ascii=False),
                ImportErrorType.VALIDATION_ERROR,
                db_path=self.db_path,
            )
            return ExamImportResult(
                success=False,
                id=result_id,
                error_type=ImportErrorType.VALIDATION_ERROR,
                invalid_cache_id=cache_id,
            )

        try:
            created = self.gateway.create(exam)
        except GatewayError as e:
            logger.error(f"Failed to save exam {exam.name}: {e}")
            created = None

        if created is None:
            logger.error(f"Failed to save exam: {exam.name}")
            return ExamImportResult(
                success=False,
                id=result_id,
                error_type=ImportErrorType.ERROR,
            )

        return ExamImportResult(success=True, id=result_id)

    def _validate(self, exam: Exam) -> bool:
        try:
            return self.gateway.validate(exam)
        except GatewayError as e:
            logger.error(f"Validation request failed: {e}")
            return False
