"""
Import Engine
=============
Entry point that routes a document to the matching decoder.

Usage:
    engine = ImportEngine(config)
    exam = engine.import_document(data, "text/plain")
    exam = engine.import_file("path/to/exam.txt")

Routing:
    application/json → Structured Decoder
    text/plain       → Text Grammar Parser (state machine)
    anything else    → UnsupportedFormatError
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .decoder import decode_exam
from .exceptions import UnsupportedFormatError
from .models import Exam
from .state_machine import (
    DEFAULT_DURATION,
    DEFAULT_EXAM_DESCRIPTION,
    DEFAULT_EXAM_NAME,
    DEFAULT_MAX_QUESTIONS_REAL_EXAM,
    DEFAULT_PASS_RATIO,
    TextExamParser,
)

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain"
SUPPORTED_MEDIA_TYPES = (JSON_MEDIA_TYPE, TEXT_MEDIA_TYPE)

_EXTENSION_MEDIA_TYPES = {
    ".json": JSON_MEDIA_TYPE,
    ".txt": TEXT_MEDIA_TYPE,
    ".text": TEXT_MEDIA_TYPE,
}

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ImporterConfig:
    """Configuration for the import engine."""

    # Defaults for text-imported exams
    exam_name: str = DEFAULT_EXAM_NAME
    exam_description: str = DEFAULT_EXAM_DESCRIPTION
    duration: int = DEFAULT_DURATION
    max_questions_real_exam: int = DEFAULT_MAX_QUESTIONS_REAL_EXAM
    pass_ratio: float = DEFAULT_PASS_RATIO

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


def normalize_media_type(media_type: Optional[str]) -> str:
    """'Text/Plain; charset=utf-8' → 'text/plain'."""
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def guess_media_type(filename: str) -> str:
    """Media type for a file name, or 'application/octet-stream'."""
    suffix = Path(filename).suffix.lower()
    return _EXTENSION_MEDIA_TYPES.get(suffix, "application/octet-stream")


class ImportEngine:
    """
    Routes raw documents to the structured decoder or the text parser.

    Stateless apart from its configuration; safe to share across threads.
    """

    def __init__(self, config: Optional[ImporterConfig] = None):
        self.config = config or ImporterConfig()
        self._setup_logging()
        self.text_parser = TextExamParser(
            exam_name=self.config.exam_name,
            exam_description=self.config.exam_description,
            duration=self.config.duration,
            max_questions_real_exam=self.config.max_questions_real_exam,
            pass_ratio=self.config.pass_ratio,
        )

    def _setup_logging(self):
        """Configure the package logger based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("exam_import")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler, attached once per path
        if self.config.log_file and not self._has_file_handler(package_logger):
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    def _has_file_handler(self, package_logger: logging.Logger) -> bool:
        target = os.path.abspath(self.config.log_file)
        return any(
            isinstance(h, logging.FileHandler) and h.baseFilename == target
            for h in package_logger.handlers
        )

    def import_document(
        self,
        data: Union[str, bytes],
        media_type: Optional[str],
    ) -> Exam:
        """
        Decode a fully buffered document.

        Args:
            data: Document content as text or raw bytes.
            media_type: MIME type of the document; parameters are ignored.

        Returns:
            The decoded Exam.

        Raises:
            UnsupportedFormatError: If no decoder handles the media type.
            DecodeError: If a JSON document does not match the schema.
        """
        kind = normalize_media_type(media_type)

        if kind == JSON_MEDIA_TYPE:
            return decode_exam(data)
        if kind == TEXT_MEDIA_TYPE:
            return self.text_parser.parse(data)

        logger.warning(f"Rejected document with media type: {media_type!r}")
        raise UnsupportedFormatError(media_type or "")

    def import_file(
        self,
        path: str,
        media_type: Optional[str] = None,
    ) -> Exam:
        """
        Read a file from disk and decode it.

        The media type is guessed from the file extension when not given.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise FileNotFoundError(f"Exam file not found: {path}")

        media_type = media_type or guess_media_type(path)
        logger.info(f"Importing exam from file: {os.path.basename(path)}")

        with open(path, "rb") as f:
            data = f.read()

        return self.import_document(data, media_type)
