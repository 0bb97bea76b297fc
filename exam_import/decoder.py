"""
Structured Decoder
==================
Decodes JSON documents that already follow the exam schema.

Only the shape is checked. Values are trusted verbatim, including
``pointsToSucceeded`` and any identifiers the document carries.
"""

from __future__ import annotations

import logging
from typing import Union

from pydantic import ValidationError

from .exceptions import DecodeError
from .models import Exam

logger = logging.getLogger(__name__)


def decode_exam(payload: Union[str, bytes]) -> Exam:
    """
    Decode a complete JSON document into an Exam.

    Raises:
        DecodeError: If the payload is not UTF-8, not JSON, or does not
            match the exam schema.
    """
    logger.info("Start import of exam from json file")

    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Document is not valid UTF-8: {e}") from e
    elif payload.startswith("\ufeff"):
        payload = payload[1:]

    try:
        exam = Exam.model_validate_json(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Document does not match the exam schema: "
            f"{e.error_count()} error(s), first: {_first_error(e)}"
        ) from e

    logger.info(
        f"Import exam with name: {exam.name}, "
        f"count questions: {len(exam.questions)}"
    )
    return exam


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', '')}"
