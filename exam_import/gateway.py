"""
Exam Service Gateway
====================
Contract for the service that validates and stores imported exams,
plus an HTTP implementation of it.

Endpoints used:
    POST {base_url}/api/exams/validate   → {"valid": true|false}
    POST {base_url}/api/exams            → created exam (201)
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests
from pydantic import ValidationError

from .exceptions import GatewayError
from .models import Exam

logger = logging.getLogger(__name__)


class ExamGateway(Protocol):
    """Validation and persistence service for imported exams."""

    def validate(self, exam: Exam) -> bool:
        ...

    def create(self, exam: Exam) -> Optional[Exam]:
        ...


class HttpExamGateway:
    """
    Talks to the exam service over HTTP with ``requests``.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post(self, path: str, exam: Exam) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return requests.post(
                url,
                json=exam.to_json_dict(),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Cannot reach exam service at {url}: {e}")
            raise GatewayError(f"Cannot reach exam service: {e}") from e

    def validate(self, exam: Exam) -> bool:
        """
        Ask the service whether the exam passes its business rules.

        Raises:
            GatewayError: On network failure or an unexpected status.
        """
        resp = self._post("/api/exams/validate", exam)

        if resp.status_code == 422:
            return False
        if resp.status_code != 200:
            raise GatewayError(
                f"Validation failed (HTTP {resp.status_code}): {resp.text[:500]}"
            )

        try:
            return bool(resp.json().get("valid", False))
        except ValueError as e:
            raise GatewayError(f"Invalid validation response: {e}") from e

    def create(self, exam: Exam) -> Optional[Exam]:
        """
        Store the exam and return the persisted version.

        Raises:
            GatewayError: On network failure, an unexpected status or a
                body that is not an exam.
        """
        resp = self._post("/api/exams", exam)

        if resp.status_code not in (200, 201):
            raise GatewayError(
                f"Create failed (HTTP {resp.status_code}): {resp.text[:500]}"
            )

        if not resp.content:
            return None

        try:
            created = Exam.model_validate_json(resp.content)
        except ValidationError as e:
            raise GatewayError(f"Invalid exam in create response: {e}") from e

        logger.info(f"Exam stored with id {created.id}: {created.name}")
        return created
