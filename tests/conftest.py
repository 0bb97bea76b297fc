"""Shared fixtures for the exam importer tests."""

from __future__ import annotations

from typing import Optional

import pytest

from exam_import.exceptions import GatewayError
from exam_import.models import Exam


SAMPLE_TEXT = """\
Q: P:10
What is 2+2?
[ ](a) 3
[x](b) 4
[ ](c) 5

Q: P:5
Which numbers are prime?
[x](a) 2
[x](b) 3
[ ](c) 4

Q: P:4
Sort the food
A: Fruits | Vegetables
[x][ ] Apple
[ ][x] Carrot
"""


class FakeGateway:
    """In-memory stand-in for the exam service."""

    def __init__(self):
        self.valid = True
        self.created: Optional[Exam] = None
        self.fail_validate = False
        self.fail_create = False
        self.return_none = False
        self.validated: list[Exam] = []

    def validate(self, exam: Exam) -> bool:
        self.validated.append(exam)
        if self.fail_validate:
            raise GatewayError("service down")
        return self.valid

    def create(self, exam: Exam) -> Optional[Exam]:
        if self.fail_create:
            raise GatewayError("service down")
        if self.return_none:
            return None
        self.created = exam.model_copy(update={"id": 1})
        return self.created


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "cache.sqlite")
