"""
State Machine Parser
====================
Deterministic line scanner that turns the plain-text exam format into an
Exam aggregate.

Grammar:
    Q: P:10                      question header, points after "P:"
    What is 2+2?                 question text (one or more lines)
    [ ](a) 3                     choice answer, [x] marks a correct one
    [x](b) 4

    Q: P:4
    Sort the items
    A: Fruits | Vegetables       assignment header, one column per option
    [ ][x] Carrot                first checked column is the assignment
    [x][ ] Apple

Question type is never declared: an assignment header makes an
assignment question, more than one correct answer a multiple-choice
question, anything else a single-choice question.
"""

from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union

from .models import (
    Answer,
    AssignmentOption,
    Exam,
    Question,
    QuestionType,
    StatusType,
)

logger = logging.getLogger(__name__)

# ─── Anchor Patterns ──────────────────────────────────────────────────────────

QUESTION_PREFIX = "Q:"
ASSIGNMENT_PREFIX = "A:"

# "P:10", "P: 10"; a bare "P:" yields an empty group
POINTS_PATTERN = re.compile(r"P:\s*([0-9]*)")

# "[x](a) text", "[ ] text", "[X] (b) text"
ANSWER_PATTERN = re.compile(r"^\[[xX ]\]\s?(?:\([a-z]\)|[a-zA-Z])")
ANSWER_PREFIX_PATTERN = re.compile(r"^\[[xX ]\]\s*(?:\([a-z]\)\s*)?")
CORRECT_MARKER_PATTERN = re.compile(r"^\[[xX]\]")

ASSIGNMENT_PATTERN = re.compile(r"^A:\s*")
MARKER_PATTERN = re.compile(r"\[([xX ])\]")
BULLET_PATTERN = re.compile(r"^\s*\([a-z]\)")

# ─── Defaults for text-imported exams ────────────────────────────────────────

DEFAULT_EXAM_NAME = "Imported Certificate"
DEFAULT_EXAM_DESCRIPTION = "Automatically parsed from text file"
DEFAULT_DURATION = 30
DEFAULT_MAX_QUESTIONS_REAL_EXAM = 30
DEFAULT_PASS_RATIO = 0.70


class ParserState(Enum):
    """Position of the line cursor within the grammar."""
    SEEKING_HEADER = "SEEKING_HEADER"
    IN_QUESTION_BODY = "IN_QUESTION_BODY"
    IN_ANSWER_BLOCK = "IN_ANSWER_BLOCK"


# ─── Line Helpers ─────────────────────────────────────────────────────────────


def round_half_up(value: Union[Decimal, float, int]) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Pass a Decimal when the value comes from a product or quotient:
    45 * 0.7 as a float is 31.499..., not 31.5.
    """
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_lines(text: str) -> list[str]:
    """Split text into stripped, non-empty lines."""
    lines = (line.replace("\r", "").strip() for line in text.split("\n"))
    return [line for line in lines if line]


def is_question_header(line: str) -> bool:
    return line.startswith(QUESTION_PREFIX)


def is_answer_header(line: str) -> bool:
    return ANSWER_PATTERN.match(line) is not None


def is_assignment_header(line: str) -> bool:
    return ASSIGNMENT_PATTERN.match(line) is not None


def extract_points(line: str) -> int:
    """Points of a question header; 0 when no digits follow the marker."""
    match = POINTS_PATTERN.search(line)
    if not match or not match.group(1):
        return 0
    return int(match.group(1))


# ─── Choice Block ─────────────────────────────────────────────────────────────


def extract_answer(line: str) -> Answer:
    """Build a choice answer from a single "[x](a) text" line."""
    text = ANSWER_PREFIX_PATTERN.sub("", line, count=1).strip()
    return Answer(
        answer_text=text,
        description=text,
        is_correct=CORRECT_MARKER_PATTERN.match(line) is not None,
    )


def parse_choice_block(
    lines: list[str],
    start: int,
    question_text: str,
    points_total: int,
) -> tuple[Question, int]:
    """
    Parse the answer lines of a single- or multiple-choice question.

    Args:
        lines: Normalized input lines.
        start: Index of the first answer line.
        question_text: Text collected from the question body.
        points_total: Points taken from the question header.

    Returns:
        The question and the index of the first line not consumed.
    """
    i = start
    answers: list[Answer] = []
    while i < len(lines) and is_answer_header(lines[i]):
        answers.append(extract_answer(lines[i]))
        i += 1

    correct_count = sum(1 for a in answers if a.is_correct)
    if correct_count > 1:
        question_type = QuestionType.MULTIPLE_CHOICE
    else:
        question_type = QuestionType.SINGLE_CHOICE

    points_per_correct_answer = 0
    if question_type == QuestionType.MULTIPLE_CHOICE and correct_count > 0:
        points_per_correct_answer = round_half_up(
            Decimal(points_total) / correct_count
        )

    question = Question(
        question_text=question_text,
        points_total=points_total,
        type=question_type,
        answers=answers,
        points_per_correct_answer=points_per_correct_answer,
    )
    return question, i


# ─── Assignment Block ────────────────────────────────────────────────────────


def parse_assignment_options(line: str) -> list[AssignmentOption]:
    """Options of an "A: first | second" header, numbered from 1."""
    names = ASSIGNMENT_PATTERN.sub("", line, count=1).split("|")
    return [
        AssignmentOption(id=idx, text=name.strip())
        for idx, name in enumerate(names, start=1)
    ]


def extract_assignment_answer(line: str) -> Answer:
    """
    Build an assignment answer from a "[ ][x] text" row.

    The first checked column decides the assigned option; any further
    checked columns on the same row are ignored.
    """
    marks = [m.lower() for m in MARKER_PATTERN.findall(line)]
    text = MARKER_PATTERN.sub("", line)
    text = BULLET_PATTERN.sub("", text, count=1).strip()

    assigned: Optional[int] = None
    if "x" in marks:
        assigned = marks.index("x") + 1

    return Answer(
        answer_text=text,
        description=text,
        is_correct=None,
        assigned_option_id=assigned,
    )


def _is_assignment_row(line: str) -> bool:
    return "[" in line and not is_question_header(line)


def parse_assignment_block(
    lines: list[str],
    start: int,
    question_text: str,
    points_total: int,
) -> tuple[Optional[Question], int]:
    """
    Parse an assignment header and its rows.

    Returns ``(None, start)`` when the line at ``start`` is not an
    assignment header, so the caller can fall back to the choice grammar.
    """
    if start >= len(lines) or not is_assignment_header(lines[start]):
        return None, start

    options = parse_assignment_options(lines[start])
    i = start + 1

    answers: list[Answer] = []
    while i < len(lines) and _is_assignment_row(lines[i]):
        answers.append(extract_assignment_answer(lines[i]))
        i += 1

    question = Question(
        question_text=question_text,
        points_total=points_total,
        type=QuestionType.ASSIGNMENT,
        answers=answers,
        points_per_correct_answer=1,
        options=options,
    )
    return question, i


# ─── Parser ───────────────────────────────────────────────────────────────────


class TextExamParser:
    """
    Converts plain-text exam documents into Exam aggregates.

    Holds only the defaults applied to every imported exam, so a single
    instance can be shared between threads.
    """

    def __init__(
        self,
        exam_name: str = DEFAULT_EXAM_NAME,
        exam_description: str = DEFAULT_EXAM_DESCRIPTION,
        duration: int = DEFAULT_DURATION,
        max_questions_real_exam: int = DEFAULT_MAX_QUESTIONS_REAL_EXAM,
        pass_ratio: float = DEFAULT_PASS_RATIO,
    ):
        self.exam_name = exam_name
        self.exam_description = exam_description
        self.duration = duration
        self.max_questions_real_exam = max_questions_real_exam
        self.pass_ratio = pass_ratio

    def parse(self, text: Union[str, bytes]) -> Exam:
        """Parse a complete text document into an Exam."""
        logger.info("Start import of exam from text file")

        if isinstance(text, bytes):
            text = text.decode("utf-8-sig", errors="replace")
        elif text.startswith("\ufeff"):
            text = text[1:]

        questions = self.parse_questions(normalize_lines(text))
        points_total = sum(q.points_total for q in questions)

        logger.info(f"Exam imported with {len(questions)} questions")

        return Exam(
            name=self.exam_name,
            description=self.exam_description,
            points_to_succeeded=round_half_up(
                Decimal(str(self.pass_ratio)) * points_total
            ),
            duration=self.duration,
            status_type=StatusType.DRAFT,
            max_questions_real_exam=self.max_questions_real_exam,
            questions=questions,
        )

    def parse_questions(self, lines: list[str]) -> list[Question]:
        """Run the header/body/answers state machine over normalized lines."""
        questions: list[Question] = []
        state = ParserState.SEEKING_HEADER
        body: list[str] = []
        points = 0
        i = 0

        while i < len(lines) or state != ParserState.SEEKING_HEADER:
            if state == ParserState.SEEKING_HEADER:
                if not is_question_header(lines[i]):
                    i += 1
                    continue
                points = extract_points(lines[i])
                body = []
                i += 1
                state = ParserState.IN_QUESTION_BODY

            elif state == ParserState.IN_QUESTION_BODY:
                if (
                    i >= len(lines)
                    or is_answer_header(lines[i])
                    or is_assignment_header(lines[i])
                ):
                    state = ParserState.IN_ANSWER_BLOCK
                    continue
                body.append(lines[i])
                i += 1

            else:
                question_text = " ".join(body)
                question, i = parse_assignment_block(
                    lines, i, question_text, points
                )
                if question is None:
                    question, i = parse_choice_block(
                        lines, i, question_text, points
                    )
                logger.debug(
                    f"Question {len(questions) + 1}: {question.type.value}, "
                    f"{len(question.answers)} answers, "
                    f"{question.points_total} points"
                )
                questions.append(question)
                state = ParserState.SEEKING_HEADER

        return questions
