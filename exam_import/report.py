"""
Import Report
=============
Post-import summary of a decoded exam.

Reports, never judges: business validation belongs to the exam service.
The summary lists:
    - Total questions and their split by type
    - Total points and the pass threshold
    - Questions without any answers
    - Choice questions without a correct answer
    - Assignment answers without an assigned option
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import Exam, ImportReport, QuestionType

logger = logging.getLogger(__name__)

_CHOICE_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)


class ImportReporter:
    """
    Summarizes an imported exam and logs the result.
    """

    def summarize(self, exam: Exam) -> ImportReport:
        """
        Build the summary for one exam.

        Args:
            exam: Exam produced by either decoder.

        Returns:
            ImportReport describing the exam's content.
        """
        report = ImportReport(
            total_questions=len(exam.questions),
            total_points=exam.points_total,
            points_to_succeeded=exam.points_to_succeeded,
        )

        if not exam.questions:
            logger.warning(f"Exam '{exam.name}' contains no questions")
            return report

        type_counts = Counter(q.type.value for q in exam.questions)
        report.questions_by_type = dict(type_counts)

        for position, question in enumerate(exam.questions, start=1):
            if not question.answers:
                report.questions_without_answers.append(position)
                continue

            if question.type in _CHOICE_TYPES and question.correct_answer_count == 0:
                report.questions_without_correct_answer.append(position)

            if question.type == QuestionType.ASSIGNMENT:
                report.unassigned_answers += question.unassigned_answer_count

        logger.info(
            f"Import report for '{exam.name}': "
            f"{report.total_questions} questions, "
            f"{report.total_points} points, "
            f"pass at {report.points_to_succeeded}"
        )
        for question_type, count in sorted(report.questions_by_type.items()):
            logger.info(f"  • {question_type}: {count}")
        if report.questions_without_answers:
            logger.info(
                f"Questions without answers: {report.questions_without_answers}"
            )
        if report.questions_without_correct_answer:
            logger.info(
                f"Questions without a correct answer: "
                f"{report.questions_without_correct_answer}"
            )
        if report.unassigned_answers:
            logger.info(f"Unassigned answers: {report.unassigned_answers}")

        return report
