"""
Grading Service für die Course Platform

Manuelle Bewertung abgegebener Prüfungsversuche durch Admins:
- Warteschlange der Versuche mit offenen Free-Response-Fragen
- Bewertungsstand eines einzelnen Versuchs
- Punkte pro Frage vergeben (0 bis Maximalpunkte der Frage), danach werden
  ``score``, ``points_earned`` und ``passed`` neu berechnet
- Bewertung abschließen (erst wenn keine Frage mehr offen ist); ein
  bestandener Versuch schließt die Unit im Fortschritt ab

Fragen werden wie Antworten über ``"<section>-<index>"`` adressiert.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, List

from django.db import transaction
from django.utils import timezone

from ..enrollments.models import ActivityLog, Enrollment
from ..exceptions import NotFound, ValidationError
from ..final_exam.models import ExamAttempt
from .progress_service import ProgressService
from .scoring import (
    apply_manual_scores,
    iter_question_results,
    find_question_result,
    percentage,
    score_exam,
)
from .validation import parse_id

logger = logging.getLogger(__name__)

OPEN_GRADING = (
    ExamAttempt.GradingStatus.PENDING,
    ExamAttempt.GradingStatus.IN_PROGRESS,
)


class ExamGradingService:
    """
    Service für die manuelle Bewertung von Prüfungsversuchen.

    Example:
        >>> service = ExamGradingService(request.user)
        >>> service.update_score(attempt_id, {"questionKey": "2-0", "score": 4})
    """

    def __init__(self, grader):
        self.grader = grader
        self.logger = logger

    # --- Laden ---

    def _attempts(self):
        return ExamAttempt.objects.select_related("exam__unit__course", "user", "graded_by")

    def get_attempt(self, attempt_id, lock: bool = False) -> ExamAttempt:
        queryset = self._attempts()
        if lock:
            queryset = queryset.select_for_update(of=("self",))
        attempt = queryset.filter(pk=parse_id(attempt_id, "attemptId")).first()
        if attempt is None:
            raise NotFound("Exam attempt not found")
        if attempt.completed_at is None:
            raise ValidationError("Exam attempt has not been submitted yet")
        return attempt

    @staticmethod
    def breakdown_for(attempt: ExamAttempt) -> Dict[str, Any]:
        # Ältere Versuche ohne gespeicherte Aufschlüsselung neu bewerten
        if attempt.score_breakdown:
            return attempt.score_breakdown
        return score_exam(attempt.exam.questions, attempt.answers or {})["breakdown"]

    # --- Lesen ---

    def pending(self) -> Dict[str, Any]:
        """Versuche mit offener Bewertung, älteste Abgabe zuerst."""
        now = timezone.now()
        attempts = self._attempts().filter(grading_status__in=OPEN_GRADING).order_by(
            "completed_at", "id"
        )
        items = [
            {
                "attemptId": attempt.id,
                "student": {"id": attempt.user_id, "username": attempt.user.username},
                "examId": attempt.exam_id,
                "examTitle": attempt.exam.title,
                "courseId": attempt.exam.unit.course_id,
                "courseTitle": attempt.exam.unit.course.title,
                "completedAt": attempt.completed_at,
                "daysSinceSubmission": (now - attempt.completed_at).days,
                "gradingStatus": attempt.grading_status,
                "provisionalScore": attempt.score,
            }
            for attempt in attempts
        ]
        return {"attempts": items, "total": len(items)}

    def detail(self, attempt_id) -> Dict[str, Any]:
        """Bewertungsstand eines Versuchs mit allen Fragen."""
        attempt = self.get_attempt(attempt_id)
        return self._summary(attempt, self.breakdown_for(attempt))

    def _summary(self, attempt: ExamAttempt, breakdown: Dict[str, Any]) -> Dict[str, Any]:
        questions: List[Dict[str, Any]] = []
        free_response = graded = 0
        for key, group, result in iter_question_results(breakdown):
            is_free_response = group == "freeResponse"
            if is_free_response:
                free_response += 1
                if key in (attempt.manual_scores or {}):
                    graded += 1
            questions.append({"questionKey": key, "type": group, **result})

        return {
            "attemptId": attempt.id,
            "examId": attempt.exam_id,
            "examTitle": attempt.exam.title,
            "student": {"id": attempt.user_id, "username": attempt.user.username},
            "questions": questions,
            "totalQuestions": len(questions),
            "freeResponseQuestions": free_response,
            "gradedFreeResponseQuestions": graded,
            "gradingProgress": percentage(graded, free_response) if free_response else 100,
            "isComplete": not any(q.get("needsManualGrading") for q in questions),
            "score": attempt.score,
            "pointsEarned": attempt.points_earned,
            "totalPoints": attempt.total_points,
            "passed": attempt.passed,
            "gradingStatus": attempt.grading_status,
            "gradedAt": attempt.graded_at,
            "instructorFeedback": attempt.instructor_feedback,
            "needsReview": attempt.needs_review,
        }

    # --- Schreiben ---

    def update_score(self, attempt_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Vergibt Punkte für eine einzelne Frage und berechnet das Ergebnis neu.

        Args:
            attempt_id: ID des Versuchs
            data: ``questionKey``, ``score`` und optional ``feedback``

        Raises:
            NotFound: Versuch oder Frage existiert nicht
            ValidationError: Versuch nicht abgegeben, Bewertung bereits
                abgeschlossen oder Punkte außerhalb 0..Maximalpunkte
        """
        key = data["questionKey"]
        score = data["score"]

        with transaction.atomic():
            attempt = self.get_attempt(attempt_id, lock=True)
            if attempt.grading_status == ExamAttempt.GradingStatus.COMPLETED:
                raise ValidationError("Grading has already been completed")

            breakdown = self.breakdown_for(attempt)
            question = find_question_result(breakdown, key)
            if question is None:
                raise NotFound("Question not found in this exam")

            max_points = question["totalPoints"]
            if score < 0 or score > max_points:
                raise ValidationError(f"Score must be between 0 and {max_points} points")

            manual_scores = dict(attempt.manual_scores or {})
            manual_scores[key] = {
                "score": score,
                "feedback": data.get("feedback") or "",
                "gradedBy": self.grader.pk,
                "gradedAt": timezone.now().isoformat(),
            }
            result = apply_manual_scores(breakdown, manual_scores)

            attempt.manual_scores = manual_scores
            attempt.score_breakdown = result["breakdown"]
            attempt.score = result["percentage"]
            attempt.points_earned = result["pointsEarned"]
            attempt.total_points = result["totalPoints"]
            attempt.passed = result["percentage"] >= attempt.exam.passing_score
            attempt.grading_status = ExamAttempt.GradingStatus.IN_PROGRESS
            attempt.graded_by = self.grader
            attempt.save()

            ActivityLog.record(
                self.grader,
                "EXAM_GRADED",
                "EXAM_ATTEMPT",
                attempt.id,
                questionKey=key,
                questionScore=score,
                score=attempt.score,
                passed=attempt.passed,
            )

        self.logger.info(
            f"Frage {key} in Versuch {attempt.id} bewertet: {score}/{max_points} "
            f"(gesamt {attempt.score} %, grader={self.grader.pk})"
        )
        return {
            "success": True,
            "message": "Score updated successfully",
            "questionKey": key,
            "score": score,
            "attempt": {
                "id": attempt.id,
                "score": attempt.score,
                "pointsEarned": attempt.points_earned,
                "totalPoints": attempt.total_points,
                "passed": attempt.passed,
                "gradingStatus": attempt.grading_status,
                "pendingQuestions": result["pendingQuestions"],
            },
        }

    def complete(self, attempt_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Schließt die Bewertung eines Versuchs ab.

        Raises:
            ValidationError: Es sind noch Fragen offen oder die Bewertung ist
                bereits abgeschlossen
        """
        with transaction.atomic():
            attempt = self.get_attempt(attempt_id, lock=True)
            if attempt.grading_status == ExamAttempt.GradingStatus.COMPLETED:
                raise ValidationError("Grading has already been completed")

            breakdown = self.breakdown_for(attempt)
            pending = apply_manual_scores(breakdown, attempt.manual_scores or {})[
                "pendingQuestions"
            ]
            if pending:
                raise ValidationError(
                    f"Cannot complete grading: {pending} free response question(s) still pending"
                )

            attempt.grading_status = ExamAttempt.GradingStatus.COMPLETED
            attempt.graded_at = timezone.now()
            attempt.graded_by = self.grader
            attempt.instructor_feedback = data.get("feedback") or ""
            attempt.needs_review = bool(data.get("needsReview"))
            attempt.save()

            if attempt.passed:
                enrollment = Enrollment.objects.filter(
                    user=attempt.user, course_id=attempt.exam.unit.course_id
                ).first()
                if enrollment is not None:
                    ProgressService(attempt.user).record_exam_result(
                        enrollment, attempt.exam.unit, passed=True
                    )

            ActivityLog.record(
                self.grader,
                "EXAM_GRADING_COMPLETED",
                "EXAM_ATTEMPT",
                attempt.id,
                studentId=attempt.user_id,
                score=attempt.score,
                passed=attempt.passed,
                needsReview=attempt.needs_review,
            )

        self.logger.info(
            f"Bewertung von Versuch {attempt.id} abgeschlossen: score={attempt.score} "
            f"passed={attempt.passed} grader={self.grader.pk}"
        )
        return {
            "success": True,
            "message": "Grading completed successfully",
            "attempt": {
                "id": attempt.id,
                "score": attempt.score,
                "passed": attempt.passed,
                "gradedAt": attempt.graded_at,
                "gradingStatus": attempt.grading_status,
                "needsReview": attempt.needs_review,
            },
        }
