"""
Exam Attempt Service für die Course Platform

Verwaltet den Lebenszyklus eines Prüfungsversuchs:

    NOT_STARTED (kein Versuch) -> IN_PROGRESS (completed_at leer)
                               -> COMPLETED (completed_at gesetzt, endgültig)

Voraussetzungen für einen neuen Versuch (erste Verletzung gewinnt):
1. Aktive Einschreibung im Kurs der Prüfung
2. Prüfung ist veröffentlicht
3. Aktueller Zeitpunkt liegt im Verfügbarkeitsfenster
4. Kein laufender Versuch (Antwort enthält dessen ID)
5. Anzahl abgeschlossener Versuche < max_attempts

Pro (Prüfung, Benutzer) existiert höchstens ein laufender Versuch; das
garantiert ein bedingter Unique-Constraint in der Datenbank.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from ..enrollments.models import ActivityLog, Enrollment
from ..exceptions import ConflictError, Forbidden, NotFound, ValidationError
from ..final_exam.models import ExamAttempt, UnitExam
from .progress_service import ProgressService
from .scoring import pending_manual_grading, score_exam
from .validation import parse_id, parse_optional_int

logger = logging.getLogger(__name__)

IN_PROGRESS_MESSAGE = "You already have an attempt in progress"


def exam_time_limit(exam: UnitExam) -> timedelta:
    """
    Erlaubte Bearbeitungszeit einer Prüfung.

    Summe der Abschnitts-Zeitlimits aus ``structure``, sonst ``time_limit``,
    sonst der konfigurierte Standardwert (90 Minuten).
    """
    minutes = 0
    structure = exam.structure if isinstance(exam.structure, dict) else {}
    for group in ("multipleChoice", "freeResponse"):
        parts = structure.get(group)
        if not isinstance(parts, dict):
            continue
        for part in ("partA", "partB"):
            section = parts.get(part)
            limit = section.get("timeLimit") if isinstance(section, dict) else None
            # Fehlerhafte Werte (z.B. über den Django-Admin gepflegt) zählen nicht
            if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
                minutes += limit

    if not minutes:
        minutes = exam.time_limit or settings.EXAM_DEFAULT_TIME_LIMIT_MINUTES
    return timedelta(minutes=minutes)


class ExamAttemptService:
    """
    Service für Prüfungsversuche eines Studenten.

    Example:
        >>> service = ExamAttemptService(request.user)
        >>> attempt, number = service.start(exam_id)
    """

    def __init__(self, user):
        self.user = user
        self.logger = logger

    def get_exam(self, exam_id) -> UnitExam:
        exam = (
            UnitExam.objects.select_related("unit__course")
            .filter(pk=parse_id(exam_id, "examId"))
            .first()
        )
        if exam is None:
            raise NotFound("Exam not found")
        return exam

    def active_enrollment(self, exam: UnitExam) -> Optional[Enrollment]:
        return Enrollment.objects.filter(
            user=self.user,
            course_id=exam.unit.course_id,
            status=Enrollment.Status.ACTIVE,
        ).first()

    def _in_progress(self, exam: UnitExam) -> Optional[ExamAttempt]:
        return ExamAttempt.objects.filter(
            exam=exam, user=self.user, completed_at__isnull=True
        ).first()

    def check_can_start(self, exam: UnitExam) -> int:
        """
        Prüft alle Voraussetzungen für einen neuen Versuch.

        Returns:
            Anzahl der bereits abgeschlossenen Versuche

        Raises:
            Forbidden: Nicht eingeschrieben, nicht veröffentlicht, außerhalb
                des Zeitfensters oder Versuchslimit erreicht
            ConflictError: Es läuft bereits ein Versuch (``attemptId``)
        """
        if self.active_enrollment(exam) is None:
            raise Forbidden("You are not enrolled in this course")

        if not exam.is_published:
            raise Forbidden("Exam is not published")

        now = timezone.now()
        if exam.available_from and exam.available_from > now:
            raise Forbidden("Exam is not yet available")
        if exam.available_until and exam.available_until < now:
            raise Forbidden("Exam deadline has passed")

        in_progress = self._in_progress(exam)
        if in_progress is not None:
            raise ConflictError(IN_PROGRESS_MESSAGE, extra={"attemptId": in_progress.id})

        completed = ExamAttempt.objects.filter(
            exam=exam, user=self.user, completed_at__isnull=False
        ).count()
        if completed >= exam.max_attempts:
            raise Forbidden("Maximum attempts reached")

        return completed

    def start(self, exam_id) -> Tuple[ExamAttempt, int]:
        """
        Legt einen neuen Versuch an.

        Returns:
            Tuple aus Versuch und (informativer) Versuchsnummer
        """
        exam = self.get_exam(exam_id)
        completed = self.check_can_start(exam)
        attempt_number = completed + 1

        try:
            with transaction.atomic():
                attempt = ExamAttempt.objects.create(
                    exam=exam,
                    user=self.user,
                    started_at=timezone.now(),
                    answers={},
                    current_section=0,
                    current_question=0,
                    status=ExamAttempt.Status.IN_PROGRESS,
                )
                ActivityLog.record(
                    self.user,
                    "EXAM_STARTED",
                    "EXAM_ATTEMPT",
                    attempt.id,
                    examId=exam.id,
                    attemptNumber=attempt_number,
                )
        except IntegrityError:
            # Paralleler Request hat den laufenden Versuch zuerst angelegt
            existing = self._in_progress(exam)
            self.logger.warning(
                f"Doppelter Versuch abgewiesen: exam={exam.id} user={self.user.pk}"
            )
            raise ConflictError(
                IN_PROGRESS_MESSAGE,
                extra={"attemptId": existing.id if existing else None},
            )

        self.logger.info(
            f"Prüfungsversuch {attempt.id} gestartet: exam={exam.id} "
            f"user={self.user.pk} nummer={attempt_number}"
        )
        return attempt, attempt_number

    def list_attempts(self, exam_id) -> Dict[str, Any]:
        """Alle Versuche des Benutzers, neueste zuerst, mit Zusammenfassung."""
        exam = self.get_exam(exam_id)
        attempts = list(
            ExamAttempt.objects.filter(exam=exam, user=self.user).order_by(
                "-started_at", "-id"
            )
        )
        completed = [a for a in attempts if a.completed_at is not None]
        in_progress = next((a for a in attempts if a.completed_at is None), None)

        return {
            "attempts": [
                {
                    "id": attempt.id,
                    "startedAt": attempt.started_at,
                    "completedAt": attempt.completed_at,
                    "score": attempt.score,
                    "passed": attempt.passed,
                    "timeUsed": attempt.time_used,
                    "status": attempt.status,
                }
                for attempt in attempts
            ],
            "summary": {
                "totalAttempts": len(attempts),
                "completedAttempts": len(completed),
                "maxAttempts": exam.max_attempts,
                "hasInProgress": in_progress is not None,
                "inProgressAttemptId": in_progress.id if in_progress else None,
                "bestScore": max((a.score or 0 for a in completed), default=None),
            },
        }

    def get_saved_state(self, exam_id, attempt_id) -> ExamAttempt:
        attempt = ExamAttempt.objects.filter(
            pk=parse_id(attempt_id, "attemptId"),
            exam_id=parse_id(exam_id, "examId"),
            user=self.user,
        ).first()
        if attempt is None:
            raise NotFound("Attempt not found")
        return attempt

    def save_progress(self, exam_id, data: Dict[str, Any]) -> ExamAttempt:
        """
        Speichert Zwischenstand (Antworten, Cursor, Restzeit).

        Raises:
            NotFound: Versuch fehlt, ist abgeschlossen oder gehört jemand anderem
            ValidationError: Zeit abgelaufen (``timeExpired``) oder ungültige Antworten
        """
        attempt_id = parse_id(data.get("attemptId"), "Attempt ID")
        answers = data.get("answers")
        if answers is not None and not isinstance(answers, dict):
            raise ValidationError("Invalid answers format")

        with transaction.atomic():
            attempt = (
                ExamAttempt.objects.select_for_update()
                .select_related("exam")
                .filter(
                    pk=attempt_id,
                    exam_id=parse_id(exam_id, "examId"),
                    user=self.user,
                    completed_at__isnull=True,
                )
                .first()
            )
            if attempt is None:
                raise NotFound("Attempt not found or already completed")

            if timezone.now() - attempt.started_at > exam_time_limit(attempt.exam):
                raise ValidationError("Time limit exceeded", extra={"timeExpired": True})

            if answers is not None:
                attempt.answers = answers
            for key, attr in (
                ("currentSection", "current_section"),
                ("currentQuestion", "current_question"),
                ("timeRemaining", "time_remaining"),
            ):
                value = parse_optional_int(data.get(key), key)
                if value is not None:
                    setattr(attempt, attr, value)
            attempt.last_saved_at = timezone.now()
            attempt.save()

        return attempt

    def submit(self, exam_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Gibt einen laufenden Versuch ab und bewertet ihn.

        Multiple Choice wird automatisch bewertet, Free Response vorläufig.
        Die Unit wird als begonnen (bei Bestehen als abgeschlossen) markiert.

        Raises:
            ValidationError: ``attemptId`` oder ``answers`` fehlen
            NotFound: Versuch fehlt, ist abgeschlossen oder gehört jemand anderem
            Forbidden: Keine aktive Einschreibung mehr
        """
        answers = data.get("answers")
        if not data.get("attemptId") or answers is None:
            raise ValidationError("Attempt ID and answers are required")
        if not isinstance(answers, dict):
            raise ValidationError("Invalid answers format")
        attempt_id = parse_id(data.get("attemptId"), "Attempt ID")
        time_used = parse_optional_int(data.get("timeUsed"), "timeUsed")

        with transaction.atomic():
            attempt = (
                ExamAttempt.objects.select_for_update()
                .select_related("exam__unit")
                .filter(
                    pk=attempt_id,
                    exam_id=parse_id(exam_id, "examId"),
                    user=self.user,
                    completed_at__isnull=True,
                )
                .first()
            )
            if attempt is None:
                raise NotFound("Attempt not found, already completed, or access denied")

            exam = attempt.exam
            enrollment = self.active_enrollment(exam)
            if enrollment is None:
                raise Forbidden("You are no longer enrolled in this course")

            result = score_exam(exam.questions, answers)
            passed = result["percentage"] >= exam.passing_score
            now = timezone.now()

            attempt.answers = answers
            attempt.completed_at = now
            attempt.status = ExamAttempt.Status.COMPLETED
            attempt.score = result["percentage"]
            attempt.points_earned = result["pointsEarned"]
            attempt.total_points = result["totalPoints"]
            attempt.passed = passed
            attempt.time_used = (
                time_used
                if time_used is not None
                else int((now - attempt.started_at).total_seconds())
            )
            attempt.score_breakdown = result["breakdown"]
            attempt.grading_status = (
                ExamAttempt.GradingStatus.PENDING
                if pending_manual_grading(result["breakdown"])
                else ExamAttempt.GradingStatus.NOT_REQUIRED
            )
            attempt.save()

            ProgressService(self.user).record_exam_result(enrollment, exam.unit, passed)

            attempt_number = ExamAttempt.objects.filter(
                exam=exam, user=self.user, completed_at__isnull=False
            ).count()
            ActivityLog.record(
                self.user,
                "EXAM_SUBMITTED",
                "EXAM_ATTEMPT",
                attempt.id,
                examId=exam.id,
                score=attempt.score,
                passed=passed,
                timeUsed=attempt.time_used,
                attempt=attempt_number,
            )

        self.logger.info(
            f"Prüfungsversuch {attempt.id} abgegeben: score={attempt.score} passed={passed}"
        )
        return {
            "success": True,
            "message": "Exam submitted successfully",
            "attempt": {
                "id": attempt.id,
                "score": attempt.score,
                "pointsEarned": attempt.points_earned,
                "totalPoints": attempt.total_points,
                "passed": attempt.passed,
                "completedAt": attempt.completed_at,
                "timeUsed": attempt.time_used,
                "gradingStatus": attempt.grading_status,
            },
            "scoreBreakdown": result["breakdown"],
        }
