"""
Exam Overview Service für die Course Platform

Prüfungsübersicht eines Studenten über alle eingeschriebenen Kurse oder
für einen einzelnen Kurs. Der Status jeder Prüfung wird aus Veröffentlichung,
Verfügbarkeitsfenster und den eigenen Versuchen abgeleitet:

    unavailable / upcoming / expired   (nicht verfügbar)
    in-progress                        (laufender Versuch)
    passed / failed / retake           (nach dem besten abgegebenen Versuch)
    available                          (noch kein Versuch)

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from django.db.models import Prefetch
from django.utils import timezone

from ..courses.models import Lesson, Unit
from ..enrollments.models import Enrollment
from ..exceptions import NotFound, ValidationError
from ..final_exam.models import ExamAttempt, UnitExam
from .progress_service import ProgressService
from .scoring import percentage, round_half_up

logger = logging.getLogger(__name__)

EXAM_STATUS_LABELS = {
    "in-progress": "In Progress",
    "available": "Available",
    "retake": "Retake Available",
    "upcoming": "Upcoming",
    "passed": "Passed",
    "failed": "Failed",
    "expired": "Expired",
    "unavailable": "Not Available",
}

# Reihenfolge in der Übersicht, entspricht der Reihenfolge der Labels
STATUS_PRIORITY = {name: index for index, name in enumerate(EXAM_STATUS_LABELS)}

EXAM_STATUS_FILTERS = ("all",) + tuple(EXAM_STATUS_LABELS)


def best_attempt(completed: List[ExamAttempt]) -> Optional[ExamAttempt]:
    # Bei Gleichstand gewinnt der zuerst gelistete (neueste) Versuch
    best = None
    for attempt in completed:
        if best is None or (attempt.score or 0) > (best.score or 0):
            best = attempt
    return best


def exam_status(exam: UnitExam, attempts: List[ExamAttempt], now: datetime) -> Dict[str, Any]:
    """
    Status einer Prüfung aus Sicht eines Studenten.

    Args:
        exam: Die Prüfung
        attempts: Versuche des Studenten, neueste zuerst
        now: Bezugszeitpunkt

    Returns:
        Dictionary mit ``status``, ``label``, ``canTake`` und je nach Status
        ``continueAttemptId`` oder ``bestScore``
    """
    completed = [a for a in attempts if a.completed_at is not None]
    running = [a for a in attempts if a.completed_at is None]

    def build(name: str, can_take: bool, **extra) -> Dict[str, Any]:
        return {"status": name, "label": EXAM_STATUS_LABELS[name], "canTake": can_take, **extra}

    if exam.available_from and exam.available_from > now:
        return build("upcoming", False)
    if exam.available_until and exam.available_until <= now:
        return build("expired", False)
    if not exam.is_published:
        return build("unavailable", False)

    if running:
        return build("in-progress", True, continueAttemptId=running[0].id)

    best = best_attempt(completed)
    if best is None:
        return build("available", True)
    if best.passed:
        return build("passed", len(completed) < exam.max_attempts, bestScore=best.score)
    if len(completed) >= exam.max_attempts:
        return build("failed", False, bestScore=best.score)
    return build("retake", True, bestScore=best.score)


def exam_stats(exams: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Kennzahlen über eine Liste von Prüfungseinträgen."""
    def count(*names: str) -> int:
        return sum(1 for exam in exams if exam["status"]["status"] in names)

    finished = count("passed", "failed")
    scored = [exam["bestScore"] for exam in exams if exam["bestScore"] is not None]
    return {
        "total": len(exams),
        "available": count("available"),
        "inProgress": count("in-progress"),
        "completed": finished,
        "passed": count("passed"),
        "retakeAvailable": count("retake"),
        "upcoming": count("upcoming"),
        "averageScore": round_half_up(sum(scored) / len(scored)) if scored else 0,
        "passRate": percentage(count("passed"), finished),
    }


def sort_key(exam: Dict[str, Any]):
    until = exam["availableUntil"]
    return (
        STATUS_PRIORITY[exam["status"]["status"]],
        until is None,
        until or datetime.min.replace(tzinfo=dt_timezone.utc),
        exam["title"],
    )


class ExamOverviewService:
    """
    Service für die Prüfungsübersicht eines Studenten.

    Example:
        >>> service = ExamOverviewService(request.user)
        >>> service.list_exams(status="available")
    """

    def __init__(self, user):
        self.user = user
        self.logger = logger

    def _enrollments(self, course_id: Optional[int] = None):
        own_attempts = ExamAttempt.objects.filter(user=self.user).order_by("-started_at", "-id")
        exams = UnitExam.objects.order_by("order", "id").prefetch_related(
            Prefetch("attempts", queryset=own_attempts, to_attr="own_attempts")
        )
        units = Unit.objects.order_by("order").prefetch_related(
            Prefetch("lessons", queryset=Lesson.objects.order_by("order")),
            Prefetch("exams", queryset=exams),
        )
        queryset = (
            Enrollment.objects.filter(user=self.user)
            .select_related("course")
            .prefetch_related(Prefetch("course__units", queryset=units), "progress_records")
            .order_by("-enrolled_at")
        )
        if course_id is not None:
            queryset = queryset.filter(course_id=course_id)
        return queryset

    @staticmethod
    def exam_entry(exam: UnitExam, unit: Unit, now: datetime) -> Dict[str, Any]:
        attempts = exam.own_attempts
        completed = [a for a in attempts if a.completed_at is not None]
        best = best_attempt(completed)
        course = unit.course
        return {
            "id": exam.id,
            "title": exam.title,
            "description": exam.description,
            "order": exam.order,
            "courseId": course.id,
            "courseTitle": course.title,
            "apExamType": course.ap_exam_type,
            "unitId": unit.id,
            "unitTitle": unit.title,
            "timeLimit": exam.time_limit,
            "maxAttempts": exam.max_attempts,
            "passingScore": exam.passing_score,
            "availableFrom": exam.available_from,
            "availableUntil": exam.available_until,
            "status": exam_status(exam, attempts, now),
            "attempts": {
                "completed": len(completed),
                "total": len(attempts),
                "max": exam.max_attempts,
                "remaining": max(0, exam.max_attempts - len(completed)),
            },
            "bestScore": best.score if best else None,
            "bestAttemptId": best.id if best else None,
            "lastAttempt": attempts[0].started_at if attempts else None,
            "passed": bool(best and best.passed),
        }

    def list_exams(self, status: str = "all", course_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Alle Prüfungen aus den Kursen des Studenten.

        Args:
            status: Status-Filter (``all`` oder ein Prüfungsstatus)
            course_id: Optional nur Prüfungen dieses Kurses

        Raises:
            ValidationError: Unbekannter Status-Filter
        """
        if status not in EXAM_STATUS_FILTERS:
            raise ValidationError(
                f"Invalid status filter. Use one of: {', '.join(EXAM_STATUS_FILTERS)}"
            )

        now = timezone.now()
        exams = [
            self.exam_entry(exam, unit, now)
            for enrollment in self._enrollments()
            for unit in enrollment.course.units.all()
            for exam in unit.exams.all()
        ]

        filtered = [
            exam
            for exam in exams
            if (status == "all" or exam["status"]["status"] == status)
            and (course_id is None or exam["courseId"] == course_id)
        ]
        filtered.sort(key=sort_key)

        return {"exams": filtered, "stats": exam_stats(exams), "total": len(exams)}

    def course_exams(self, course_id: int) -> Dict[str, Any]:
        """
        Prüfungen eines Kurses, gruppiert nach Units mit Unit-Fortschritt.

        Raises:
            NotFound: Nicht in diesem Kurs eingeschrieben
        """
        enrollment = self._enrollments(course_id).first()
        if enrollment is None:
            raise NotFound("Course not found or not enrolled")

        now = timezone.now()
        course = enrollment.course
        state = ProgressService.progress_state(enrollment)
        units = []
        all_exams = []

        for unit in course.units.all():
            lessons = list(unit.lessons.all())
            exams = [self.exam_entry(exam, unit, now) for exam in unit.exams.all()]
            all_exams.extend(exams)

            completed_lessons = sum(1 for lesson in lessons if state.lesson_completed(lesson.id))
            # Wie im Kursfortschritt zählt jede abgegebene Prüfung
            completed_exams = sum(1 for exam in exams if exam["attempts"]["completed"])
            units.append(
                {
                    "id": unit.id,
                    "title": unit.title,
                    "order": unit.order,
                    "description": unit.description,
                    "completion": {
                        "percentage": percentage(
                            completed_lessons + completed_exams, len(lessons) + len(exams)
                        ),
                        "completedLessons": completed_lessons,
                        "totalLessons": len(lessons),
                        "completedExams": completed_exams,
                        "totalExams": len(exams),
                    },
                    "exams": exams,
                    "hasAvailableExams": any(
                        e["status"]["status"] == "available" for e in exams
                    ),
                    "hasInProgressExams": any(
                        e["status"]["status"] == "in-progress" for e in exams
                    ),
                }
            )

        return {
            "course": {
                "id": course.id,
                "title": course.title,
                "description": course.description,
                "apExamType": course.ap_exam_type,
            },
            "units": units,
            "exams": all_exams,
            "stats": exam_stats(all_exams),
        }
