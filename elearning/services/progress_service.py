"""
Progress Service für die Course Platform

Berechnet den Lernfortschritt eines Studenten pro Kurs aus Einschreibung,
Fortschrittsdaten (ProgressRecord) und abgeschlossenen Prüfungsversuchen:
- Kursübersicht mit Prozentwert und Status (Filter und Sortierung)
- Detailansicht pro Unit mit Lektionen und Prüfungen
- Markieren von Lektionen und Units als (nicht) abgeschlossen

Hinweis: Eine Prüfung zählt als abgeschlossen, sobald ein Versuch abgegeben
wurde, unabhängig vom Ergebnis (``passed`` wird nicht berücksichtigt).

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from ..courses.models import Lesson, Unit
from ..enrollments.models import Enrollment, ProgressRecord
from ..exceptions import NotFound, ValidationError
from ..final_exam.models import ExamAttempt
from .scoring import percentage
from .validation import parse_id

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_IN_PROGRESS = "in-progress"
STATUS_NOT_STARTED = "not-started"

STATUS_LABELS = {
    STATUS_COMPLETED: "Completed",
    STATUS_IN_PROGRESS: "In Progress",
    STATUS_NOT_STARTED: "Not Started",
}

STATUS_FILTERS = ("all",) + tuple(STATUS_LABELS)
SORT_OPTIONS = ("recent", "name", "progress")


@dataclass
class CourseProgress:
    """Abgeleiteter Fortschritt einer Einschreibung."""
    course_id: int
    title: str
    description: str
    ap_exam_type: str
    enrolled_at: datetime
    total_units: int = 0
    completed_units: int = 0
    started_units: int = 0
    total_lessons: int = 0
    completed_lessons: int = 0
    total_exams: int = 0
    completed_exams: int = 0

    @property
    def progress(self) -> int:
        return percentage(
            self.completed_lessons + self.completed_exams,
            self.total_lessons + self.total_exams,
        )

    @property
    def status(self) -> str:
        if self.total_units > 0 and self.completed_units == self.total_units:
            return STATUS_COMPLETED
        if self.started_units > 0:
            return STATUS_IN_PROGRESS
        return STATUS_NOT_STARTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.course_id,
            "title": self.title,
            "description": self.description,
            "apExamType": self.ap_exam_type,
            "enrolledAt": self.enrolled_at,
            "progress": self.progress,
            "status": {"status": self.status, "label": STATUS_LABELS[self.status]},
            "stats": {
                "totalUnits": self.total_units,
                "completedUnits": self.completed_units,
                "totalLessons": self.total_lessons,
                "completedLessons": self.completed_lessons,
                "totalExams": self.total_exams,
                "completedExams": self.completed_exams,
            },
        }


@dataclass
class ProgressState:
    """Fortschrittsdaten einer Einschreibung als direkte Lookups."""
    lessons: Dict[int, ProgressRecord] = field(default_factory=dict)
    units: Dict[int, ProgressRecord] = field(default_factory=dict)

    def lesson_completed(self, lesson_id: int) -> bool:
        record = self.lessons.get(lesson_id)
        return bool(record and record.completed)

    def unit_completed(self, unit_id: int) -> bool:
        record = self.units.get(unit_id)
        return bool(record and record.completed)

    def unit_started(self, unit_id: int) -> bool:
        record = self.units.get(unit_id)
        return bool(record and record.started)


def filter_and_sort(
    courses: List[CourseProgress], status: str = "all", sort: str = "recent"
) -> List[CourseProgress]:
    """
    Filtert nach Status und sortiert die Kursliste.

    ``name`` sortiert alphabetisch, ``progress`` absteigend nach Prozent,
    ``recent`` (Standard) absteigend nach Einschreibedatum.
    """
    result = list(courses)
    if status != "all":
        result = [course for course in result if course.status == status]

    if sort == "name":
        result.sort(key=lambda course: course.title.casefold())
    elif sort == "progress":
        result.sort(key=lambda course: course.progress, reverse=True)
    else:
        result.sort(key=lambda course: course.enrolled_at, reverse=True)
    return result


class ProgressService:
    """
    Service für die Fortschrittsberechnung eines Studenten.

    Example:
        >>> service = ProgressService(request.user)
        >>> service.list_courses(status="in-progress", sort="progress")
    """

    def __init__(self, user):
        self.user = user
        self.logger = logger

    # --- Laden ---

    def _enrollments(self, course_id: Optional[int] = None):
        units = Unit.objects.order_by("order").prefetch_related(
            Prefetch("lessons", queryset=Lesson.objects.order_by("order")),
            "exams",
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
    def progress_state(enrollment: Enrollment) -> ProgressState:
        state = ProgressState()
        for record in enrollment.progress_records.all():
            if record.lesson_id:
                state.lessons[record.lesson_id] = record
            elif record.unit_id:
                state.units[record.unit_id] = record
        return state

    def _completed_exam_ids(self) -> Set[int]:
        return set(
            ExamAttempt.objects.filter(user=self.user, completed_at__isnull=False)
            .values_list("exam_id", flat=True)
            .distinct()
        )

    # --- Berechnung ---

    def course_progress(
        self, enrollment: Enrollment, completed_exam_ids: Optional[Set[int]] = None
    ) -> CourseProgress:
        """
        Berechnet den Fortschritt einer einzelnen Einschreibung.

        Args:
            enrollment: Einschreibung des Studenten
            completed_exam_ids: IDs der Prüfungen mit mindestens einem
                abgegebenen Versuch (wird sonst geladen)
        """
        if completed_exam_ids is None:
            completed_exam_ids = self._completed_exam_ids()

        course = enrollment.course
        state = self.progress_state(enrollment)
        result = CourseProgress(
            course_id=course.id,
            title=course.title,
            description=course.description,
            ap_exam_type=course.ap_exam_type,
            enrolled_at=enrollment.enrolled_at,
        )

        for unit in course.units.all():
            result.total_units += 1
            if state.unit_completed(unit.id):
                result.completed_units += 1
            if state.unit_started(unit.id):
                result.started_units += 1

            for lesson in unit.lessons.all():
                result.total_lessons += 1
                if state.lesson_completed(lesson.id):
                    result.completed_lessons += 1

            for exam in unit.exams.all():
                result.total_exams += 1
                if exam.id in completed_exam_ids:
                    result.completed_exams += 1

        return result

    def list_courses(self, status: str = "all", sort: str = "recent") -> Dict[str, Any]:
        """
        Kursübersicht des Studenten.

        Raises:
            ValidationError: Unbekannter Status-Filter
        """
        if status not in STATUS_FILTERS:
            raise ValidationError(
                f"Invalid status filter. Use one of: {', '.join(STATUS_FILTERS)}"
            )
        if sort not in SORT_OPTIONS:
            sort = "recent"

        completed_exam_ids = self._completed_exam_ids()
        courses = [
            self.course_progress(enrollment, completed_exam_ids)
            for enrollment in self._enrollments()
        ]

        return {
            "courses": [course.to_dict() for course in filter_and_sort(courses, status, sort)],
            "total": len(courses),
        }

    def detail(self, course_id: Optional[int] = None) -> Any:
        """
        Fortschritt pro Unit mit Lektionen und Prüfungen.

        Returns:
            Ein Dictionary für ``course_id`` (oder None ohne Einschreibung),
            sonst eine Liste über alle Einschreibungen
        """
        attempts: Dict[int, List[ExamAttempt]] = {}
        for attempt in ExamAttempt.objects.filter(
            user=self.user, completed_at__isnull=False
        ).order_by("-started_at"):
            attempts.setdefault(attempt.exam_id, []).append(attempt)

        data = [
            self._enrollment_detail(enrollment, attempts)
            for enrollment in self._enrollments(course_id)
        ]
        if course_id is not None:
            return data[0] if data else None
        return data

    def _enrollment_detail(
        self, enrollment: Enrollment, attempts: Dict[int, List[ExamAttempt]]
    ) -> Dict[str, Any]:
        state = self.progress_state(enrollment)
        units = []

        for unit in enrollment.course.units.all():
            lessons = []
            for lesson in unit.lessons.all():
                record = state.lessons.get(lesson.id)
                lessons.append(
                    {
                        "id": lesson.id,
                        "title": lesson.title,
                        "order": lesson.order,
                        "completed": bool(record and record.completed),
                        "completedAt": record.completed_at if record else None,
                    }
                )

            exams = []
            for exam in unit.exams.all():
                completed = attempts.get(exam.id, [])
                best = max(completed, key=lambda a: a.score or 0) if completed else None
                exams.append(
                    {
                        "id": exam.id,
                        "title": exam.title,
                        "order": exam.order,
                        "completed": bool(completed),
                        "bestScore": best.score if best else None,
                        "passed": bool(best and best.passed),
                        "attempts": len(completed),
                        "maxAttempts": exam.max_attempts,
                    }
                )

            done = sum(1 for lesson in lessons if lesson["completed"]) + sum(
                1 for exam in exams if exam["completed"]
            )
            units.append(
                {
                    "id": unit.id,
                    "title": unit.title,
                    "order": unit.order,
                    "started": state.unit_started(unit.id),
                    "completed": state.unit_completed(unit.id),
                    "progress": percentage(done, len(lessons) + len(exams)),
                    "lessons": lessons,
                    "exams": exams,
                }
            )

        completed_units = sum(1 for unit in units if unit["completed"])
        return {
            "courseId": enrollment.course_id,
            "courseTitle": enrollment.course.title,
            "enrolledAt": enrollment.enrolled_at,
            "overallProgress": percentage(completed_units, len(units)),
            "units": units,
        }

    # --- Schreiben ---

    def _set_record(
        self,
        enrollment: Enrollment,
        completed: bool,
        lesson: Optional[Lesson] = None,
        unit: Optional[Unit] = None,
        started: Optional[bool] = None,
    ) -> ProgressRecord:
        with transaction.atomic():
            record, _created = ProgressRecord.objects.select_for_update().get_or_create(
                enrollment=enrollment, lesson=lesson, unit=unit
            )
            record.completed = completed
            record.completed_at = timezone.now() if completed else None
            if started is not None:
                record.started = started
            record.save()
        return record

    def update(self, data: Dict[str, Any]) -> ProgressRecord:
        """
        Markiert eine Lektion (``type=lesson``) oder Unit (``type=unit``).

        Units werden dabei immer auch als begonnen markiert.

        Raises:
            NotFound: Keine Einschreibung, Lektion oder Unit im Kurs
            ValidationError: Unbekannter Typ oder fehlende ID
        """
        enrollment = Enrollment.objects.filter(
            user=self.user, course_id=parse_id(data.get("courseId"), "courseId")
        ).first()
        if enrollment is None:
            raise NotFound("Enrollment not found")

        progress_type = data.get("type")
        completed = bool(data.get("completed"))

        if progress_type == "lesson" and data.get("lessonId"):
            lesson = Lesson.objects.filter(
                id=parse_id(data["lessonId"], "lessonId"), unit__course_id=enrollment.course_id
            ).first()
            if lesson is None:
                raise NotFound("Lesson not found")
            record = self._set_record(enrollment, completed, lesson=lesson)
        elif progress_type == "unit" and data.get("unitId"):
            unit = Unit.objects.filter(
                id=parse_id(data["unitId"], "unitId"), course_id=enrollment.course_id
            ).first()
            if unit is None:
                raise NotFound("Unit not found")
            record = self._set_record(enrollment, completed, unit=unit, started=True)
        else:
            raise ValidationError("Invalid progress update")

        self.logger.info(
            f"Fortschritt aktualisiert: user={self.user.pk} {progress_type} completed={completed}"
        )
        return record

    def record_exam_result(self, enrollment: Enrollment, unit: Unit, passed: bool) -> ProgressRecord:
        """
        Vermerkt eine abgegebene Prüfung an der Unit: immer begonnen,
        bei Bestehen auch abgeschlossen. Eine bereits abgeschlossene Unit
        bleibt abgeschlossen.
        """
        with transaction.atomic():
            record, _created = ProgressRecord.objects.select_for_update().get_or_create(
                enrollment=enrollment, unit=unit, lesson=None
            )
            record.started = True
            if passed and not record.completed:
                record.completed = True
                record.completed_at = timezone.now()
            record.save()
        return record
