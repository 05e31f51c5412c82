"""
Course Duplication Service für die Course Platform

Kopiert einen Kurs mit seinen Inhalten in einen neuen Kurs:
- Kursdaten aus der Anfrage, Einstellungen optional vom Original
- Units und Lektionen in aufsteigender Reihenfolge (Positionen bleiben gleich)
- Lektions-Quizzes und Unit-Prüfungen optional

Einschreibungen, Prüfungsversuche, Fortschrittsdaten und das
Aktivitätsprotokoll werden nie kopiert. Alles läuft in einer Transaktion.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from django.db import transaction
from django.db.models import Prefetch

from ..courses.models import Course, Lesson, LessonQuiz, Unit
from ..exceptions import NotFound
from ..final_exam.models import UnitExam

logger = logging.getLogger(__name__)

LESSON_FIELDS = ("title", "description", "content", "video_url", "duration", "order", "is_published")
QUIZ_FIELDS = ("title", "description", "questions", "passing_score", "is_published")
EXAM_FIELDS = (
    "title",
    "description",
    "instructions",
    "exam_type",
    "questions",
    "structure",
    "passing_score",
    "total_points",
    "time_limit",
    "order",
    "max_attempts",
    "available_from",
    "available_until",
    "is_published",
)


@dataclass
class DuplicationResult:
    """Zusammenfassung einer Kursduplikation."""
    course: Course
    units: int = 0
    lessons: int = 0
    quizzes: int = 0
    exams: int = 0


def _copy_fields(instance, fields) -> Dict[str, Any]:
    return {name: getattr(instance, name) for name in fields}


class CourseDuplicationService:
    """
    Service für die Duplikation von Kursen.

    Example:
        >>> result = CourseDuplicationService().duplicate(course_id, validated_data)
        >>> result.course.units.count() == original.units.count()
    """

    def __init__(self):
        self.logger = logger

    def _load_source(self, course_id) -> Course:
        lessons = Lesson.objects.order_by("order").prefetch_related("quizzes")
        units = Unit.objects.order_by("order").prefetch_related(
            Prefetch("lessons", queryset=lessons),
            Prefetch("exams", queryset=UnitExam.objects.order_by("order", "id")),
        )
        source = (
            Course.objects.prefetch_related(Prefetch("units", queryset=units), "prerequisite_courses")
            .filter(pk=course_id)
            .first()
        )
        if source is None:
            raise NotFound("Course not found")
        return source

    def duplicate(self, course_id, data: Dict[str, Any]) -> DuplicationResult:
        """
        Dupliziert einen Kurs.

        Args:
            course_id: ID des Originalkurses
            data: Validierte Anfrage (Kursfelder und Optionen
                ``duplicate_content``, ``duplicate_quizzes``,
                ``duplicate_exams``, ``duplicate_settings``,
                ``publish_immediately``)

        Returns:
            DuplicationResult mit dem neuen Kurs und Zählern

        Raises:
            NotFound: Originalkurs existiert nicht
        """
        source = self._load_source(course_id)

        with transaction.atomic():
            course_fields = {
                "title": data["title"],
                "description": data.get("description") or "",
                "ap_exam_type": data["ap_exam_type"],
                "is_free": data.get("is_free", True),
                "price": None if data.get("is_free", True) else data.get("price"),
                "image_url": data.get("image_url") or "",
                "is_published": bool(data.get("publish_immediately")),
            }
            if data.get("duplicate_settings"):
                course_fields.update(_copy_fields(source, Course.SETTINGS_FIELDS))

            course = Course.objects.create(**course_fields)
            result = DuplicationResult(course=course)

            if data.get("duplicate_settings"):
                course.prerequisite_courses.set(source.prerequisite_courses.all())

            if data.get("duplicate_content"):
                for source_unit in source.units.all():
                    self._duplicate_unit(source_unit, course, data, result)

        self.logger.info(
            f"Kurs {source.id} dupliziert als {course.id}: {result.units} Units, "
            f"{result.lessons} Lektionen, {result.quizzes} Quizzes, {result.exams} Prüfungen"
        )
        return result

    def _duplicate_unit(self, source_unit: Unit, course: Course, data, result: DuplicationResult) -> None:
        unit = Unit.objects.create(
            course=course,
            title=source_unit.title,
            description=source_unit.description,
            order=source_unit.order,
        )
        result.units += 1

        for source_lesson in source_unit.lessons.all():
            lesson = Lesson.objects.create(unit=unit, **_copy_fields(source_lesson, LESSON_FIELDS))
            result.lessons += 1

            if data.get("duplicate_quizzes"):
                for quiz in source_lesson.quizzes.all():
                    LessonQuiz.objects.create(lesson=lesson, **_copy_fields(quiz, QUIZ_FIELDS))
                    result.quizzes += 1

        if data.get("duplicate_exams"):
            for exam in source_unit.exams.all():
                UnitExam.objects.create(unit=unit, **_copy_fields(exam, EXAM_FIELDS))
                result.exams += 1
