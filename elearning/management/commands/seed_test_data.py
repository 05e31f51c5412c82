import logging
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from django.contrib.auth.models import User

from ...models import (
    Course,
    Unit,
    Lesson,
    LessonQuiz,
    UnitExam,
    ExamAttempt,
    Enrollment,
    ProgressRecord,
    ActivityLog,
    Profile,
)
from ...services import OrderingService
from ...services.scoring import total_points_for

# Configure logger
logger = logging.getLogger(__name__)

# Kurs-Titel -> (AP Exam Type, kostenlos, Preis)
COURSES = {
    "AP Calculus AB Complete Prep": ("AP_CALCULUS_AB", True, None),
    "AP Biology Crash Course": ("AP_BIOLOGY", True, None),
    "AP Chemistry Masterclass": ("AP_CHEMISTRY", False, Decimal("49.99")),
}

UNIT_TITLES = [
    "Limits and Continuity",
    "Differentiation Basics",
    "Applications of Derivatives",
]

LESSON_TITLES = [
    "Introduction",
    "Worked Examples",
    "Practice Problems",
]

VIDEO_URL = "https://www.youtube.com/watch?v=riXcZT2ICjA"


def build_exam_questions():
    """Kleiner Fragensatz mit beiden Fragetypen."""
    return {
        "multipleChoice": {
            "partA": [
                {
                    "question": f"Multiple choice question {i + 1}",
                    "options": ["A", "B", "C", "D"],
                    "correctAnswer": "A",
                    "points": 1,
                }
                for i in range(5)
            ],
            "partB": [],
        },
        "freeResponse": {
            "partA": [
                {
                    "question": "Explain your reasoning.",
                    "totalPoints": 6,
                    "parts": [{"subParts": [{"label": "a"}, {"label": "b"}]}],
                }
            ],
            "partB": [],
        },
    }


class Command(BaseCommand):
    help = "Cleans and seeds the database with demo courses, units, lessons and exams."

    def add_arguments(self, parser):
        parser.add_argument(
            "--keep",
            action="store_true",
            help="Vorhandene Kursdaten nicht löschen.",
        )

    def _create_users(self):
        User.objects.filter(username__in=["admin", "student"]).delete()

        admin = User.objects.create_user(
            username="admin",
            password="admin",
            email="admin@example.com",
            is_staff=True,
            is_superuser=True,
        )
        student = User.objects.create_user(
            username="student", password="student", email="student@example.com"
        )
        Profile.objects.filter(user=admin).update(role=Profile.Role.ADMIN)
        self.stdout.write(self.style.SUCCESS("Benutzer 'admin' und 'student' erstellt."))
        return admin, student

    def _create_course(self, title, ap_exam_type, is_free, price):
        course = Course.objects.create(
            title=title,
            description=f"Strukturierte Vorbereitung: {title}.",
            ap_exam_type=ap_exam_type,
            is_free=is_free,
            price=price,
            is_published=True,
        )
        units = OrderingService(Unit, "course", "unit", "course")
        lessons = OrderingService(Lesson, "unit", "lesson", "unit")

        for unit_title in UNIT_TITLES:
            unit = units.insert(course, title=unit_title, description="")
            for lesson_title in LESSON_TITLES:
                lesson = lessons.insert(
                    unit,
                    title=f"{unit_title}: {lesson_title}",
                    content="Lesson content",
                    video_url=VIDEO_URL,
                    duration=15,
                    is_published=True,
                )
                if lesson_title == "Practice Problems":
                    LessonQuiz.objects.create(
                        lesson=lesson,
                        title=f"Quiz: {unit_title}",
                        questions=[{"question": "Quick check", "correctAnswer": "A"}],
                        is_published=True,
                    )

            questions = build_exam_questions()
            UnitExam.objects.create(
                unit=unit,
                title=f"{unit_title} Assessment",
                questions=questions,
                total_points=total_points_for(questions),
                passing_score=70,
                time_limit=45,
                order=1,
                max_attempts=3,
                is_published=True,
            )
        return course

    def handle(self, *args, **options):
        if not options["keep"]:
            self.stdout.write(self.style.WARNING("Starting database cleanup before seeding..."))
            ActivityLog.objects.all().delete()
            ExamAttempt.objects.all().delete()
            ProgressRecord.objects.all().delete()
            Enrollment.objects.all().delete()
            Course.objects.all().delete()
            self.stdout.write("  - Kursdaten gelöscht.")

        with transaction.atomic():
            _admin, student = self._create_users()

            self.stdout.write(self.style.SUCCESS("Starting database seeding..."))
            created = []
            for title, (ap_exam_type, is_free, price) in COURSES.items():
                created.append(self._create_course(title, ap_exam_type, is_free, price))

            # Student in den ersten kostenlosen Kurs einschreiben
            first_free = next(course for course in created if course.is_free)
            Enrollment.objects.create(
                user=student,
                course=first_free,
                payment_status=Enrollment.PaymentStatus.PAID,
            )

        logger.info(f"Seed abgeschlossen: {len(created)} Kurse")
        self.stdout.write(self.style.SUCCESS(f"{len(created)} Kurse erstellt."))
