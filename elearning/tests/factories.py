"""Hilfsfunktionen zum Anlegen von Testdaten."""

from decimal import Decimal

from django.contrib.auth.models import User

from elearning.models import (
    Course,
    Enrollment,
    Lesson,
    Profile,
    Unit,
    UnitExam,
)


def make_user(username="student", role=Profile.Role.STUDENT):
    user = User.objects.create_user(username=username, password="Testpasswort123")
    Profile.objects.filter(user=user).update(role=role)
    return User.objects.get(pk=user.pk)


def make_admin(username="admin"):
    return make_user(username, role=Profile.Role.ADMIN)


def make_course(title="AP Biology", is_free=True, price=None, is_published=True, **fields):
    return Course.objects.create(
        title=title,
        ap_exam_type="AP_BIOLOGY",
        is_free=is_free,
        price=Decimal(price) if price is not None else None,
        is_published=is_published,
        **fields,
    )


def make_unit(course, order, title=None):
    return Unit.objects.create(course=course, order=order, title=title or f"Unit {order}")


def make_lesson(unit, order, title=None):
    return Lesson.objects.create(unit=unit, order=order, title=title or f"Lesson {order}")


def mc_questions(count=2, points=1):
    """Fragensatz nur mit Multiple Choice, richtige Antwort ist immer "A"."""
    return {
        "multipleChoice": {
            "partA": [
                {"question": f"Q{i}", "correctAnswer": "A", "points": points}
                for i in range(count)
            ]
        }
    }


def make_exam(unit, questions=None, **fields):
    values = {
        "title": "Unit Exam",
        "questions": questions or mc_questions(),
        "passing_score": 70,
        "max_attempts": 2,
        "is_published": True,
        "order": 1,
    }
    values.update(fields)
    return UnitExam.objects.create(unit=unit, **values)


def enroll(user, course, status=Enrollment.Status.ACTIVE):
    return Enrollment.objects.create(
        user=user,
        course=course,
        payment_status=Enrollment.PaymentStatus.PAID,
        status=status,
    )
