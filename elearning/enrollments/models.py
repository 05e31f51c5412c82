"""
E-Learning Enrollment and Progress Models

Models:
- Enrollment: Link between a user and a course, unique per (user, course)
- ProgressRecord: Typed completion state of one lesson or unit for an enrollment
- ActivityLog: Append-only audit trail of learner actions

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models
from django.db.models import Q
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from ..courses.models import Course, Lesson, Unit


class Enrollment(models.Model):
    """
    Enrollment of a user in a course.

    A course cannot be deleted while enrollments reference it.
    """

    class PaymentStatus(models.TextChoices):
        PAID = "PAID", _("Paid")
        PENDING = "PENDING", _("Pending")
        REFUNDED = "REFUNDED", _("Refunded")

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", _("Active")
        SUSPENDED = "SUSPENDED", _("Suspended")
        COMPLETED = "COMPLETED", _("Completed")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.PROTECT,
        related_name="enrollments",
    )
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        ordering = ["-enrolled_at"]
        db_table = "elearning_enrollment"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "course"], name="unique_enrollment_per_user_course"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user.username} -> {self.course.title}"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class ProgressRecord(models.Model):
    """
    Completion state of a single lesson or unit inside an enrollment.

    Exactly one of ``lesson`` and ``unit`` is set.
    """

    enrollment = models.ForeignKey(
        Enrollment,
        on_delete=models.CASCADE,
        related_name="progress_records",
    )
    lesson = models.ForeignKey(
        Lesson,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="progress_records",
    )
    unit = models.ForeignKey(
        Unit,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="progress_records",
    )
    started = models.BooleanField(default=False)
    completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Progress Record")
        verbose_name_plural = _("Progress Records")
        db_table = "elearning_progress_record"
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(lesson__isnull=False, unit__isnull=True)
                    | Q(lesson__isnull=True, unit__isnull=False)
                ),
                name="progress_record_lesson_xor_unit",
            ),
            models.UniqueConstraint(
                fields=["enrollment", "lesson"],
                condition=Q(lesson__isnull=False),
                name="unique_lesson_progress_per_enrollment",
            ),
            models.UniqueConstraint(
                fields=["enrollment", "unit"],
                condition=Q(unit__isnull=False),
                name="unique_unit_progress_per_enrollment",
            ),
        ]

    def __str__(self) -> str:
        target = f"lesson {self.lesson_id}" if self.lesson_id else f"unit {self.unit_id}"
        return f"{self.enrollment} [{target}] completed={self.completed}"


class ActivityLog(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="activity_logs",
    )
    action = models.CharField(max_length=50)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=64)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Activity Log")
        verbose_name_plural = _("Activity Logs")
        ordering = ["-created_at"]
        db_table = "elearning_activity_log"

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id} by {self.user_id}"

    @classmethod
    def record(cls, user, action: str, entity_type: str, entity_id, **details):
        return cls.objects.create(
            user=user,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details=details,
        )
