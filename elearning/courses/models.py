"""
E-Learning Course Authoring Models

This module defines the authored content of the platform: courses, their
units, the lessons inside each unit and the quizzes attached to lessons.
Unit exams live in ``final_exam.models`` next to the attempts taken on them.

Models:
- Course: Top-level product with pricing, publish state and settings bundle
- Unit: Ordered section of a course
- Lesson: Ordered learning item inside a unit
- LessonQuiz: Question set attached to a lesson

Ordering:
    Units (per course) and lessons (per unit) carry an integer ``order``
    that is unique inside the parent. Gaps are allowed. All changes to these
    values go through ``elearning.services.ordering_service``.

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.translation import gettext_lazy as _


class Course(models.Model):
    """
    Course model with pricing, publishing and the course settings bundle.

    Attributes:
        title: Course title
        ap_exam_type: Exam-type tag the course prepares for
        is_free / price: Pricing mode; price is required for paid courses
        is_published: Visible and enrollable for students

    Pricing becomes immutable once the course has an enrollment.

    Example:
        >>> course = Course.objects.create(title="AP Biology", ap_exam_type="AP_BIO")
        >>> course.has_enrollments()  # False
    """

    class ProgressTracking(models.TextChoices):
        AUTOMATIC = "AUTOMATIC", _("Automatic")
        MANUAL = "MANUAL", _("Manual")

    class CompletionCriteria(models.TextChoices):
        ALL_LESSONS = "ALL_LESSONS", _("All lessons")
        ALL_EXAMS = "ALL_EXAMS", _("All exams")
        ALL_CONTENT = "ALL_CONTENT", _("All lessons and exams")

    # Fields copied by course duplication when settings are requested
    SETTINGS_FIELDS = (
        "enrollment_limit",
        "allow_waitlist",
        "auto_enrollment",
        "certificate_enabled",
        "discussion_enabled",
        "downloadable_content",
        "access_duration",
        "progress_tracking",
        "completion_criteria",
        "passing_grade",
    )

    title = models.CharField(
        max_length=255,
        verbose_name=_("Course Title"),
    )
    description = models.TextField(blank=True, default="")
    ap_exam_type = models.CharField(
        max_length=100,
        verbose_name=_("Exam Type"),
        help_text=_("Exam-type tag this course prepares for"),
    )
    is_free = models.BooleanField(default=True, verbose_name=_("Free Course"))
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        help_text=_("Price for paid courses, empty for free courses"),
    )
    image_url = models.CharField(max_length=500, blank=True, default="")
    is_published = models.BooleanField(default=False, verbose_name=_("Published"))

    # --- Settings bundle ---
    enrollment_limit = models.PositiveIntegerField(null=True, blank=True)
    allow_waitlist = models.BooleanField(default=False)
    auto_enrollment = models.BooleanField(default=False)
    certificate_enabled = models.BooleanField(default=True)
    discussion_enabled = models.BooleanField(default=False)
    downloadable_content = models.BooleanField(default=False)
    access_duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Access duration in days, empty for unlimited access"),
    )
    progress_tracking = models.CharField(
        max_length=20,
        choices=ProgressTracking.choices,
        default=ProgressTracking.AUTOMATIC,
    )
    completion_criteria = models.CharField(
        max_length=20,
        choices=CompletionCriteria.choices,
        default=CompletionCriteria.ALL_CONTENT,
    )
    passing_grade = models.PositiveSmallIntegerField(
        default=70,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    prerequisite_courses = models.ManyToManyField(
        "self",
        symmetrical=False,
        blank=True,
        related_name="required_by",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["-created_at"]
        db_table = "elearning_course"

    def __str__(self) -> str:
        return self.title

    def has_enrollments(self) -> bool:
        return self.enrollments.exists()


class Unit(models.Model):
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="units",
        verbose_name=_("Course"),
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    order = models.PositiveIntegerField(
        verbose_name=_("Order"),
        help_text=_("Position of the unit inside its course, unique per course"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Unit")
        verbose_name_plural = _("Units")
        ordering = ["course", "order"]
        db_table = "elearning_unit"
        constraints = [
            models.UniqueConstraint(
                fields=["course", "order"], name="unique_unit_order_per_course"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.course.title} - {self.order}. {self.title}"


class Lesson(models.Model):
    unit = models.ForeignKey(
        Unit,
        on_delete=models.CASCADE,
        related_name="lessons",
        verbose_name=_("Unit"),
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    content = models.TextField(blank=True, null=True)
    video_url = models.CharField(
        max_length=500,
        blank=True,
        null=True,
        verbose_name=_("Video URL"),
    )
    duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Estimated duration in minutes"),
    )
    order = models.PositiveIntegerField(
        verbose_name=_("Order"),
        help_text=_("Position of the lesson inside its unit, unique per unit"),
    )
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Lesson")
        verbose_name_plural = _("Lessons")
        ordering = ["unit", "order"]
        db_table = "elearning_lesson"
        constraints = [
            models.UniqueConstraint(
                fields=["unit", "order"], name="unique_lesson_order_per_unit"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order}. {self.title}"

    @property
    def course_id(self):
        return self.unit.course_id


class LessonQuiz(models.Model):
    lesson = models.ForeignKey(
        Lesson,
        on_delete=models.CASCADE,
        related_name="quizzes",
        verbose_name=_("Lesson"),
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    questions = models.JSONField(default=list, blank=True)
    passing_score = models.PositiveSmallIntegerField(
        default=70,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Lesson Quiz")
        verbose_name_plural = _("Lesson Quizzes")
        ordering = ["lesson", "created_at"]
        db_table = "elearning_lesson_quiz"

    def __str__(self) -> str:
        return f"Quiz for {self.lesson.title}: {self.title}"
