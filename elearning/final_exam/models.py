from django.db import models
from django.db.models import Q
from django.conf import settings
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone

# Angepasster, sauberer Import innerhalb der 'elearning' App
from ..courses.models import Unit

User = settings.AUTH_USER_MODEL


class ExamType(models.TextChoices):
    UNIT_ASSESSMENT = "UNIT_ASSESSMENT", _("Unit Assessment")
    PRACTICE = "PRACTICE", _("Practice Exam")
    FULL_EXAM = "FULL_EXAM", _("Full Exam")


class UnitExam(models.Model):
    unit = models.ForeignKey(Unit, on_delete=models.CASCADE, related_name="exams")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    instructions = models.TextField(blank=True, null=True)
    exam_type = models.CharField(
        max_length=20, choices=ExamType.choices, default=ExamType.UNIT_ASSESSMENT
    )
    questions = models.JSONField(
        default=dict,
        help_text=_(
            "Fragen: multipleChoice.partA/partB und freeResponse.partA/partB."
        ),
    )
    structure = models.JSONField(
        null=True,
        blank=True,
        help_text=_("Optionale Abschnittsstruktur mit Zeitlimits pro Abschnitt."),
    )
    passing_score = models.PositiveSmallIntegerField(
        default=70, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    total_points = models.PositiveIntegerField(default=0)
    time_limit = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Zeitlimit in Minuten (optional).")
    )
    order = models.PositiveIntegerField(default=0)
    max_attempts = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    available_from = models.DateTimeField(null=True, blank=True)
    available_until = models.DateTimeField(null=True, blank=True)
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Unit Exam")
        verbose_name_plural = _("Unit Exams")
        ordering = ["unit", "order", "created_at"]
        db_table = "elearning_unit_exam"

    def __str__(self):
        return self.title

    @property
    def course_id(self):
        return self.unit.course_id

    def has_completed_attempts(self) -> bool:
        return self.attempts.filter(completed_at__isnull=False).exists()


class ExamAttempt(models.Model):
    class Status(models.TextChoices):
        IN_PROGRESS = "IN_PROGRESS", _("In Bearbeitung")
        COMPLETED = "COMPLETED", _("Abgeschlossen")

    class GradingStatus(models.TextChoices):
        NOT_REQUIRED = "NOT_REQUIRED", _("Keine manuelle Bewertung")
        PENDING = "PENDING", _("Bewertung ausstehend")
        IN_PROGRESS = "IN_PROGRESS", _("Bewertung läuft")
        COMPLETED = "COMPLETED", _("Bewertet")

    exam = models.ForeignKey(UnitExam, on_delete=models.CASCADE, related_name="attempts")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="exam_attempts")
    status = models.CharField(
        max_length=15, choices=Status.choices, default=Status.IN_PROGRESS
    )
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Leer, solange der Versuch läuft."),
    )
    answers = models.JSONField(default=dict, blank=True)
    current_section = models.PositiveSmallIntegerField(default=0)
    current_question = models.PositiveSmallIntegerField(default=0)
    time_remaining = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Restzeit in Sekunden laut Client.")
    )
    last_saved_at = models.DateTimeField(null=True, blank=True)
    score = models.PositiveSmallIntegerField(
        null=True, blank=True, help_text=_("Ergebnis in Prozent.")
    )
    points_earned = models.PositiveIntegerField(null=True, blank=True)
    total_points = models.PositiveIntegerField(null=True, blank=True)
    passed = models.BooleanField(null=True, blank=True)
    time_used = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Bearbeitungszeit in Sekunden.")
    )
    score_breakdown = models.JSONField(null=True, blank=True)
    grading_status = models.CharField(
        max_length=15,
        choices=GradingStatus.choices,
        null=True,
        blank=True,
        help_text=_("Leer, solange der Versuch läuft."),
    )
    manual_scores = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("Manuelle Punkte pro Frage, Schlüssel \"<section>-<index>\"."),
    )
    graded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="graded_exam_attempts",
    )
    graded_at = models.DateTimeField(null=True, blank=True)
    instructor_feedback = models.TextField(blank=True, default="")
    needs_review = models.BooleanField(default=False)

    class Meta:
        verbose_name = _("Exam Attempt")
        verbose_name_plural = _("Exam Attempts")
        ordering = ["-started_at"]
        db_table = "elearning_exam_attempt"
        constraints = [
            models.UniqueConstraint(
                fields=["exam", "user"],
                condition=Q(completed_at__isnull=True),
                name="unique_in_progress_attempt",
            ),
        ]

    @property
    def is_in_progress(self) -> bool:
        return self.completed_at is None

    def __str__(self):
        return f"Attempt for {self.exam.title} by {self.user.username}"
