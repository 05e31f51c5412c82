"""
E-Learning Application Django Admin Configuration

This module provides the Django admin interface (jazzmin theme) for all
course platform models.

The admin interface is organized into logical sections:
- User Management: User administration with the platform role inline
- Course Management: Courses, units, lessons and lesson quizzes
- Examination System: Unit exams and exam attempts
- Enrollments: Enrollments, progress records and the activity log

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Optional
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User
from django.utils.translation import gettext_lazy as _
from django.db.models import QuerySet
from django.http import HttpRequest

# Import all models from the central models registry
from .models import (
    Profile,
    Course,
    Unit,
    Lesson,
    LessonQuiz,
    UnitExam,
    ExamAttempt,
    Enrollment,
    ProgressRecord,
    ActivityLog,
)

# --- User Management Administration ---


class ProfileInline(admin.StackedInline):
    """Inline admin for the platform role of a user."""

    model = Profile
    can_delete = False
    verbose_name_plural = "Profile Information"
    fk_name = "user"
    fields = ("role",)

    def get_extra(
        self, request: HttpRequest, obj: Optional[User] = None, **kwargs
    ) -> int:
        """Return 0 extra forms since profile should exist or be created automatically."""
        return 0


class UserAdmin(BaseUserAdmin):
    inlines = (ProfileInline,)
    list_display = (
        "username",
        "email",
        "first_name",
        "last_name",
        "get_role",
        "is_staff",
        "is_active",
    )
    list_select_related = ("profile",)
    list_filter = ("is_staff", "is_superuser", "is_active", "profile__role", "date_joined")
    search_fields = ("username", "first_name", "last_name", "email")
    ordering = ("username",)

    @admin.display(description=_("Role"))
    def get_role(self, instance: User) -> Optional[str]:
        try:
            return instance.profile.get_role_display()
        except Profile.DoesNotExist:
            return None


admin.site.unregister(User)
admin.site.register(User, UserAdmin)

# --- Course Management Administration ---


class UnitInline(admin.TabularInline):
    model = Unit
    extra = 0
    fields = ("title", "order")
    ordering = ("order",)


class LessonInline(admin.TabularInline):
    model = Lesson
    extra = 0
    fields = ("title", "order", "duration", "is_published")
    ordering = ("order",)


class UnitExamInline(admin.TabularInline):
    model = UnitExam
    extra = 0
    fields = ("title", "exam_type", "order", "passing_score", "max_attempts", "is_published")
    ordering = ("order",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    """
    Administration interface for courses.

    Units are edited inline; pricing and publication are grouped separately
    from the optional course settings.
    """

    list_display = ("title", "ap_exam_type", "is_free", "price", "is_published", "unit_count")
    list_filter = ("is_published", "is_free", "ap_exam_type")
    search_fields = ("title", "description", "ap_exam_type")
    filter_horizontal = ("prerequisite_courses",)
    inlines = [UnitInline]

    fieldsets = (
        (_("Basic Information"), {"fields": ("title", "description", "ap_exam_type", "image_url")}),
        (_("Pricing & Publication"), {"fields": ("is_free", "price", "is_published")}),
        (
            _("Settings"),
            {
                "fields": Course.SETTINGS_FIELDS + ("prerequisite_courses",),
                "classes": ("collapse",),
            },
        ),
    )

    @admin.display(description=_("Units"))
    def unit_count(self, obj: Course) -> int:
        return obj.units.count()

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).prefetch_related("units")


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "order")
    list_filter = ("course",)
    search_fields = ("title", "description", "course__title")
    autocomplete_fields = ("course",)
    ordering = ("course", "order")
    inlines = [LessonInline, UnitExamInline]

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("course")


@admin.register(Lesson)
class LessonAdmin(admin.ModelAdmin):
    list_display = ("title", "unit", "order", "duration", "is_published")
    list_filter = ("is_published", "unit__course")
    search_fields = ("title", "description", "unit__title")
    autocomplete_fields = ("unit",)
    ordering = ("unit", "order")


@admin.register(LessonQuiz)
class LessonQuizAdmin(admin.ModelAdmin):
    list_display = ("title", "lesson", "passing_score", "is_published")
    list_filter = ("is_published",)
    search_fields = ("title", "lesson__title")
    autocomplete_fields = ("lesson",)


# --- Examination System Administration ---


@admin.register(UnitExam)
class UnitExamAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "unit",
        "exam_type",
        "passing_score",
        "max_attempts",
        "is_published",
    )
    list_filter = ("exam_type", "is_published", "unit__course")
    search_fields = ("title", "description", "unit__title")
    autocomplete_fields = ("unit",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            _("Basic Information"),
            {"fields": ("unit", "title", "description", "instructions", "exam_type")},
        ),
        (_("Questions"), {"fields": ("questions", "structure", "total_points")}),
        (
            _("Configuration"),
            {
                "fields": (
                    "passing_score",
                    "time_limit",
                    "order",
                    "max_attempts",
                    "available_from",
                    "available_until",
                    "is_published",
                )
            },
        ),
        (_("Timestamps"), {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(ExamAttempt)
class ExamAttemptAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "exam",
        "status",
        "started_at",
        "completed_at",
        "score",
        "passed",
        "grading_status",
    )
    list_filter = ("status", "passed", "grading_status", "exam")
    search_fields = ("user__username", "user__email", "exam__title")
    readonly_fields = (
        "started_at",
        "completed_at",
        "last_saved_at",
        "score",
        "points_earned",
        "total_points",
        "passed",
        "time_used",
        "score_breakdown",
        "manual_scores",
        "graded_by",
        "graded_at",
    )
    autocomplete_fields = ("user", "exam")

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Exam attempts are only created through the API."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("user", "exam")


# --- Enrollment Administration ---


class ProgressRecordInline(admin.TabularInline):
    model = ProgressRecord
    extra = 0
    fields = ("lesson", "unit", "started", "completed", "completed_at")
    readonly_fields = ("completed_at",)


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "status", "payment_status", "enrolled_at")
    list_filter = ("status", "payment_status", "course")
    search_fields = ("user__username", "user__email", "course__title")
    autocomplete_fields = ("user", "course")
    readonly_fields = ("enrolled_at",)
    inlines = [ProgressRecordInline]

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("user", "course")


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "action", "entity_type", "entity_id")
    list_filter = ("action", "entity_type")
    search_fields = ("user__username", "entity_id")
    readonly_fields = ("user", "action", "entity_type", "entity_id", "details", "created_at")

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False
