"""
E-Learning Course Serializers

Serializers for courses, units, lessons and lesson quizzes. The API speaks
camelCase (``apExamType``, ``isFree``, ``videoUrl`` ...); model fields are
mapped through ``source``.

Serializers:
- CourseSerializer / CourseListSerializer / CourseDetailSerializer
- CoursePublishSerializer, CourseDuplicateSerializer
- UnitSerializer, LessonSerializer, LessonQuizSerializer

Author: DSP Development Team
Version: 1.0.0
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from django.core.validators import URLValidator
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import Course, Unit, Lesson, LessonQuiz

TITLE_MIN_LENGTH = 3

COURSE_REQUIRED_MESSAGES = {
    "required": "Title and AP Exam Type are required",
    "blank": "Title and AP Exam Type are required",
    "null": "Title and AP Exam Type are required",
}


def validate_min_title(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise serializers.ValidationError("Title is required")
    if len(value) < TITLE_MIN_LENGTH:
        raise serializers.ValidationError(
            f"Title must be at least {TITLE_MIN_LENGTH} characters"
        )
    return value


def validate_pricing(is_free: bool, price: Optional[Decimal]) -> None:
    if not is_free and (price is None or price <= 0):
        raise serializers.ValidationError("Price is required for paid courses")


class LessonQuizSerializer(serializers.ModelSerializer):
    lessonId = serializers.IntegerField(source="lesson_id", read_only=True)
    questions = serializers.JSONField(required=False)
    passingScore = serializers.IntegerField(
        source="passing_score", min_value=0, max_value=100, required=False
    )
    isPublished = serializers.BooleanField(source="is_published", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = LessonQuiz
        fields = [
            "id",
            "lessonId",
            "title",
            "description",
            "questions",
            "passingScore",
            "isPublished",
            "createdAt",
            "updatedAt",
        ]

    def validate_questions(self, value):
        if not isinstance(value, (list, dict)):
            raise serializers.ValidationError("Questions must be a list or an object")
        return value


class LessonSerializer(serializers.ModelSerializer):
    """
    Lesson serializer with title and video URL validation.

    ``order`` is optional on create (appended at the end) and moves the
    lesson when it changes on update.
    """

    unitId = serializers.IntegerField(source="unit_id", read_only=True)
    title = serializers.CharField(max_length=255, validators=[validate_min_title])
    videoUrl = serializers.CharField(
        source="video_url", required=False, allow_blank=True, allow_null=True, max_length=500
    )
    duration = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    order = serializers.IntegerField(min_value=0, required=False)
    isPublished = serializers.BooleanField(source="is_published", required=False)
    quizzes = LessonQuizSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Lesson
        fields = [
            "id",
            "unitId",
            "title",
            "description",
            "content",
            "videoUrl",
            "duration",
            "order",
            "isPublished",
            "quizzes",
            "createdAt",
            "updatedAt",
        ]

    def validate_title(self, value: str) -> str:
        return value.strip()

    def validate_videoUrl(self, value: Optional[str]) -> Optional[str]:
        value = (value or "").strip()
        if not value:
            return None
        try:
            URLValidator()(value)
        except DjangoValidationError:
            raise serializers.ValidationError("Invalid video URL")
        return value


class LessonPublishSerializer(serializers.Serializer):
    isPublished = serializers.BooleanField()


class UnitSerializer(serializers.ModelSerializer):
    courseId = serializers.IntegerField(source="course_id", read_only=True)
    title = serializers.CharField(max_length=255, validators=[validate_min_title])
    order = serializers.IntegerField(min_value=0, required=False)
    lessons = LessonSerializer(many=True, read_only=True)
    exams = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Unit
        fields = [
            "id",
            "courseId",
            "title",
            "description",
            "order",
            "lessons",
            "exams",
            "createdAt",
            "updatedAt",
        ]

    def validate_title(self, value: str) -> str:
        return value.strip()

    def get_exams(self, obj):
        return [
            {
                "id": exam.id,
                "title": exam.title,
                "order": exam.order,
                "isPublished": exam.is_published,
            }
            for exam in obj.exams.all()
        ]


class CourseSerializer(serializers.ModelSerializer):
    """
    Course serializer used for create and update.

    Validation:
    - ``title`` and ``apExamType`` are required
    - paid courses need a positive price, free courses have no price
    - pricing (``isFree`` / ``price``) cannot change once enrollments exist
    """

    title = serializers.CharField(max_length=255, error_messages=COURSE_REQUIRED_MESSAGES)
    apExamType = serializers.CharField(
        source="ap_exam_type", max_length=100, error_messages=COURSE_REQUIRED_MESSAGES
    )
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    isFree = serializers.BooleanField(source="is_free", required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True, coerce_to_string=False
    )
    imageUrl = serializers.CharField(
        source="image_url", required=False, allow_blank=True, allow_null=True, max_length=500
    )
    isPublished = serializers.BooleanField(source="is_published", required=False)

    # Settings bundle
    enrollmentLimit = serializers.IntegerField(
        source="enrollment_limit", min_value=1, required=False, allow_null=True
    )
    allowWaitlist = serializers.BooleanField(source="allow_waitlist", required=False)
    autoEnrollment = serializers.BooleanField(source="auto_enrollment", required=False)
    certificateEnabled = serializers.BooleanField(source="certificate_enabled", required=False)
    discussionEnabled = serializers.BooleanField(source="discussion_enabled", required=False)
    downloadableContent = serializers.BooleanField(source="downloadable_content", required=False)
    accessDuration = serializers.IntegerField(
        source="access_duration", min_value=1, required=False, allow_null=True
    )
    progressTracking = serializers.ChoiceField(
        source="progress_tracking", choices=Course.ProgressTracking.choices, required=False
    )
    completionCriteria = serializers.ChoiceField(
        source="completion_criteria", choices=Course.CompletionCriteria.choices, required=False
    )
    passingGrade = serializers.IntegerField(
        source="passing_grade", min_value=0, max_value=100, required=False
    )
    prerequisiteCourses = serializers.PrimaryKeyRelatedField(
        source="prerequisite_courses", many=True, queryset=Course.objects.all(), required=False
    )

    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Course
        fields = [
            "id",
            "title",
            "description",
            "apExamType",
            "isFree",
            "price",
            "imageUrl",
            "isPublished",
            "enrollmentLimit",
            "allowWaitlist",
            "autoEnrollment",
            "certificateEnabled",
            "discussionEnabled",
            "downloadableContent",
            "accessDuration",
            "progressTracking",
            "completionCriteria",
            "passingGrade",
            "prerequisiteCourses",
            "createdAt",
            "updatedAt",
        ]

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError(COURSE_REQUIRED_MESSAGES["blank"])
        return value

    def validate_prerequisiteCourses(self, value):
        if self.instance is not None and any(c.pk == self.instance.pk for c in value):
            raise serializers.ValidationError("A course cannot be its own prerequisite")
        return value

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        instance = self.instance

        if instance is not None and instance.has_enrollments():
            free_changed = "is_free" in attrs and attrs["is_free"] != instance.is_free
            price_changed = "price" in attrs and attrs["price"] != instance.price
            if free_changed or price_changed:
                raise serializers.ValidationError(
                    "Cannot change pricing of a course with enrollments"
                )

        is_free = attrs.get("is_free", instance.is_free if instance else True)
        price = attrs.get("price", instance.price if instance else None)
        validate_pricing(is_free, price)
        if is_free:
            attrs["price"] = None

        for key in ("description", "image_url"):
            if key in attrs and attrs[key] is None:
                attrs[key] = ""
        return attrs


class CourseListSerializer(CourseSerializer):
    counts = serializers.SerializerMethodField()

    class Meta(CourseSerializer.Meta):
        fields = CourseSerializer.Meta.fields + ["counts"]

    def get_counts(self, obj) -> Dict[str, int]:
        return {
            "enrollments": getattr(obj, "enrollment_count", 0),
            "units": getattr(obj, "unit_count", 0),
            "lessons": getattr(obj, "lesson_count", 0),
            "exams": getattr(obj, "exam_count", 0),
        }


class CourseDetailSerializer(CourseSerializer):
    units = UnitSerializer(many=True, read_only=True)
    enrollmentCount = serializers.SerializerMethodField()

    class Meta(CourseSerializer.Meta):
        fields = CourseSerializer.Meta.fields + ["units", "enrollmentCount"]

    def get_enrollmentCount(self, obj) -> int:
        return obj.enrollments.count()


class CoursePublishSerializer(serializers.Serializer):
    isPublished = serializers.BooleanField()


class CourseDuplicateSerializer(serializers.Serializer):
    """Request body of the course duplication endpoint."""

    title = serializers.CharField(max_length=255, error_messages=COURSE_REQUIRED_MESSAGES)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    apExamType = serializers.CharField(max_length=100, error_messages=COURSE_REQUIRED_MESSAGES)
    isFree = serializers.BooleanField(required=False, default=True)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    imageUrl = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=500
    )
    duplicateContent = serializers.BooleanField(required=False, default=False)
    duplicateQuizzes = serializers.BooleanField(required=False, default=False)
    duplicateExams = serializers.BooleanField(required=False, default=False)
    duplicateSettings = serializers.BooleanField(required=False, default=False)
    publishImmediately = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        validate_pricing(attrs["isFree"], attrs.get("price"))
        return {
            "title": attrs["title"].strip(),
            "description": attrs.get("description"),
            "ap_exam_type": attrs["apExamType"],
            "is_free": attrs["isFree"],
            "price": attrs.get("price"),
            "image_url": attrs.get("imageUrl"),
            "duplicate_content": attrs["duplicateContent"],
            "duplicate_quizzes": attrs["duplicateQuizzes"],
            "duplicate_exams": attrs["duplicateExams"],
            "duplicate_settings": attrs["duplicateSettings"],
            "publish_immediately": attrs["publishImmediately"],
        }
