import logging

from django.db import transaction
from django.db.models import Count, Prefetch, ProtectedError
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...exceptions import ValidationError, get_object_or_not_found
from ...permissions import IsPlatformAdmin
from ...services import CourseDuplicationService
from ..models import Course, Lesson, Unit
from ..serializers import (
    CourseSerializer,
    CourseListSerializer,
    CourseDetailSerializer,
    CoursePublishSerializer,
    CourseDuplicateSerializer,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CourseListCreateView",
    "CourseDetailView",
    "CoursePublishView",
    "CourseDuplicateView",
]


class CourseListCreateView(generics.ListCreateAPIView):
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        return Course.objects.annotate(
            enrollment_count=Count("enrollments", distinct=True),
            unit_count=Count("units", distinct=True),
            lesson_count=Count("units__lessons", distinct=True),
            exam_count=Count("units__exams", distinct=True),
        ).order_by("-created_at")

    def get_serializer_class(self):
        if self.request.method == "POST":
            return CourseSerializer
        return CourseListSerializer

    def perform_create(self, serializer):
        course = serializer.save()
        logger.info(f"Kurs {course.id} erstellt von {self.request.user.pk}")


class CourseDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET/PUT/DELETE eines Kurses.

    PUT lehnt Preisänderungen ab, sobald Einschreibungen existieren.
    DELETE lehnt ab, solange Einschreibungen existieren.
    """

    serializer_class = CourseDetailSerializer
    permission_classes = [IsPlatformAdmin]

    def get_object(self):
        lessons = Lesson.objects.order_by("order").prefetch_related("quizzes")
        units = Unit.objects.order_by("order").prefetch_related(
            Prefetch("lessons", queryset=lessons), "exams"
        )
        queryset = Course.objects.prefetch_related(
            Prefetch("units", queryset=units), "prerequisite_courses"
        )
        obj = get_object_or_not_found(queryset, "Course not found", pk=self.kwargs["course_id"])
        self.check_object_permissions(self.request, obj)
        return obj

    def destroy(self, request, *args, **kwargs):
        course = self.get_object()
        if course.has_enrollments():
            raise ValidationError("Cannot delete course with active enrollments")
        try:
            with transaction.atomic():
                course.delete()
        except ProtectedError:
            raise ValidationError("Cannot delete course with active enrollments")

        logger.info(f"Kurs {kwargs['course_id']} gelöscht")
        return Response({"message": "Course deleted successfully"}, status=status.HTTP_200_OK)


class CoursePublishView(APIView):
    permission_classes = [IsPlatformAdmin]

    def patch(self, request, course_id):
        course = get_object_or_not_found(Course.objects.all(), "Course not found", pk=course_id)
        serializer = CoursePublishSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_published = serializer.validated_data["isPublished"]

        if is_published and not course.units.exists():
            raise ValidationError("Cannot publish course without content")

        course.is_published = is_published
        course.save(update_fields=["is_published", "updated_at"])
        return Response(CourseSerializer(course).data)


class CourseDuplicateView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, course_id):
        # Fehlender Originalkurs geht vor ungültigem Request-Body
        get_object_or_not_found(Course.objects.all(), "Course not found", pk=course_id)

        serializer = CourseDuplicateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CourseDuplicationService().duplicate(course_id, serializer.validated_data)
        return Response(CourseSerializer(result.course).data, status=status.HTTP_201_CREATED)
