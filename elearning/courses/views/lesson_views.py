from django.db import transaction
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...exceptions import ValidationError, get_object_or_not_found
from ...permissions import IsPlatformAdmin
from ...services import OrderingService
from ..models import Lesson, LessonQuiz, Unit
from ..serializers import LessonSerializer, LessonPublishSerializer, LessonQuizSerializer

__all__ = [
    "LessonListCreateView",
    "LessonDetailView",
    "LessonPublishView",
    "LessonReorderView",
    "LessonQuizView",
    "lesson_ordering",
]

lesson_ordering = OrderingService(Lesson, "unit", "lesson", "unit")


class UnitScopedMixin:
    """Lädt Unit und Lektion nur innerhalb des Kurses aus der URL."""

    def get_unit(self) -> Unit:
        return get_object_or_not_found(
            Unit.objects.all(),
            "Unit not found",
            pk=self.kwargs["unit_id"],
            course_id=self.kwargs["course_id"],
        )

    def get_lesson(self) -> Lesson:
        return get_object_or_not_found(
            Lesson.objects.prefetch_related("quizzes"),
            "Lesson not found",
            pk=self.kwargs["lesson_id"],
            unit_id=self.kwargs["unit_id"],
            unit__course_id=self.kwargs["course_id"],
        )


class LessonListCreateView(UnitScopedMixin, generics.ListCreateAPIView):
    serializer_class = LessonSerializer
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        return (
            Lesson.objects.filter(
                unit_id=self.kwargs["unit_id"], unit__course_id=self.kwargs["course_id"]
            )
            .prefetch_related("quizzes")
            .order_by("order")
        )

    def list(self, request, *args, **kwargs):
        self.get_unit()
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        unit = self.get_unit()
        data = dict(serializer.validated_data)
        order = data.pop("order", None)
        serializer.instance = lesson_ordering.insert(unit, order=order, **data)


class LessonDetailView(UnitScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = LessonSerializer
    permission_classes = [IsPlatformAdmin]

    def get_object(self):
        obj = self.get_lesson()
        self.check_object_permissions(self.request, obj)
        return obj

    def perform_update(self, serializer):
        new_order = serializer.validated_data.pop("order", None)
        with transaction.atomic():
            lesson = serializer.save()
            if new_order is not None and new_order != lesson.order:
                lesson_ordering.move(lesson, new_order)

    def destroy(self, request, *args, **kwargs):
        lesson = self.get_object()
        with transaction.atomic():
            lesson.delete()
        return Response({"message": "Lesson deleted successfully"}, status=status.HTTP_200_OK)


class LessonPublishView(UnitScopedMixin, APIView):
    permission_classes = [IsPlatformAdmin]

    def patch(self, request, course_id, unit_id, lesson_id):
        lesson = self.get_lesson()
        serializer = LessonPublishSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lesson.is_published = serializer.validated_data["isPublished"]
        lesson.save(update_fields=["is_published", "updated_at"])
        return Response(LessonSerializer(lesson).data)


class LessonReorderView(UnitScopedMixin, APIView):
    permission_classes = [IsPlatformAdmin]

    def put(self, request, course_id, unit_id):
        unit = self.get_unit()
        items = request.data.get("lessonOrder") if hasattr(request.data, "get") else None
        lessons = lesson_ordering.reorder(unit, items)
        return Response(LessonSerializer(lessons, many=True).data)


class LessonQuizView(UnitScopedMixin, APIView):
    """Quiz einer Lektion anzeigen oder anlegen (höchstens eins pro Lektion)."""

    permission_classes = [IsPlatformAdmin]

    def get(self, request, course_id, unit_id, lesson_id):
        lesson = self.get_lesson()
        return Response(LessonQuizSerializer(lesson.quizzes.all(), many=True).data)

    def post(self, request, course_id, unit_id, lesson_id):
        lesson = self.get_lesson()
        serializer = LessonQuizSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            Lesson.objects.select_for_update().filter(pk=lesson.pk).first()
            if LessonQuiz.objects.filter(lesson=lesson).exists():
                raise ValidationError("Quiz already exists for this lesson")
            quiz = serializer.save(lesson=lesson)
        return Response(LessonQuizSerializer(quiz).data, status=status.HTTP_201_CREATED)
