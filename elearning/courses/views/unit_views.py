from django.db import transaction
from django.db.models import Prefetch
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...exceptions import get_object_or_not_found
from ...permissions import IsPlatformAdmin
from ...services import OrderingService
from ..models import Course, Lesson, Unit
from ..serializers import UnitSerializer

__all__ = [
    "UnitListCreateView",
    "UnitDetailView",
    "UnitReorderView",
    "unit_ordering",
]

unit_ordering = OrderingService(Unit, "course", "unit", "course")


def units_with_content():
    return Unit.objects.order_by("order").prefetch_related(
        Prefetch("lessons", queryset=Lesson.objects.order_by("order").prefetch_related("quizzes")),
        "exams",
    )


class CourseScopedMixin:
    """Lädt den Kurs aus der URL oder wirft 404."""

    def get_course(self) -> Course:
        return get_object_or_not_found(
            Course.objects.all(), "Course not found", pk=self.kwargs["course_id"]
        )


class UnitListCreateView(CourseScopedMixin, generics.ListCreateAPIView):
    serializer_class = UnitSerializer
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        return units_with_content().filter(course_id=self.kwargs["course_id"])

    def list(self, request, *args, **kwargs):
        self.get_course()
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        course = self.get_course()
        data = dict(serializer.validated_data)
        order = data.pop("order", None)
        serializer.instance = unit_ordering.insert(course, order=order, **data)


class UnitDetailView(CourseScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    GET/PUT/DELETE einer Unit.

    Ändert PUT die Position, rücken die Geschwister zwischen alter und
    neuer Position nach. Beim Löschen bleibt die Lücke bestehen.
    """

    serializer_class = UnitSerializer
    permission_classes = [IsPlatformAdmin]

    def get_object(self):
        obj = get_object_or_not_found(
            units_with_content(),
            "Unit not found",
            pk=self.kwargs["unit_id"],
            course_id=self.kwargs["course_id"],
        )
        self.check_object_permissions(self.request, obj)
        return obj

    def perform_update(self, serializer):
        new_order = serializer.validated_data.pop("order", None)
        with transaction.atomic():
            unit = serializer.save()
            if new_order is not None and new_order != unit.order:
                unit_ordering.move(unit, new_order)

    def destroy(self, request, *args, **kwargs):
        unit = self.get_object()
        with transaction.atomic():
            unit.delete()
        return Response({"message": "Unit deleted successfully"}, status=status.HTTP_200_OK)


class UnitReorderView(CourseScopedMixin, APIView):
    permission_classes = [IsPlatformAdmin]

    def put(self, request, course_id):
        course = self.get_course()
        items = request.data.get("unitOrder") if hasattr(request.data, "get") else None
        unit_ordering.reorder(course, items)
        units = units_with_content().filter(course=course)
        return Response(UnitSerializer(units, many=True).data)
