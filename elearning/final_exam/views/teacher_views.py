from django.db import transaction
from django.db.models import Max
from rest_framework import generics, status
from rest_framework.response import Response

# Angepasste Importe
from ...courses.models import Unit
from ...exceptions import get_object_or_not_found
from ...permissions import IsPlatformAdmin
from ..models import UnitExam
from ..serializers import UnitExamSerializer

__all__ = ["UnitExamListCreateView", "UnitExamDetailView"]


class UnitExamMixin:
    def get_unit(self) -> Unit:
        return get_object_or_not_found(
            Unit.objects.all(),
            "Unit not found",
            pk=self.kwargs["unit_id"],
            course_id=self.kwargs["course_id"],
        )

    def exams(self):
        return UnitExam.objects.filter(
            unit_id=self.kwargs["unit_id"], unit__course_id=self.kwargs["course_id"]
        ).prefetch_related("attempts")


class UnitExamListCreateView(UnitExamMixin, generics.ListCreateAPIView):
    serializer_class = UnitExamSerializer
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        return self.exams().order_by("order", "id")

    def list(self, request, *args, **kwargs):
        self.get_unit()
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        unit = self.get_unit()
        if "order" in serializer.validated_data:
            serializer.save(unit=unit)
            return
        with transaction.atomic():
            current = unit.exams.aggregate(max_order=Max("order"))["max_order"]
            serializer.save(unit=unit, order=(current or 0) + 1)


class UnitExamDetailView(UnitExamMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    GET/PUT/DELETE einer Prüfung.

    Nach dem ersten abgegebenen Versuch sind Fragen, Bestehensgrenze und
    Zeitlimit gesperrt (siehe ``UnitExamSerializer``).
    """

    serializer_class = UnitExamSerializer
    permission_classes = [IsPlatformAdmin]

    def get_object(self):
        obj = get_object_or_not_found(self.exams(), "Exam not found", pk=self.kwargs["exam_id"])
        self.check_object_permissions(self.request, obj)
        return obj

    def destroy(self, request, *args, **kwargs):
        exam = self.get_object()
        exam.delete()
        return Response({"message": "Exam deleted successfully"}, status=status.HTTP_200_OK)
