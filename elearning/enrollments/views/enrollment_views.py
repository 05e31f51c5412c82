import logging

from django.db import IntegrityError, transaction
from rest_framework import generics, status
from rest_framework.response import Response

# Angepasste Importe
from ...courses.models import Course
from ...exceptions import ConflictError, ValidationError, get_object_or_not_found
from ...permissions import IsStudent
from ..models import ActivityLog, Enrollment
from ..serializers import EnrollmentCreateSerializer, EnrollmentSerializer

logger = logging.getLogger(__name__)

__all__ = ["EnrollmentListCreateView"]


class EnrollmentListCreateView(generics.ListCreateAPIView):
    """
    GET: Einschreibungen des angemeldeten Benutzers.
    POST: Einschreibung in einen kostenlosen, veröffentlichten Kurs.

    Kostenpflichtige Kurse liefern ``requiresPayment`` statt einer Einschreibung.
    """

    serializer_class = EnrollmentSerializer
    permission_classes = [IsStudent]

    def get_queryset(self):
        return (
            Enrollment.objects.filter(user=self.request.user)
            .select_related("course")
            .order_by("-enrolled_at")
        )

    def create(self, request, *args, **kwargs):
        payload = EnrollmentCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        course_id = payload.validated_data["courseId"]

        course = get_object_or_not_found(Course.objects.all(), "Course not found", pk=course_id)
        if not course.is_published:
            raise ValidationError("Course is not available for enrollment")

        if Enrollment.objects.filter(user=request.user, course=course).exists():
            raise ConflictError("Already enrolled in this course")

        if not course.is_free:
            raise ValidationError(
                "Paid courses require payment processing",
                extra={"requiresPayment": True, "courseId": course.id},
            )

        try:
            with transaction.atomic():
                enrollment = Enrollment.objects.create(
                    user=request.user,
                    course=course,
                    payment_status=Enrollment.PaymentStatus.PAID,
                    status=Enrollment.Status.ACTIVE,
                )
                ActivityLog.record(
                    request.user, "COURSE_ENROLLED", "COURSE", course.id, enrollmentId=enrollment.id
                )
        except IntegrityError:
            raise ConflictError("Already enrolled in this course")

        logger.info(f"Benutzer {request.user.pk} in Kurs {course.id} eingeschrieben")
        return Response(
            {
                "message": "Successfully enrolled in course",
                "enrollment": EnrollmentSerializer(enrollment).data,
            },
            status=status.HTTP_201_CREATED,
        )
