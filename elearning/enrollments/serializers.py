from rest_framework import serializers

# Angepasste Importe
from .models import Enrollment


class EnrollmentSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    courseId = serializers.IntegerField(source="course_id", read_only=True)
    courseTitle = serializers.CharField(source="course.title", read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    enrolledAt = serializers.DateTimeField(source="enrolled_at", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "userId",
            "courseId",
            "courseTitle",
            "paymentStatus",
            "status",
            "enrolledAt",
        ]
        read_only_fields = fields


class EnrollmentCreateSerializer(serializers.Serializer):
    courseId = serializers.IntegerField(
        error_messages={
            "required": "courseId is required",
            "null": "courseId is required",
            "invalid": "Invalid courseId",
        }
    )


class ProgressUpdateSerializer(serializers.Serializer):
    """Markiert eine Lektion oder Unit als (nicht) abgeschlossen."""

    courseId = serializers.IntegerField()
    type = serializers.ChoiceField(choices=["lesson", "unit"])
    lessonId = serializers.IntegerField(required=False, allow_null=True)
    unitId = serializers.IntegerField(required=False, allow_null=True)
    completed = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if attrs["type"] == "lesson" and not attrs.get("lessonId"):
            raise serializers.ValidationError("lessonId is required for lesson progress")
        if attrs["type"] == "unit" and not attrs.get("unitId"):
            raise serializers.ValidationError("unitId is required for unit progress")
        return attrs
