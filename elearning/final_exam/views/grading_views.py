from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...permissions import IsPlatformAdmin
from ...services import ExamGradingService
from ..serializers import CompleteGradingSerializer, GradeQuestionSerializer

__all__ = ["GradingQueueView", "GradingAttemptView", "GradingScoreView", "GradingCompleteView"]


class GradingQueueView(APIView):
    """Abgegebene Versuche mit offener Free-Response-Bewertung."""

    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        return Response(ExamGradingService(request.user).pending())


class GradingAttemptView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, attempt_id):
        return Response(ExamGradingService(request.user).detail(attempt_id))


class GradingScoreView(APIView):
    """
    POST: Punkte für eine Frage vergeben.

    Body: ``{"questionKey": "2-0", "score": 4, "feedback": "..."}``
    """

    permission_classes = [IsPlatformAdmin]

    def post(self, request, attempt_id):
        serializer = GradeQuestionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(
            ExamGradingService(request.user).update_score(attempt_id, serializer.validated_data)
        )


class GradingCompleteView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, attempt_id):
        serializer = CompleteGradingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(
            ExamGradingService(request.user).complete(attempt_id, serializer.validated_data)
        )
