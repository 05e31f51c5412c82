from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...permissions import IsStudent
from ...services import ExamAttemptService, ExamOverviewService
from ...services.validation import parse_optional_int
from ..serializers import ExamAttemptStateSerializer

__all__ = [
    "StudentExamListView",
    "StudentCourseExamsView",
    "ExamAttemptView",
    "ExamSaveView",
    "ExamSubmitView",
]


def request_body(request) -> dict:
    return request.data if isinstance(request.data, dict) else {}


class StudentExamListView(APIView):
    """Alle Prüfungen der eigenen Kurse, Filter ``?status=`` und ``?courseId=``."""

    permission_classes = [IsStudent]

    def get(self, request):
        course_id = parse_optional_int(request.query_params.get("courseId"), "courseId")
        data = ExamOverviewService(request.user).list_exams(
            status=request.query_params.get("status") or "all",
            course_id=course_id,
        )
        return Response(data)


class StudentCourseExamsView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, course_id):
        return Response(ExamOverviewService(request.user).course_exams(course_id))


class ExamAttemptView(APIView):
    """
    GET: Alle Versuche des Schülers für eine Prüfung.
    POST: Neuen Versuch starten.
    """

    permission_classes = [IsStudent]

    def get(self, request, exam_id):
        return Response(ExamAttemptService(request.user).list_attempts(exam_id))

    def post(self, request, exam_id):
        attempt, attempt_number = ExamAttemptService(request.user).start(exam_id)
        return Response(
            {
                "success": True,
                "attemptId": attempt.id,
                "attemptNumber": attempt_number,
                "message": "Exam attempt started successfully",
            },
            status=status.HTTP_201_CREATED,
        )


class ExamSaveView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, exam_id):
        attempt = ExamAttemptService(request.user).get_saved_state(
            exam_id, request.query_params.get("attemptId")
        )
        return Response({"attempt": ExamAttemptStateSerializer(attempt).data})

    def post(self, request, exam_id):
        attempt = ExamAttemptService(request.user).save_progress(exam_id, request_body(request))
        return Response(
            {
                "success": True,
                "message": "Progress saved successfully",
                "attempt": {
                    "id": attempt.id,
                    "currentSection": attempt.current_section,
                    "currentQuestion": attempt.current_question,
                    "lastSavedAt": attempt.last_saved_at,
                },
            }
        )


class ExamSubmitView(APIView):
    permission_classes = [IsStudent]

    def post(self, request, exam_id):
        result = ExamAttemptService(request.user).submit(exam_id, request_body(request))
        return Response(result)
