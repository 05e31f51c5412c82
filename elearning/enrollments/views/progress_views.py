from rest_framework.views import APIView
from rest_framework.response import Response

# Angepasste Importe
from ...permissions import IsStudent
from ...services import ProgressService
from ...services.validation import parse_optional_int
from ..serializers import ProgressUpdateSerializer

__all__ = ["StudentCoursesView", "StudentProgressView"]


class StudentCoursesView(APIView):
    """Kursübersicht mit Fortschritt, Filter ``?status=`` und Sortierung ``?sort=``."""

    permission_classes = [IsStudent]

    def get(self, request):
        service = ProgressService(request.user)
        data = service.list_courses(
            status=request.query_params.get("status") or "all",
            sort=request.query_params.get("sort") or "recent",
        )
        return Response(data)


class StudentProgressView(APIView):
    permission_classes = [IsStudent]

    def get(self, request):
        course_id = parse_optional_int(request.query_params.get("courseId"), "courseId")
        return Response({"progress": ProgressService(request.user).detail(course_id)})

    def patch(self, request):
        serializer = ProgressUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ProgressService(request.user).update(serializer.validated_data)
        return Response({"success": True})
