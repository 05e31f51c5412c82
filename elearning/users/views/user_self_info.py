"""
E-Learning User Fetch Own Info

Views:
- CurrentUserView: Data of the signed-in user including the platform role

Author: Christian Litke
Version: 1.0.0
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from elearning.users.serializers import UserSerializer

__all__ = ["CurrentUserView"]


class CurrentUserView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)
