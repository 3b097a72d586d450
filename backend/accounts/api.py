from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import UserSummarySerializer


class LoginView(TokenObtainPairView):
    """Exchange username + password for a JWT pair."""


class MeView(APIView):
    """Return the serialized profile for the current authenticated user."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(UserSummarySerializer(request.user).data)
