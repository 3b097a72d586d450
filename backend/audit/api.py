from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.serializers import AuditLogEntrySerializer, RecentActivityQuerySerializer
from audit.services import ledger


class RecentActivityView(APIView):
    """The current user's own actions, newest first."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        query = RecentActivityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        entries = ledger.by_actor(request.user, limit=query.validated_data["limit"])
        return Response(AuditLogEntrySerializer(entries, many=True).data)
