from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.authentication.permissions import IsMessOwner
from .resolver import count_audience, audience_list
from .serializers import AudienceFiltersSerializer, AudienceMemberSerializer


@api_view(['POST'])
@permission_classes([IsMessOwner])
def estimate_audience(request):
    """Number of users a campaign with these filters would reach."""
    serializer = AudienceFiltersSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response({'target_user_count': count_audience(serializer.validated_data)})


@api_view(['POST'])
@permission_classes([IsMessOwner])
def preview_audience(request):
    serializer = AudienceFiltersSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    members = audience_list(serializer.validated_data)
    return Response(AudienceMemberSerializer(members, many=True).data)
