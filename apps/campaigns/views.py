from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.authentication.permissions import IsMessOwner, IsPlatformAdmin
from . import services
from .models import AdCampaign, AdSettings
from .serializers import (
    AdCampaignSerializer,
    AdCampaignCreateSerializer,
    CostEstimateSerializer,
    RejectionSerializer,
    AdSettingsSerializer,
)


class AdCampaignViewSet(mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        viewsets.GenericViewSet):
    serializer_class = AdCampaignSerializer
    owner_actions = ('create', 'pause', 'resume', 'estimate')
    admin_actions = ('approve', 'reject', 'pending')

    def get_permissions(self):
        if self.action in self.owner_actions:
            return [IsMessOwner()]
        if self.action in self.admin_actions:
            return [IsAuthenticated(), IsPlatformAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        queryset = AdCampaign.objects.select_related('mess').order_by('-created_at')
        user = self.request.user
        if user.is_platform_admin:
            return queryset
        if hasattr(user, 'mess_profile'):
            return queryset.filter(mess=user.mess_profile)
        return queryset.none()

    def get_object(self):
        campaign = super().get_object()
        campaign.refresh_status()
        return campaign

    def list(self, request, *args, **kwargs):
        self.get_queryset().complete_expired()
        return super().list(request, *args, **kwargs)

    def create(self, request):
        serializer = AdCampaignCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        campaign = services.create_campaign(request.user.mess_profile, **serializer.validated_data)
        return Response(AdCampaignSerializer(campaign).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def estimate(self, request):
        serializer = CostEstimateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return Response(services.estimate_cost(data['campaign_type'], data.get('audience_filters', {})))

    @action(detail=False, methods=['get'])
    def pending(self, request):
        campaigns = self.get_queryset().filter(status='pending_approval')
        page = self.paginate_queryset(campaigns)
        if page is not None:
            return self.get_paginated_response(AdCampaignSerializer(page, many=True).data)
        return Response(AdCampaignSerializer(campaigns, many=True).data)

    @action(detail=True, methods=['post'])
    def pause(self, request, pk=None):
        campaign = services.pause_campaign(self.get_object())
        return Response(AdCampaignSerializer(campaign).data)

    @action(detail=True, methods=['post'])
    def resume(self, request, pk=None):
        campaign = services.resume_campaign(self.get_object())
        return Response(AdCampaignSerializer(campaign).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        campaign = services.approve_campaign(self.get_object(), approved_by=request.user)
        return Response(AdCampaignSerializer(campaign).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RejectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        campaign = services.reject_campaign(
            self.get_object(), rejected_by=request.user, reason=serializer.validated_data.get('reason')
        )
        return Response(AdCampaignSerializer(campaign).data)


class AdSettingsViewSet(viewsets.GenericViewSet):
    permission_classes = [IsPlatformAdmin]
    serializer_class = AdSettingsSerializer

    def list(self, request):
        return Response(AdSettingsSerializer(AdSettings.get_current_settings()).data)

    def create(self, request):
        current = AdSettings.get_current_settings()
        serializer = AdSettingsSerializer(current, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        updated = serializer.save(updated_by=request.user)
        return Response(AdSettingsSerializer(updated).data)
