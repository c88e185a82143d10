from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.authentication.permissions import IsMessOwner, IsPlatformAdmin, IsPlatformAdminOrReadOnly
from apps.messes.models import MessProfile
from . import services, slabs
from .models import CreditSlab, CreditPurchasePlan, CreditTransaction, FreeTrialSettings
from .serializers import (
    CreditSlabSerializer,
    CreditPurchasePlanSerializer,
    MessCreditsSerializer,
    CreditTransactionSerializer,
    FreeTrialSettingsSerializer,
    PurchaseSerializer,
    OfflinePurchaseSerializer,
    CreditAdjustmentSerializer,
    SettlementSerializer,
)


class CreditSlabViewSet(viewsets.ModelViewSet):
    permission_classes = [IsPlatformAdminOrReadOnly]
    serializer_class = CreditSlabSerializer

    def get_queryset(self):
        queryset = CreditSlab.objects.all()
        if not self.request.user.is_platform_admin:
            queryset = queryset.filter(is_active=True)
        return queryset

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = slabs.create_slab(
            min_users=data['min_users'],
            max_users=data['max_users'],
            credits_per_user=data['credits_per_user'],
            created_by=self.request.user,
        )

    def perform_update(self, serializer):
        serializer.instance = slabs.update_slab(
            serializer.instance, updated_by=self.request.user, **serializer.validated_data
        )

    def perform_destroy(self, instance):
        slabs.deactivate_slab(instance, updated_by=self.request.user)

    @action(detail=False, methods=['get'])
    def quote(self, request):
        try:
            user_count = int(request.query_params.get('user_count', ''))
        except ValueError:
            return Response({'error': 'user_count must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

        result = slabs.quote(user_count)
        return Response({
            'user_count': user_count,
            'slab': CreditSlabSerializer(result['slab']).data,
            'credits_per_user': result['credits_per_user'],
            'total_credits': result['total_credits'],
        })


class CreditPurchasePlanViewSet(viewsets.ModelViewSet):
    permission_classes = [IsPlatformAdminOrReadOnly]
    serializer_class = CreditPurchasePlanSerializer

    def get_queryset(self):
        queryset = CreditPurchasePlan.objects.order_by('price')
        if not self.request.user.is_platform_admin:
            queryset = queryset.filter(is_active=True)
        return queryset

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.updated_by = self.request.user
        instance.save(update_fields=['is_active', 'updated_by', 'updated_at'])


class MessCreditsViewSet(viewsets.GenericViewSet):
    """Credit ledger of the requesting mess owner."""

    permission_classes = [IsMessOwner]
    serializer_class = MessCreditsSerializer

    def get_mess(self):
        return self.request.user.mess_profile

    def list(self, request):
        details = services.get_mess_credits_details(self.get_mess())
        return Response({
            'credits': MessCreditsSerializer(details['credits']).data,
            'recent_transactions': CreditTransactionSerializer(details['recent_transactions'], many=True).data,
            'next_billing': details['next_billing'],
        })

    @action(detail=False, methods=['get'])
    def transactions(self, request):
        try:
            limit = min(int(request.query_params.get('limit', 50)), 200)
        except ValueError:
            return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
        entries = CreditTransaction.objects.for_mess(self.get_mess(), limit=limit)
        return Response(CreditTransactionSerializer(entries, many=True).data)

    @action(detail=False, methods=['post'])
    def purchase(self, request):
        """Open a purchase; credits arrive when the gateway confirms it through `settle`."""
        serializer = PurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = services.record_pending_purchase(
            self.get_mess(),
            serializer.validated_data['plan'],
            serializer.validated_data['payment_reference'],
        )
        return Response(CreditTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def trial(self, request):
        ledger = services.activate_free_trial(self.get_mess())
        return Response(MessCreditsSerializer(ledger).data)


class CreditAdminViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    serializer_class = CreditAdjustmentSerializer

    @action(detail=False, methods=['post'])
    def adjust(self, request):
        serializer = CreditAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        mess = get_object_or_404(MessProfile, pk=data['mess_id'])

        operation = {
            'adjustment': services.adjust_credits,
            'refund': services.refund_credits,
            'bonus': services.grant_bonus,
        }[data['type']]
        ledger, entry = operation(mess, data['amount'], data['description'], processed_by=request.user)
        return Response({
            'credits': MessCreditsSerializer(ledger).data,
            'transaction': CreditTransactionSerializer(entry).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def purchase(self, request):
        """Record a purchase paid outside the gateway and credit it immediately."""
        serializer = OfflinePurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        mess = get_object_or_404(MessProfile, pk=data['mess_id'])
        ledger, entry = services.purchase_credits(
            mess, data['plan'], payment_reference=data.get('payment_reference'), processed_by=request.user,
        )
        return Response({
            'credits': MessCreditsSerializer(ledger).data,
            'transaction': CreditTransactionSerializer(entry).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def settle(self, request):
        serializer = SettlementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = services.settle_purchase(**serializer.validated_data)
        return Response(CreditTransactionSerializer(entry).data)


class FreeTrialSettingsViewSet(viewsets.GenericViewSet):
    permission_classes = [IsPlatformAdmin]
    serializer_class = FreeTrialSettingsSerializer

    def list(self, request):
        return Response(FreeTrialSettingsSerializer(FreeTrialSettings.get_current_settings()).data)

    def create(self, request):
        current = FreeTrialSettings.get_current_settings()
        serializer = FreeTrialSettingsSerializer(current, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        updated = serializer.save(updated_by=request.user)
        return Response(FreeTrialSettingsSerializer(updated).data)
