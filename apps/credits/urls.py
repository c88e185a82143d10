from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    CreditSlabViewSet,
    CreditPurchasePlanViewSet,
    MessCreditsViewSet,
    CreditAdminViewSet,
    FreeTrialSettingsViewSet,
)

router = DefaultRouter()
router.register(r'credit-slabs', CreditSlabViewSet, basename='credit-slab')
router.register(r'credit-plans', CreditPurchasePlanViewSet, basename='credit-plan')
router.register(r'credits/admin', CreditAdminViewSet, basename='credit-admin')
router.register(r'credits/trial-settings', FreeTrialSettingsViewSet, basename='trial-settings')
router.register(r'credits', MessCreditsViewSet, basename='credits')

urlpatterns = [
    path('', include(router.urls)),
]
