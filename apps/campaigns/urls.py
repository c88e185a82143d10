from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AdCampaignViewSet, AdSettingsViewSet

router = DefaultRouter()
router.register(r'campaigns/settings', AdSettingsViewSet, basename='ad-settings')
router.register(r'campaigns', AdCampaignViewSet, basename='campaign')

urlpatterns = [
    path('', include(router.urls)),
]
