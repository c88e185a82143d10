from django.urls import path
from . import views

urlpatterns = [
    path('ad-card/', views.active_ad_card, name='active_ad_card'),
    path('campaigns/<int:campaign_id>/', views.campaign_analytics, name='campaign_analytics'),
    path('campaigns/<int:campaign_id>/impression/', views.record_impression, name='record_impression'),
    path('campaigns/<int:campaign_id>/click/', views.record_click, name='record_click'),
    path('campaigns/<int:campaign_id>/message-sent/', views.record_message_sent, name='record_message_sent'),
]
