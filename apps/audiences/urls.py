from django.urls import path
from . import views

urlpatterns = [
    path('audiences/estimate/', views.estimate_audience, name='audience-estimate'),
    path('audiences/preview/', views.preview_audience, name='audience-preview'),
]
