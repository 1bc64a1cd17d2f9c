"""URL configuration for the silos app."""

from django.urls import path

from . import views

app_name = 'silos'

urlpatterns = [
    path('<slug:slug>/report/', views.silo_report, name='silo_report'),
    path('<slug:slug>/actions/', views.silo_actions, name='silo_actions'),
]
