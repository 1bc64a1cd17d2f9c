"""URL configuration for silo_tool."""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('silos/', include('silos.urls')),
]
