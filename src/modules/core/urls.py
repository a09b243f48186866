from django.urls import path

from modules.core.views import CurrentRetailerView, health_check

urlpatterns = [
    # Public liveness probe, outside the versioned API.
    path("health", health_check, name="health_check"),
    path("api/v1/me", CurrentRetailerView.as_view(), name="current_retailer"),
]
