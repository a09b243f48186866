"""Exchange URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.exchanges.views import ExchangeViewSet

router = DefaultRouter(trailing_slash=True)
router.register("exchanges", ExchangeViewSet, basename="exchange")

urlpatterns = router.urls
