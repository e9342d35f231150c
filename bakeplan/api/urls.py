"""
Bakeplan API URLs.

Include this in your project's urlpatterns:

    path('api/bakeplan/', include('bakeplan.api.urls')),
"""

from rest_framework.routers import DefaultRouter

from .views import ConsumptionViewSet, ProductionScheduleViewSet

router = DefaultRouter()
router.register("schedules", ProductionScheduleViewSet, basename="schedule")
router.register("consumption", ConsumptionViewSet, basename="consumption")

urlpatterns = router.urls
