"""Routes under ``/api/v1/orders/``.

``SimpleRouter`` keeps the surface to the collection and detail routes the
viewset's mixins provide; there is no browsable API root.
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet

router = SimpleRouter()
router.register("orders", OrderViewSet, basename="order")

urlpatterns = router.urls
