"""Order URL configuration.

Routes (all under ``/api/v1/``):

- ``orders/provision/``                  POST   add or update items
- ``orders/items/quantities/``           PATCH  set item quantities
- ``orders/items/delete/``               POST   delete items
- ``orders/{id}/``                       GET    order summary
- ``orders/{id}/items/``                 GET    paginated line items
- ``orders/{id}/activation/``            GET    activation status
- ``orders/{id}/activate/``              POST   activate
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet

router = SimpleRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = router.urls
