"""Order API views.

Exposes the line-item, listing and activation services via HTTP using a
DRF ViewSet.  Views never catch domain exceptions: they propagate to
``DomainExceptionHandler``, which maps each ``kind`` to its status code
(``not_found`` 404, ``order_activated``/``not_activatable`` 409,
``invalid_quantity`` 400, anything unexpected 500).
"""

from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.orders.dtos import (
    DeleteItemsDTO,
    ProvisionOrderDTO,
    UpdateQuantitiesDTO,
)
from modules.orders.models import Order
from modules.orders.providers import build_order_services
from modules.orders.serializers import (
    ActivationStatusSerializer,
    DeleteItemsSerializer,
    OrderItemPageSerializer,
    OrderItemsQuerySerializer,
    OrderSummarySerializer,
    ProvisionResultSerializer,
    ProvisionSerializer,
    UpdateQuantitiesSerializer,
)

MUTATING_ACTIONS = {"provision", "update_quantities", "delete_items", "activate"}


class OrderViewSet(GenericViewSet):
    """ViewSet for order composition.

    Services are built once per request by ``build_order_services``.
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    lookup_value_regex = (
        "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
    )

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        services = build_order_services()
        self._items = services.items
        self._listing = services.listing
        self._activation = services.activation

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scopes per action."""
        if self.action in MUTATING_ACTIONS:
            self.throttle_scope = "order_mutation"
        elif self.action in {"retrieve", "items", "activation"}:
            self.throttle_scope = "order_listing"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @extend_schema(responses=OrderSummarySerializer)
    def retrieve(self, request: Request, pk: str) -> Response:
        """GET /api/v1/orders/{pk}/"""
        summary = self._listing.get_order_summary(UUID(pk))
        return Response(OrderSummarySerializer(summary.model_dump()).data)

    @extend_schema(parameters=[OrderItemsQuerySerializer], responses=OrderItemPageSerializer)
    @action(detail=True, methods=["get"])
    def items(self, request: Request, pk: str) -> Response:
        """GET /api/v1/orders/{pk}/items/?offset=&page_size=&cache_buster=

        A ``cache_buster`` marks a refetch after a mutation; the response
        is then sent with ``Cache-Control: no-store``.
        """
        query = OrderItemsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        page = self._listing.list_order_items(
            UUID(pk),
            offset=params["offset"],
            page_size=params["page_size"],
            cache_buster=params["cache_buster"],
        )
        response = Response(OrderItemPageSerializer(page.model_dump()).data)
        if params["cache_buster"] is not None:
            response["Cache-Control"] = "no-store"
        return response

    @extend_schema(responses=ActivationStatusSerializer)
    @action(detail=True, methods=["get"])
    def activation(self, request: Request, pk: str) -> Response:
        """GET /api/v1/orders/{pk}/activation/"""
        result = self._activation.describe(UUID(pk))
        return Response(ActivationStatusSerializer(result.model_dump()).data)

    # ------------------------------------------------------------------
    # Line-item mutations
    # ------------------------------------------------------------------

    @extend_schema(request=ProvisionSerializer, responses=ProvisionResultSerializer)
    @action(detail=False, methods=["post"])
    def provision(self, request: Request) -> Response:
        """POST /api/v1/orders/provision/

        Adds products to a DRAFT order, or sets the quantity of products
        already on it.  Without ``order_id`` a new order is created first
        (201); otherwise the existing order is updated (200).
        """
        serializer = ProvisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = ProvisionOrderDTO(**serializer.validated_data)
        order_id, affected = self._items.provision(dto)

        summary = self._listing.get_order_summary(order_id)
        out = ProvisionResultSerializer({"affected": affected, "order": summary.model_dump()})
        created = dto.order_id is None
        return Response(
            out.data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(request=UpdateQuantitiesSerializer)
    @action(detail=False, methods=["patch"], url_path="items/quantities")
    def update_quantities(self, request: Request) -> Response:
        """PATCH /api/v1/orders/items/quantities/"""
        serializer = UpdateQuantitiesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = self._items.update_quantities(
            UpdateQuantitiesDTO(
                order_item_id_to_quantity=serializer.validated_data["order_item_quantities"]
            )
        )
        return Response({"updated": updated})

    @extend_schema(request=DeleteItemsSerializer)
    @action(detail=False, methods=["post"], url_path="items/delete")
    def delete_items(self, request: Request) -> Response:
        """POST /api/v1/orders/items/delete/

        Unknown ids are ignored; ``deleted`` counts the rows removed.
        """
        serializer = DeleteItemsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        deleted = self._items.delete_items(
            DeleteItemsDTO(order_item_ids=serializer.validated_data["order_item_ids"])
        )
        return Response({"deleted": deleted})

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    @extend_schema(request=None, responses=ActivationStatusSerializer)
    @action(detail=True, methods=["post"])
    def activate(self, request: Request, pk: str) -> Response:
        """POST /api/v1/orders/{pk}/activate/

        Not idempotent: a second call answers 409 ``already_activated``.
        """
        notes = request.data.get("notes", "")
        self._activation.activate(UUID(pk), notes=notes)
        result = self._activation.describe(UUID(pk))
        return Response(ActivationStatusSerializer(result.model_dump()).data)
