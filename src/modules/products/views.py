"""Catalog API views.

Exposes ``CatalogService`` via HTTP.  Domain exceptions propagate to
``DomainExceptionHandler``, which maps their ``kind`` to a status code.
"""

from __future__ import annotations

import structlog
from drf_spectacular.utils import extend_schema
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.orders.providers import build_order_services
from modules.products.dtos import ProductSearchDTO
from modules.products.serializers import (
    CatalogParentSerializer,
    ProductSearchSerializer,
)

logger = structlog.get_logger(__name__)


class ProductSearchView(APIView):
    """POST /api/v1/products/search/

    Returns the parent/child catalog available to an order, optionally
    narrowed by a parent-name search term.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_services().catalog

    @extend_schema(
        request=ProductSearchSerializer,
        responses=CatalogParentSerializer(many=True),
    )
    def post(self, request: Request) -> Response:
        serializer = ProductSearchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = ProductSearchDTO(**serializer.validated_data)
        catalog = self._service.list_available_products(dto)

        logger.info(
            "catalog.searched",
            order_id=str(dto.order_id),
            parents=len(catalog),
        )
        out = CatalogParentSerializer([node.model_dump() for node in catalog], many=True)
        return Response(out.data)
