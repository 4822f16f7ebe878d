from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.serializers import ErrorResponseSerializer
from apps.core.exceptions import InvalidScanError

from .serializers import CatalogItemSerializer
from .services import build_catalog_resolver


@extend_schema(
    responses={200: CatalogItemSerializer, 404: ErrorResponseSerializer},
    description="Look up a scanned item in the catalog without registering it.",
    tags=['catalog'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_detail(request, code):
    """Get a catalog item by scanned code."""
    try:
        lookup = async_to_sync(build_catalog_resolver().resolve)(code)
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    if not lookup.is_known:
        return Response(
            {'error': f"Item {lookup.scanned_code} is not in the catalog"},
            status=status.HTTP_404_NOT_FOUND,
        )
    return Response(CatalogItemSerializer(lookup.item).data)
