"""
Custody endpoints.

Views are thin HTTP handlers; every rule lives in the ledger. The
authenticated user of each request is the ScanSession named by its token.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.serializers import ScanCodeSerializer, ErrorResponseSerializer
from apps.catalog.services import build_catalog_resolver, LookupFailedError
from apps.core.codes import normalize_scanned_code
from apps.core.exceptions import InvalidScanError

from .serializers import (
    CustodyRecordSerializer,
    CustodyEventSerializer,
    ConflictResponseSerializer,
)
from .services import (
    build_custody_ledger,
    checkout_scanned_item,
    checkin_scanned_item,
    AlreadyCheckedOutError,
    NotCheckedOutError,
    NotHolderError,
)


@extend_schema(
    request=ScanCodeSerializer,
    responses={
        201: CustodyRecordSerializer,
        400: ErrorResponseSerializer,
        409: ConflictResponseSerializer,
        502: ErrorResponseSerializer,
    },
    description="Check a scanned item out to the session holder. Unknown items "
                "are named through the title lookup service first.",
    tags=['custody'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def checkout(request):
    """Check out a scanned item."""
    serializer = ScanCodeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = async_to_sync(checkout_scanned_item)(
            resolver=build_catalog_resolver(),
            ledger=build_custody_ledger(),
            scanned_code=serializer.validated_data['code'],
            holder=request.user.identity,
        )
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except LookupFailedError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
    except AlreadyCheckedOutError as e:
        return Response({
            'error': str(e),
            'record': CustodyRecordSerializer(e.record).data,
        }, status=status.HTTP_409_CONFLICT)

    return Response(CustodyRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=ScanCodeSerializer,
    responses={
        200: CustodyEventSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Check a scanned item back in.",
    tags=['custody'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def checkin(request):
    """Check in a scanned item."""
    serializer = ScanCodeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        event = async_to_sync(checkin_scanned_item)(
            ledger=build_custody_ledger(),
            scanned_code=serializer.validated_data['code'],
            holder=request.user.identity,
        )
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except NotCheckedOutError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except NotHolderError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(CustodyEventSerializer(event).data)


@extend_schema(
    parameters=[
        OpenApiParameter(
            'holder', str, required=False,
            description="Badge code of a holder, or 'me' for the session holder",
        ),
    ],
    responses={
        200: CustodyRecordSerializer(many=True),
        400: ErrorResponseSerializer,
    },
    description="List checked-out items, newest checkout first.",
    tags=['custody'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active(request):
    """List active checkouts."""
    holder = request.query_params.get('holder')
    try:
        if holder == 'me':
            holder_id = request.user.user_id
        else:
            holder_id = normalize_scanned_code(holder) if holder else None
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    records = async_to_sync(build_custody_ledger().list_active)(holder_id)
    return Response(CustodyRecordSerializer(records, many=True).data)


@extend_schema(
    parameters=[
        OpenApiParameter('item', str, required=False, description="Scanned item code"),
    ],
    responses={200: CustodyEventSerializer(many=True)},
    description="List completed checkouts, most recent checkin first.",
    tags=['custody'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def history(request):
    """List custody history."""
    item = request.query_params.get('item')
    try:
        item_id = normalize_scanned_code(item) if item else None
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    events = async_to_sync(build_custody_ledger().history)(item_id)
    return Response(CustodyEventSerializer(events, many=True).data)
