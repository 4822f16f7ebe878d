from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.core.codes import normalize_scanned_code
from apps.core.exceptions import InvalidScanError

from .authentication import issue_token
from .serializers import (
    ScanCodeSerializer,
    VerifyPinSerializer,
    RegisterSerializer,
    IdentifyResponseSerializer,
    SessionSerializer,
    SessionTokenSerializer,
    ErrorResponseSerializer,
)
from .services import (
    build_credential_store,
    build_identity_resolver,
    session_registry,
    IdentityNotFoundError,
    DuplicateIdentityError,
    InvalidPinError,
    InvalidDisplayNameError,
)


def _session_response(session, status_code=status.HTTP_200_OK):
    return Response({
        'token': issue_token(session),
        'session': SessionSerializer(session).data,
    }, status=status_code)


@extend_schema(
    request=ScanCodeSerializer,
    responses={200: IdentifyResponseSerializer, 400: ErrorResponseSerializer},
    description="Resolve a scanned badge. Known badges continue with PIN entry, "
                "unknown badges with registration.",
    tags=['scan'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def identify(request):
    """Resolve a badge scan to an identity."""
    serializer = ScanCodeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        lookup = async_to_sync(build_identity_resolver().resolve)(
            serializer.validated_data['code']
        )
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'code': lookup.scanned_code,
        'known': lookup.is_known,
        'display_name': lookup.identity.display_name if lookup.is_known else None,
    })


@extend_schema(
    request=VerifyPinSerializer,
    responses={
        200: SessionTokenSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Verify the PIN of a known badge and open a scan session.",
    tags=['scan'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def verify_pin(request):
    """Verify a PIN attempt and establish a session."""
    serializer = VerifyPinSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    credentials = build_credential_store()
    try:
        code = normalize_scanned_code(serializer.validated_data['code'])
        verified = async_to_sync(credentials.verify)(code, serializer.validated_data['pin'])
    except InvalidScanError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except IdentityNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    if not verified:
        return Response({'error': 'Incorrect PIN'}, status=status.HTTP_401_UNAUTHORIZED)

    identity = async_to_sync(credentials.get)(code)
    return _session_response(session_registry.establish(identity))


@extend_schema(
    request=RegisterSerializer,
    responses={
        201: SessionTokenSerializer,
        400: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Register an unknown badge with a display name and PIN, "
                "then open a scan session.",
    tags=['scan'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new badge holder."""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        code = normalize_scanned_code(data['code'])
        identity = async_to_sync(build_credential_store().register)(
            code, data['display_name'], data['pin']
        )
    except (InvalidScanError, InvalidPinError, InvalidDisplayNameError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except DuplicateIdentityError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return _session_response(
        session_registry.establish(identity),
        status_code=status.HTTP_201_CREATED,
    )


@extend_schema(
    responses={200: SessionSerializer},
    description="Get the current scan session.",
    tags=['scan'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_session(request):
    """Current scan session."""
    return Response(SessionSerializer(request.user).data)


@extend_schema(
    request=None,
    responses={204: None},
    description="End the scan session (home navigation). The token stops working.",
    tags=['scan'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sign_out(request):
    """End the current scan session."""
    session_registry.clear(request.user.session_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
