"""
Bearer-token authentication bound to in-memory scan sessions.

Access tokens are ordinary simplejwt access tokens carrying the session id.
A token is accepted only while its session is still registered, so signing
out invalidates it immediately even though the JWT has not expired.
"""

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken

from .services.sessions import session_registry

SESSION_CLAIM = 'sid'


def issue_token(session) -> str:
    """Signed access token for a scan session."""
    token = AccessToken()
    token[SESSION_CLAIM] = session.session_id
    token['user_id'] = session.user_id
    return str(token)


class ScanSessionAuthentication(JWTAuthentication):
    """Resolves request.user to the ScanSession named by the token."""

    def get_user(self, validated_token):
        session = session_registry.get(validated_token.get(SESSION_CLAIM))
        if session is None:
            raise AuthenticationFailed('Scan session has ended', code='session_ended')
        return session
