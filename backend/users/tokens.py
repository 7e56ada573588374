"""
Single-purpose tokens for the admin order stream.

EventSource connections cannot send an Authorization header, so the admin UI
first exchanges its session for a short-lived token and passes it as a query
parameter. The token is only accepted by the stream endpoint.
"""

from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings

from .models import User

STREAM_SCOPE = "orders_stream"
ALGORITHM = "HS256"


class StreamTokenError(Exception):
    def __init__(self, message, status_code=401):
        super().__init__(message)
        self.status_code = status_code


def issue_stream_token(user, ttl_seconds=None):
    ttl = ttl_seconds or settings.ORDER_STREAM_TOKEN_TTL_SECONDS
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "scope": STREAM_SCOPE,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def verify_stream_token(token):
    """
    Returns the admin user a stream token was issued to.

    Raises StreamTokenError with 401 for a missing, expired or forged token
    and 403 for a token with the wrong scope or a user who is no longer an
    active admin.
    """
    if not token:
        raise StreamTokenError("Stream token is required")

    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise StreamTokenError("Stream token has expired")
    except jwt.InvalidTokenError:
        raise StreamTokenError("Invalid stream token")

    if claims.get("scope") != STREAM_SCOPE:
        raise StreamTokenError("Token is not valid for the order stream", status_code=403)

    user = User.objects.filter(pk=claims.get("user_id"), is_active=True).first()
    if user is None or user.role != User.Role.ADMIN:
        raise StreamTokenError("Admin access required", status_code=403)

    return user
