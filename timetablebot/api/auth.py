"""Password hashing and bearer-token session helpers."""

import functools
import logging
import secrets
from collections.abc import Awaitable
from typing import Callable, Optional

import bcrypt
from aiohttp import web

from ..storage.database import DatabaseManager
from ..utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
BCRYPT_MAX_PASSWORD_BYTES = 72
TOKEN_BYTES = 32
BEARER_PREFIX = "Bearer "


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Plain-text password, at most BCRYPT_MAX_PASSWORD_BYTES in UTF-8
        rounds: bcrypt cost factor

    Returns:
        Modular-crypt bcrypt hash (``$2b$...``)

    Raises:
        ValueError: If the password is longer than bcrypt accepts
    """
    secret = password.encode("utf-8")
    if len(secret) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    secret = password.encode("utf-8")
    if len(secret) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret, encoded.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash has an unexpected format")
        return False


def new_session_token() -> str:
    """Generate an opaque session token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def get_bearer_token(request: web.Request) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


async def get_current_user_id(request: web.Request, store: DatabaseManager) -> str:
    """Resolve the authenticated user for a request.

    Raises:
        AuthenticationError: If the request has no valid session token
    """
    token = get_bearer_token(request)
    if token is None:
        raise AuthenticationError("Not authenticated")

    user_id = await store.get_user_id_for_session(token)
    if user_id is None:
        logger.debug("Rejected unknown session token")
        raise AuthenticationError("Not authenticated")
    return user_id


def unauthorized_response() -> web.Response:
    """JSON 401 response for requests without a valid session."""
    return web.json_response({"error": "Not authenticated"}, status=401)


AuthenticatedHandler = Callable[[web.Request, str], Awaitable[web.StreamResponse]]


def login_required(
    store: DatabaseManager,
) -> Callable[[AuthenticatedHandler], Callable[[web.Request], Awaitable[web.StreamResponse]]]:
    """Wrap a handler so it receives the authenticated user id or returns 401."""

    def decorator(
        handler: AuthenticatedHandler,
    ) -> Callable[[web.Request], Awaitable[web.StreamResponse]]:
        @functools.wraps(handler)
        async def wrapper(request: web.Request) -> web.StreamResponse:
            try:
                user_id = await get_current_user_id(request, store)
            except AuthenticationError:
                return unauthorized_response()
            return await handler(request, user_id)

        return wrapper

    return decorator
