"""Registration, login and address routes."""

import logging
from typing import Any, Optional

from aiohttp import web

from ...storage.database import DatabaseManager
from ...utils.exceptions import DuplicateUserError
from ..auth import (
    BCRYPT_MAX_PASSWORD_BYTES,
    get_bearer_token,
    hash_password,
    login_required,
    new_session_token,
    verify_password,
)

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = (
    ("street", "street"),
    ("houseNumber", "house_number"),
    ("postalCode", "postal_code"),
    ("city", "city"),
)


async def read_json_object(request: web.Request) -> Optional[dict[str, Any]]:
    """Parse a JSON object body, returning None for anything else."""
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _clean(value: Any) -> Optional[str]:
    """Normalize a submitted text field; blank values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def register_auth_routes(app: web.Application, store: DatabaseManager) -> None:
    """Register authentication and user address routes.

    Args:
        app: aiohttp web application
        store: Database manager holding users and sessions
    """

    async def register(request: web.Request) -> web.Response:
        """Create an account and open a session for it."""
        data = await read_json_object(request)
        if data is None:
            return web.json_response({"error": "invalid json"}, status=400)

        email = _clean(data.get("email"))
        password = data.get("password")
        if not email or not password or not isinstance(password, str):
            return web.json_response({"error": "Email and password are required"}, status=400)
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            return web.json_response(
                {"error": f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"}, status=400
            )

        try:
            user = await store.create_user(email, hash_password(password), _clean(data.get("name")))
        except DuplicateUserError:
            return web.json_response({"error": "User already exists"}, status=409)

        token = new_session_token()
        await store.create_session(user.id, token)
        return web.json_response(
            {"message": "User created successfully", "user": user.to_api_dict(), "token": token},
            status=201,
        )

    async def login(request: web.Request) -> web.Response:
        """Exchange email and password for a session token."""
        data = await read_json_object(request)
        if data is None:
            return web.json_response({"error": "invalid json"}, status=400)

        email = _clean(data.get("email"))
        password = data.get("password")
        credentials = await store.get_credentials(email) if email else None
        if (
            credentials is None
            or not isinstance(password, str)
            or not verify_password(password, credentials[1])
        ):
            logger.info("Failed login attempt for %s", email)
            return web.json_response({"error": "Invalid email or password"}, status=401)

        user = credentials[0]
        token = new_session_token()
        await store.create_session(user.id, token)
        logger.info("User %s logged in", user.id)
        return web.json_response({"user": user.to_api_dict(), "token": token})

    async def logout(request: web.Request) -> web.Response:
        """Drop the session behind the bearer token, if any."""
        token = get_bearer_token(request)
        removed = await store.delete_session(token) if token else False
        return web.json_response({"loggedOut": removed})

    @login_required(store)
    async def get_address(request: web.Request, user_id: str) -> web.Response:
        """Return the current user with their address fields."""
        user = await store.get_user(user_id)
        if user is None:
            return web.json_response({"error": "User not found"}, status=404)
        return web.json_response({"user": user.to_api_dict()})

    @login_required(store)
    async def update_address(request: web.Request, user_id: str) -> web.Response:
        """Replace the current user's address."""
        data = await read_json_object(request)
        if data is None:
            return web.json_response({"error": "invalid json"}, status=400)

        values = {field: _clean(data.get(key)) for key, field in ADDRESS_FIELDS}
        user = await store.update_address(user_id, **values)
        if user is None:
            return web.json_response({"error": "User not found"}, status=404)

        logger.info("Updated address for user %s", user_id)
        return web.json_response({"message": "Address updated", "user": user.to_api_dict()})

    app.router.add_post("/api/auth/register", register)
    app.router.add_post("/api/auth/login", login)
    app.router.add_post("/api/auth/logout", logout)
    app.router.add_get("/api/auth/address", get_address)
    app.router.add_put("/api/auth/address", update_address)
