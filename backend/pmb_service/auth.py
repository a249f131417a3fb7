"""API-key authentication dependencies.

`require_api_key` guards the applicant and study-program routers: it
reads the `x-api-key` header, looks the token up in the API-key table and
raises `AuthError` (401) for a missing, unknown or disabled key. The
matching key's id and name are attached to `request.state.api_key_info`
for request logging.

`require_admin_token` guards API-key management only when an
`ADMIN_TOKEN` is configured; without one those routes stay open.
"""

import hmac
from typing import Optional

from fastapi import Depends, Header, Request
from sqlmodel import Session

from . import services
from .database import get_session
from .errors import AuthError


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    db: Session = Depends(get_session),
):
    """FastAPI dependency that returns the active `ApiKey` for the request."""
    if not x_api_key:
        raise AuthError("API key is required. Please provide x-api-key header.")
    key = services.ApiKeyService(db).find_by_token(x_api_key)
    if key is None:
        raise AuthError("Invalid API key.")
    if not key.is_active:
        raise AuthError("API key has been disabled.")
    request.state.api_key_info = {"id": key.id, "name": key.name}
    return key


def require_admin_token(request: Request, x_admin_token: Optional[str] = Header(default=None)):
    """Check `x-admin-token` against the configured admin token, if any."""
    expected = request.app.state.settings.ADMIN_TOKEN
    if not expected:
        return
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise AuthError("Admin token is required to manage API keys.")
