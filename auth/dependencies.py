"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Callers authenticate with an `Authorization: Bearer <token>` header carrying a
JWT from POST /auth/login or POST /auth/register.

try_get_current_caller() is the soft variant (returns None on failure).
get_current_caller() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: auth/dependencies.py may import from fastapi (for
HTTPException/Request) because it is part of the FastAPI dependency injection
system. It reads the store from app.state rather than importing directory/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Caller
from auth.tokens import decode_token, resolve_caller


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_caller(request: Request) -> Caller | None:
    """Authenticate the request from its bearer token.

    Returns the Caller on success, None on any failure. The token's subject
    must still exist: a deleted employee's unexpired token stops working
    immediately rather than at expiry.

    The role is the one asserted by the token, not the stored one. A role
    change takes effect at the employee's next login; until then an older
    token keeps the role it was issued with, for at most
    Settings.token_expire_seconds.
    """
    token = _bearer_token(request)
    if not token:
        return None
    payload = decode_token(token)
    if payload is None:
        return None
    caller = resolve_caller(payload)
    if caller is None:
        return None
    store = request.app.state.employee_store
    if not store.exists_by_id(caller.subject_id):
        return None
    return caller


def get_current_caller(request: Request) -> Caller:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(caller: Caller = Depends(get_current_caller)): ...
    """
    caller = try_get_current_caller(request)
    if caller is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
