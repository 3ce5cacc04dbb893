"""
api/routes/v1/auth.py -- Registration, login, and identity endpoints.

Routes:
  POST /api/v1/auth/register   -- self-registration; returns token + projection
  POST /api/v1/auth/login      -- document number + password; returns token + projection
  GET  /api/v1/auth/me         -- identity asserted by the bearer token

Security:
  POST /login and POST /register are rate-limited per client IP.
  Login failures return one generic "bad_credentials" error whether the
  document number is unknown or the password is wrong; the service also
  equalizes timing between the two.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    AuthResponse,
    EmployeeCreate,
    EmployeeResponse,
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    MeResponse,
)
from auth.dependencies import get_current_caller
from auth.models import AuthResult, Caller
from core.config import get_settings
from core.errors import Unauthenticated
from directory.service import EmployeeService

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/register:  public (Settings.self_registration_enabled)
# - POST /api/v1/auth/login:     public
# - GET  /api/v1/auth/me:        requires auth (get_current_caller)
router = APIRouter()


def _token_response(result: AuthResult, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            access_token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
            employee=EmployeeResponse.from_employee(result.employee),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(_settings.login_rate_limit)
@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: EmployeeCreate) -> JSONResponse:
    """Create an account without prior authentication and return its first token.

    Conflict (409), validation (400) and disabled-registration (403) errors
    propagate to the exception handlers in api/main.py.
    """
    service: EmployeeService = request.app.state.employees
    result = service.register(body.to_command())
    return _token_response(result, status_code=201)


@limiter.limit(_settings.login_rate_limit)
@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with document number and password."""
    service: EmployeeService = request.app.state.employees
    try:
        result = service.login(body.doc_number, body.password)
    except Unauthenticated as exc:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
                exclude_none=True
            ),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _token_response(result, status_code=200)


@router.get("/auth/me", response_model=MeResponse)
async def me(caller: Caller = Depends(get_current_caller)) -> MeResponse:
    """Return the identity asserted by the current token."""
    return MeResponse(employee_id=caller.subject_id, email=caller.email, role=caller.role)
