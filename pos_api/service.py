"""HTTP API for business units and user accounts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

import anyio
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import AliasChoices, BaseModel, Field

from .auth import AuthService
from .business_units import BusinessUnitService
from .config import Settings, load_settings
from .database import Database
from .errors import InvalidTokenError, ServiceError
from .models import BusinessUnit, User
from .passwords import PasswordHasher
from .security import BearerTokenAuth
from .tokens import TokenIssuer

logger = logging.getLogger("pos.service")

LIVENESS_MESSAGE = "Hello, World! Your POS application is running."
SQLITE_MAX_INTEGER = 2**63 - 1


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime


class BusinessUnitCreateRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    parent_id: Optional[int] = Field(
        default=None,
        ge=1,
        le=SQLITE_MAX_INTEGER,
        validation_alias=AliasChoices("parent_id", "parentId"),
    )


class BusinessUnitResponse(BaseModel):
    id: int
    name: str
    type: str
    parent_id: Optional[int]


def user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, created_at=user.created_at)


def business_unit_to_response(unit: BusinessUnit) -> BusinessUnitResponse:
    return BusinessUnitResponse(
        id=unit.id,
        name=unit.name,
        type=unit.type.value,
        parent_id=unit.parent_id,
    )


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, InvalidTokenError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _format_validation_error(exc)},
        )


def build_business_unit_router(service: BusinessUnitService) -> APIRouter:
    router = APIRouter(tags=["business-units"])

    @router.post(
        "/business-units",
        response_model=BusinessUnitResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_business_unit(payload: BusinessUnitCreateRequest) -> BusinessUnitResponse:
        unit = await anyio.to_thread.run_sync(
            service.create, payload.name, payload.type, payload.parent_id
        )
        return business_unit_to_response(unit)

    @router.get("/business-units", response_model=List[BusinessUnitResponse])
    async def list_business_units() -> List[BusinessUnitResponse]:
        units = await anyio.to_thread.run_sync(service.list)
        return [business_unit_to_response(unit) for unit in units]

    return router


def build_user_router(auth: AuthService, current_user: BearerTokenAuth) -> APIRouter:
    router = APIRouter(prefix="/users", tags=["users"])

    @router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest) -> UserResponse:
        user = await anyio.to_thread.run_sync(auth.register, payload.email, payload.password)
        return user_to_response(user)

    @router.post("/login", response_model=LoginResponse)
    async def login(payload: LoginRequest) -> LoginResponse:
        token = await anyio.to_thread.run_sync(auth.login, payload.email, payload.password)
        return LoginResponse(token=token)

    @router.get("/me", response_model=UserResponse)
    async def read_current_user(user: User = Depends(current_user)) -> UserResponse:
        return user_to_response(user)

    return router


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application with its collaborators wired in."""

    if settings is None:
        settings = load_settings()

    db = database or Database(settings.database_path)
    db.initialize()

    auth = AuthService(
        db,
        PasswordHasher(),
        TokenIssuer(settings.token_secret, ttl=settings.token_ttl),
        password_min_length=settings.password_min_length,
    )
    business_units = BusinessUnitService(db)

    app = FastAPI(
        title="POS Back Office API",
        version="0.1.0",
        description="Business unit hierarchy and user accounts for the POS back office.",
    )
    app.state.settings = settings
    app.state.database = db
    app.state.auth = auth
    app.state.business_units = business_units

    register_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    async def liveness() -> str:
        return LIVENESS_MESSAGE

    business_unit_router = build_business_unit_router(business_units)
    app.include_router(business_unit_router)
    app.include_router(business_unit_router, prefix="/api")
    app.include_router(build_user_router(auth, BearerTokenAuth(auth)), prefix="/api")

    logger.info("POS API configured with database at %s", db.path)
    return app


__all__ = ["create_app"]
