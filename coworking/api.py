"""FastAPI application exposing signup, login and booking endpoints."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .catalog import DEFAULT_CATALOG, SpaceCatalog, SpaceType
from .config import Settings, load_settings
from .database import Database
from .errors import (
    BookingServiceError,
    Forbidden,
    InvalidToken,
    StoreError,
)
from .identity import IdentityManager
from .ledger import BookingLedger
from .models import Booking, User
from .security import PasswordHasher, TokenSigner

logger = logging.getLogger("coworking.api")


class WireModel(BaseModel):
    """Base model using the camelCase field names of the public API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(WireModel):
    email: str
    password: str
    name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(WireModel):
    email: str
    password: str


class TokenResponse(WireModel):
    token: str
    user_id: str


class BookingRequest(WireModel):
    user_id: str = Field(..., min_length=1)
    space_type: str
    sub_type: str
    start_date: datetime
    end_date: datetime
    total_amount: Optional[int] = None


class BookingResponse(WireModel):
    id: str
    user_id: str
    space_type: str
    sub_type: str
    start_date: datetime
    end_date: datetime
    total_amount: int
    created_at: datetime


class UserResponse(WireModel):
    id: str
    email: str
    name: Optional[str]
    created_at: datetime


class SpaceOptionResponse(WireModel):
    name: str
    price: int
    unit: str


class SpaceResponse(WireModel):
    type: str
    label: str
    options: List[SpaceOptionResponse]


_STATUS_BY_ERROR = (
    (InvalidToken, status.HTTP_401_UNAUTHORIZED),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _status_for(exc: BookingServiceError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        space_type=booking.space_type,
        sub_type=booking.sub_type,
        start_date=booking.start_date,
        end_date=booking.end_date,
        total_amount=booking.total_amount,
        created_at=booking.created_at,
    )


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


def _space_to_response(space: SpaceType) -> SpaceResponse:
    return SpaceResponse(
        type=space.type,
        label=space.label,
        options=[
            SpaceOptionResponse(name=option.sub_type, price=option.price, unit=option.unit)
            for option in space.options
        ],
    )


def _build_auth_dependency(identity: IdentityManager) -> Callable[..., str]:
    bearer_security = HTTPBearer(auto_error=False)

    def dependency(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_security),
    ) -> str:
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise InvalidToken("Missing bearer token")
        return identity.verify(credentials.credentials)

    return dependency


def _require_same_user(acting_user_id: str, target_user_id: str) -> None:
    if acting_user_id != target_user_id:
        logger.warning("User %s attempted to act on bookings of user %s", acting_user_id, target_user_id)
        raise Forbidden("You may only access your own bookings")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingServiceError)
    async def handle_service_error(_request: Request, exc: BookingServiceError) -> JSONResponse:
        status_code = _status_for(exc)
        if isinstance(exc, StoreError):
            logger.error("Store failure while handling request: %s", exc, exc_info=exc)
            return JSONResponse({"error": "Internal storage error"}, status_code=status_code)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse({"error": str(exc)}, status_code=status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return JSONResponse(
            {"error": "; ".join(messages) or "Invalid request"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def register_api_routes(
    app: FastAPI,
    identity: IdentityManager,
    ledger: BookingLedger,
    *,
    current_user_id: Callable[..., str],
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
    def signup(request: SignupRequest) -> TokenResponse:
        user, token = identity.register(request.email, request.password, request.name)
        return TokenResponse(token=token, user_id=user.id)

    @app.post("/api/login", response_model=TokenResponse)
    def login(request: LoginRequest) -> TokenResponse:
        user, token = identity.authenticate(request.email, request.password)
        return TokenResponse(token=token, user_id=user.id)

    @app.get("/api/me", response_model=UserResponse)
    def me(user_id: str = Depends(current_user_id)) -> UserResponse:
        return _user_to_response(identity.get_user(user_id))

    @app.get("/api/spaces", response_model=List[SpaceResponse])
    def list_spaces() -> List[SpaceResponse]:
        return [_space_to_response(space) for space in ledger.catalog.list()]

    @app.post("/api/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
    def create_booking(
        request: BookingRequest,
        user_id: str = Depends(current_user_id),
    ) -> BookingResponse:
        _require_same_user(user_id, request.user_id)
        booking = ledger.create(
            request.user_id,
            request.space_type,
            request.sub_type,
            request.start_date,
            request.end_date,
            request.total_amount,
        )
        return _booking_to_response(booking)

    @app.get("/api/bookings/{target_user_id}", response_model=List[BookingResponse])
    def list_bookings(
        target_user_id: str,
        user_id: str = Depends(current_user_id),
    ) -> List[BookingResponse]:
        _require_same_user(user_id, target_user_id)
        return [_booking_to_response(booking) for booking in ledger.list_by_user(target_user_id)]


def build_services(
    database: Database,
    settings: Settings,
    catalog: SpaceCatalog = DEFAULT_CATALOG,
) -> tuple[IdentityManager, BookingLedger]:
    """Wire the identity manager and ledger around an open ``database``."""

    identity = IdentityManager(
        database,
        PasswordHasher(rounds=settings.bcrypt_rounds),
        TokenSigner(settings.token_secret, ttl=timedelta(minutes=settings.token_ttl_minutes)),
    )
    return identity, BookingLedger(database, catalog)


def create_app(
    *,
    database: Database | None = None,
    settings: Settings | None = None,
    catalog: SpaceCatalog | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the booking service."""

    app_settings = settings or load_settings()
    owns_database = database is None
    db = database or Database(app_settings.database_path)
    db.initialize()

    identity, ledger = build_services(db, app_settings, catalog or DEFAULT_CATALOG)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owns_database:
            db.close()
            logger.info("Database at %s closed", db.path)

    app = FastAPI(
        title="Coworking Booking API",
        version="0.1.0",
        description="Signup, login and space bookings for the coworking space.",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = db
    app.state.identity = identity
    app.state.ledger = ledger

    register_exception_handlers(app)
    register_api_routes(app, identity, ledger, current_user_id=_build_auth_dependency(identity))
    return app


__all__ = ["build_services", "create_app"]
