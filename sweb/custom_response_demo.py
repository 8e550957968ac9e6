"""Demo application: custom response types that convert themselves into responses."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import enum
import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Generic, Optional, Sequence, TypeVar

from .context import RequestCtx
from .engine import Engine
from .response import Response, ResponseBuilder

T = TypeVar("T")

DEFAULT_ADDR = "127.0.0.1:8080"
PAGE_SIZE = 2
_SERIALIZATION_ERROR = '{"success":false,"message":"Serialization error"}'
_UNSIGNED = re.compile(r"\+?[0-9]+")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _rfc3339(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return _rfc3339(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def _dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False, separators=(",", ":"))


def _serialization_failure() -> Response:
    return (
        ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .header("Content-Type", "application/json")
        .body(_SERIALIZATION_ERROR)
    )


def _status_for(code: int) -> int:
    if 200 <= code <= 299 or 400 <= code <= 599:
        return code
    return HTTPStatus.OK


@dataclass
class ApiResponse(Generic[T]):
    """A uniform JSON envelope: success flag, data, message, timestamp and code."""

    is_success: bool
    data: Optional[T]
    message: str
    timestamp: datetime = field(default_factory=_now)
    code: int = 200

    @classmethod
    def success(cls, data: T) -> ApiResponse[T]:
        return cls(is_success=True, data=data, message="Success", code=200)

    @classmethod
    def error(cls, message: str, code: int) -> ApiResponse[Any]:
        return cls(is_success=False, data=None, message=message, code=code)

    def into_response(self) -> Response:
        payload = {
            "success": self.is_success,
            "data": self.data,
            "message": self.message,
            "timestamp": self.timestamp,
            "code": self.code,
        }
        try:
            text = _dumps(payload)
        except (TypeError, ValueError):
            return _serialization_failure()
        return (
            ResponseBuilder()
            .status(_status_for(self.code))
            .header("Content-Type", "application/json")
            .header("X-Powered-By", "s_web Framework")
            .body(text)
        )


@dataclass
class Pagination:
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass
class PaginatedResponse(Generic[T]):
    """A page of items with paging headers."""

    items: list[T]
    pagination: Pagination
    total: int

    def into_response(self) -> Response:
        try:
            text = _dumps(self)
        except (TypeError, ValueError):
            return _serialization_failure()
        return (
            ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Content-Type", "application/json")
            .header("X-Total-Count", self.total)
            .header("X-Page", self.pagination.page)
            .header("X-Page-Size", self.pagination.page_size)
            .body(text)
        )


@dataclass
class User:
    id: int
    name: str
    email: str
    age: int
    created_at: datetime = field(default_factory=_now)


@dataclass
class UserStats:
    total_users: int
    active_users: int
    new_users_today: int
    average_age: float


class ErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    DATABASE = "database"
    UNAUTHORIZED = "unauthorized"


class AppError(Exception):
    """An application error that renders as an error envelope."""

    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.kind is ErrorKind.NOT_FOUND:
            return "Resource not found"
        if self.kind is ErrorKind.VALIDATION:
            return f"Validation error: {self.detail}"
        if self.kind is ErrorKind.DATABASE:
            return "Database error occurred"
        return "Unauthorized access"

    @property
    def code(self) -> int:
        return {
            ErrorKind.NOT_FOUND: 404,
            ErrorKind.VALIDATION: 400,
            ErrorKind.DATABASE: 500,
            ErrorKind.UNAUTHORIZED: 401,
        }[self.kind]

    def into_response(self) -> Response:
        return ApiResponse.error(self.message, self.code).into_response()


def get_mock_users() -> list[User]:
    """The fixed sample users."""
    return [
        User(id=1, name="Alice", email="alice@example.com", age=25),
        User(id=2, name="Bob", email="bob@example.com", age=30),
        User(id=3, name="Charlie", email="charlie@example.com", age=35),
        User(id=4, name="Diana", email="diana@example.com", age=28),
    ]


def _parse_unsigned(text: Optional[str]) -> Optional[int]:
    if text is None or not _UNSIGNED.fullmatch(text):
        return None
    return int(text)


async def get_users(ctx: RequestCtx) -> ApiResponse[list[User]]:
    return ApiResponse.success(get_mock_users())


async def get_user_by_id(ctx: RequestCtx) -> ApiResponse[User]:
    """Look up a user; raises AppError when the id is invalid or unknown."""
    user_id = _parse_unsigned(ctx.get_param("id"))
    if user_id is None or user_id > 0xFFFFFFFF:
        raise AppError(ErrorKind.VALIDATION, "Invalid user ID")
    user = next((u for u in get_mock_users() if u.id == user_id), None)
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND)
    return ApiResponse.success(user)


async def get_users_paginated(ctx: RequestCtx) -> PaginatedResponse[User]:
    """One page of users; raises ValueError for a page beyond the data."""
    page = _parse_unsigned(ctx.get_param("page"))
    if page is None:
        page = 1
    users = get_mock_users()
    total = len(users)
    total_pages = math.ceil(total / PAGE_SIZE)
    start = (page - 1) * PAGE_SIZE
    if page == 0 or start > total:
        raise ValueError(f"page {page} is out of range")
    end = min(start + PAGE_SIZE, total)
    return PaginatedResponse(
        items=users[start:end],
        pagination=Pagination(
            page=page,
            page_size=PAGE_SIZE,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        ),
        total=total,
    )


async def get_user_stats(ctx: RequestCtx) -> ApiResponse[UserStats]:
    users = get_mock_users()
    stats = UserStats(
        total_users=len(users),
        active_users=len(users) - 1,
        new_users_today=2,
        average_age=sum(u.age for u in users) / len(users),
    )
    return ApiResponse.success(stats)


async def simulate_error(ctx: RequestCtx) -> AppError:
    return AppError(ErrorKind.DATABASE)


async def simulate_not_found(ctx: RequestCtx) -> AppError:
    return AppError(ErrorKind.NOT_FOUND)


async def health_check(ctx: RequestCtx) -> ApiResponse[str]:
    return ApiResponse.success("Server is healthy! 🚀")


def build_app() -> Engine:
    """Assemble the demo application."""
    app = Engine()
    (
        app.get("/", lambda _ctx: ApiResponse.success("Welcome to Custom Response Example! 🎉"))
        .get("/health", health_check)
        .get("/users", get_users)
        .get("/users/:id", get_user_by_id)
        .get("/users/page/:page", get_users_paginated)
        .get("/stats", get_user_stats)
        .get("/error", simulate_error)
        .get("/notfound", simulate_not_found)
    )
    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the custom-response demo server."""
    parser = argparse.ArgumentParser(description="Custom response types demo server")
    parser.add_argument("--addr", default=DEFAULT_ADDR, help="ip:port to listen on")
    args = parser.parse_args(argv)

    app = build_app()
    print("🎨 Custom response types demo")
    print("📚 Endpoints:")
    print("  GET  /                  - welcome message")
    print("  GET  /health            - health check")
    print("  GET  /users             - all users")
    print("  GET  /users/1           - user with id 1")
    print("  GET  /users/999         - missing user")
    print("  GET  /users/invalid     - invalid id")
    print("  GET  /users/page/1      - paginated users")
    print("  GET  /stats             - user statistics")
    print("  GET  /error             - simulated database error")
    print("  GET  /notfound          - simulated missing resource")
    print(f"🚀 Server starting on http://{args.addr}")
    asyncio.run(app.run(args.addr))


if __name__ == "__main__":
    main()