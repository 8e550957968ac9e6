"""HTTP responses, a fluent builder, and conversion of handler results."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Union
from wsgiref.headers import Headers

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"
APPLICATION_JSON = "application/json; charset=utf-8"
OCTET_STREAM = "application/octet-stream"

_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

BodyLike = Union[str, bytes, bytearray, memoryview]


def _check_status(status: int) -> int:
    code = int(status)
    if not 100 <= code <= 999:
        raise ValueError(f"invalid status code: {status}")
    return code


def _check_header(name: str, value: str) -> None:
    if not _HEADER_NAME.match(name):
        raise ValueError(f"invalid header name: {name!r}")
    if any(ch in value for ch in "\r\n\0"):
        raise ValueError(f"invalid header value for {name!r}")


def _to_bytes(body: BodyLike) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    raise TypeError(f"cannot use {type(body).__name__} as a response body")


@dataclass(eq=False)
class Response:
    """A complete HTTP response."""

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.body)


class ResponseBuilder:
    """Builds a :class:`Response` through chained calls."""

    def __init__(self) -> None:
        self._status = 200
        self._headers = Headers()

    def status(self, status: int) -> ResponseBuilder:
        self._status = _check_status(status)
        return self

    def header(self, key: str, value: Any) -> ResponseBuilder:
        text = str(value)
        _check_header(key, text)
        self._headers.add_header(key, text)
        return self

    def content_type(self, content_type: str) -> ResponseBuilder:
        return self.header("Content-Type", content_type)

    def body(self, body: BodyLike) -> Response:
        return Response(self._status, Headers(self._headers.items()), _to_bytes(body))

    def empty_body(self) -> Response:
        return Response(self._status, Headers(self._headers.items()), b"")

    @staticmethod
    def html(body: BodyLike) -> Response:
        return ResponseBuilder().content_type(TEXT_HTML).body(body)

    @staticmethod
    def not_found() -> Response:
        return (
            ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .content_type(TEXT_PLAIN)
            .body("404 Not Found")
        )

    @staticmethod
    def internal_error() -> Response:
        return (
            ResponseBuilder()
            .status(HTTPStatus.INTERNAL_SERVER_ERROR)
            .content_type(TEXT_PLAIN)
            .body("500 Internal Server Error")
        )

    @staticmethod
    def no_content() -> Response:
        return ResponseBuilder().status(HTTPStatus.NO_CONTENT).empty_body()


def error_response(err: BaseException) -> Response:
    """The 500 response that stands for a failed handler result."""
    return (
        ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .content_type(TEXT_PLAIN)
        .body(f"Error: {err}")
    )


def _json_response(value: Any) -> Response:
    try:
        text = json.dumps(
            value, ensure_ascii=False, separators=(",", ":"), sort_keys=True, allow_nan=False
        )
    except (TypeError, ValueError):
        return ResponseBuilder.internal_error()
    return ResponseBuilder().status(HTTPStatus.OK).content_type(APPLICATION_JSON).body(text)


def into_response(value: Any) -> Response:
    """Turn a handler's result into a :class:`Response`.

    ``str`` becomes plain text, ``bytes`` an octet stream, dicts, lists and
    numbers JSON, ``None`` a 204, an exception a 500, ``(status, content)``
    and ``(status, content_type, content)`` override status and type, and an
    object with an ``into_response()`` method converts itself.
    """
    if isinstance(value, Response):
        return value
    convert = getattr(value, "into_response", None)
    if callable(convert):
        return convert()
    if value is None:
        return ResponseBuilder.no_content()
    if isinstance(value, BaseException):
        return error_response(value)
    if isinstance(value, str):
        return ResponseBuilder().status(HTTPStatus.OK).content_type(TEXT_PLAIN).body(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ResponseBuilder().status(HTTPStatus.OK).content_type(OCTET_STREAM).body(value)
    if isinstance(value, tuple):
        return _tuple_response(value)
    if isinstance(value, (dict, list, bool, int, float)):
        return _json_response(value)
    raise TypeError(f"cannot convert {type(value).__name__} into a response")


def _tuple_response(value: tuple) -> Response:
    if len(value) == 2 and isinstance(value[0], int):
        status, content = value
        response = into_response(content)
        response.status = _check_status(status)
        return response
    if len(value) == 3 and isinstance(value[0], int) and isinstance(value[1], str):
        status, content_type, content = value
        _check_header("Content-Type", content_type)
        response = into_response(content)
        response.status = _check_status(status)
        response.headers["Content-Type"] = content_type
        return response
    raise TypeError("tuple responses must be (status, content) or (status, content_type, content)")