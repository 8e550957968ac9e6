"""Per-request context: the request line, headers, body and route parameters."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from wsgiref.headers import Headers

HeadersLike = Union[Headers, Mapping[str, str], Iterable[tuple[str, str]]]


@dataclass(eq=False)
class RequestCtx:
    """A request with its body read in full and its route parameters."""

    method: str = "GET"
    path: str = "/"
    query: str = ""
    headers: Headers = field(default_factory=Headers)
    params: dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            items = self.headers.items() if isinstance(self.headers, Mapping) else self.headers
            self.headers = Headers([(str(name), str(value)) for name, value in items])
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")
        self.body = bytes(self.body) if self.body else None
        self.params = dict(self.params)

    @classmethod
    def from_raw(
        cls,
        method: str,
        target: str,
        headers: HeadersLike = (),
        body: bytes = b"",
    ) -> RequestCtx:
        """Build a context from a request line target such as ``/a?b=c``."""
        path, _, query = target.partition("?")
        return cls(method=method, path=path or "/", query=query, headers=headers, body=body)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def get_param(self, key: str) -> Optional[str]:
        return self.params.get(key)

    def add_param(self, key: str, value: str) -> None:
        self.params[key] = value

    def add_params(self, params: Mapping[str, str]) -> None:
        self.params.update(params)

    def has_param(self, key: str) -> bool:
        return key in self.params

    def body_bytes(self) -> Optional[bytes]:
        return self.body

    def body_string(self) -> Optional[str]:
        """The body decoded as UTF-8; raises UnicodeDecodeError if it is not."""
        return None if self.body is None else self.body.decode("utf-8")

    def body_json(self) -> Any:
        """The body parsed as JSON, or None when there is no body."""
        text = self.body_string()
        return None if text is None else json.loads(text)

    def json(self) -> Any:
        """The body parsed as JSON; raises ValueError when the body is missing."""
        if self.body is None:
            raise ValueError("Request body is required")
        return self.body_json()