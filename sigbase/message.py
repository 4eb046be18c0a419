"""HTTP request and response messages as seen by signature base construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional, Union
from urllib.parse import SplitResult, urlsplit

__all__ = ["Headers", "MessageKindError", "Request", "Response"]

_FieldSource = Union[
    Mapping[str, Union[str, Iterable[str]]],
    Iterable[tuple[str, str]],
]


class Headers:
    """An ordered, case-insensitive multi-valued collection of header fields."""

    def __init__(self, fields: Optional[_FieldSource] = None) -> None:
        self._fields: dict[str, list[str]] = {}
        if fields is None:
            return
        items = fields.items() if isinstance(fields, Mapping) else fields
        for name, value in items:
            if isinstance(value, str):
                self.add(name, value)
            else:
                for single in value:
                    self.add(name, single)

    def add(self, name: str, value: str) -> None:
        """Append a value to the field, keeping earlier values."""
        self._fields.setdefault(name.lower(), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace all values of the field with a single value."""
        self._fields[name.lower()] = [value]

    def get_all(self, name: str) -> list[str]:
        """Return every value of the field in order; empty if absent."""
        return list(self._fields.get(name.lower(), ()))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Headers({self._fields!r})"


class MessageKindError(Exception):
    """Raised when a request-only or response-only property is used on the other kind."""


class _KindOnly:
    """Attribute that exists only on the other kind of message; reading it raises."""

    def __init__(self, what: str, valid_on: str) -> None:
        self._what = what
        self._valid_on = valid_on
        self._name = what

    def __set_name__(self, owner: type, name: str) -> None:
        self._name = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        kind = type(instance).__name__.lower()
        raise MessageKindError(
            f"{self._name}: {self._what} is only available on {self._valid_on}, "
            f"not on a {kind}"
        )


def _as_headers(value: Union[Headers, _FieldSource, None]) -> Headers:
    return value if isinstance(value, Headers) else Headers(value)


@dataclass
class Request:
    """An HTTP request.

    ``url`` may be absolute or, as seen by a server, just a path and query;
    in that case ``host`` and ``tls`` supply the authority and scheme.
    """

    method: str
    url: str
    headers: Headers = field(default_factory=Headers)
    trailers: Headers = field(default_factory=Headers)
    host: str = ""
    tls: bool = False
    related_request: Optional["Request"] = field(
        default=None, init=False, repr=False, compare=False
    )

    status_code = _KindOnly("status code", "responses")

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)
        self.trailers = _as_headers(self.trailers)

    @property
    def is_request(self) -> bool:
        return True

    @property
    def is_response(self) -> bool:
        return False

    def target_url(self) -> SplitResult:
        """Return the full target URL, filling in scheme and host when absent."""
        parts = urlsplit(self.url)
        if parts.scheme and parts.netloc:
            return parts
        scheme = parts.scheme or ("https" if self.tls else "http")
        netloc = parts.netloc or self.host
        return parts._replace(scheme=scheme, netloc=netloc)

    def header_values(self, name: str) -> list[str]:
        return self.headers.get_all(name)

    def trailer_values(self, name: str) -> list[str]:
        return self.trailers.get_all(name)


@dataclass
class Response:
    """An HTTP response, optionally paired with the request it answers."""

    status_code: int
    headers: Headers = field(default_factory=Headers)
    trailers: Headers = field(default_factory=Headers)
    related_request: Optional[Request] = None

    method = _KindOnly("method", "requests")
    target_url = _KindOnly("target URL", "requests")

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)
        self.trailers = _as_headers(self.trailers)

    @property
    def is_request(self) -> bool:
        return False

    @property
    def is_response(self) -> bool:
        return True

    def header_values(self, name: str) -> list[str]:
        return self.headers.get_all(name)

    def trailer_values(self, name: str) -> list[str]:
        return self.trailers.get_all(name)