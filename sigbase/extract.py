"""Extraction of canonical component values from HTTP messages (RFC 9421 Section 2)."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import SplitResult, parse_qsl

from .components import ComponentIdentifier, ComponentType
from .message import MessageKindError
from .structured import (
    InnerList,
    Item,
    StructuredFieldError,
    parse_dictionary,
    parse_item,
    parse_list,
    serialize_dictionary,
    serialize_inner_list,
    serialize_item,
    serialize_list,
)

__all__ = [
    "ComponentError",
    "normalize_line_folding",
    "extract_component_value",
    "extract_http_field_value",
    "extract_derived_component_value",
]

_LINE_BREAK = re.compile(r"\r\n[ \t]+|\n[ \t]+|\r\n|\r|\n")


class ComponentError(ValueError):
    """Raised when a component value cannot be extracted from a message."""


def normalize_line_folding(value: str) -> str:
    """Replace each obsolete line fold with one space.

    Raises :class:`ComponentError` on a CR, LF or CRLF that is not followed by
    whitespace, since such a break could inject lines into a signature base.
    """
    if "\r" not in value and "\n" not in value:
        return value

    def replace(match: re.Match) -> str:
        text = match.group()
        if text in ("\r\n", "\r", "\n"):
            kind = {"\r\n": "CRLF", "\r": "CR", "\n": "LF"}[text]
            raise ComponentError(f"invalid header value: bare {kind} not part of obs-fold")
        return " "

    return _LINE_BREAK.sub(replace, value)


def extract_component_value(message: Any, component: ComponentIdentifier) -> str:
    """Return the canonical value of ``component`` in ``message``.

    A ``req`` parameter on a response signature reads the component from the
    related request instead.
    """
    if any(param.key == "req" and param.value is True for param in component.parameters):
        if not message.is_response:
            raise ComponentError("'req' parameter is only valid for response signatures")
        related = message.related_request
        if related is None:
            raise ComponentError("'req' parameter specified but no related request available")
        stripped = ComponentIdentifier(
            component.name,
            component.type,
            tuple(param for param in component.parameters if param.key != "req"),
        )
        return extract_component_value(related, stripped)

    if component.type == ComponentType.FIELD:
        return extract_http_field_value(message, component)
    if component.type == ComponentType.DERIVED:
        return extract_derived_component_value(message, component)
    raise ComponentError(f"unknown component type: {component.type!r}")


@dataclass
class _FieldParams:
    trailer: bool = False
    structured: bool = False
    byte_sequence: bool = False
    key: str = ""


def _field_params(component: ComponentIdentifier) -> _FieldParams:
    result = _FieldParams()
    for param in component.parameters:
        value = param.value
        if param.key == "tr" and isinstance(value, bool):
            result.trailer = value
        elif param.key == "sf" and isinstance(value, bool):
            result.structured = value
        elif param.key == "bs" and isinstance(value, bool):
            result.byte_sequence = value
        elif param.key == "key" and isinstance(value, str):
            result.key = value
    return result


def _canonicalize(values: list[str], name: str) -> str:
    normalized = []
    for value in values:
        try:
            normalized.append(normalize_line_folding(value).strip())
        except ComponentError as exc:
            raise ComponentError(f'component "{name}": {exc}') from exc
    return ", ".join(normalized)


def extract_http_field_value(message: Any, component: ComponentIdentifier) -> str:
    """Return the canonical value of an HTTP field, honouring tr, sf, bs and key."""
    name = component.name
    params = _field_params(component)
    if params.structured and params.byte_sequence:
        raise ComponentError(
            f'component "{name}": \'sf\' and \'bs\' parameters are mutually exclusive '
            "(RFC 9421 Section 2.1.1)"
        )
    if params.key and not params.structured:
        raise ComponentError(
            f'component "{name}": \'key\' parameter requires \'sf\' parameter for '
            "structured field dictionary (RFC 9421 Section 2.1.2)"
        )

    if params.trailer:
        values = message.trailer_values(name)
    else:
        values = message.header_values(name)
    if not values:
        kind = "trailer" if params.trailer else "header"
        raise ComponentError(f'{kind} field "{name}" not found')

    raw = _canonicalize(values, name)
    if params.structured:
        return _serialize_structured(raw, name, params.key)
    if params.byte_sequence:
        return ":" + base64.b64encode(raw.encode("utf-8")).decode("ascii") + ":"
    return raw


def _serialize_structured(raw: str, name: str, key: str) -> str:
    if key:
        try:
            dictionary = parse_dictionary(raw)
        except StructuredFieldError as exc:
            raise ComponentError(
                f'component "{name}": failed to parse as structured field dictionary: {exc}'
            ) from exc
        if key not in dictionary:
            raise ComponentError(f'component "{name}": dictionary member "{key}" not found')
        return _serialize_member(name, key, dictionary[key])

    attempts = (
        ("dict", "dictionary", parse_dictionary, serialize_dictionary),
        ("list", "list", parse_list, serialize_list),
        ("item", "item", parse_item, serialize_item),
    )
    failures = []
    for short, label, parse, serialize in attempts:
        try:
            parsed = parse(raw)
        except StructuredFieldError as exc:
            failures.append(f"{short}: {exc}")
            continue
        try:
            return serialize(parsed)
        except StructuredFieldError as exc:
            raise ComponentError(
                f'component "{name}": failed to serialize structured field {label}: {exc}'
            ) from exc
    raise ComponentError(
        f'component "{name}": failed to parse as structured field ({", ".join(failures)})'
    )


def _serialize_member(name: str, key: str, member: object) -> str:
    try:
        if isinstance(member, Item):
            return serialize_item(member)
        if isinstance(member, InnerList):
            return serialize_inner_list(member)
    except StructuredFieldError as exc:
        raise ComponentError(
            f'component "{name}": failed to serialize dictionary member "{key}": {exc}'
        ) from exc
    raise ComponentError(
        f'component "{name}": invalid dictionary member type for "{key}": '
        f"{type(member).__name__}"
    )


def _request_url(message: Any, name: str) -> SplitResult:
    if not message.is_request:
        raise ComponentError(f"{name} is only valid for requests")
    try:
        return message.target_url()
    except MessageKindError as exc:
        raise ComponentError(f"{name}: {exc}") from exc


def _query_param_name(component: ComponentIdentifier) -> str:
    for param in component.parameters:
        if param.key == "name" and isinstance(param.value, str):
            return param.value
    return ""


def extract_derived_component_value(message: Any, component: ComponentIdentifier) -> str:
    """Return the value of a derived (@-prefixed) component."""
    name = component.name

    if name == "@method":
        if not message.is_request:
            raise ComponentError("@method is only valid for requests")
        try:
            return message.method
        except MessageKindError as exc:
            raise ComponentError(f"@method: {exc}") from exc

    if name == "@target-uri":
        return _request_url(message, name).geturl()

    if name == "@authority":
        return _request_url(message, name).netloc.rpartition("@")[2]

    if name == "@scheme":
        return _request_url(message, name).scheme

    if name == "@request-target":
        url = _request_url(message, name)
        path = url.path or "/"
        return f"{path}?{url.query}" if url.query else path

    if name == "@path":
        # An empty path is normalized to a single slash.
        return _request_url(message, name).path or "/"

    if name == "@query":
        return "?" + _request_url(message, name).query

    if name == "@query-param":
        param_name = _query_param_name(component)
        if not param_name:
            raise ComponentError("@query-param requires 'name' parameter")
        url = _request_url(message, name)
        for key, value in parse_qsl(url.query, keep_blank_values=True):
            if key == param_name:
                return value
        raise ComponentError(f'query parameter "{param_name}" not found')

    if name == "@status":
        if not message.is_response:
            raise ComponentError("@status is only valid for responses")
        try:
            return str(message.status_code)
        except MessageKindError as exc:
            raise ComponentError(f"@status: {exc}") from exc

    raise ComponentError(f"unknown derived component: {name}")