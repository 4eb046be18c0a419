"""Parsing and serialization of structured field values (RFC 8941)."""

from __future__ import annotations

import base64
import binascii
import string
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Mapping, Union

from .components import Token, serialize_string

__all__ = [
    "StructuredFieldError",
    "Item",
    "InnerList",
    "parse_dictionary",
    "parse_list",
    "parse_item",
    "serialize_item",
    "serialize_inner_list",
    "serialize_dictionary",
    "serialize_list",
]

BareItem = Union[bool, int, Decimal, float, str, bytes, Token]

_DIGITS = string.digits
_ALPHA = string.ascii_letters
_KEY_FIRST = string.ascii_lowercase + "*"
_KEY_CHARS = string.ascii_lowercase + string.digits + "_-.*"
_TCHAR = "!#$%&'*+-.^_`|~" + _DIGITS + _ALPHA
_TOKEN_CHARS = _TCHAR + ":/"
_BASE64_CHARS = _ALPHA + _DIGITS + "+/="
_MAX_INTEGER = 999_999_999_999_999
_MAX_DECIMAL = Decimal(10) ** 12


class StructuredFieldError(ValueError):
    """Raised when a structured field value cannot be parsed or serialized."""


@dataclass
class Item:
    """A bare item with its parameters."""

    value: BareItem
    params: dict[str, BareItem] = field(default_factory=dict)


@dataclass
class InnerList:
    """A parenthesised list of items with its own parameters."""

    items: list[Item] = field(default_factory=list)
    params: dict[str, BareItem] = field(default_factory=dict)


Member = Union[Item, InnerList]


class _Parser:
    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            raise TypeError("structured field input must be a string")
        if not text.isascii():
            raise StructuredFieldError("input contains non-ASCII characters")
        self._text = text.strip(" ")
        self._pos = 0

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _advance(self) -> str:
        char = self._peek()
        self._pos += 1
        return char

    def _skip_sp(self) -> None:
        while self._peek() == " ":
            self._pos += 1

    def _skip_ows(self) -> None:
        while self._peek() in (" ", "\t"):
            self._pos += 1

    def finish(self) -> None:
        if not self._at_end():
            raise StructuredFieldError(
                f"unexpected character {self._peek()!r} at position {self._pos}"
            )

    def parse_list(self) -> list[Member]:
        members: list[Member] = []
        while not self._at_end():
            members.append(self._member())
            self._skip_ows()
            if self._at_end():
                return members
            if self._advance() != ",":
                raise StructuredFieldError("expected ',' between list members")
            self._skip_ows()
            if self._at_end():
                raise StructuredFieldError("trailing comma in list")
        return members

    def parse_dictionary(self) -> dict[str, Member]:
        members: dict[str, Member] = {}
        while not self._at_end():
            key = self._key()
            if self._peek() == "=":
                self._advance()
                member = self._member()
            else:
                member = Item(True, self._params())
            members[key] = member
            self._skip_ows()
            if self._at_end():
                return members
            if self._advance() != ",":
                raise StructuredFieldError("expected ',' between dictionary members")
            self._skip_ows()
            if self._at_end():
                raise StructuredFieldError("trailing comma in dictionary")
        return members

    def parse_item(self) -> Item:
        value = self._bare_item()
        return Item(value, self._params())

    def _member(self) -> Member:
        if self._peek() == "(":
            return self._inner_list()
        return self.parse_item()

    def _inner_list(self) -> InnerList:
        self._advance()
        items: list[Item] = []
        while not self._at_end():
            self._skip_sp()
            if self._peek() == ")":
                self._advance()
                return InnerList(items, self._params())
            items.append(self.parse_item())
            if self._peek() not in (" ", ")"):
                raise StructuredFieldError("expected space or ')' in inner list")
        raise StructuredFieldError("unterminated inner list")

    def _params(self) -> dict[str, BareItem]:
        params: dict[str, BareItem] = {}
        while self._peek() == ";":
            self._advance()
            self._skip_sp()
            key = self._key()
            value: BareItem = True
            if self._peek() == "=":
                self._advance()
                value = self._bare_item()
            params[key] = value
        return params

    def _key(self) -> str:
        if not self._peek() or self._peek() not in _KEY_FIRST:
            raise StructuredFieldError(f"invalid key start at position {self._pos}")
        start = self._pos
        while self._peek() and self._peek() in _KEY_CHARS:
            self._pos += 1
        return self._text[start : self._pos]

    def _bare_item(self) -> BareItem:
        char = self._peek()
        if not char:
            raise StructuredFieldError("unexpected end of input")
        if char == "-" or char in _DIGITS:
            return self._number()
        if char == '"':
            return self._string()
        if char == "*" or char in _ALPHA:
            return self._token()
        if char == ":":
            return self._byte_sequence()
        if char == "?":
            return self._boolean()
        raise StructuredFieldError(f"unexpected character {char!r} at position {self._pos}")

    def _number(self) -> Union[int, Decimal]:
        negative = False
        if self._peek() == "-":
            self._advance()
            negative = True
        if not self._peek() or self._peek() not in _DIGITS:
            raise StructuredFieldError("expected a digit")
        digits: list[str] = []
        is_decimal = False
        while self._peek():
            char = self._peek()
            if char in _DIGITS:
                digits.append(char)
            elif char == "." and not is_decimal:
                if len(digits) > 12:
                    raise StructuredFieldError("decimal integer part too long")
                digits.append(char)
                is_decimal = True
            else:
                break
            self._advance()
            if not is_decimal and len(digits) > 15:
                raise StructuredFieldError("integer too long")
            if is_decimal and len(digits) > 16:
                raise StructuredFieldError("decimal too long")
        number = "".join(digits)
        sign = "-" if negative else ""
        if not is_decimal:
            return int(sign + number)
        if number.endswith("."):
            raise StructuredFieldError("decimal must have a fractional part")
        if len(number.partition(".")[2]) > 3:
            raise StructuredFieldError("decimal fractional part too long")
        return Decimal(sign + number)

    def _string(self) -> str:
        self._advance()
        chars: list[str] = []
        while not self._at_end():
            char = self._advance()
            if char == "\\":
                escaped = self._advance()
                if escaped not in ('"', "\\") or not escaped:
                    raise StructuredFieldError("invalid escape in string")
                chars.append(escaped)
            elif char == '"':
                return "".join(chars)
            elif not " " <= char <= "~":
                raise StructuredFieldError("invalid character in string")
            else:
                chars.append(char)
        raise StructuredFieldError("unterminated string")

    def _token(self) -> Token:
        start = self._pos
        self._advance()
        while self._peek() and self._peek() in _TOKEN_CHARS:
            self._pos += 1
        return Token(self._text[start : self._pos])

    def _byte_sequence(self) -> bytes:
        self._advance()
        end = self._text.find(":", self._pos)
        if end < 0:
            raise StructuredFieldError("unterminated byte sequence")
        content = self._text[self._pos : end]
        self._pos = end + 1
        if any(char not in _BASE64_CHARS for char in content):
            raise StructuredFieldError("invalid character in byte sequence")
        padded = content.rstrip("=")
        padded += "=" * (-len(padded) % 4)
        try:
            return base64.b64decode(padded, validate=True)
        except binascii.Error as exc:
            raise StructuredFieldError(f"invalid byte sequence: {exc}") from exc

    def _boolean(self) -> bool:
        self._advance()
        char = self._advance()
        if char == "1":
            return True
        if char == "0":
            return False
        raise StructuredFieldError("invalid boolean")


def parse_dictionary(text: str) -> dict[str, Member]:
    """Parse a structured field dictionary, keeping member order."""
    parser = _Parser(text)
    result = parser.parse_dictionary()
    parser.finish()
    return result


def parse_list(text: str) -> list[Member]:
    """Parse a structured field list."""
    parser = _Parser(text)
    result = parser.parse_list()
    parser.finish()
    return result


def parse_item(text: str) -> Item:
    """Parse a single structured field item."""
    parser = _Parser(text)
    result = parser.parse_item()
    parser.finish()
    return result


def _serialize_key(key: str) -> str:
    if not key or key[0] not in _KEY_FIRST or any(c not in _KEY_CHARS for c in key):
        raise StructuredFieldError(f"invalid key {key!r}")
    return key


def _serialize_decimal(value: Union[Decimal, float]) -> str:
    try:
        number = Decimal(str(value)) if isinstance(value, float) else value
        if not number.is_finite() or abs(number) >= _MAX_DECIMAL:
            raise StructuredFieldError(f"decimal out of range: {value}")
        rounded = number.quantize(Decimal("0.001"), rounding=ROUND_HALF_EVEN)
    except InvalidOperation as exc:
        raise StructuredFieldError(f"invalid decimal: {value}") from exc
    integer, _, fraction = format(rounded, "f").lstrip("-").partition(".")
    if len(integer) > 12:
        raise StructuredFieldError(f"decimal out of range: {value}")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{integer}.{fraction.rstrip('0') or '0'}"


def _serialize_bare(value: BareItem) -> str:
    if isinstance(value, bool):
        return "?1" if value else "?0"
    if isinstance(value, int):
        if abs(value) > _MAX_INTEGER:
            raise StructuredFieldError(f"integer out of range: {value}")
        return str(value)
    if isinstance(value, (Decimal, float)):
        return _serialize_decimal(value)
    if isinstance(value, Token):
        text = value.value
        if (
            not text
            or not (text[0] == "*" or text[0] in _ALPHA)
            or any(c not in _TOKEN_CHARS for c in text)
        ):
            raise StructuredFieldError(f"invalid token {text!r}")
        return text
    if isinstance(value, str):
        if any(not " " <= c <= "~" for c in value):
            raise StructuredFieldError("string contains characters outside printable ASCII")
        return serialize_string(value)
    if isinstance(value, (bytes, bytearray)):
        return ":" + base64.b64encode(bytes(value)).decode("ascii") + ":"
    raise StructuredFieldError(f"unsupported bare item type: {type(value).__name__}")


def _serialize_params(params: Mapping[str, BareItem]) -> str:
    parts = []
    for key, value in params.items():
        parts.append(";" + _serialize_key(key))
        if value is not True:
            parts.append("=" + _serialize_bare(value))
    return "".join(parts)


def serialize_item(item: Item) -> str:
    """Serialize an item with its parameters."""
    return _serialize_bare(item.value) + _serialize_params(item.params)


def serialize_inner_list(inner_list: InnerList) -> str:
    """Serialize an inner list with its parameters."""
    members = " ".join(serialize_item(item) for item in inner_list.items)
    return f"({members})" + _serialize_params(inner_list.params)


def _serialize_member(member: Member) -> str:
    if isinstance(member, InnerList):
        return serialize_inner_list(member)
    if isinstance(member, Item):
        return serialize_item(member)
    raise StructuredFieldError(f"unsupported member type: {type(member).__name__}")


def serialize_list(members: list[Member]) -> str:
    """Serialize a list of items and inner lists."""
    return ", ".join(_serialize_member(member) for member in members)


def serialize_dictionary(dictionary: Mapping[str, Member]) -> str:
    """Serialize a dictionary; members whose value is true are written as bare keys."""
    parts = []
    for key, member in dictionary.items():
        name = _serialize_key(key)
        if isinstance(member, Item) and member.value is True:
            parts.append(name + _serialize_params(member.params))
        else:
            parts.append(f"{name}={_serialize_member(member)}")
    return ", ".join(parts)