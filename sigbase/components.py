"""Component identifiers and the text lines of an RFC 9421 signature base."""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Union

__all__ = [
    "ComponentType",
    "Token",
    "Parameter",
    "ComponentIdentifier",
    "SignatureParams",
    "serialize_string",
    "format_component_identifier",
    "format_component_line",
    "format_signature_params_line",
    "assemble_signature_base",
]


class ComponentType(enum.Enum):
    """Whether a component is an HTTP field or a derived (@-prefixed) component."""

    FIELD = "field"
    DERIVED = "derived"


@dataclass(frozen=True)
class Token:
    """A structured-field token: serialized bare, without quotes."""

    value: str

    def __str__(self) -> str:
        return self.value


ParameterValue = Union[bool, int, str, bytes, Token]


@dataclass(frozen=True)
class Parameter:
    """One parameter of a component identifier.

    The value is a ``bool``, ``int``, ``str`` (a quoted string), ``bytes``
    (a byte sequence) or a :class:`Token`.
    """

    key: str
    value: ParameterValue = True


@dataclass(frozen=True)
class ComponentIdentifier:
    """A covered component: its name, kind and parameters in order.

    When ``type`` is omitted it is inferred from the name: names starting
    with ``@`` are derived components, all others are HTTP fields.
    """

    name: str
    type: Optional[ComponentType] = None
    parameters: tuple[Parameter, ...] = ()

    def __post_init__(self) -> None:
        if self.type is None:
            inferred = (
                ComponentType.DERIVED if self.name.startswith("@") else ComponentType.FIELD
            )
            object.__setattr__(self, "type", inferred)
        object.__setattr__(self, "parameters", tuple(self.parameters))


@dataclass(frozen=True)
class SignatureParams:
    """Signature metadata; every entry is optional."""

    created: Optional[int] = None
    expires: Optional[int] = None
    nonce: Optional[str] = None
    algorithm: Optional[str] = None
    key_id: Optional[str] = None
    tag: Optional[str] = None


def serialize_string(value: str) -> str:
    """Serialize ``value`` as a structured-field string, escaping ``\\`` and ``"``."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _serialize_parameter(param: Parameter) -> str:
    value = param.value
    if isinstance(value, bool):
        # A true boolean is written as a bare flag.
        return f";{param.key}" if value else f";{param.key}=?0"
    if isinstance(value, int):
        return f";{param.key}={value}"
    if isinstance(value, str):
        return f";{param.key}={serialize_string(value)}"
    if isinstance(value, Token):
        return f";{param.key}={value.value}"
    if isinstance(value, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(value)).decode("ascii")
        return f";{param.key}=:{encoded}:"
    raise TypeError(
        f"unsupported parameter value type for {param.key!r}: {type(value).__name__}"
    )


def format_component_identifier(component: ComponentIdentifier) -> str:
    """Format a component identifier: the quoted name followed by its parameters."""
    params = "".join(_serialize_parameter(p) for p in component.parameters)
    return f'"{component.name}"{params}'


def format_component_line(component: ComponentIdentifier, value: str) -> str:
    """Format one signature-base line: ``"identifier": value``, value kept verbatim."""
    return f"{format_component_identifier(component)}: {value}"


def format_signature_params_line(
    components: Iterable[ComponentIdentifier], params: SignatureParams
) -> str:
    """Format the ``@signature-params`` line with metadata in canonical order."""
    covered = " ".join(format_component_identifier(c) for c in components)
    parts = [f'"@signature-params": ({covered})']
    if params.created is not None:
        parts.append(f";created={int(params.created)}")
    if params.expires is not None:
        parts.append(f";expires={int(params.expires)}")
    if params.nonce is not None:
        parts.append(f";nonce={serialize_string(params.nonce)}")
    if params.algorithm is not None:
        parts.append(f";alg={serialize_string(params.algorithm)}")
    if params.key_id is not None:
        parts.append(f";keyid={serialize_string(params.key_id)}")
    if params.tag is not None:
        parts.append(f";tag={serialize_string(params.tag)}")
    return "".join(parts)


def assemble_signature_base(
    component_lines: Iterable[str], signature_params_line: str
) -> str:
    """Join component lines and the params line with LF, with no trailing newline."""
    return "\n".join([*component_lines, signature_params_line])