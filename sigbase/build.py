"""Construction of the RFC 9421 signature base for an HTTP message."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .components import (
    ComponentIdentifier,
    SignatureParams,
    assemble_signature_base,
    format_component_line,
    format_signature_params_line,
)
from .extract import ComponentError, extract_component_value

__all__ = ["build"]


def build(
    message: Any,
    components: Iterable[ComponentIdentifier],
    params: Optional[SignatureParams] = None,
) -> str:
    """Return the signature base covering ``components`` of ``message``.

    One line is produced per covered component, in the given order, followed
    by the ``@signature-params`` line. Lines are joined with LF and there is
    no trailing newline. An empty component list is valid.

    Raises :class:`ComponentError` if any component cannot be extracted.
    """
    covered = list(components)
    metadata = params if params is not None else SignatureParams()

    lines = []
    for component in covered:
        try:
            value = extract_component_value(message, component)
        except ComponentError as exc:
            raise ComponentError(
                f'failed to extract component "{component.name}": {exc}'
            ) from exc
        lines.append(format_component_line(component, value))

    return assemble_signature_base(lines, format_signature_params_line(covered, metadata))