"""Argument preparation for AFAS SOAP calls.

These functions are deterministic and free of IO so they can be unit-tested
without a transport.

Some background on the GetConnector paging arguments, observed against the
live API (July 2017):

- ``skip`` may be left out, but if ``take`` is left out nothing is returned
  (it behaves like ``take=0``). The REST endpoint returns 100 rows instead.
- ``take``/``skip`` also work as ``<take>N</take>`` tags inside ``options``.
  ``options`` take values that are negative or above 1000 are capped at 1000
  rows; a negative plain ``take`` gives "Unexpected backend error". If both
  are given, the plain argument wins.
- ``skip=-1`` (either form) returns the full data set and ignores ``take``.
- ``skip`` below -1 acts as 0 when ``take`` is given and as -1 otherwise. A
  non-numeric ``options`` skip behaves like a value below -1. None of this is
  enforced here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from afas_gateway.connectors import ConnectorType
from afas_gateway.errors import ArgumentValidationError

SERVICE_NAMESPACE = "urn:Afas.Profit.Services"

# SOAP argument names are case sensitive; folded names are mapped back here.
CANONICAL_NAMES = {
    "connectortype": "connectorType",
    "connectorid": "connectorId",
    "filtersxml": "filtersXml",
    "dataxml": "dataXml",
}

# Values of these arguments are XML and go on the wire unescaped.
RAW_XML_ARGUMENTS = frozenset({"dataXml", "token"})

_SKIP_ALL_RE = re.compile(r"<skip>\s*-1\s*</skip>", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


@dataclass(frozen=True, slots=True)
class SoapParam:
    name: str
    value: str
    raw: bool = False
    namespace: str = SERVICE_NAMESPACE


def app_token_xml(app_token: str) -> str:
    return f"<token><version>1</version><data>{app_token}</data></token>"


def fold_arguments(arguments: Mapping[str, Any]) -> dict[str, Any]:
    """Lower-case argument names. Later keys win when two names fold together."""

    return {str(name).lower(): value for name, value in arguments.items()}


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in {"", "0"}
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and _NUMERIC_RE.match(value) is not None


def _is_minus_one(value: Any) -> bool:
    return _is_numeric(value) and float(value) == -1


def _skips_paging(arguments: Mapping[str, Any]) -> bool:
    if _is_minus_one(arguments.get("skip")):
        return True
    options = arguments.get("options")
    return bool(options) and _SKIP_ALL_RE.search(str(options)) is not None


def _validate_paging(arguments: Mapping[str, Any]) -> None:
    if _skips_paging(arguments):
        return

    take = arguments.get("take")
    options = arguments.get("options")
    take_in_options = bool(options) and "<take>" in str(options).lower()
    # AFAS returns zero rows instead of an error when 'take' is missing.
    if _is_empty(take) and not take_in_options:
        raise ArgumentValidationError(
            "'take' argument must not be empty/zero, otherwise no results are returned.",
            code=41,
        )
    if take is not None and not _is_numeric(take):
        raise ArgumentValidationError("'take' argument must be a positive number.", code=42)


def prepare_arguments(
    connector: ConnectorType,
    arguments: Mapping[str, Any],
    *,
    app_token: str,
) -> dict[str, Any]:
    """Validate folded arguments for ``connector`` and add authentication.

    This does not decide anything about the data being sent; it only rejects
    arguments that would make AFAS fail (or silently return nothing).
    """

    prepared = dict(arguments)
    if connector.requires_app_token:
        prepared["token"] = app_token_xml(app_token)
    if connector.validates_paging:
        _validate_paging(prepared)
    return prepared


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def encode_parameters(
    arguments: Mapping[str, Any],
    *,
    namespace: str = SERVICE_NAMESPACE,
) -> list[SoapParam]:
    params: list[SoapParam] = []
    for name, value in arguments.items():
        name = CANONICAL_NAMES.get(name, name)
        params.append(
            SoapParam(
                name=name,
                value=_scalar_text(value),
                raw=name in RAW_XML_ARGUMENTS,
                namespace=namespace,
            )
        )
    return params
