"""AFAS connector types and endpoint URL resolution."""

from __future__ import annotations

from enum import Enum
from urllib.parse import quote

from afas_gateway.config import ClientConfig
from afas_gateway.errors import ArgumentValidationError


class ConnectorType(str, Enum):
    """The connector types this client knows how to prepare calls for.

    New members need a careful look at the arguments they require; unknown
    types are rejected rather than passed through.
    """

    GET = "get"
    UPDATE = "update"
    REPORT = "report"
    SUBJECT = "subject"
    DATA = "data"
    TOKEN = "token"
    VERSIONINFO = "versioninfo"

    @classmethod
    def parse(cls, value: "str | ConnectorType") -> "ConnectorType":
        if isinstance(value, ConnectorType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ArgumentValidationError(f"Invalid connector type '{value}'", code=40) from None

    @property
    def path_segment(self) -> str:
        # The token connector lives at a differently shaped path than all others.
        if self is ConnectorType.TOKEN:
            return "tokenconnector"
        return f"appconnector{self.value}"

    @property
    def requires_app_token(self) -> bool:
        return self is not ConnectorType.TOKEN

    @property
    def validates_paging(self) -> bool:
        return self is ConnectorType.GET


def resolve_endpoint(connector: ConnectorType, config: ClientConfig) -> str:
    """Return the SOAP endpoint URL for ``connector``."""

    replacements = {
        "%customerId%": quote(config.customer_id, safe=""),
        "%connectorPath%": connector.path_segment,
        "%env%": config.environment.value,
    }
    endpoint = config.endpoint_template
    for placeholder, value in replacements.items():
        endpoint = endpoint.replace(placeholder, value)
    return endpoint
