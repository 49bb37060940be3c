"""Client for the AFAS Profit SOAP API.

Keep this package small and testable:
- No interpretation of returned data
- No caching, retries or pooling
- Pure IO + argument preparation
"""

from afas_gateway.client import GatewayClient, TransportState, unwrap_response
from afas_gateway.config import ClientConfig, Environment
from afas_gateway.connectors import ConnectorType, resolve_endpoint
from afas_gateway.errors import (
    ArgumentValidationError,
    ConfigurationError,
    GatewayError,
    ResponseFormatError,
)
from afas_gateway.transport import SoapRequest, SoapTransport, WsdlTransport

__all__ = [
    "ArgumentValidationError",
    "ClientConfig",
    "ConfigurationError",
    "ConnectorType",
    "Environment",
    "GatewayClient",
    "GatewayError",
    "ResponseFormatError",
    "SoapRequest",
    "SoapTransport",
    "TransportState",
    "WsdlTransport",
    "resolve_endpoint",
    "unwrap_response",
]
