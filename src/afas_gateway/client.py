"""AFAS Profit SOAP gateway client.

Purpose
- Authenticate to the AFAS SOAP API and call remote functions, returning the
  raw (usually XML) string result.
- Keep endpoint, transport and argument quirks in one place.

This client has no logic around interpreting results. Any error is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from afas_gateway.arguments import (
    SERVICE_NAMESPACE,
    encode_parameters,
    fold_arguments,
    prepare_arguments,
)
from afas_gateway.config import ClientConfig
from afas_gateway.connectors import ConnectorType, resolve_endpoint
from afas_gateway.errors import ResponseFormatError
from afas_gateway.transport import (
    SoapRequest,
    Transport,
    build_tls_context,
    default_transport_factory,
    set_wsdl_cache_ttl,
)

logger = logging.getLogger(__name__)


class TransportState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"


@dataclass(slots=True)
class ActiveTransport:
    transport: Transport
    connector: ConnectorType


def unwrap_response(function: str, response: Any) -> str:
    """Return the ``<function>Result`` value of a SOAP response.

    Every AFAS operation returns a single string named ``<function>Result``.
    Schema-less calls already hand back that string.
    """

    key = f"{function}Result"
    if isinstance(response, Mapping):
        value = response.get(key)
    else:
        value = getattr(response, key, None)
    if value is not None:
        return value if isinstance(value, str) else str(value)
    if isinstance(response, str):
        return response
    raise ResponseFormatError(f"Unknown response format: {response!r}", response=response)


class GatewayClient:
    """Calls AFAS SOAP connectors.

    One transport is kept per client. In schema-less mode it is retargeted
    when the connector type changes; in WSDL mode it is replaced. Instances
    are not safe to share between threads.
    """

    client_type = "SOAP"

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._transport_factory = config.transport_factory or default_transport_factory
        self._active: ActiveTransport | None = None

        options: dict[str, Any] = dict(config.transport_options)
        if (
            config.transport_factory is None
            and "session" not in options
            and "ssl_context" not in options
        ):
            options["ssl_context"] = build_tls_context()
        self._transport_options = options

    @classmethod
    def from_env(cls, **overrides: Any) -> "GatewayClient":
        return cls(ClientConfig.from_env(**overrides))

    @staticmethod
    def get_client_type() -> str:
        return GatewayClient.client_type

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def state(self) -> TransportState:
        return TransportState.UNINITIALIZED if self._active is None else TransportState.BOUND

    @property
    def bound_connector(self) -> ConnectorType | None:
        return self._active.connector if self._active else None

    def _create_transport(self, endpoint: str) -> Transport:
        options = dict(self._transport_options)
        if self._config.use_wsdl:
            if self._config.wsdl_cache_ttl:
                set_wsdl_cache_ttl(self._config.wsdl_cache_ttl)
            wsdl: str | None = f"{endpoint}?WSDL"
        else:
            wsdl = None
            options["location"] = endpoint
            options.setdefault("encoding", "utf-8")
            options.setdefault("uri", SERVICE_NAMESPACE)
            options.setdefault("style", "document")
            options.setdefault("use", "literal")

        logger.debug("Creating SOAP transport for %s (wsdl=%s)", endpoint, wsdl is not None)
        return self._transport_factory(wsdl, options)

    def _get_transport(self, connector: ConnectorType) -> Transport:
        active = self._active
        if active is not None and active.connector is connector:
            return active.transport

        endpoint = resolve_endpoint(connector, self._config)
        if active is not None and not self._config.use_wsdl:
            logger.debug("Retargeting SOAP transport to %s", endpoint)
            active.transport.set_location(endpoint)
            active.connector = connector
            return active.transport

        # Every connector has its own WSDL, so a WSDL transport can't be reused.
        self._active = ActiveTransport(self._create_transport(endpoint), connector)
        return self._active.transport

    def call(
        self,
        connector_type: str | ConnectorType,
        function: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> str:
        """Call ``function`` on the AFAS connector of ``connector_type``.

        Argument names are case-insensitive; if two names differ only in
        case, the later one wins. Values must be scalars.
        """

        folded = fold_arguments(arguments or {})
        connector = ConnectorType.parse(connector_type)

        transport = self._get_transport(connector)
        prepared = prepare_arguments(connector, folded, app_token=self._config.app_token)
        request = SoapRequest(function=function, params=encode_parameters(prepared))

        logger.debug(
            "Calling AFAS %s connector %s with arguments %s",
            connector.value,
            function,
            sorted(p.name for p in request.params),
        )
        if self._config.use_wsdl:
            response = transport.call(request)
        else:
            # The default action would be "<urn>#<function>"; AFAS expects "<urn>/<function>".
            service_uri = self._transport_options.get("uri", SERVICE_NAMESPACE)
            response = transport.call(
                request, soap_action=f"{service_uri}/{function}"
            )
        return unwrap_response(function, response)
