"""Configuration for the AFAS SOAP gateway client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from dotenv import load_dotenv

from afas_gateway.errors import ConfigurationError

DEFAULT_ENDPOINT_TEMPLATE = (
    "https://%customerId%.afasonlineconnector.nl/profitservices/%connectorPath%.asmx"
)

_TRUTHY = {"1", "true", "yes", "on"}


class Environment(str, Enum):
    LIVE = ""
    TEST = "test"
    ACCEPT = "accept"

    @classmethod
    def parse(cls, value: "str | Environment | None") -> "Environment":
        if isinstance(value, Environment):
            return value
        normalized = (value or "").strip().lower()
        if normalized in {"", "live", "production"}:
            return cls.LIVE
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(
                f"Unknown AFAS environment {value!r}; expected 'test', 'accept' or unset."
            ) from None


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Settings for one :class:`~afas_gateway.client.GatewayClient`.

    ``transport_factory`` is called as ``factory(wsdl, options)``; leave it
    unset to use the bundled requests/zeep transports. ``transport_options``
    are keyword options for that factory (``timeout``, ``session``,
    ``ssl_context``, ``headers``, ...).
    """

    customer_id: str
    app_token: str
    environment: Environment = Environment.LIVE
    endpoint_template: str = DEFAULT_ENDPOINT_TEMPLATE
    transport_factory: Callable[..., Any] | None = None
    use_wsdl: bool = False
    wsdl_cache_ttl: int | None = None
    transport_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("customer_id", "app_token"):
            if not getattr(self, name):
                raise ConfigurationError(
                    f"Required configuration parameter for {type(self).__name__} missing: {name}."
                )
        # AFAS customer ids are numeric; accept ints as well as strings.
        object.__setattr__(self, "customer_id", str(self.customer_id))
        object.__setattr__(self, "environment",Environment.parse(self.environment))
        if not self.endpoint_template:
            object.__setattr__(self, "endpoint_template", DEFAULT_ENDPOINT_TEMPLATE)
        object.__setattr__(
            self, "transport_options", MappingProxyType(dict(self.transport_options))
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        load_dotenv(override=False)

        options: dict[str, Any] = {}
        timeout = os.environ.get("AFAS_HTTP_TIMEOUT_SECONDS")
        if timeout:
            options["timeout"] = float(timeout)

        cache_ttl = os.environ.get("AFAS_WSDL_CACHE_TTL")

        values: dict[str, Any] = {
            "customer_id": os.environ.get("AFAS_CUSTOMER_ID", ""),
            "app_token": os.environ.get("AFAS_APP_TOKEN", ""),
            "environment": os.environ.get("AFAS_ENVIRONMENT"),
            "endpoint_template": os.environ.get("AFAS_SOAP_ENDPOINT") or DEFAULT_ENDPOINT_TEMPLATE,
            "use_wsdl": os.environ.get("AFAS_USE_WSDL", "").strip().lower() in _TRUTHY,
            "wsdl_cache_ttl": int(cache_ttl) if cache_ttl else None,
            "transport_options": options,
        }
        values.update(overrides)
        return cls(**values)
