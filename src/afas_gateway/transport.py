"""SOAP transports used by the gateway client.

Two implementations of the :class:`Transport` capability are bundled:

- :class:`SoapTransport` talks document/literal SOAP without fetching a WSDL.
  Its target URL can be changed in place, so one instance serves every
  connector type.
- :class:`WsdlTransport` is built on zeep from a connector's WSDL. Each AFAS
  connector publishes its own WSDL, so an instance is bound to one connector.

Both raise ``zeep.exceptions.Fault`` for SOAP faults and let requests errors
through unchanged.
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Protocol

import requests
from lxml import etree
from requests.adapters import HTTPAdapter
from zeep import Client, Settings
from zeep.cache import InMemoryCache
from zeep.exceptions import Fault
from zeep.transports import Transport as ZeepTransport

from afas_gateway.arguments import SERVICE_NAMESPACE, SoapParam
from afas_gateway.errors import ConfigurationError, ResponseFormatError

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"

# Process-wide; applies to every WsdlTransport created after it is set.
_wsdl_cache: InMemoryCache | None = None


@dataclass(frozen=True, slots=True)
class SoapRequest:
    function: str
    params: list[SoapParam] = field(default_factory=list)
    namespace: str = SERVICE_NAMESPACE


class Transport(Protocol):
    def set_location(self, location: str) -> None: ...

    def call(self, request: SoapRequest, *, soap_action: str | None = None) -> Any: ...


def set_wsdl_cache_ttl(seconds: int) -> None:
    """Cache fetched WSDL documents in memory for ``seconds``."""

    global _wsdl_cache
    _wsdl_cache = InMemoryCache(timeout=int(seconds))
    logger.debug("WSDL cache TTL set to %s seconds", seconds)


def get_wsdl_cache() -> InMemoryCache | None:
    return _wsdl_cache


def build_tls_context() -> ssl.SSLContext:
    """Return an SSL context that refuses anything older than TLS 1.2.

    AFAS endpoints require TLS 1.2 since late 2018.
    """

    if not getattr(ssl, "HAS_TLSv1_2", False):
        raise ConfigurationError(
            "Python's ssl module does not support TLS v1.2, which AFAS requires.",
            code=2,
        )
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class _SSLContextAdapter(HTTPAdapter):
    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any) -> None:
        # HTTPAdapter.__init__ builds the pool manager, so set this first.
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self._ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any):
        kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def build_session(
    *,
    session: requests.Session | None = None,
    ssl_context: ssl.SSLContext | None = None,
) -> requests.Session:
    """Return the HTTP session a transport should use.

    A caller-supplied session is used as-is and never modified (it owns its
    TLS setup and headers); otherwise a new one is created with
    ``ssl_context`` mounted for https.
    """

    if session is not None:
        return session
    session = requests.Session()
    if ssl_context is not None:
        session.mount("https://", _SSLContextAdapter(ssl_context))
    return session


def build_envelope(
    request: SoapRequest,
    *,
    encoding: str = "utf-8",
    namespace: str | None = None,
) -> bytes:
    """Serialize ``request`` as a SOAP 1.1 document/literal envelope.

    ``namespace`` replaces the request's service namespace, for the call
    element and for every parameter in that namespace. Raw parameters are
    wrapped in CDATA so their markup reaches AFAS as-is.
    """

    service_ns = namespace or request.namespace
    envelope = etree.Element(
        etree.QName(SOAP_ENV_NS, "Envelope"),
        nsmap={"SOAP-ENV": SOAP_ENV_NS, "ns1": service_ns},
    )
    body = etree.SubElement(envelope, etree.QName(SOAP_ENV_NS, "Body"))
    wrapper = etree.SubElement(body, etree.QName(service_ns, request.function))
    for param in request.params:
        param_ns = service_ns if param.namespace == request.namespace else param.namespace
        element = etree.SubElement(wrapper, etree.QName(param_ns, param.name))
        element.text = etree.CDATA(param.value) if param.raw else param.value
    return etree.tostring(envelope, xml_declaration=True, encoding=encoding)


def _child_elements(element: etree._Element) -> list[etree._Element]:
    return [child for child in element if isinstance(child.tag, str)]


def _element_value(element: etree._Element) -> str:
    children = _child_elements(element)
    if not children:
        return element.text or ""
    return (element.text or "") + "".join(
        etree.tostring(child, encoding="unicode") for child in children
    )


def _raise_fault(fault: etree._Element) -> None:
    def text(tag: str) -> str | None:
        node = fault.find(tag)
        return node.text if node is not None else None

    raise Fault(
        message=text("faultstring") or "Unknown SOAP fault",
        code=text("faultcode"),
        actor=text("faultactor"),
        detail=fault.find("detail"),
    )


def parse_response(response: requests.Response) -> Any:
    """Extract the return value from a schema-less SOAP response.

    A single return element comes back as its string content; several
    elements come back as a namespace keyed by local name.
    """

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(response.content, parser=parser)
    except etree.XMLSyntaxError:
        response.raise_for_status()
        raise ResponseFormatError("SOAP response is not XML", response=response.text) from None

    body = root.find(etree.QName(SOAP_ENV_NS, "Body"))
    if body is None:
        response.raise_for_status()
        raise ResponseFormatError("SOAP response has no Body", response=response.text)

    fault = body.find(etree.QName(SOAP_ENV_NS, "Fault"))
    if fault is not None:
        _raise_fault(fault)
    response.raise_for_status()

    wrappers = _child_elements(body)
    children = _child_elements(wrappers[0]) if wrappers else []
    if not children:
        raise ResponseFormatError("SOAP response has no return value", response=response.text)
    if len(children) == 1:
        return _element_value(children[0])
    return SimpleNamespace(
        **{etree.QName(child).localname: _element_value(child) for child in children}
    )


class SoapTransport:
    """Schema-less SOAP transport on top of requests."""

    def __init__(
        self,
        *,
        location: str,
        uri: str = SERVICE_NAMESPACE,
        style: str = "document",
        use: str = "literal",
        encoding: str = "utf-8",
        session: requests.Session | None = None,
        ssl_context: ssl.SSLContext | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if style != "document" or use != "literal":
            raise ValueError(
                f"SoapTransport only supports document/literal SOAP (got {style}/{use})"
            )
        self.location = location
        self.uri = uri
        self.encoding = encoding
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._session = build_session(session=session, ssl_context=ssl_context)

    def set_location(self, location: str) -> None:
        self.location = location

    def call(self, request: SoapRequest, *, soap_action: str | None = None) -> Any:
        if soap_action is None:
            soap_action = f"{self.uri}#{request.function}"
        payload = build_envelope(request, encoding=self.encoding, namespace=self.uri)
        headers = {
            **self._headers,
            "Content-Type": f"text/xml; charset={self.encoding}",
            "SOAPAction": f'"{soap_action}"',
        }
        logger.debug("POST %s (SOAPAction %s)", self.location, soap_action)
        response = self._session.post(
            self.location,
            data=payload,
            headers=headers,
            timeout=self._timeout,
        )
        return parse_response(response)


class WsdlTransport:
    """zeep-based transport bound to one connector's WSDL.

    zeep always serializes requests as utf-8, so unlike :class:`SoapTransport`
    there is no ``encoding`` option. ``headers`` are sent with every
    operation call.
    """

    def __init__(
        self,
        wsdl: str,
        *,
        session: requests.Session | None = None,
        ssl_context: ssl.SSLContext | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.wsdl = wsdl
        transport_kwargs: dict[str, Any] = {
            "session": build_session(session=session, ssl_context=ssl_context),
            "cache": get_wsdl_cache(),
        }
        if timeout is not None:
            transport_kwargs["timeout"] = timeout
            transport_kwargs["operation_timeout"] = timeout
        logger.debug("Loading WSDL %s", wsdl)
        self._client = Client(
            wsdl,
            transport=ZeepTransport(**transport_kwargs),
            settings=Settings(extra_http_headers=dict(headers or {})),
        )

    def set_location(self, location: str) -> None:
        raise NotImplementedError(
            "A WSDL transport is bound to its connector's WSDL; create a new one instead."
        )

    def call(self, request: SoapRequest, *, soap_action: str | None = None) -> Any:
        # zeep takes the SOAPAction from the WSDL binding.
        operation = self._client.service[request.function]
        return operation(**{param.name: param.value for param in request.params})


def default_transport_factory(wsdl: str | None, options: dict[str, Any]) -> Transport:
    if wsdl is None:
        return SoapTransport(**options)
    return WsdlTransport(wsdl, **options)
