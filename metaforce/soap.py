# -*- coding: utf-8 -*-
"""
SOAP Transport
==============
Transporte SOAP para a Metadata API.

Converte corpos de requisicao (dicionarios com chaves snake_case) em XML,
envia o envelope com o SessionHeader e converte a resposta de volta em
dicionarios com chaves snake_case.

Exemplo de uso:
    soap = SoapClient(session.metadata_server_url, session.session_id)
    body = soap.request("list_metadata", {"queries": [{"type": "ApexClass"}]})
    body["list_metadata_response"]["result"]
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Mapping, Optional
from xml.sax.saxutils import escape

import requests

from .exceptions import ProtocolError, SoapFaultError

logger = logging.getLogger(__name__)

METADATA_NS = "http://soap.sforce.com/2006/04/metadata"
SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

# Elementos cujo nome no WSDL nao segue lowerCamelCase
ELEMENT_NAMES = {
    "zip_file": "ZipFile",
    "deploy_options": "DeployOptions",
}

_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")


def camelize(name: str) -> str:
    """zip_file -> zipFile; nomes sem underscore ficam como estao."""
    if "_" not in name:
        return name
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def underscore(name: str) -> str:
    """listMetadataResponse -> list_metadata_response"""
    return _ALL_CAP.sub(r"\1_\2", _FIRST_CAP.sub(r"\1_\2", name)).lower()


def local_name(tag: str) -> str:
    return tag.split("}")[-1]


def element_name(key: str) -> str:
    return ELEMENT_NAMES.get(key) or camelize(key)


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return escape(str(value))


def to_xml(data: Mapping[str, Any], prefix: str = "met") -> str:
    """
    Converte dicionario para XML

    Listas viram elementos repetidos, booleanos viram true/false e
    valores None sao omitidos.
    """
    xml_parts = []

    for key, value in data.items():
        if value is None:
            continue

        tag = f"{prefix}:{element_name(key)}"
        items = value if isinstance(value, (list, tuple)) else [value]

        for item in items:
            if isinstance(item, Mapping):
                xml_parts.append(f"<{tag}>{to_xml(item, prefix)}</{tag}>")
            elif item is not None:
                xml_parts.append(f"<{tag}>{_format_scalar(item)}</{tag}>")

    return "".join(xml_parts)


def element_to_value(elem: ET.Element) -> Any:
    """
    Converte elemento XML em valor Python

    Elementos folha viram texto (true/false viram bool, vazio vira None),
    elementos compostos viram dicionario e tags repetidas viram lista.
    """
    if elem.get(f"{{{XSI_NS}}}nil") == "true":
        return None

    if len(elem) == 0:
        text = elem.text
        if text is None or not text.strip():
            return None
        if text == "true":
            return True
        if text == "false":
            return False
        return text

    result: Dict[str, Any] = {}
    for child in elem:
        tag = underscore(local_name(child.tag))
        value = element_to_value(child)
        if tag in result:
            if not isinstance(result[tag], list):
                result[tag] = [result[tag]]
            result[tag].append(value)
        else:
            result[tag] = value
    return result


def parse_envelope(content: bytes) -> Dict[str, Any]:
    """
    Parseia um envelope SOAP e retorna o conteudo do Body

    Raises:
        SoapFaultError: Se o Body contiver um Fault
        ProtocolError: Se o XML for invalido ou nao tiver Body
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ProtocolError(f"Resposta SOAP invalida: {e}") from e

    body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None:
        raise ProtocolError("Resposta SOAP sem Body")

    fault = body.find(f"{{{SOAP_ENV_NS}}}Fault")
    if fault is not None:
        fault_code = fault.findtext("faultcode")
        fault_string = fault.findtext("faultstring") or "SOAP Fault"
        raise SoapFaultError(fault_string, fault_code=fault_code)

    return element_to_value(body) or {}


class SoapClient:
    """
    Cliente SOAP sincrono para um endpoint da Metadata API

    Cada chamada e um round-trip bloqueante; nao ha retries.
    """

    def __init__(
        self,
        endpoint: str,
        session_id: str,
        timeout: int = 30,
        verify_ssl: bool = True,
        http: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.endpoint = endpoint
        self.session_id = session_id
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.http = http or requests.Session()
        self._owns_http = http is None
        self.headers = headers or {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Fecha a sessao HTTP se ela foi criada aqui"""
        if self._owns_http:
            self.http.close()

    def build_envelope(self, operation: str, body: Optional[Mapping[str, Any]] = None) -> str:
        action = camelize(operation)
        body_xml = to_xml(body or {})
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            f'<soapenv:Envelope xmlns:soapenv="{SOAP_ENV_NS}" xmlns:met="{METADATA_NS}">'
            "<soapenv:Header>"
            "<met:SessionHeader>"
            f"<met:sessionId>{escape(self.session_id)}</met:sessionId>"
            "</met:SessionHeader>"
            "</soapenv:Header>"
            "<soapenv:Body>"
            f"<met:{action}>{body_xml}</met:{action}>"
            "</soapenv:Body>"
            "</soapenv:Envelope>"
        )

    def request(self, operation: str, body: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Executa uma operacao SOAP

        Args:
            operation: Nome da operacao em snake_case (ex: "list_metadata")
            body: Corpo da requisicao com chaves snake_case

        Returns:
            Conteudo do Body da resposta (ex: {"list_metadata_response": {...}})

        Raises:
            SoapFaultError: Se o servidor retornar um Fault
            ProtocolError: Se a resposta nao for um envelope SOAP
            requests.RequestException: Erros de transporte
        """
        headers = {
            "Content-Type": "text/xml; charset=UTF-8",
            "SOAPAction": camelize(operation),
        }
        headers.update(self.headers)

        logger.debug(f"SOAP {operation} -> {self.endpoint}")
        response = self.http.post(
            self.endpoint,
            data=self.build_envelope(operation, body).encode("utf-8"),
            headers=headers,
            timeout=self.timeout,
            verify=self.verify_ssl
        )

        # Faults chegam com HTTP 500 e envelope valido
        if response.status_code >= 400 and b"Fault" not in response.content:
            response.raise_for_status()

        return parse_envelope(response.content)
