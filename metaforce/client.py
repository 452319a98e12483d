# -*- coding: utf-8 -*-
"""
Salesforce Services Client
==========================
Provedor de sessao: faz login SOAP (partner API) e devolve o par
sessionId / metadataServerUrl usado pela Metadata API.

Exemplo de uso:
    from metaforce import MetaforceConfig, ServicesClient

    config = MetaforceConfig(
        username="user@empresa.com",
        password="senha123",
        security_token="token"
    )
    session = ServicesClient(config).login()
    session.metadata_server_url
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional
from xml.sax.saxutils import escape

import requests

from .config import MetaforceConfig, get_default_config
from .exceptions import AuthenticationError
from .soap import SOAP_ENV_NS, local_name

logger = logging.getLogger(__name__)

PARTNER_NS = "urn:partner.soap.sforce.com"


@dataclass(frozen=True)
class Session:
    """Sessao autenticada usada em todas as chamadas da Metadata API"""
    session_id: str
    metadata_server_url: str


class ServicesClient:
    """
    Cliente de login da API SOAP do Salesforce

    Autentica com Username/Password + Security Token.
    """

    def __init__(
        self,
        config: Optional[MetaforceConfig] = None,
        http: Optional[requests.Session] = None
    ):
        self.config = config or get_default_config()
        self.http = http or requests.Session()
        self._owns_http = http is None

    def close(self):
        if self._owns_http:
            self.http.close()

    def _build_login_envelope(self) -> str:
        password = f"{self.config.password or ''}{self.config.security_token or ''}"
        return (
            '<?xml version="1.0" encoding="utf-8"?>'
            f'<env:Envelope xmlns:env="{SOAP_ENV_NS}">'
            "<env:Body>"
            f'<n1:login xmlns:n1="{PARTNER_NS}">'
            f"<n1:username>{escape(self.config.username or '')}</n1:username>"
            f"<n1:password>{escape(password)}</n1:password>"
            "</n1:login>"
            "</env:Body>"
            "</env:Envelope>"
        )

    def login(self) -> Session:
        """
        Faz login e retorna a sessao

        Returns:
            Session com session_id e metadata_server_url

        Raises:
            AuthenticationError: Se a configuracao estiver incompleta ou o
                servidor recusar o login
        """
        try:
            self.config.validate()
        except ValueError as e:
            raise AuthenticationError(str(e)) from e

        headers = {
            "Content-Type": "text/xml; charset=UTF-8",
            "SOAPAction": "login"
        }

        logger.info(f"Autenticando {self.config.username} em {self.config.login_url}")
        response = self.http.post(
            self.config.soap_url,
            data=self._build_login_envelope().encode("utf-8"),
            headers=headers,
            timeout=self.config.timeout,
            verify=self.config.verify_ssl
        )

        if response.status_code != 200:
            error_msg = self._parse_soap_error(response.content)
            raise AuthenticationError(
                error_msg or f"HTTP {response.status_code}",
                details={"status_code": response.status_code}
            )

        return self._parse_login_response(response.content)

    def _parse_soap_error(self, content: bytes) -> Optional[str]:
        """Extrai faultstring de uma resposta SOAP"""
        try:
            root = ET.fromstring(content)
        except ET.ParseError:
            return None
        for elem in root.iter():
            if local_name(elem.tag) == "faultstring":
                return elem.text
        return None

    def _parse_login_response(self, content: bytes) -> Session:
        """Parseia resposta de login SOAP"""
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise AuthenticationError(f"Resposta de login invalida: {e}") from e

        session_id = None
        metadata_server_url = None

        for elem in root.iter():
            tag_name = local_name(elem.tag).lower()
            if tag_name == "sessionid" and elem.text:
                session_id = elem.text
            elif tag_name == "metadataserverurl" and elem.text:
                metadata_server_url = elem.text

        if not session_id:
            raise AuthenticationError("Session ID nao encontrado na resposta")
        if not metadata_server_url:
            raise AuthenticationError("metadataServerUrl nao encontrado na resposta")

        logger.info(f"Autenticado: {metadata_server_url}")
        return Session(session_id=session_id, metadata_server_url=metadata_server_url)
