# -*- coding: utf-8 -*-
"""
Salesforce Metadata API Client
==============================
Cliente sincrono para a Metadata API do Salesforce.

A Metadata API permite:
- Listar componentes de um tipo (list_metadata)
- Descrever os tipos disponiveis na org (describe_metadata)
- Deploy de um diretorio de projeto ou ZIP pronto
- Retrieve de componentes a partir de um package.xml
- Acompanhar jobs assincronos (check_*_status)

Exemplo de uso:
    from metaforce import MetadataClient, MetaforceConfig

    config = MetaforceConfig(
        username="user@empresa.com",
        password="senha123",
        security_token="token"
    )
    client = MetadataClient(config=config)

    # Listar classes Apex
    [c["full_name"] for c in client.list("ApexClass")]

    # Deploy de um projeto
    deploy = client.deploy("myproject/src")
    deploy.done()
    #=> False

    # Retrieve a partir do package.xml
    retrieve = client.retrieve_unpackaged("myproject/src/package.xml")
    retrieve.status().zip_file
"""

import functools
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Optional, Union

from .archive import build_deploy_archive, encode_archive
from .client import ServicesClient, Session
from .config import MetaforceConfig, get_default_config
from .exceptions import ProtocolError, UnknownOperationError
from .manifest import Manifest, compile_manifest
from .soap import SoapClient
from .transaction import (
    GENERIC_STATUS_REQUEST,
    StatusResult,
    Transaction,
    TransactionKind,
    as_list,
)

logger = logging.getLogger(__name__)

DeployPayload = Union[str, os.PathLike, bytes, BinaryIO]
ManifestSource = Union[Manifest, Mapping, str, os.PathLike]

# Sequencia do RetrieveRequest no WSDL; o servidor rejeita elementos fora de ordem
RETRIEVE_REQUEST_FIELDS = (
    "api_version",
    "package_names",
    "single_package",
    "specific_files",
    "unpackaged",
)


def normalize_type_name(name: str) -> str:
    """ApexClass, apex_class e apexclass resolvem para a mesma chave"""
    return name.replace("_", "").lower()


class MetadataClient:
    """
    Cliente da Metadata API

    Mantem a sessao autenticada, o cache do describe e o mapa de atalhos de
    listagem por tipo.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        config: Optional[MetaforceConfig] = None,
        soap_client: Optional[SoapClient] = None
    ):
        """
        Inicializa o cliente

        Args:
            session: Sessao ja autenticada; sem ela e feito login com config
            config: Configuracao (padrao: get_default_config())
            soap_client: Transporte SOAP pronto (usado em testes)
        """
        self.config = config or get_default_config()

        if soap_client is None:
            if session is None:
                services = ServicesClient(self.config)
                try:
                    session = services.login()
                finally:
                    services.close()
            soap_client = SoapClient(
                session.metadata_server_url,
                session.session_id,
                timeout=self.config.timeout,
                verify_ssl=self.config.verify_ssl,
                headers=self.config.custom_headers
            )

        self.session = session
        self._soap = soap_client
        self._describe: Optional[Dict[str, Any]] = None
        self._list_shortcuts: Optional[Dict[str, Callable[[], List[Dict[str, Any]]]]] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._soap.close()

    @property
    def api_version(self) -> str:
        return self.config.api_version

    def _request(self, operation: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._soap.request(operation, body)

    def _result(self, operation: str, response: Dict[str, Any]) -> Any:
        envelope = response.get(f"{operation}_response")
        if not isinstance(envelope, Mapping) or "result" not in envelope:
            raise ProtocolError(
                f"Resposta de {operation} sem {operation}_response/result",
                details={"response": response}
            )
        return envelope["result"]

    # ==================== LIST METADATA ====================

    def list(
        self,
        queries: Union[str, Mapping, Iterable[Mapping], None] = None
    ) -> List[Dict[str, Any]]:
        """
        Lista componentes de um ou mais tipos

        Args:
            queries: Nome do tipo, {"type": ..., "folder": ...} ou lista deles

        Returns:
            Lista de FileProperties (full_name, file_name, id, ...)

        Exemplo:
            [c["full_name"] for c in client.list("ApexClass")]
            client.list([{"type": "CustomObject"}, {"type": "ApexComponent"}])
        """
        if queries is None:
            queries = []
        elif isinstance(queries, str):
            queries = [{"type": queries}]
        elif isinstance(queries, Mapping):
            queries = [queries]
        else:
            queries = list(queries)

        response = self._request("list_metadata", {"queries": [dict(q) for q in queries]})
        envelope = response.get("list_metadata_response")
        if not envelope:
            return []
        return as_list(envelope.get("result"))

    # ==================== DESCRIBE ====================

    def describe(self, version: Optional[str] = None) -> Dict[str, Any]:
        """
        Descreve os tipos de metadata da org (resultado em cache)

        Exemplo:
            [t["xml_name"] for t in client.describe()["metadata_objects"]]
        """
        if self._describe is None:
            return self.refresh_describe(version)
        return self._describe

    def refresh_describe(self, version: Optional[str] = None) -> Dict[str, Any]:
        """Ignora o cache, consulta describe_metadata e reconstroi os atalhos"""
        body = {"as_of_version": version} if version is not None else None
        result = self._result("describe_metadata", self._request("describe_metadata", body))
        if not isinstance(result, Mapping):
            raise ProtocolError("describe_metadata retornou resultado vazio")

        describe = dict(result)
        describe["metadata_objects"] = as_list(describe.get("metadata_objects"))
        self._describe = describe
        self._list_shortcuts = None
        return describe

    def metadata_objects(self, version: Optional[str] = None) -> List[Dict[str, Any]]:
        """Mesmo que client.describe()["metadata_objects"]"""
        return self.describe(version)["metadata_objects"]

    # ==================== LIST SHORTCUTS ====================

    def list_shortcuts(self) -> Dict[str, Callable[[], List[Dict[str, Any]]]]:
        """
        Mapa nome normalizado -> consulta de listagem do tipo

        Montado a partir do cache do describe.
        """
        if self._list_shortcuts is None:
            shortcuts = {}
            for metadata_object in self.metadata_objects():
                xml_name = metadata_object.get("xml_name")
                if xml_name:
                    shortcuts[normalize_type_name(xml_name)] = functools.partial(self.list, xml_name)
            self._list_shortcuts = shortcuts
        return self._list_shortcuts

    def list_by_type(self, name: str) -> List[Dict[str, Any]]:
        """
        Lista componentes de um tipo conhecido pela org

        Exemplo:
            client.list_by_type("apex_class")

        Raises:
            UnknownOperationError: Se o tipo nao estiver no describe
        """
        query = self.list_shortcuts().get(normalize_type_name(name))
        if query is None:
            raise UnknownOperationError(name)
        return query()

    # ==================== STATUS ====================

    def status(
        self,
        ids: Union[str, Iterable[str]],
        kind: Optional[TransactionKind] = None
    ) -> Union[StatusResult, List[StatusResult]]:
        """
        Consulta o status de jobs assincronos

        Com kind, usa check_deploy_status/check_retrieve_status e retorna
        DeployResult/RetrieveResult.

        Exemplo:
            client.status("04sU0000000Wx6KIAS")
            #=> StatusResult(id="04sU0000000Wx6KIAS", done=True, state="Completed")
        """
        single = isinstance(ids, str)
        id_list = [ids] if single else list(ids)

        if kind is None:
            request = GENERIC_STATUS_REQUEST
            body: Dict[str, Any] = {"async_process_id": id_list}
            decode = StatusResult.from_response
        else:
            kind = TransactionKind(kind)
            request = kind.status_request
            body = {"async_process_id": id_list, **kind.status_options()}
            decode = kind.decode

        logger.info(f"Polling server for status on {', '.join(id_list)}")

        items = as_list(self._result(request, self._request(request, body)))
        for item in items:
            if not isinstance(item, Mapping):
                raise ProtocolError(
                    f"{request} retornou resultado inesperado: {item!r}",
                    details={"ids": id_list}
                )

        results = [decode(item) for item in items]
        if single:
            if not results:
                raise ProtocolError(f"{request} sem resultado para {ids}")
            return results[0]
        return results

    def done(self, id: str) -> bool:
        """True se o job terminou; False tambem quando o campo done falta"""
        return self.status(id).done

    # ==================== DEPLOY ====================

    def _read_payload(self, payload: DeployPayload) -> bytes:
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        if hasattr(payload, "read"):
            return payload.read()
        path = Path(payload)
        if path.is_file():
            return path.read_bytes()
        return build_deploy_archive(path)

    def deploy(self, payload: DeployPayload, options: Optional[Mapping[str, Any]] = None) -> Transaction:
        """
        Inicia deploy na org

        Args:
            payload: Diretorio do projeto, caminho de um ZIP, bytes do ZIP ou
                arquivo binario aberto
            options: DeployOptions em snake_case (check_only, test_level, ...)

        Returns:
            Transaction do deploy

        Exemplo:
            deploy = client.deploy("myeclipseproj/src", {"rollback_on_error": True})
            deploy.status().state
            #=> "Completed"
        """
        zip_contents = encode_archive(self._read_payload(payload))

        logger.info("Executing deploy")
        response = self._request("deploy", {
            "zip_file": zip_contents,
            "deploy_options": dict(options or {})
        })
        result = self._result("deploy", response)
        return Transaction.deployment(self, self._job_id("deploy", result))

    # ==================== RETRIEVE ====================

    def retrieve(self, request: Optional[Mapping[str, Any]] = None) -> Transaction:
        """
        Inicia retrieve

        Args:
            request: RetrieveRequest em snake_case (api_version, single_package,
                package_names, unpackaged, ...)

        As chaves conhecidas sao enviadas na ordem do schema; as demais vao
        depois, na ordem recebida.
        """
        request = dict(request or {})
        ordered = {key: request.pop(key) for key in RETRIEVE_REQUEST_FIELDS if key in request}
        ordered.update(request)

        logger.info("Executing retrieve")
        response = self._request("retrieve", {"retrieve_request": ordered})
        result = self._result("retrieve", response)
        return Transaction.retrieval(self, self._job_id("retrieve", result))

    def retrieve_unpackaged(
        self,
        manifest: ManifestSource,
        options: Optional[Mapping[str, Any]] = None
    ) -> Transaction:
        """
        Retrieve dos componentes selecionados por um manifest

        api_version (da configuracao) e single_package=True sao sempre
        enviados; as demais chaves de options passam sem alteracao.

        Exemplo:
            retrieve = client.retrieve_unpackaged("src/package.xml")
            retrieve = client.retrieve_unpackaged({"ApexClass": ["*"]})
        """
        if isinstance(manifest, (str, os.PathLike)):
            manifest = Manifest.from_file(manifest)

        package = compile_manifest(manifest, self.api_version)

        request = dict(options or {})
        request.update(
            api_version=self.api_version,
            single_package=True,
            unpackaged=package.to_request()
        )
        return self.retrieve(request)

    def _job_id(self, operation: str, result: Any) -> str:
        job_id = result.get("id") if isinstance(result, Mapping) else None
        if not job_id:
            raise ProtocolError(f"Resposta de {operation} sem id do job")
        return job_id
