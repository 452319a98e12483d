# -*- coding: utf-8 -*-
"""
Async Transactions
==================
Handle local de um job assincrono (deploy ou retrieve) no servidor.

O estado nunca e guardado: cada chamada a status() ou done() consulta o
servidor de novo. O ritmo do polling e do chamador.

Exemplo de uso:
    deploy = client.deploy("myproject/src")
    while not deploy.done():
        time.sleep(5)
    deploy.status().status
    #=> "Succeeded"
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING, Type

if TYPE_CHECKING:
    from .metadata_client import MetadataClient


def as_list(value: Any) -> List[Any]:
    """Elementos SOAP unicos chegam como dict; repetidos como lista"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class StatusResult:
    """
    Snapshot do AsyncResult retornado por check_status

    O mapeamento completo da resposta fica em raw e pode ser lido com
    result["campo"] ou result.get("campo").
    """
    id: str
    done: bool
    state: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": data.get("id") or "",
            "done": data.get("done") is True,
            "state": data.get("state"),
            "raw": dict(data),
        }

    @classmethod
    def from_response(cls, data: Optional[Mapping[str, Any]]) -> "StatusResult":
        return cls(**cls._fields_from(data or {}))

    def __getitem__(self, key: str) -> Any:
        return self.raw[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)


@dataclass(frozen=True)
class DeployResult(StatusResult):
    """Resultado de check_deploy_status"""
    success: bool = False
    status: Optional[str] = None
    state_detail: Optional[str] = None
    error_message: Optional[str] = None
    number_components_deployed: int = 0
    number_components_total: int = 0
    number_component_errors: int = 0
    number_tests_completed: int = 0
    number_tests_total: int = 0
    component_successes: List[Dict[str, Any]] = field(default_factory=list, repr=False)
    component_failures: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super()._fields_from(data)
        details = data.get("details") or {}
        fields.update(
            success=data.get("success") is True,
            status=data.get("status"),
            state_detail=data.get("state_detail"),
            error_message=data.get("error_message"),
            number_components_deployed=_as_int(data.get("number_components_deployed")),
            number_components_total=_as_int(data.get("number_components_total")),
            number_component_errors=_as_int(data.get("number_component_errors")),
            number_tests_completed=_as_int(data.get("number_tests_completed")),
            number_tests_total=_as_int(data.get("number_tests_total")),
            component_successes=as_list(details.get("component_successes")),
            component_failures=as_list(details.get("component_failures")),
        )
        return fields

    @property
    def has_failures(self) -> bool:
        return len(self.component_failures) > 0 or self.number_component_errors > 0


@dataclass(frozen=True)
class RetrieveResult(StatusResult):
    """Resultado de check_retrieve_status (zip_file ja decodificado)"""
    success: bool = False
    status: Optional[str] = None
    error_message: Optional[str] = None
    zip_file: Optional[bytes] = field(default=None, repr=False)
    file_properties: List[Dict[str, Any]] = field(default_factory=list, repr=False)
    messages: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super()._fields_from(data)
        zip_file = data.get("zip_file")
        fields.update(
            success=data.get("success") is True,
            status=data.get("status"),
            error_message=data.get("error_message"),
            zip_file=base64.b64decode(zip_file) if zip_file else None,
            file_properties=as_list(data.get("file_properties")),
            messages=as_list(data.get("messages")),
        )
        return fields


class TransactionKind(str, Enum):
    """Tipo do job assincrono; define a consulta de status e o resultado"""
    DEPLOY = "deploy"
    RETRIEVE = "retrieve"

    @property
    def status_request(self) -> str:
        return STATUS_REQUESTS[self]

    @property
    def result_type(self) -> Type[StatusResult]:
        return RESULT_TYPES[self]

    def status_options(self) -> Dict[str, Any]:
        return dict(STATUS_OPTIONS[self])

    def decode(self, data: Optional[Mapping[str, Any]]) -> StatusResult:
        return self.result_type.from_response(data)


GENERIC_STATUS_REQUEST = "check_status"

STATUS_REQUESTS = {
    TransactionKind.DEPLOY: "check_deploy_status",
    TransactionKind.RETRIEVE: "check_retrieve_status",
}

STATUS_OPTIONS = {
    TransactionKind.DEPLOY: {"include_details": True},
    TransactionKind.RETRIEVE: {"include_zip": True},
}

RESULT_TYPES = {
    TransactionKind.DEPLOY: DeployResult,
    TransactionKind.RETRIEVE: RetrieveResult,
}


class Transaction:
    """
    Job assincrono no servidor

    Criado apenas por MetadataClient.deploy/retrieve. Descartar o objeto nao
    cancela o job.
    """

    def __init__(self, client: "MetadataClient", id: str, kind: TransactionKind):
        self._client = client
        self._id = id
        self._kind = TransactionKind(kind)

    @classmethod
    def deployment(cls, client: "MetadataClient", id: str) -> "Transaction":
        return cls(client, id, TransactionKind.DEPLOY)

    @classmethod
    def retrieval(cls, client: "MetadataClient", id: str) -> "Transaction":
        return cls(client, id, TransactionKind.RETRIEVE)

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> TransactionKind:
        return self._kind

    @property
    def client(self) -> "MetadataClient":
        return self._client

    def status(self) -> StatusResult:
        """Consulta o servidor e retorna o DeployResult/RetrieveResult atual"""
        return self._client.status(self._id, self._kind)

    def done(self) -> bool:
        """True quando o servidor informa done=true; False se o campo faltar"""
        return self.status().done

    def __repr__(self) -> str:
        return f"<Transaction id={self._id!r} kind={self._kind.value}>"
