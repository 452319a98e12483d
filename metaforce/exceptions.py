# -*- coding: utf-8 -*-
"""
Excecoes do Metaforce
=====================

Excecoes customizadas para erros do cliente da Metadata API.

Hierarquia:
    MetaforceError
    ├── AuthenticationError
    ├── SourceUnavailableError   (tambem e um IOError)
    ├── ArchiveError
    ├── ManifestError
    ├── UnknownOperationError
    └── ProtocolError
        └── SoapFaultError
"""


class MetaforceError(Exception):
    """
    Excecao base para erros do Metaforce.

    Attributes:
        message: Mensagem de erro
        error_code: Codigo de erro (quando o servidor informa)
        details: Detalhes adicionais do erro
    """

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, error_code={self.error_code!r})"


class AuthenticationError(MetaforceError):
    """
    Erro de autenticacao.

    Levantado quando:
    - Credenciais ausentes na configuracao
    - Login SOAP recusado pelo servidor
    - Resposta de login sem sessionId
    """

    def __init__(self, message: str = "Erro de autenticacao", **kwargs):
        super().__init__(message, **kwargs)


class SourceUnavailableError(MetaforceError, IOError):
    """Diretorio de origem do deploy inexistente, ilegivel ou invalido."""

    def __init__(self, message: str, path: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path


class ArchiveError(MetaforceError):
    """Falha ao gravar uma entrada do arquivo de deploy."""

    def __init__(self, message: str, entry: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry = entry


class ManifestError(MetaforceError):
    """package.xml malformado."""


class UnknownOperationError(MetaforceError):
    """
    Atalho de listagem para um tipo que nao existe na org.

    Attributes:
        type_name: Nome pedido pelo chamador
    """

    def __init__(self, type_name: str, **kwargs):
        super().__init__(f"Tipo de metadata desconhecido: {type_name}", **kwargs)
        self.type_name = type_name


class ProtocolError(MetaforceError):
    """Resposta do servidor ilegivel ou sem o envelope de resultado esperado."""


class SoapFaultError(ProtocolError):
    """
    O servidor respondeu com um SOAP Fault.

    Attributes:
        fault_code: faultcode retornado (ex: sf:INVALID_SESSION_ID)
    """

    def __init__(self, message: str, fault_code: str = None, **kwargs):
        super().__init__(message, error_code=fault_code, **kwargs)
        self.fault_code = fault_code
