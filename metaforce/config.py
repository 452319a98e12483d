# -*- coding: utf-8 -*-
"""
Metaforce Configuration
=======================
Configuracoes para conexao com a Metadata API do Salesforce.

Exemplo de configuracao via variaveis de ambiente (ou arquivo .env):
    METAFORCE_USERNAME=user@empresa.com
    METAFORCE_PASSWORD=senha123
    METAFORCE_SECURITY_TOKEN=token_seguranca
    METAFORCE_DOMAIN=login  # ou "test" para sandbox
    METAFORCE_API_VERSION=59.0
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "59.0"


@dataclass
class MetaforceConfig:
    """
    Configuracao principal do cliente

    Attributes:
        username: Nome de usuario Salesforce
        password: Senha do usuario
        security_token: Token de seguranca (concatenado a senha no login)
        domain: Dominio de login ("login" para producao, "test" para sandbox)
        api_version: Versao da Metadata API (ex: "59.0")
        timeout: Timeout em segundos para requisicoes
        verify_ssl: Verificar certificado do servidor

    Exemplo:
        config = MetaforceConfig(
            username="user@empresa.com",
            password="senha123",
            security_token="abc123def456"
        )
    """
    username: Optional[str] = None
    password: Optional[str] = None
    security_token: Optional[str] = None

    domain: str = "login"
    api_version: str = DEFAULT_API_VERSION

    timeout: int = 30
    verify_ssl: bool = True
    custom_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "MetaforceConfig":
        """
        Cria configuracao a partir de variaveis de ambiente

        Variaveis suportadas:
            METAFORCE_USERNAME
            METAFORCE_PASSWORD
            METAFORCE_SECURITY_TOKEN
            METAFORCE_DOMAIN
            METAFORCE_API_VERSION
            METAFORCE_TIMEOUT
            METAFORCE_VERIFY_SSL
        """
        load_dotenv(dotenv_path)

        return cls(
            username=os.getenv("METAFORCE_USERNAME"),
            password=os.getenv("METAFORCE_PASSWORD"),
            security_token=os.getenv("METAFORCE_SECURITY_TOKEN"),
            domain=os.getenv("METAFORCE_DOMAIN", "login"),
            api_version=os.getenv("METAFORCE_API_VERSION", DEFAULT_API_VERSION),
            timeout=int(os.getenv("METAFORCE_TIMEOUT", "30")),
            verify_ssl=os.getenv("METAFORCE_VERIFY_SSL", "true").lower() == "true"
        )

    @property
    def login_url(self) -> str:
        """URL de login baseada no dominio"""
        if self.domain == "test":
            return "https://test.salesforce.com"
        elif self.domain == "login":
            return "https://login.salesforce.com"
        else:
            return f"https://{self.domain}.my.salesforce.com"

    @property
    def soap_url(self) -> str:
        """URL do SOAP API (partner) usada no login"""
        return f"{self.login_url}/services/Soap/u/{self.api_version}"

    @property
    def is_sandbox(self) -> bool:
        return self.domain == "test"

    def validate(self) -> bool:
        """
        Valida se a configuracao tem credenciais para login

        Raises:
            ValueError: Se faltar algum campo obrigatorio
        """
        if not self.username:
            raise ValueError("Username e obrigatorio")
        if not self.password:
            raise ValueError("Password e obrigatorio")
        if not self.api_version:
            raise ValueError("api_version e obrigatoria")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Converte configuracao para dicionario (sem dados sensiveis)"""
        return {
            "username": self.username,
            "domain": self.domain,
            "api_version": self.api_version,
            "is_sandbox": self.is_sandbox,
            "timeout": self.timeout,
            "verify_ssl": self.verify_ssl,
            "has_security_token": bool(self.security_token)
        }

    def __repr__(self) -> str:
        return (
            f"MetaforceConfig(username={self.username}, domain={self.domain}, "
            f"api_version={self.api_version})"
        )


# Configuracao global padrao
DEFAULT_CONFIG: Optional[MetaforceConfig] = None


def set_default_config(config: Optional[MetaforceConfig]):
    """Define configuracao padrao global"""
    global DEFAULT_CONFIG
    DEFAULT_CONFIG = config


def get_default_config() -> MetaforceConfig:
    """Obtem configuracao padrao global, carregando do ambiente na primeira vez"""
    global DEFAULT_CONFIG
    if DEFAULT_CONFIG is None:
        DEFAULT_CONFIG = MetaforceConfig.from_env()
        logger.debug(f"Configuracao carregada do ambiente: {DEFAULT_CONFIG!r}")
    return DEFAULT_CONFIG
