# -*- coding: utf-8 -*-
"""
Metaforce
=========
Cliente Python para a Metadata API do Salesforce.

Este modulo fornece:
- Login SOAP e sessao para a Metadata API
- list / describe de metadata
- Deploy de diretorios de projeto (ZIP montado em memoria)
- Retrieve a partir de package.xml
- Transactions para acompanhar jobs assincronos

Exemplo de uso:
    from metaforce import MetadataClient, MetaforceConfig

    client = MetadataClient(config=MetaforceConfig.from_env())
    deploy = client.deploy("myproject/src")
    deploy.done()
"""

from .config import MetaforceConfig, get_default_config, set_default_config
from .client import ServicesClient, Session
from .exceptions import (
    MetaforceError,
    AuthenticationError,
    SourceUnavailableError,
    ArchiveError,
    ManifestError,
    ProtocolError,
    SoapFaultError,
    UnknownOperationError,
)
from .manifest import Manifest, Package, PackageType, compile_manifest
from .archive import build_deploy_archive, encode_archive
from .transaction import (
    DeployResult,
    RetrieveResult,
    StatusResult,
    Transaction,
    TransactionKind,
)
from .metadata_client import MetadataClient

__all__ = [
    'MetaforceConfig',
    'get_default_config',
    'set_default_config',
    'ServicesClient',
    'Session',
    'MetadataClient',
    'Manifest',
    'Package',
    'PackageType',
    'compile_manifest',
    'build_deploy_archive',
    'encode_archive',
    'Transaction',
    'TransactionKind',
    'StatusResult',
    'DeployResult',
    'RetrieveResult',
    'MetaforceError',
    'AuthenticationError',
    'SourceUnavailableError',
    'ArchiveError',
    'ManifestError',
    'ProtocolError',
    'SoapFaultError',
    'UnknownOperationError',
]

__version__ = '1.0.0'
