# -*- coding: utf-8 -*-
"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the metaforce test suite.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from metaforce.client import Session
from metaforce.config import MetaforceConfig
from metaforce.metadata_client import MetadataClient
from metaforce.soap import SoapClient


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def config():
    """Configuration with credentials and a fixed API version"""
    return MetaforceConfig(
        username="user@example.com",
        password="secret",
        security_token="TOKEN",
        api_version="59.0"
    )


@pytest.fixture
def session():
    return Session(
        session_id="00Dxx!SESSION",
        metadata_server_url="https://na1.salesforce.com/services/Soap/m/59.0/00Dxx"
    )


# =============================================================================
# CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def soap_responses():
    """Canned SOAP bodies keyed by operation; tests fill it in"""
    return {}


@pytest.fixture
def soap(soap_responses):
    """SoapClient mock answering from soap_responses"""
    soap = Mock(spec=SoapClient)

    def request(operation, body=None):
        return soap_responses[operation]

    soap.request.side_effect = request
    return soap


@pytest.fixture
def metadata_client(session, config, soap):
    return MetadataClient(session=session, config=config, soap_client=soap)


# =============================================================================
# PROJECT FIXTURES
# =============================================================================

@pytest.fixture
def project_dir(tmp_path):
    """proj/src with a class, its meta file and a package.xml"""
    src = tmp_path / "proj" / "src"
    classes = src / "classes"
    classes.mkdir(parents=True)
    (classes / "Foo.cls").write_text("public class Foo {}")
    (classes / "Foo.cls-meta.xml").write_text("<ApexClass/>")
    (src / "package.xml").write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Package xmlns="http://soap.sforce.com/2006/04/metadata">\n'
        '    <types>\n'
        '        <members>*</members>\n'
        '        <name>ApexClass</name>\n'
        '    </types>\n'
        '    <version>59.0</version>\n'
        '</Package>\n'
    )
    return src
