# -*- coding: utf-8 -*-
"""
Manifest
========
Selecao declarativa de componentes (package.xml) e sua compilacao para a
estrutura "unpackaged" usada pelo retrieve.

Exemplo de uso:
    manifest = Manifest({"ApexClass": ["*"], "ApexTrigger": ["MeuTrigger"]})
    package = compile_manifest(manifest, "59.0")
    package.to_request()
    #=> {"types": [{"members": ["*"], "name": "ApexClass"}, ...], "version": "59.0"}

    manifest = Manifest.from_file("src/package.xml")
"""

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from .config import DEFAULT_API_VERSION
from .exceptions import ManifestError
from .soap import METADATA_NS, local_name


@dataclass(frozen=True)
class PackageType:
    """Um registro <types> do pacote"""
    name: str
    members: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        # members antes de name, na ordem da sequencia do schema
        return {"members": list(self.members), "name": self.name}


@dataclass(frozen=True)
class Package:
    """Pacote compilado: tipos na ordem do manifest mais a versao da API"""
    types: Tuple[PackageType, ...]
    version: str

    def to_request(self) -> Dict[str, Any]:
        return {
            "types": [package_type.to_dict() for package_type in self.types],
            "version": self.version
        }


def _normalize_members(type_name: str, members: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(members, str):
        members = [members]
    normalized: List[str] = []
    for member in members:
        if not isinstance(member, str) or not member:
            raise ManifestError(f"Membro invalido para {type_name}: {member!r}")
        normalized.append(member)
    return normalized


class Manifest(Mapping):
    """
    Mapeamento ordenado tipo -> padroes de membros

    A ordem de insercao dos tipos e a ordem dos membros sao preservadas;
    "*" seleciona todos os membros do tipo.
    """

    def __init__(
        self,
        types: Optional[Mapping[str, Union[str, Iterable[str]]]] = None,
        version: Optional[str] = None
    ):
        self._types: Dict[str, List[str]] = {}
        self.version = version
        for type_name, members in (types or {}).items():
            self.add(type_name, *_normalize_members(type_name, members))

    @classmethod
    def from_xml(cls, text: Union[str, bytes]) -> "Manifest":
        """
        Parseia um documento package.xml

        Raises:
            ManifestError: Se o XML for invalido ou um <types> nao tiver <name>
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise ManifestError(f"package.xml invalido: {e}") from e

        if local_name(root.tag) != "Package":
            raise ManifestError(f"Elemento raiz inesperado: {local_name(root.tag)}")

        manifest = cls()
        for elem in root:
            tag = local_name(elem.tag)
            if tag == "types":
                name = None
                members = []
                for child in elem:
                    child_tag = local_name(child.tag)
                    if child_tag == "name":
                        name = (child.text or "").strip()
                    elif child_tag == "members":
                        members.append((child.text or "").strip())
                if not name:
                    raise ManifestError("Elemento <types> sem <name>")
                manifest.add(name, *_normalize_members(name, members))
            elif tag == "version":
                manifest.version = (elem.text or "").strip() or None

        return manifest

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Manifest":
        return cls.from_xml(Path(path).read_bytes())

    def add(self, type_name: str, *members: str) -> "Manifest":
        """Adiciona membros a um tipo (criando o tipo no fim se necessario)"""
        current = self._types.setdefault(type_name, [])
        for member in _normalize_members(type_name, members):
            if member not in current:
                current.append(member)
        return self

    def remove(self, type_name: str, *members: str) -> "Manifest":
        """Remove membros; sem membros, remove o tipo inteiro"""
        if type_name not in self._types:
            return self
        if not members:
            del self._types[type_name]
            return self
        remaining = [m for m in self._types[type_name] if m not in members]
        if remaining:
            self._types[type_name] = remaining
        else:
            del self._types[type_name]
        return self

    def types(self) -> List[str]:
        return list(self._types)

    def members(self, type_name: str) -> List[str]:
        return list(self._types.get(type_name, []))

    def __getitem__(self, type_name: str) -> List[str]:
        return list(self._types[type_name])

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"Manifest({self._types!r}, version={self.version!r})"

    def to_package(self, api_version: Optional[str] = None) -> Package:
        return compile_manifest(self, api_version or self.version or DEFAULT_API_VERSION)

    def to_xml(self, api_version: Optional[str] = None) -> str:
        """Gera o package.xml correspondente"""
        version = api_version or self.version or DEFAULT_API_VERSION
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<Package xmlns="{METADATA_NS}">'
        ]
        for type_name, members in self._types.items():
            lines.append("    <types>")
            for member in members:
                lines.append(f"        <members>{escape(member)}</members>")
            lines.append(f"        <name>{escape(type_name)}</name>")
            lines.append("    </types>")
        lines.append(f"    <version>{escape(version)}</version>")
        lines.append("</Package>")
        return "\n".join(lines) + "\n"


def compile_manifest(
    manifest: Mapping[str, Union[str, Iterable[str]]],
    api_version: str = DEFAULT_API_VERSION
) -> Package:
    """
    Compila um manifest no pacote esperado pelo retrieve

    Tipos desconhecidos passam adiante; quem decide e o servidor. Os padroes
    de membros sao mantidos como recebidos, inclusive repetidos; so
    Manifest.add descarta duplicados.
    """
    types = tuple(
        PackageType(name=type_name, members=tuple(_normalize_members(type_name, members)))
        for type_name, members in manifest.items()
    )
    return Package(types=types, version=api_version)
