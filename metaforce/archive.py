# -*- coding: utf-8 -*-
"""
Deploy Archive
==============
Monta o ZIP de deploy a partir de um diretorio de projeto.

Os caminhos sao relativos ao diretorio pai da raiz, entao o ZIP tem uma
unica pasta de topo com o nome do proprio diretorio:

    proj/src/classes/Foo.cls  (raiz proj/src)  ->  src/classes/Foo.cls

Links simbolicos: arquivos sao incluidos com o conteudo do alvo; diretorios
linkados nao sao percorridos (os.walk com followlinks=False).

O ZIP e montado em memoria; nenhum arquivo temporario e criado.
"""

import base64
import io
import logging
import os
import zipfile
from pathlib import Path
from typing import List, Tuple, Union

from .exceptions import ArchiveError, SourceUnavailableError

logger = logging.getLogger(__name__)


def _check_source(root: Path):
    if not root.exists():
        raise SourceUnavailableError(f"Diretorio nao encontrado: {root}", path=str(root))
    if not root.is_dir():
        raise SourceUnavailableError(f"Nao e um diretorio: {root}", path=str(root))
    if not os.access(root, os.R_OK | os.X_OK):
        raise SourceUnavailableError(f"Diretorio sem permissao de leitura: {root}", path=str(root))


def collect_entries(source_root: Union[str, os.PathLike]) -> List[Tuple[str, Path]]:
    """
    Lista (caminho_no_zip, caminho_no_disco) de todos os arquivos da raiz

    Raises:
        SourceUnavailableError: Raiz inexistente, ilegivel ou nao diretorio
    """
    root = Path(os.path.abspath(source_root))
    _check_source(root)
    base = root.parent

    def _walk_error(error: OSError):
        raise SourceUnavailableError(f"Erro lendo {error.filename}: {error.strerror}", path=error.filename)

    entries = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            entries.append((path.relative_to(base).as_posix(), path))
    return entries


def build_deploy_archive(source_root: Union[str, os.PathLike]) -> bytes:
    """
    Cria o ZIP de deploy de um diretorio

    Args:
        source_root: Diretorio do projeto (ex: "proj/src")

    Returns:
        Bytes do arquivo ZIP

    Raises:
        SourceUnavailableError: Raiz inexistente, ilegivel ou nao diretorio
        ArchiveError: Falha ao gravar alguma entrada
    """
    entries = collect_entries(source_root)
    zip_buffer = io.BytesIO()

    # mtimes anteriores a 1980 sao gravados como 1980-01-01
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED, strict_timestamps=False) as zf:
        for arcname, path in entries:
            try:
                zf.write(path, arcname)
            except (OSError, ValueError, zipfile.LargeZipFile) as e:
                raise ArchiveError(f"Falha ao adicionar {arcname}: {e}", entry=arcname) from e

    logger.debug(f"Arquivo de deploy criado com {len(entries)} entradas a partir de {source_root}")
    return zip_buffer.getvalue()


def encode_archive(data: bytes) -> str:
    """Codifica o ZIP em base64 para o campo zip_file"""
    return base64.b64encode(data).decode("ascii")
