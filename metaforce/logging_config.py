# -*- coding: utf-8 -*-
"""
Logging Configuration
=====================
Configura a saida de log do Metaforce em stdout.

Em producao/staging os logs saem em JSON (python-json-logger) para coleta
por Fluentd/Loki; em desenvolvimento usam formato legivel.

Usage:
    from metaforce.logging_config import setup_logging

    setup_logging()
"""

import os
import sys
import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

JSON_ENVIRONMENTS = ("production", "staging")


def build_formatter(json_format: bool) -> logging.Formatter:
    """Cria o formatter usado pelo handler de stdout."""
    if json_format:
        return jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger", "asctime": "timestamp"}
        )
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    logger_name: str = "metaforce"
) -> logging.Logger:
    """
    Configura o logger do pacote.

    Args:
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR)
        json_format: Forca formato JSON (auto-detectado por ENVIRONMENT se None)
        logger_name: Logger a configurar (padrao: logger raiz do pacote)

    Returns:
        O logger configurado
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    environment = os.getenv("ENVIRONMENT", "development")

    if json_format is None:
        json_format = environment in JSON_ENVIRONMENTS

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(json_format))
    logger.addHandler(handler)

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger.debug(f"Logging configured: level={level}, json={json_format}, env={environment}")
    return logger
