"""
Konfiguration aus Environment-Variablen (.env.local / .env) und CLI-Overrides
"""

import logging
import os
import pathlib
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from .validators import (
    ConfigurationError, validate_log_level, validate_metrics_path, validate_port,
    validate_upstream_urls
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_LOG_LEVEL = "INFO"

# Setting -> Environment-Variable
ENV_MAPPING = {
    "host": "PROXY_HOST",
    "port": "PROXY_PORT",
    "metrics_path": "METRICS_PATH",
    "upstream_urls": "UPSTREAM_URLS",
    "prefixes": "METRIC_PREFIXES",
    "verbose": "VERBOSE",
    "log_level": "LOG_LEVEL",
}

LIST_SETTINGS = ("upstream_urls", "prefixes")


class ProxySettings(BaseModel):
    """Unveränderliche Konfiguration für die gesamte Prozess-Laufzeit"""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    metrics_path: str = DEFAULT_METRICS_PATH
    upstream_urls: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()
    verbose: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    model_config = {"frozen": True}


def load_environment(env_dir: Optional[pathlib.Path] = None) -> None:
    """
    Lädt Environment Variables.

    .env.local hat Vorrang (lokal), sonst .env bzw. System-Environment.
    Bereits gesetzte Variablen werden nie überschrieben.
    """
    env_dir = env_dir or pathlib.Path.cwd()
    env_path = env_dir / ".env.local"
    if env_path.exists():
        load_dotenv(dotenv_path=str(env_path))
        logger.debug(f"Loaded environment from {env_path}")
    else:
        load_dotenv()


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _read_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for setting, env_var in ENV_MAPPING.items():
        raw = os.getenv(env_var)
        if raw is None:
            continue
        values[setting] = _split_list(raw) if setting in LIST_SETTINGS else raw.strip()
    return values


def load_settings(require_urls: bool = False, use_env: bool = True, **overrides) -> ProxySettings:
    """
    Baut die Settings aus Environment und expliziten Overrides.

    Overrides mit Wert None oder leerer Liste werden ignoriert, damit
    nicht gesetzte CLI-Flags die Environment-Werte nicht überschreiben.

    Args:
        require_urls: Mindestens eine Upstream-URL verlangen
        use_env: Environment (inkl. .env Dateien) einlesen
        **overrides: Werte mit Vorrang vor dem Environment

    Returns:
        ProxySettings

    Raises:
        ConfigurationError: Bei ungültigen oder fehlenden Werten
    """
    values: Dict[str, Any] = {}
    if use_env:
        load_environment()
        values.update(_read_env())

    for key, value in overrides.items():
        if value is None or (key in LIST_SETTINGS and not value):
            continue
        values[key] = value

    try:
        settings = ProxySettings(**values)
    except ValidationError as e:
        raise ConfigurationError("INVALID_SETTINGS", str(e)) from e

    urls = validate_upstream_urls(settings.upstream_urls, required=require_urls)

    return settings.model_copy(update={
        "port": validate_port(settings.port),
        "metrics_path": validate_metrics_path(settings.metrics_path),
        "upstream_urls": tuple(urls),
        "log_level": validate_log_level(settings.log_level),
    })
