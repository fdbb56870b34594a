"""
Config Validation Module

Validiert die statische Konfiguration (Upstream-URLs, Präfixe, Port, Pfad),
bevor der Server startet.
"""

from typing import List, Optional, Sequence
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = ['http', 'https']
LOG_LEVELS = ['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG']


class ConfigurationError(ValueError):
    """Ungültige oder fehlende Konfiguration"""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def validate_upstream_url(url: str) -> str:
    """
    Validates a single upstream URL.

    Args:
        url: Configured upstream URL

    Returns:
        Validated URL (whitespace stripped)

    Raises:
        ConfigurationError: If URL is empty, too long or malformed

    Examples:
        >>> validate_upstream_url("http://node-exporter:9100/metrics")
        'http://node-exporter:9100/metrics'

        >>> validate_upstream_url("ftp://example.com")
        ConfigurationError("INVALID_URL_SCHEME", ...)
    """
    url = (url or "").strip()

    # Length check
    if not url or len(url) > MAX_URL_LENGTH:
        raise ConfigurationError(
            "INVALID_URL_LENGTH",
            f"URL muss zwischen 1-{MAX_URL_LENGTH} Zeichen sein"
        )

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigurationError("INVALID_URL_FORMAT", f"Ungültiges URL-Format: {url} ({e})")

    # Schema validation (nur http/https erlaubt)
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ConfigurationError(
            "INVALID_URL_SCHEME",
            f"Ungültiges URL-Schema in {url}: '{parsed.scheme}'. Nur http und https erlaubt."
        )

    if not parsed.netloc or not parsed.hostname:
        raise ConfigurationError("INVALID_URL_HOST", f"URL ohne Host: {url}")

    # Port-Syntax prüfen (urlparse wirft erst beim Zugriff)
    try:
        parsed.port
    except ValueError:
        raise ConfigurationError("INVALID_URL_PORT", f"Ungültiger Port in URL: {url}")

    return url


def validate_upstream_urls(urls: Sequence[str], required: bool = True) -> List[str]:
    """
    Validiert alle Upstream-URLs, Reihenfolge bleibt erhalten.

    Raises:
        ConfigurationError: Wenn `required` und keine URL konfiguriert ist
    """
    validated = [validate_upstream_url(url) for url in urls]

    if required and not validated:
        raise ConfigurationError(
            "NO_UPSTREAM_URLS",
            "At least one upstream URL must be specified with --url or UPSTREAM_URLS."
        )

    return validated


def validate_port(port: int) -> int:
    if not 0 < port < 65536:
        raise ConfigurationError("INVALID_PORT", f"Port muss zwischen 1-65535 liegen: {port}")
    return port


def validate_metrics_path(path: Optional[str]) -> str:
    path = (path or "").strip()
    if not path.startswith("/"):
        raise ConfigurationError("INVALID_PATH", f"Pfad muss mit '/' beginnen: {path!r}")
    return path


def validate_log_level(level: Optional[str]) -> str:
    """
    Prüft das Log-Level gegen die Levels, die logging und uvicorn kennen.

    Returns:
        Log-Level in Großbuchstaben
    """
    normalized = (level or "").strip().upper()
    if normalized not in LOG_LEVELS:
        raise ConfigurationError(
            "INVALID_LOG_LEVEL",
            f"Ungültiges Log-Level: {level!r}. Erlaubt: {', '.join(LOG_LEVELS)}"
        )
    return normalized
