"""
Metrics Proxy CLI: lädt Settings, konfiguriert Logging und startet den Server.
"""

import logging
import sys

import click
from click.core import ParameterSource
import uvicorn

from .config import DEFAULT_LOG_LEVEL, load_settings
from .main import create_app
from .validators import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = DEFAULT_LOG_LEVEL):
    """Initialisiert das Root-Logging"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@click.command()
@click.option("--port", type=int, default=None, help="Port for the HTTP server to listen on")
@click.option("--host", default=None, help="Interface for the HTTP server to bind to")
@click.option("--path", "metrics_path", default=None, help="Path serving the aggregated metrics")
@click.option("--url", "urls", multiple=True, help="URL to fetch from (can be specified multiple times)")
@click.option(
    "--prefix", "prefixes", multiple=True,
    help="Prefix for lines to include in the output (can be specified multiple times). "
         "If no prefixes are given, all lines are included."
)
@click.option("--verbose/--no-verbose", default=None, help="Enable or disable verbose logging")
@click.option("--log-level", default=None, help="Set logging level")
def main(port, host, metrics_path, urls, prefixes, verbose, log_level):
    """
    Metrics Proxy: fetcht alle Upstream-URLs parallel und liefert
    die kombinierten (optional gefilterten) Bodies aus.
    """
    # Nicht gesetzte Flags dürfen das Environment nicht überschreiben
    ctx = click.get_current_context()
    if ctx.get_parameter_source("verbose") == ParameterSource.DEFAULT:
        verbose = None

    try:
        settings = load_settings(
            require_urls=True,
            port=port,
            host=host,
            metrics_path=metrics_path,
            upstream_urls=list(urls),
            prefixes=list(prefixes),
            verbose=verbose,
            log_level=log_level,
        )
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Error: {e.message}")
        sys.exit(1)

    setup_logging(settings.log_level)

    app = create_app(settings)
    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
