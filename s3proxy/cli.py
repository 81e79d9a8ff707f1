"""Command line entry point: s3proxy [-b host:port] [-v] [-c keyfile]."""

from pathlib import Path
from typing import Optional

import structlog
import typer
import uvicorn
from pydantic import ValidationError

from . import __version__
from .config import Settings
from .errors import StartupError
from .logging_config import setup_logging
from .main import create_app

app = typer.Typer(
    name="s3proxy",
    help="Reverse proxy for S3-compatible object storage",
    add_completion=False,
)

def version_callback(value: bool) -> None:
    if value:
        print(f"s3proxy version {__version__}")
        raise typer.Exit()

def build_settings(
    bind: Optional[str] = None,
    verbose: bool = False,
    credentials: Optional[Path] = None,
    signed_url: bool = False,
    readiness_buckets: Optional[str] = None,
) -> Settings:
    """Environment/.env settings with explicitly passed flags on top."""
    overrides = {}
    if bind is not None:
        overrides["bind"] = bind
    if verbose:
        overrides["verbose"] = True
    if credentials is not None:
        overrides["credentials_file"] = credentials
    if signed_url:
        overrides["signed_url"] = True
    if readiness_buckets is not None:
        overrides["readiness_buckets"] = readiness_buckets
    return Settings(**overrides)

@app.command()
def serve(
    bind: Optional[str] = typer.Option(None, "--bind", "-b", help="Bind address"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show access log"),
    credentials: Optional[Path] = typer.Option(
        None, "--credentials", "-c",
        help="The path to the keyfile. If not present, the default credential chain is used.",
    ),
    signed_url: bool = typer.Option(False, "--signed-url", help="Redirect GETs to presigned URLs"),
    readiness_buckets: Optional[str] = typer.Option(
        None, "--readiness-buckets", help="Comma-separated buckets probed by /readiness"
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Serve the proxy until interrupted."""
    try:
        settings = build_settings(bind, verbose, credentials, signed_url, readiness_buckets)
    except ValidationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1)

    setup_logging(settings.verbose)
    logger = structlog.get_logger()
    try:
        proxy_app = create_app(settings)
    except StartupError as exc:
        logger.error("startup_failed", error=str(exc))
        raise typer.Exit(code=1)

    logger.info("listening", bind=settings.bind)
    uvicorn.run(proxy_app, host=settings.host, port=settings.port, access_log=False)

def main() -> None:
    app()
