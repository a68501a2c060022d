"""Command-line interface for StudyBuddy.

This module provides the CLI commands for running and managing
the StudyBuddy application.
"""

import asyncio
from typing import NoReturn

import click

from studybuddy.core.config import get_settings
from studybuddy.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="StudyBuddy")
def cli() -> None:
    """StudyBuddy - study groups with a realtime message board.

    Settings are read from STUDYBUDDY_* environment variables or a .env file.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable auto-reload (default: on in development)",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool | None) -> None:
    """Start the StudyBuddy server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers
    if reload is None:
        reload = settings.is_development

    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        click.echo(
            "Error: SQLite does not support multiple worker processes. "
            "Use --workers 1 or switch to PostgreSQL.",
            err=True,
        )
        raise SystemExit(1)

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting StudyBuddy server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "studybuddy.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command("init-db")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Create all database tables.

    Meant for development. Production databases are managed with
    ``alembic upgrade head``.
    """
    from studybuddy.infrastructure.persistence import models  # noqa: F401
    from studybuddy.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize():
        db = get_db_manager()
        try:
            await db.create_tables()
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command("issue-token")
@click.option("--subject", required=True, help="Auth provider subject id (e.g. a UUID)")
@click.option("--email", required=True, help="Email claim")
@click.option("--name", default=None, help="Display name claim")
@click.option("--hours", type=int, default=1, show_default=True, help="Token lifetime")
def issue_token(subject: str, email: str, name: str | None, hours: int) -> None:
    """Mint a development token signed with the configured JWT secret."""
    from datetime import timedelta

    from studybuddy.infrastructure.auth import jwt_service

    settings = get_settings()
    if settings.is_production:
        click.echo("ERROR: Tokens are issued by the auth provider in production.", err=True)
        raise SystemExit(1)

    click.echo(
        jwt_service.create_token(subject, email, name=name, expires_delta=timedelta(hours=hours))
    )


@cli.command()
def info() -> None:
    """Display StudyBuddy configuration and system information."""
    settings = get_settings()

    click.echo(f"""
StudyBuddy v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Pool Size:    {settings.db_pool_size}
  Echo:         {settings.db_echo}

Auth:
  Algorithm:    {settings.jwt_algorithm}
  Audience:     {settings.jwt_audience}
  Identities:   {settings.identity_strategy}

Storage:
  Provider:     {settings.storage_provider}
  Path:         {settings.storage_path}

Messages:
  Page Size:    {settings.message_page_size}
  Max Page:     {settings.max_page_size}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `studybuddy` command is run
    or when using `python -m studybuddy`.
    """
    cli()


if __name__ == "__main__":
    main()
