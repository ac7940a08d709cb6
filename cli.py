#!/usr/bin/env python3
"""
Notekeeper CLI.

Primary entry point for all application operations.
Use --service to select what to run, --action to control the server lifecycle.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service health --debug
    python cli.py --service config
    python cli.py --service test --test-type unit
    python cli.py --service init-db
    python cli.py --service create-admin --username root --email root@example.com
"""

import asyncio
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import click
import structlog

from notekeeper.core.logging import get_logger, log_with_source, setup_logging

PROJECT_ROOT = Path(__file__).parent


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _server_stop(logger, port: int) -> None:
    """Stop a running server by finding its process on the port."""
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No server running on port {port}.")
        return

    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})

    click.echo(f"Server on port {port} stopped (PID: {', '.join(str(p) for p in pids)}).")


def _server_status(port: int) -> None:
    """Check if the server is running on a port."""
    pids = _find_process_on_port(port)
    if pids:
        click.echo(f"Server is running on port {port} (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"Server is not running on port {port}.")


def _get_server_port(port: int | None) -> int:
    """Get the port from argument or config."""
    if port is not None:
        return port
    from notekeeper.core.config import get_app_config
    return get_app_config().application.server.port


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "health", "config", "test", "info", "migrate", "init-db", "create-admin"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Lifecycle action for the server.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--host",
    default=None,
    help="Server host.",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Server port.",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (server only).",
)
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test type to run.",
)
@click.option(
    "--coverage",
    is_flag=True,
    help="Run tests with coverage.",
)
@click.option(
    "--migrate-action",
    type=click.Choice(["upgrade", "downgrade", "current", "history"]),
    default="current",
    help="Migration action.",
)
@click.option(
    "--revision",
    default="head",
    help="Target revision for upgrade/downgrade.",
)
@click.option(
    "--username",
    default=None,
    help="Admin username (create-admin).",
)
@click.option(
    "--email",
    default=None,
    help="Admin email (create-admin).",
)
@click.option(
    "--password",
    default=None,
    help="Admin password (create-admin). Prompted when omitted.",
)
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
    coverage: bool,
    migrate_action: str,
    revision: str,
    username: str | None,
    email: str | None,
    password: str | None,
) -> None:
    """
    Notekeeper CLI.

    Use --service to select what to run. For the server, use --action
    to control lifecycle (start/stop/restart/status).

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --action stop
        python cli.py --service server --action restart --port 8099
        python cli.py --service health --debug
        python cli.py --service config
        python cli.py --service test --test-type unit --coverage
        python cli.py --service migrate --migrate-action upgrade
        python cli.py --service init-db
        python cli.py --service create-admin --username root --email root@example.com
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "action": action, "log_level": log_level})

    if service == "server" and action != "start":
        server_port = _get_server_port(port)

        if action == "stop":
            _server_stop(logger, server_port)
            return
        elif action == "status":
            _server_status(server_port)
            return
        elif action == "restart":
            _server_stop(logger, server_port)
            time.sleep(2)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "test":
        run_tests(logger, test_type, coverage)
    elif service == "info":
        show_info(logger)
    elif service == "migrate":
        run_migrations(logger, migrate_action, revision)
    elif service == "init-db":
        init_db(logger)
    elif service == "create-admin":
        create_admin(logger, username, email, password)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from notekeeper.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load configuration.", extra={"error": str(e)})
        click.echo(
            click.style("Error: Could not load config/settings/application.yaml.", fg="red"),
            err=True,
        )
        sys.exit(1)

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "notekeeper.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def check_health(logger) -> None:
    """Check application health by loading configuration, secrets and the app."""
    click.echo("Checking application health...\n")

    checks = []

    try:
        from notekeeper.core.config import get_app_config
        app_config = get_app_config()
        checks.append(("YAML configuration", True, f"App: {app_config.application.name}"))
        logger.debug("Configuration loaded", extra={"app_name": app_config.application.name})
    except (FileNotFoundError, ValueError) as e:
        checks.append(("YAML configuration", False, str(e)))
        logger.error("Configuration failed", extra={"error": str(e)})

    try:
        from pydantic import ValidationError

        from notekeeper.core.config import get_settings
        get_settings()
        checks.append(("Secrets (config/.env)", True, None))
    except ValidationError as e:
        checks.append(("Secrets (config/.env)", False, f"{e.error_count()} missing or invalid"))
        logger.warning("Secrets not configured", extra={"error": str(e)})

    try:
        from notekeeper.core.startup_checks import StartupSecurityError, run_startup_checks
        run_startup_checks()
        checks.append(("Startup security checks", True, None))
    except StartupSecurityError as e:
        checks.append(("Startup security checks", False, str(e)))
    except (FileNotFoundError, ValueError) as e:
        checks.append(("Startup security checks", False, str(e)))

    try:
        from notekeeper.main import get_app
        app = get_app()
        checks.append(("FastAPI application", True, f"Title: {app.title}, routes: {len(app.routes)}"))
        logger.debug("FastAPI app loaded", extra={"title": app.title})
    except (FileNotFoundError, ValueError) as e:
        checks.append(("FastAPI application", False, str(e)))
        logger.error("FastAPI app failed", extra={"error": str(e)})

    click.echo("Health Check Results:")
    click.echo("-" * 50)

    all_passed = True
    for name, passed, detail in checks:
        status = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
        if not passed:
            all_passed = False

    click.echo("-" * 50)

    if all_passed:
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        sys.exit(1)


def _echo_section(values: dict, indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger) -> None:
    """Display loaded configuration. Secrets are never printed."""
    click.echo("Application Configuration:\n")

    from notekeeper.core.config import get_app_config

    try:
        app_config = get_app_config()
    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)

    sections = {
        "Application": app_config.application,
        "Database": app_config.database,
        "Logging": app_config.logging,
        "Feature Flags": app_config.features,
        "Security": app_config.security,
        "Cache": app_config.cache,
    }
    for title, schema in sections.items():
        click.echo(f"{title} Settings (from YAML):")
        click.echo("-" * 40)
        _echo_section(schema.model_dump())
        click.echo()

    logger.info("Configuration displayed successfully")


def run_tests(logger, test_type: str, coverage: bool) -> None:
    """Run the test suite."""
    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})

    cmd = [sys.executable, "-m", "pytest"]

    if test_type == "unit":
        cmd.append("tests/unit")
    elif test_type == "integration":
        cmd.append("tests/integration")
    else:
        cmd.append("tests/")

    cmd.append("-v")

    if coverage:
        cmd.extend(["--cov=notekeeper", "--cov-report=term-missing"])

    click.echo(f"Running: {' '.join(cmd)}\n")

    result = subprocess.run(cmd)
    sys.exit(result.returncode)


def run_migrations(logger, migrate_action: str, revision: str) -> None:
    """Run database migrations using Alembic."""
    logger.info(
        "Running migrations",
        extra={"action": migrate_action, "revision": revision},
    )

    alembic_ini = PROJECT_ROOT / "alembic.ini"

    if not alembic_ini.exists():
        click.echo(click.style("Error: alembic.ini not found.", fg="red"), err=True)
        sys.exit(1)

    cmd = [sys.executable, "-m", "alembic", "-c", str(alembic_ini)]

    if migrate_action == "upgrade":
        cmd.extend(["upgrade", revision])
        click.echo(f"Upgrading database to revision: {revision}")
    elif migrate_action == "downgrade":
        cmd.extend(["downgrade", revision])
        click.echo(f"Downgrading database to revision: {revision}")
    elif migrate_action == "current":
        cmd.append("current")
        click.echo("Showing current database revision...")
    elif migrate_action == "history":
        cmd.extend(["history", "--verbose"])
        click.echo("Showing migration history...")

    click.echo()

    result = subprocess.run(cmd, cwd=PROJECT_ROOT)
    if result.returncode != 0:
        logger.error("Migration failed", extra={"exit_code": result.returncode})
        sys.exit(result.returncode)
    logger.info("Migration completed successfully")


def init_db(logger) -> None:
    """Create every table directly from the models, without Alembic."""
    from notekeeper.core.database import create_all_tables, dispose_engine

    async def _run() -> None:
        try:
            await create_all_tables()
        finally:
            await dispose_engine()

    asyncio.run(_run())
    log_with_source(logger, "cli", "info", "Database initialized")
    click.echo(click.style("Database tables created.", fg="green"))


def create_admin(logger, username: str | None, email: str | None, password: str | None) -> None:
    """Create an ADMIN account."""
    from notekeeper.core.database import dispose_engine, get_session_factory
    from notekeeper.core.exceptions import ConflictError, ValidationError
    from notekeeper.models.user import Role
    from notekeeper.services.auth import AuthService

    username = username or click.prompt("Username")
    email = email or click.prompt("Email")
    password = password or click.prompt("Password", hide_input=True, confirmation_prompt=True)

    async def _run() -> str:
        try:
            async with get_session_factory()() as session:
                user = await AuthService(session).create_account(
                    username=username,
                    email=email,
                    password=password,
                    role=Role.ADMIN,
                )
                await session.commit()
                return user.id
        finally:
            await dispose_engine()

    try:
        user_id = asyncio.run(_run())
    except (ConflictError, ValidationError) as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    log_with_source(logger, "cli", "info", "Admin created", username=username, user_id=user_id)
    click.echo(click.style(f"Admin '{username}' created (ID: {user_id}).", fg="green"))


def show_info(logger) -> None:
    """Display application information."""
    from notekeeper.core.config import get_app_config

    try:
        app_settings = get_app_config().application
    except (FileNotFoundError, ValueError) as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load application.yaml configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    click.echo(f"{app_settings.name} {app_settings.version}")
    click.echo("=" * 40)
    click.echo(f"Description: {app_settings.description}")
    click.echo(f"Environment: {app_settings.environment}")
    click.echo()
    click.echo("Services (--service):")
    click.echo("  server         FastAPI development server")
    click.echo("  health         Check configuration, secrets and app wiring")
    click.echo("  config         Display configuration")
    click.echo("  test           Run test suite")
    click.echo("  migrate        Database migrations (Alembic)")
    click.echo("  init-db        Create tables from the models")
    click.echo("  create-admin   Create an ADMIN account")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Server actions (--action):")
    click.echo("  start          Start the server (default)")
    click.echo("  stop           Stop a running server")
    click.echo("  restart        Stop then start")
    click.echo("  status         Check if running")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
