"""Command-line interface for drive-organizer-mcp."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from drive_organizer_mcp.__version__ import __version__


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    envvar="DRIVE_ORGANIZER_LOG_LEVEL",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
def main(log_level: str) -> None:
    """Drive Organizer MCP - path-based Google Drive organization.

    Lists, searches, reads, moves and renames Drive items by path, and runs
    bulk organization plans.
    """
    logging.basicConfig(level=log_level.upper())


@main.command()
@click.option("--client-id", envvar="GOOGLE_OAUTH_CLIENT_ID", help="Google OAuth client ID")
@click.option(
    "--client-secret", envvar="GOOGLE_OAUTH_CLIENT_SECRET", help="Google OAuth client secret"
)
def setup(client_id: str | None, client_secret: str | None) -> None:
    """Set up Google Drive OAuth authentication.

    This will:
    1. Open browser for OAuth2 consent flow
    2. Store tokens at ./.drive-organizer-mcp/tokens.json

    Requires:
    - GOOGLE_OAUTH_CLIENT_ID environment variable or --client-id option
    - GOOGLE_OAUTH_CLIENT_SECRET environment variable or --client-secret option
    """
    from drive_organizer_mcp.auth import OAuthManager

    manager = OAuthManager()

    if manager.has_valid_tokens():
        click.echo("✓ Already authenticated!")
        click.echo(f"Token stored at: {manager.token_path}")
        click.echo("")

        if not click.confirm("Re-authenticate?"):
            return

    if not client_id or not client_secret:
        click.echo("❌ Error: OAuth client credentials required")
        click.echo("")
        click.echo("Set environment variables:")
        click.echo("  export GOOGLE_OAUTH_CLIENT_ID='your-client-id'")
        click.echo("  export GOOGLE_OAUTH_CLIENT_SECRET='your-client-secret'")
        click.echo("")
        click.echo("Or pass as options:")
        click.echo("  drive-organizer setup --client-id=... --client-secret=...")
        sys.exit(1)

    click.echo("Starting OAuth authentication flow...")
    click.echo("Browser will open for Google consent...")
    click.echo("")

    try:
        asyncio.run(manager.authenticate(client_id=client_id, client_secret=client_secret))
        click.echo("✓ Authentication successful!")
        click.echo(f"Token stored at: {manager.token_path}")
        click.echo("")
        click.echo("Run 'drive-organizer doctor' to verify setup.")
    except Exception as e:
        click.echo(f"❌ Authentication failed: {e}")
        sys.exit(1)


@main.command()
def mcp() -> None:
    """Start the MCP server over stdio.

    Authentication is required before starting the server.
    Run 'drive-organizer setup' if not already authenticated.
    """
    from drive_organizer_mcp.auth import OAuthManager, TokenStatus
    from drive_organizer_mcp.server import main as server_main

    manager = OAuthManager()
    status, _ = manager.get_status()

    if status == TokenStatus.MISSING:
        click.echo("❌ Not authenticated. Run 'drive-organizer setup' first.")
        sys.exit(1)

    if status == TokenStatus.INVALID:
        click.echo("❌ Token file corrupted. Run 'drive-organizer setup' to re-authenticate.")
        sys.exit(1)

    try:
        click.echo("Starting Drive Organizer MCP server...", err=True)
        server_main()
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@main.command("run-plan")
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Validate the plan without touching Drive")
def run_plan(plan_file: Path, dry_run: bool) -> None:
    """Execute a bulk organization plan from a YAML file.

    The plan has the same shape as the bulk_move tool input:

    \b
        planName: Archive 2023
        planDescription: Move last year's reports
        operations:
          - type: move_file
            sourceId: 1AbC...
            sourcePath: /Reports/q4.pdf
            destinationParentId: 1XyZ...
            destinationPath: /Archive/2023
            reason: Year-end archive

    Prints the result as JSON and exits with status 1 if any operation failed.
    """
    from drive_organizer_mcp.config import DriveSettings
    from drive_organizer_mcp.errors import DriveError
    from drive_organizer_mcp.operations import BulkExecutor, load_plan, validate_operation

    try:
        plan = load_plan(plan_file)
    except DriveError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if dry_run:
        invalid = 0
        click.echo(f"Plan: {plan.plan_name} ({len(plan.operations)} operations)")
        for i, operation in enumerate(plan.operations, 1):
            try:
                validate_operation(operation)
                click.echo(f"  [OK] {i}. {operation.type} {operation.source_path}")
            except DriveError as e:
                invalid += 1
                click.echo(f"  [INVALID] {i}. {operation.type}: {e}")
        if invalid:
            sys.exit(1)
        return

    from drive_organizer_mcp.auth import TokenStorage
    from drive_organizer_mcp.server.drive_server import build_adapter

    settings = DriveSettings.from_env()

    async def execute() -> dict:
        adapter = build_adapter(settings, TokenStorage(settings.token_path))
        executor = BulkExecutor(adapter)
        executor.set_progress_callback(lambda msg: click.echo(msg, err=True))
        try:
            result = await executor.execute(plan)
        finally:
            await adapter.client.aclose()
        return result.to_dict()

    try:
        result = asyncio.run(execute())
    except DriveError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result, indent=2))
    if not result["success"]:
        sys.exit(1)


@main.command()
def doctor() -> None:
    """Check installation and authentication status.

    Verifies:
    1. Python dependencies installed
    2. OAuth client credentials configured
    3. Token validity
    """
    from drive_organizer_mcp.auth import OAuthManager, TokenStatus
    from drive_organizer_mcp.config import DriveSettings

    click.echo("Drive Organizer MCP Status:")
    click.echo("")

    click.echo("Dependencies:")
    try:
        import google.auth  # noqa: F401
        import google_auth_oauthlib  # noqa: F401
        import mcp  # noqa: F401

        click.echo("  ✓ google-auth installed")
        click.echo("  ✓ google-auth-oauthlib installed")
        click.echo("  ✓ mcp installed")
    except ImportError as e:
        click.echo(f"  ❌ Missing dependency: {e}")
        sys.exit(1)

    click.echo("")

    settings = DriveSettings.from_env()
    click.echo("Client credentials:")
    if settings.has_client_credentials:
        click.echo("  ✓ GOOGLE_OAUTH_CLIENT_ID / GOOGLE_OAUTH_CLIENT_SECRET set")
    else:
        click.echo("  ⚠️  Not configured (tokens cannot be refreshed)")

    click.echo("")

    manager = OAuthManager()
    status, stored = manager.get_status()

    click.echo("Authentication:")
    click.echo(f"  Token file: {manager.token_path}")

    if status == TokenStatus.MISSING:
        click.echo("  ❌ Not authenticated")
        click.echo("")
        click.echo("Run 'drive-organizer setup' to authenticate.")
        sys.exit(1)
    elif status == TokenStatus.INVALID:
        click.echo("  ❌ Token file corrupted")
        click.echo("")
        click.echo("Run 'drive-organizer setup' to re-authenticate.")
        sys.exit(1)
    elif status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Token expired (can be refreshed)")
        click.echo("")
        click.echo("Token will refresh automatically on use.")
    elif status == TokenStatus.VALID:
        click.echo("  ✓ Authenticated")
        if stored and stored.token.expires_at:
            click.echo(
                f"  Token expires: {stored.token.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
            )
            click.echo(f"  Scopes: {len(stored.token.scopes)} configured")

    click.echo("")

    if status in (TokenStatus.VALID, TokenStatus.EXPIRED):
        click.echo("✓ Ready to use!")


if __name__ == "__main__":
    main()
