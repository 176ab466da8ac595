"""CLI entry point for daytrack-server."""

import asyncio

import typer
import uvicorn

from daytrack_server import __version__
from daytrack_server.core.config import settings

app = typer.Typer(
    name="daytrack-server",
    help="Personal daily activity time tracker API",
    no_args_is_help=True,
)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        daytrack-server serve
        daytrack-server serve --host 0.0.0.0 --port 8080 --reload
    """
    uvicorn.run(
        "daytrack_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"daytrack-server v{__version__}")


async def _issue_key(user_id: str | None, name: str) -> tuple[str, str]:
    from daytrack_server.core.api_keys import create_api_key_for_user, create_service_key
    from daytrack_server.core.database import get_session

    async with get_session() as session:
        if user_id is None:
            api_key, raw_key = await create_service_key(name=name, session=session)
        else:
            api_key, raw_key = await create_api_key_for_user(
                user_id=user_id, name=name, session=session
            )
        return api_key.key_prefix, raw_key


async def _revoke_key(key_prefix: str) -> int:
    from daytrack_server.core.api_keys import revoke_keys_by_prefix
    from daytrack_server.core.database import get_session

    async with get_session() as session:
        return await revoke_keys_by_prefix(key_prefix, session)


@app.command("issue-key")
def issue_key(
    user_id: str = typer.Argument(..., help="Owner id the key resolves to"),
    name: str = typer.Option("CLI key", help="Human-readable key name"),
) -> None:
    """Issue a user-scoped API key. The raw key is printed once."""
    from daytrack_server.core.auth import OWNER_ID_PATTERN

    if not OWNER_ID_PATTERN.match(user_id):
        raise typer.BadParameter(
            "must be 1-100 alphanumeric, _ or - characters", param_hint="USER_ID"
        )

    key_prefix, raw_key = asyncio.run(_issue_key(user_id, name))
    typer.echo(f"Issued key {key_prefix} for {user_id}")
    typer.echo(raw_key)


@app.command("issue-service-key")
def issue_service_key(
    name: str = typer.Option("Service key", help="Human-readable key name"),
) -> None:
    """Issue a service-level API key (owner passed per request in X-User-Id)."""
    key_prefix, raw_key = asyncio.run(_issue_key(None, name))
    typer.echo(f"Issued service key {key_prefix}")
    typer.echo(raw_key)


@app.command("revoke-key")
def revoke_key(
    key_prefix: str = typer.Argument(..., help="Key prefix as shown when issued (dtk_xxxxxxxx)"),
) -> None:
    """Revoke active keys by prefix."""
    revoked = asyncio.run(_revoke_key(key_prefix))
    if not revoked:
        typer.echo(f"No active key with prefix {key_prefix}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Revoked {revoked} key(s)")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
