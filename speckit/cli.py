import asyncio

import click


@click.group()
def main() -> None:
    """Spec Kit - workspace store and pipeline orchestration."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from SPECKIT_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from SPECKIT_PORT or 8700).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the workspace API server."""
    import uvicorn

    from speckit.orchestrator.settings import get_settings

    settings = get_settings()

    uvicorn.run(
        "speckit.orchestrator.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


# ---------------------------------------------------------------------------
# Workspace management
# ---------------------------------------------------------------------------


def _manager():
    from speckit.orchestrator.app import create_workspace_manager
    from speckit.orchestrator.log import setup_logging
    from speckit.orchestrator.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, compact=True)
    return create_workspace_manager(settings)


@main.group()
def workspaces() -> None:
    """Inspect and manage persisted workspaces."""


@workspaces.command("list")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include archived workspaces.")
def list_workspaces(show_all: bool) -> None:
    """List workspaces, most recently updated first."""
    items = asyncio.run(_manager().list_workspaces())
    for workspace in items:
        if workspace.archived and not show_all:
            continue
        flag = " (archived)" if workspace.archived else ""
        title = f"  {workspace.title}" if workspace.title else ""
        click.echo(f"{workspace.id}{flag}  {workspace.updated_at.isoformat()}{title}")


@workspaces.command("create")
@click.argument("org")
@click.argument("repo")
@click.argument("feature")
@click.option("--title", default=None, help="Human-readable title.")
@click.option("--description", default=None, help="Longer description.")
def create_workspace(org: str, repo: str, feature: str, title: str | None, description: str | None) -> None:
    """Create a workspace for ORG/REPO/FEATURE and select it."""
    from speckit.orchestrator.errors import WorkspaceAlreadyExistsError
    from speckit.orchestrator.models.api import WorkspaceCreate
    from speckit.orchestrator.models.workspace import WorkspaceKey

    manager = _manager()
    body = WorkspaceCreate(
        key=WorkspaceKey(org=org, repo=repo, feature=feature),
        title=title,
        description=description,
    )

    async def _create():
        await manager.init()
        return await manager.create_workspace(body)

    try:
        workspace = asyncio.run(_create())
    except WorkspaceAlreadyExistsError as exc:
        raise click.ClickException(f"Workspace '{exc}' already exists.") from None
    click.echo(f"Created {workspace.id}.")


@workspaces.command("archive")
@click.argument("workspace_id")
@click.option("--restore", is_flag=True, default=False, help="Un-archive instead.")
def archive_workspace(workspace_id: str, restore: bool) -> None:
    """Archive the workspace WORKSPACE_ID (org/repo/feature)."""
    from speckit.orchestrator.errors import MalformedIdentifierError, WorkspaceNotFoundError
    from speckit.orchestrator.identifiers import from_id

    try:
        key = from_id(workspace_id)
        workspace = asyncio.run(_manager().archive_workspace(key, archived=not restore))
    except MalformedIdentifierError as exc:
        raise click.ClickException(str(exc)) from None
    except WorkspaceNotFoundError as exc:
        raise click.ClickException(f"Workspace '{exc}' not found.") from None
    state = "archived" if workspace.archived else "restored"
    click.echo(f"Workspace {workspace.id} {state}.")


if __name__ == "__main__":
    main()
