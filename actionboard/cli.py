import click


@click.group()
def main() -> None:
    """Actionboard - GitHub Actions status dashboard service."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from ACTIONBOARD_HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Bind port (default: from ACTIONBOARD_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the dashboard API server."""
    import uvicorn

    from actionboard.dashboard_service.settings import BoardSettings

    settings = BoardSettings()

    uvicorn.run(
        "actionboard.dashboard_service.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


# ---------------------------------------------------------------------------
# Configuration document management
# ---------------------------------------------------------------------------


def _document_store():
    """Build the document store from ACTIONBOARD_* settings, with logging set up."""
    from actionboard.dashboard_service.app import create_document_store
    from actionboard.dashboard_service.log import setup_logging
    from actionboard.dashboard_service.settings import BoardSettings

    settings = BoardSettings()
    setup_logging(settings.log_level)
    return create_document_store(settings)


@main.group()
def config() -> None:
    """Inspect and maintain the stored dashboard configuration."""


@config.command()
@click.option("--all", "show_all", is_flag=True, default=False, help="Print the whole document, not just the active view.")
def show(show_all: bool) -> None:
    """Print the configuration as JSON."""
    import anyio

    from actionboard.dashboard_service.managers.workflows import active_configuration_of
    from actionboard.dashboard_service.models.document import serialize_document

    documents = _document_store()
    loaded = anyio.run(documents.load)
    if show_all:
        click.echo(serialize_document(loaded.document).decode())
    else:
        click.echo(active_configuration_of(loaded.document).model_dump_json(by_alias=True, indent=2))


@config.command()
@click.option("--dry-run", is_flag=True, default=False, help="Print the migrated document without saving it.")
def migrate(dry_run: bool) -> None:
    """Rewrite a legacy or missing document in the canonical layout."""
    import anyio

    from actionboard.dashboard_service.models.document import serialize_document

    documents = _document_store()
    loaded = anyio.run(documents.load)
    if not loaded.migrated:
        click.echo(f"Configuration '{documents.key}' is already canonical.")
        return
    if dry_run:
        click.echo(serialize_document(loaded.document).decode())
        return

    async def _keep(_document) -> None:
        return None

    anyio.run(documents.mutate, _keep)
    click.echo(f"Configuration '{documents.key}' migrated from {loaded.shape} layout.")


@config.command()
def validate() -> None:
    """Check that the document parses and its invariants hold."""
    import anyio

    from actionboard.dashboard_service.errors import BoardError

    documents = _document_store()
    try:
        loaded = anyio.run(documents.load)
    except BoardError as exc:
        click.echo(f"Configuration '{documents.key}' is invalid: {exc.message}", err=True)
        raise SystemExit(1) from exc

    document = loaded.document
    click.echo(f"key: {documents.key}")
    click.echo(f"stored: {'yes' if loaded.exists else 'no (default document)'}")
    click.echo(f"layout: {loaded.shape}")
    click.echo(f"dashboards: {len(document.dashboards)}")
    click.echo(f"workflows: {sum(len(d.workflows) for d in document.dashboards)}")
    if not document.is_consistent():
        click.echo("Active dashboard id does not resolve to a dashboard.", err=True)
        raise SystemExit(1)
    click.echo("ok")


if __name__ == "__main__":
    main()
