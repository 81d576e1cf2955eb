from typing import Annotated, List, Optional, Type

import typer
from rich.console import Console
from rich.table import Table

from content_assets.core import config as app_config
from content_assets.core.database import DatabaseManager
from content_assets.core.exceptions import ContentNotFoundError, UnknownContentTypeError
from content_assets.core.logging_config import setup_logging
from content_assets.core.registry import content_registry
from content_assets.models import ContentMixin
from content_assets.services import content_service

app = typer.Typer(
    name="content-assets",
    help="Manage content records and their shared assets.",
    add_completion=False,
)


class GlobalState:
    db_manager: Optional[DatabaseManager] = None


global_state = GlobalState()


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level, e.g. DEBUG or WARNING.", envvar="CONTENT_ASSETS_LOG_LEVEL"),
    ] = None,
):
    """
    Sets up logging and the database before any command runs.
    """
    setup_logging(log_level)
    try:
        global_state.db_manager = DatabaseManager(app_settings=app_config.settings)
    except Exception as e:
        typer.secho(f"Critical error: Could not initialize database: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _db() -> DatabaseManager:
    if global_state.db_manager is None:
        global_state.db_manager = DatabaseManager(app_settings=app_config.settings)
    return global_state.db_manager


def _resolve_type(key: str) -> Type[ContentMixin]:
    try:
        return content_registry.get(key)
    except UnknownContentTypeError:
        typer.secho(
            f"Error: Unknown content type '{key}'. Available: {', '.join(sorted(content_registry.content_types()))}",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)


@app.command("setup-db")
def cli_setup_db():
    """Creates the database tables."""
    _db().create_db_and_tables()
    typer.secho("Database tables created.", fg=typer.colors.GREEN)


@app.command("list-types")
def cli_list_types():
    """Lists the registered content types."""
    table = Table(title="Content types")
    table.add_column("Key")
    table.add_column("Asset scope")
    table.add_column("Class")

    associations = {type_name: association for association, type_name in content_registry.content_associations().items()}
    for key, content_cls in content_registry.content_types().items():
        table.add_row(key, f"Asset.{associations[content_cls.__name__]}", content_cls.__name__)

    Console().print(table)


@app.command("stats")
def cli_stats():
    """Counts assets per content type."""
    with _db().session_scope() as session:
        counts = content_service.count_assets_by_type(session)
    for association, count in counts.items():
        typer.echo(f"{association}: {count}")


@app.command("create")
def cli_create(
    content_type: Annotated[str, typer.Argument(help="Registry key of the content type, e.g. 'poll'.")],
    title: Annotated[str, typer.Option("--title", help="Title of the new content.")],
    description: Annotated[Optional[str], typer.Option("--description", help="Optional description.")] = None,
    category_id: Annotated[Optional[int], typer.Option("--category", help="Category ID.")] = None,
):
    """Creates a content record together with its asset."""
    content_cls = _resolve_type(content_type)
    with _db().session_scope() as session:
        content = content_service.create_content(
            session, content_cls, title=title, description=description, category_id=category_id
        )
        typer.echo(f"Created {content_type} {content.id} ({content.permalink})")


@app.command("search")
def cli_search(
    keywords: Annotated[Optional[List[str]], typer.Argument(help="Match any of these keywords.")] = None,
    content_type: Annotated[Optional[str], typer.Option("--type", "-t", help="Limit to one content type.")] = None,
    phrase: Annotated[Optional[str], typer.Option("--phrase", help="Match this exact phrase.")] = None,
    category_id: Annotated[Optional[int], typer.Option("--category", help="Category ID.")] = None,
    order: Annotated[str, typer.Option("--order", help="One of: date, comment, hottest.")] = "date",
):
    """Searches content by keyword, phrase and category."""
    content_types = [_resolve_type(content_type)] if content_type else None
    if order not in content_service.ORDERINGS:
        typer.secho(
            f"Error: Unknown ordering '{order}'. Expected one of: {', '.join(content_service.ORDERINGS)}",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)

    with _db().session_scope() as session:
        results = content_service.find_content(
            session,
            content_types=content_types,
            keywords=keywords,
            phrase=phrase,
            category=category_id,
            order=order,
        )
        if not results:
            typer.echo("No content found.")
            return
        for content in results:
            key = content_registry.key_for(type(content))
            typer.echo(f"{key}\t{content.id}\t{content.title_with_prefix}")


@app.command("comment")
def cli_comment(
    content_type: Annotated[str, typer.Argument(help="Registry key of the content type.")],
    content_id: Annotated[int, typer.Argument(help="ID of the content record.")],
    body: Annotated[str, typer.Argument(help="Comment text.")],
):
    """Adds a comment to a content record."""
    content_cls = _resolve_type(content_type)
    with _db().session_scope() as session:
        try:
            content = content_service.get_content_or_raise(session, content_cls, content_id)
        except ContentNotFoundError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        content_service.add_comment(session, content, body)
        typer.echo(f"{content_type} {content_id} now has {content.comments_count} comment(s)")


@app.command("archive")
def cli_archive(
    content_type: Annotated[str, typer.Argument(help="Registry key of the content type.")],
    content_id: Annotated[int, typer.Argument(help="ID of the content record.")],
):
    """Toggles the archived flag of a content record."""
    content_cls = _resolve_type(content_type)
    with _db().session_scope() as session:
        try:
            content = content_service.get_content_or_raise(session, content_cls, content_id)
        except ContentNotFoundError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        archived = content_service.toggle_archived(session, content)
        typer.echo(f"{content_type} {content_id} {'archived' if archived else 'unarchived'}")


if __name__ == "__main__":
    app()
