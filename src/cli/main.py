"""Main CLI entry point for the inventory-sync command.

This module provides the Typer application. Each subcommand restores the
sync engine from disk, runs one engine operation, persists the engine
state again and exits with an ExitCode.
"""

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import typer

from src.cli.config import DEFAULT_CONFIG_PATH, ConfigLoader
from src.cli.errors import CLIError
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.cli.prompts import ConsolePrompter
from src.cli.session import Session
from src.inventory_client.errors import APIUnreachableError, InventoryError
from src.models.app_config import AppConfig
from src.models.article import Article, EDITABLE_FIELDS, STYLEABLE_COLUMNS
from src.sync.errors import (
    ArticleValidationError,
    InvalidFieldError,
    UnknownArticleError,
)
from src.sync.models import ConflictChoice, ReconnectChoice

__version__ = "0.1.0"

app = typer.Typer(
    name="inventory-sync",
    help="""Inventory article client with offline mode and conflict-aware sync.

QUICK START:
  inventory-sync init --api-url https://inventory.local/api/article
  inventory-sync pull                      # Load articles from the server
  inventory-sync edit 3 stock 12           # Change a field
  inventory-sync save                      # Save with conflict detection
  inventory-sync offline / online          # Work offline, then reconnect""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

# Module logger
logger = logging.getLogger(__name__)

# Articles created offline have negative ids; "-1" must parse as an argument
NEGATIVE_ARGUMENTS = {"ignore_unknown_options": True}


@dataclass
class CLIOptions:
    """Global options shared by every subcommand."""
    config_path: str = DEFAULT_CONFIG_PATH
    verbosity: int = 0
    no_color: bool = False
    logdir: Optional[str] = None


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    # Configure app-specific logger (not root) to avoid affecting libraries
    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Timestamped filename in local time
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"inventory-sync_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _options(ctx: typer.Context) -> CLIOptions:
    if isinstance(ctx.obj, CLIOptions):
        return ctx.obj
    return CLIOptions()


def _execute(
    ctx: typer.Context,
    action: Callable[[Session, OutputHandler], ExitCode],
    prompter_options: Optional[dict] = None,
) -> None:
    """Run one engine operation inside a restored session.

    Loads the configuration, restores the session, runs ``action``,
    persists the session (also after failures) and exits with the
    resulting code. Typed errors are mapped to exit codes here.
    """
    options = _options(ctx)
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)

    try:
        config = ConfigLoader.load(options.config_path)
        if config.debug and options.verbosity < 2:
            _configure_logging(2, options.logdir)
        output = OutputHandler(
            verbosity=options.verbosity,
            no_color=options.no_color,
            stripe_color=config.stripe_color,
            row_height=config.row_height,
        )
        prompter = ConsolePrompter(output, **(prompter_options or {}))
        session = Session.open(config, prompter)
        try:
            exit_code = action(session, output)
        finally:
            session.persist()

    except (ArticleValidationError, InvalidFieldError) as e:
        output.error(str(e))
        exit_code = ExitCode.VALIDATION_ERROR

    except UnknownArticleError as e:
        output.error(str(e))
        exit_code = ExitCode.GENERAL_ERROR

    except APIUnreachableError as e:
        output.error(str(e))
        exit_code = ExitCode.NETWORK_ERROR

    except (InventoryError, CLIError) as e:
        logger.error(f"Command failed: {e}")
        output.error(str(e))
        exit_code = ExitCode.GENERAL_ERROR

    except typer.Exit:
        raise

    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        exit_code = ExitCode.GENERAL_ERROR

    raise typer.Exit(int(exit_code))


def _report(output: OutputHandler, result) -> ExitCode:
    output.print_result(result)
    return ExitCode.from_result(result)


def _save_if_auto(session: Session, output: OutputHandler) -> ExitCode:
    """Save right away when online and auto-save is enabled."""
    engine = session.engine
    if not session.config.auto_save or engine.is_offline:
        return ExitCode.SUCCESS
    with output.spinner("Saving changes..."):
        result = engine.save_changes()
    return _report(output, result)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_path: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the configuration file",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        is_eager=True,
    ),
) -> None:
    """Inventory article client with offline mode and conflict-aware sync."""
    if version:
        typer.echo(f"inventory-sync version {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    ctx.obj = CLIOptions(
        config_path=config_path,
        verbosity=verbosity,
        no_color=no_color,
        logdir=logdir,
    )


@app.command()
def init(
    ctx: typer.Context,
    api_url: Optional[str] = typer.Option(
        None,
        "--api-url",
        help="Base URL of the article endpoint",
    ),
    no_verify_tls: bool = typer.Option(
        False,
        "--no-verify-tls",
        help="Do not verify TLS certificates (self-signed development servers)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing configuration file",
    ),
) -> None:
    """Create the configuration file."""
    options = _options(ctx)
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)

    if os.path.exists(options.config_path) and not force:
        output.error(f"Configuration already exists at {options.config_path} (use --force)")
        raise typer.Exit(int(ExitCode.GENERAL_ERROR))

    config = AppConfig(verify_tls=not no_verify_tls)
    if api_url:
        if not api_url.startswith(("http://", "https://")):
            output.error("API URL must start with http:// or https://")
            raise typer.Exit(int(ExitCode.GENERAL_ERROR))
        config.api_url = api_url.rstrip("/")

    try:
        ConfigLoader.save(options.config_path, config)
    except CLIError as e:
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(int(ExitCode.GENERAL_ERROR))

    output.success(f"Configuration written to {options.config_path}")
    output.info(f"  API URL: {config.api_url}")
    output.info("Next step: run 'inventory-sync pull' to load articles")
    raise typer.Exit(int(ExitCode.SUCCESS))


@app.command()
def pull(
    ctx: typer.Context,
    force: bool = typer.Option(
        False,
        "--force",
        help="Discard unsaved local changes",
    ),
) -> None:
    """Load articles from the server (or the local snapshot when unreachable)."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        engine = session.engine
        if engine.has_local_changes() and not force:
            output.warning(
                "You have unsaved local changes. Run 'save' or 'online' first, "
                "or use --force to discard them."
            )
            return ExitCode.CONFLICTS
        engine.change_tracker.clear()
        with output.spinner("Loading articles..."):
            result = engine.load_articles()
        return _report(output, result)

    _execute(ctx, action)


@app.command("list")
def list_articles(
    ctx: typer.Context,
    changed: bool = typer.Option(
        False,
        "--changed",
        help="Only show articles with unsaved changes",
    ),
) -> None:
    """Show the working collection."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        engine = session.engine
        articles: List[Article] = engine.articles
        if changed:
            articles = [a for a in articles if engine.change_tracker.is_changed(a.id)]
        title = f"Articles ({engine.mode.value})"
        output.print_articles(articles, engine.change_tracker.changed_ids(), title=title)
        return ExitCode.SUCCESS

    _execute(ctx, action)


@app.command(context_settings=NEGATIVE_ARGUMENTS)
def show(
    ctx: typer.Context,
    article_id: int = typer.Argument(..., help="Article id"),
) -> None:
    """Show one article with its formatting."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        article = session.engine.find_article(article_id)
        output.print_article(article, session.engine.change_tracker.is_changed(article_id))
        return ExitCode.SUCCESS

    _execute(ctx, action)


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Article name"),
    article_type: str = typer.Option(..., "--type", help="Article category"),
    unit: str = typer.Option(..., "--unit", help="Unit of measure"),
    stock: int = typer.Option(0, "--stock", help="Units in stock"),
    price: float = typer.Option(0.0, "--price", help="Price per unit"),
    location: str = typer.Option("", "--location", help="Storage location"),
    status: str = typer.Option("", "--status", help="Status text"),
    link: str = typer.Option("", "--link", help="External link"),
) -> None:
    """Add a new article (offline: kept locally until the next sync)."""
    draft = Article(
        name=name,
        type=article_type,
        unit=unit,
        stock=stock,
        price=price,
        location=location,
        status=status,
        link=link,
    )

    def action(session: Session, output: OutputHandler) -> ExitCode:
        with output.spinner("Adding article..."):
            result = session.engine.add_article(draft)
        return _report(output, result)

    _execute(ctx, action)


@app.command(context_settings=NEGATIVE_ARGUMENTS)
def edit(
    ctx: typer.Context,
    article_id: int = typer.Argument(..., help="Article id"),
    field_name: str = typer.Argument(..., help=f"One of: {', '.join(EDITABLE_FIELDS)}"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one field of an article."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        if not session.engine.edit_field(article_id, field_name, value):
            output.print("Value unchanged")
            return ExitCode.SUCCESS
        output.success(f"Article #{article_id}: {field_name} = {value}")
        return _save_if_auto(session, output)

    _execute(ctx, action)


@app.command("format", context_settings=NEGATIVE_ARGUMENTS)
def format_cells(
    ctx: typer.Context,
    article_ids: List[int] = typer.Argument(..., help="Article ids"),
    column: str = typer.Option(
        ..., "--column", help=f"One of: {', '.join(STYLEABLE_COLUMNS)}"
    ),
    bold: bool = typer.Option(False, "--bold", help="Toggle bold"),
    italic: bool = typer.Option(False, "--italic", help="Toggle italic"),
    underline: bool = typer.Option(False, "--underline", help="Toggle underline"),
    color: Optional[str] = typer.Option(None, "--color", help="Text color as #RRGGBB"),
) -> None:
    """Toggle cell formatting or set the text color of a column."""
    toggles = [
        name for name, enabled in (("bold", bold), ("italic", italic), ("underline", underline))
        if enabled
    ]

    def action(session: Session, output: OutputHandler) -> ExitCode:
        if not toggles and color is None:
            output.warning("Nothing to apply: use --bold, --italic, --underline or --color")
            return ExitCode.GENERAL_ERROR

        engine = session.engine
        formatted = 0
        for toggle in toggles:
            formatted = engine.apply_style(article_ids, column, toggle=toggle)
        if color is not None:
            formatted = engine.apply_style(article_ids, column, color=color)
        output.success(f"Formatted column '{column}' of {formatted} article(s)")
        return _save_if_auto(session, output)

    _execute(ctx, action)


@app.command(context_settings=NEGATIVE_ARGUMENTS)
def delete(
    ctx: typer.Context,
    article_id: int = typer.Argument(..., help="Article id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete an article."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        return _report(output, session.engine.delete_article(article_id))

    _execute(ctx, action, {"assume_yes": yes})


@app.command()
def save(
    ctx: typer.Context,
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        help="On conflict, overwrite the server with local changes",
    ),
    accept_server: bool = typer.Option(
        False,
        "--accept-server",
        help="On conflict, replace local changes with the server versions",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Save without checking for conflicts",
    ),
) -> None:
    """Save changed articles (offline: to the local snapshot only)."""
    if overwrite and accept_server:
        typer.echo("Error: --overwrite and --accept-server are mutually exclusive", err=True)
        raise typer.Exit(int(ExitCode.GENERAL_ERROR))

    conflict_choice = None
    if overwrite:
        conflict_choice = ConflictChoice.OVERWRITE
    elif accept_server:
        conflict_choice = ConflictChoice.ACCEPT_SERVER

    def action(session: Session, output: OutputHandler) -> ExitCode:
        engine = session.engine
        with output.spinner("Saving changes..."):
            if force and not engine.is_offline:
                result = engine.force_save()
            else:
                result = engine.save_changes()
        return _report(output, result)

    _execute(ctx, action, {"conflict_choice": conflict_choice})


@app.command()
def online(
    ctx: typer.Context,
    push: bool = typer.Option(False, "--push", help="Push local changes without asking"),
    discard: bool = typer.Option(False, "--discard", help="Discard local changes without asking"),
    show_diff: bool = typer.Option(False, "--show-diff", help="Review differences before pushing"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Push after reviewing differences"),
) -> None:
    """Reconnect to the server, dealing with offline changes first."""
    selected = [
        choice for choice, enabled in (
            (ReconnectChoice.PUSH, push),
            (ReconnectChoice.DISCARD, discard),
            (ReconnectChoice.SHOW_DIFF, show_diff),
        )
        if enabled
    ]
    if len(selected) > 1:
        typer.echo("Error: use only one of --push, --discard, --show-diff", err=True)
        raise typer.Exit(int(ExitCode.GENERAL_ERROR))

    def action(session: Session, output: OutputHandler) -> ExitCode:
        result = session.engine.go_online()
        return _report(output, result)

    _execute(
        ctx,
        action,
        {"reconnect_choice": selected[0] if selected else None, "assume_yes": yes},
    )


@app.command()
def offline(ctx: typer.Context) -> None:
    """Switch to offline mode; changes are kept locally."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        return _report(output, session.engine.go_offline())

    _execute(ctx, action)


@app.command()
def diff(ctx: typer.Context) -> None:
    """Compare local changes with the current server state."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        with output.spinner("Fetching server state..."):
            descriptions = session.engine.compare_with_server()
        output.print_descriptions(descriptions, "Local changes compared to the server:")
        return ExitCode.SUCCESS

    _execute(ctx, action)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show mode, pending work and configuration."""
    def action(session: Session, output: OutputHandler) -> ExitCode:
        engine = session.engine
        output.print(f"Mode:          {engine.mode.value}")
        output.print(f"API URL:       {session.config.api_url}")
        output.print(f"Articles:      {len(engine.articles)}")
        output.print(f"Changed:       {len(engine.change_tracker)}")
        output.print(f"New (pending): {len(engine.pending_creations())}")
        output.print(f"Last synced:   {engine.last_synced or 'never'}")
        return ExitCode.SUCCESS

    _execute(ctx, action)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
