"""
Command-line interface for abook_sync.

Provides CLI commands for authentication, exporting Google Contacts to the
address book, and interactive synchronization of the two.

Usage:
    # Show help
    abook-sync --help

    # Authenticate
    abook-sync auth

    # Overwrite ~/.addressbook with Google Contacts
    abook-sync init

    # Reconcile ~/.addressbook and Google Contacts
    abook-sync sync
    abook-sync --addressbook ~/mail/addressbook sync --no-backup
"""

import sys
from pathlib import Path
from typing import Any, NoReturn

import click
from google.oauth2.credentials import Credentials

from abook_sync import __version__
from abook_sync.addressbook.store import AddressBookFile
from abook_sync.api.people_api import DEFAULT_PAGE_SIZE, PeopleAPI
from abook_sync.auth.google_auth import AuthenticationError, GoogleAuth
from abook_sync.backup.manager import BackupManager
from abook_sync.cli.formatters import (
    console_chooser,
    console_confirm,
    console_reporter,
    show_error,
    show_sync_summary,
)
from abook_sync.config.loader import ConfigError, ConfigLoader
from abook_sync.i18n.translator import Translator, get_locale_from_env
from abook_sync.sync.conflict import InputError, OperationCancelled
from abook_sync.sync.driver import SyncDriver, SyncError
from abook_sync.utils import HomeNotFoundError, resolve_config_dir
from abook_sync.utils.logging import cleanup_old_logs, get_logger, setup_logging


class LocalizedGroup(click.Group):
    """
    Click group whose help text and usage errors come from the message catalog.

    Both run before the group callback has read the configuration, so the
    locale is taken from LANG alone.
    """

    def format_help_text(
        self, ctx: click.Context, formatter: click.HelpFormatter
    ) -> None:
        translate = Translator.for_locale(get_locale_from_env())
        formatter.write_paragraph()
        with formatter.indentation():
            formatter.write_text(translate("app-description"))

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            self._usage_error(ctx, e)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            self._usage_error(ctx, e)

    def _usage_error(self, ctx: click.Context, error: click.UsageError) -> NoReturn:
        get_logger(__name__).debug(f"Usage error: {error.format_message()}")
        translate = Translator.for_locale(get_locale_from_env())
        click.echo(translate("no-option"), err=True)
        ctx.exit(1)


@click.group(cls=LocalizedGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="abook-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="ABOOK_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.abook-sync).",
)
@click.option(
    "--addressbook",
    "-a",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    help="Address book file (default: ~/.addressbook).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    addressbook: str | None,
) -> None:
    """
    Google Contacts and ~/.addressbook synchronization.

    "init" overwrites the address book with Google Contacts; "sync"
    reconciles the two, asking which side wins for every difference.
    """
    ctx.ensure_object(dict)

    try:
        resolved_config_dir = resolve_config_dir(config_dir)
    except HomeNotFoundError as e:
        show_error(Translator.for_locale(get_locale_from_env()), "home-notfound", e)
        ctx.exit(1)
    ctx.obj["config_dir"] = resolved_config_dir

    config: dict[str, Any] = {}
    try:
        config = ConfigLoader(config_dir=resolved_config_dir).load_and_validate()
    except ConfigError as e:
        # Show error but don't fail - allow CLI to work without config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI args take precedence over the config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose
    ctx.obj["addressbook"] = addressbook or config.get("addressbook_path")

    log_dir = Path(config["log_dir"]).expanduser() if config.get("log_dir") else None
    setup_logging(verbose=effective_verbose, log_dir=log_dir)
    if log_dir:
        cleanup_old_logs(log_dir, keep_count=config.get("log_retention_count", 10))

    translate = Translator.for_locale(config.get("locale") or get_locale_from_env())
    ctx.obj["translate"] = translate

    if ctx.invoked_subcommand is None:
        click.echo(translate("no-option"), err=True)
        ctx.exit(1)


def authenticate(ctx: click.Context, force: bool = False) -> Credentials:
    """Return credentials, exiting with a localized error on failure."""
    logger = get_logger(__name__)
    translate: Translator = ctx.obj["translate"]

    try:
        return GoogleAuth(config_dir=ctx.obj["config_dir"]).authenticate(
            force_reauth=force
        )
    except (AuthenticationError, FileNotFoundError) as e:
        logger.error(f"Authentication failed: {e}")
        show_error(translate, "auth-error", e)
        sys.exit(1)


def create_driver(ctx: click.Context, no_backup: bool) -> SyncDriver:
    """Build the SyncDriver for init and sync from options and config."""
    translate: Translator = ctx.obj["translate"]
    config = ctx.obj["config"]
    config_dir: Path = ctx.obj["config_dir"]

    try:
        addressbook = AddressBookFile(ctx.obj["addressbook"])
    except HomeNotFoundError as e:
        show_error(translate, "home-notfound", e)
        sys.exit(1)

    credentials = authenticate(ctx)
    api = PeopleAPI(credentials, page_size=config.get("page_size", DEFAULT_PAGE_SIZE))

    # --no-backup wins over the config setting (default: enabled)
    backup_manager = None
    if not no_backup and config.get("backup_enabled", True):
        backup_dir_config = config.get("backup_dir")
        backup_dir = (
            Path(backup_dir_config).expanduser()
            if backup_dir_config
            else config_dir / "backups"
        )
        backup_manager = BackupManager(
            backup_dir, retention_count=config.get("backup_retention_count", 10)
        )

    return SyncDriver(
        api, addressbook, backup_manager=backup_manager, page_size=api.page_size
    )


# =============================================================================
# Auth Command
# =============================================================================


@cli.command("auth")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-authentication even if already authenticated.",
)
@click.pass_context
def auth_command(ctx: click.Context, force: bool) -> None:
    """
    Authenticate with Google.

    Opens a browser window to complete the OAuth flow and stores the token
    for future use. init and sync do this on demand as well.
    """
    logger = get_logger(__name__)

    authenticate(ctx, force=force)
    click.echo(click.style("Successfully authenticated!", fg="green"))
    logger.info("Authentication completed")


# =============================================================================
# Init Command
# =============================================================================


@cli.command("init")
@click.option(
    "--no-backup",
    is_flag=True,
    help="Skip the backup of the existing address book.",
)
@click.pass_context
def init_command(ctx: click.Context, no_backup: bool) -> None:
    """
    Overwrite the address book with Google Contacts.

    Asks for confirmation when the address book already exists.
    """
    logger = get_logger(__name__)
    translate: Translator = ctx.obj["translate"]

    driver = create_driver(ctx, no_backup)

    try:
        written = driver.init_addressbook(confirm=console_confirm(translate))
    except OperationCancelled:
        click.echo(translate("op-cancel"))
        return
    except InputError as e:
        show_error(translate, "input-error", e)
        sys.exit(1)
    except SyncError as e:
        logger.error(f"init failed: {e}")
        show_error(translate, e.message_id, e.cause)
        sys.exit(1)

    click.echo(translate("export-complete"))
    logger.info(f"Exported {written} records to {driver.addressbook.path}")


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--no-backup",
    is_flag=True,
    help="Skip the backup of the address book before it is rewritten.",
)
@click.pass_context
def sync_command(ctx: click.Context, no_backup: bool) -> None:
    """
    Reconcile the address book with Google Contacts.

    Every email address found on only one side, and every contact that
    differs between the two, is shown with a prompt. Answer g or a to pick
    the side that wins; any other answer cancels. Google Contacts is updated
    immediately; the address book is rewritten once at the end.
    """
    logger = get_logger(__name__)
    translate: Translator = ctx.obj["translate"]

    driver = create_driver(ctx, no_backup)

    try:
        result = driver.sync(
            chooser=console_chooser(translate),
            reporter=console_reporter(translate),
        )
    except OperationCancelled:
        click.echo(translate("op-cancel"))
        return
    except InputError as e:
        show_error(translate, "input-error", e)
        sys.exit(1)
    except SyncError as e:
        logger.error(f"sync failed: {e}")
        show_error(translate, e.message_id, e.cause)
        sys.exit(1)

    if result.local_changed:
        click.echo(translate("write-complete"))

    if ctx.obj["verbose"]:
        show_sync_summary(result)

    logger.info(
        f"Sync finished: {result.stats.total_remote_changes} remote changes, "
        f"{result.stats.total_local_changes} local changes"
    )


# Module entry point (for python -m abook_sync.cli)
if __name__ == "__main__":
    cli()
