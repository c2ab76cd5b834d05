"""Command-line interface for tubelink."""

from __future__ import annotations

import traceback
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .exceptions import AuthError, TubelinkError
from .logger import setup_logger
from .netrc_utils import get_credentials_from_netrc
from .settings import InstanceSettings

app = typer.Typer(
    name="tubelink",
    help="Choose Piped instances and manage the account session",
    add_completion=False,
)

instances_app = typer.Typer(help="Public and custom instances")
app.add_typer(instances_app, name="instances")


class Toggle(str, Enum):
    """On/off argument."""

    ON = "on"
    OFF = "off"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to settings file (default: ~/.config/tubelink/settings.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for tubelink commands."""
    setup_logger(verbose)
    context.set_config_path(config)


@contextmanager
def _settings() -> Iterator[InstanceSettings]:
    """Open the settings session and turn errors into exit codes."""
    try:
        with InstanceSettings(context.get_config_path()) as settings:
            yield settings
    except (typer.Exit, typer.Abort):
        raise
    except AuthError as e:
        typer.echo(f"Authentication error: {e}", err=True)
        raise typer.Exit(1) from None
    except TubelinkError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except Exception as e:
        typer.echo(f"Unexpected error: {e}", err=True)
        traceback.print_exc()
        raise typer.Exit(1) from None


@app.command()
def status() -> None:
    """Show the selected instances and whether you are logged in."""
    with _settings() as settings:
        state = settings.session.state
        typer.echo(f"Instance:      {state.default_url}")
        auth_mode = "separate" if state.auth_enabled else "same as instance"
        typer.echo(f"Auth instance: {state.auth_url} ({auth_mode})")
        typer.echo(f"Logged in:     {'yes' if state.logged_in else 'no'}")


@instances_app.command("list")
def instances_list() -> None:
    """List public instances followed by custom instances."""
    with _settings() as settings:
        state = settings.session.state
        choices = settings.registry.build_choices()
        if not choices:
            typer.echo("No instances available")
            return
        for choice in choices:
            marks = ("*" if choice.api_url == state.default_url else " ") + (
                "A" if choice.api_url == state.auth_url else " "
            )
            typer.echo(f"{marks} {choice.display_name:<30} {choice.api_url}")


@instances_app.command("add")
def instances_add(
    name: Annotated[str, typer.Argument(help="Display name")],
    api_url: Annotated[str, typer.Argument(help="API URL, e.g. https://pipedapi.example.org")],
) -> None:
    """Add a custom instance."""
    with _settings() as settings:
        instance = settings.registry.add_custom({"name": name, "api_url": api_url})
        typer.echo(f"✓ Added {instance.name} ({instance.api_url})")


@instances_app.command("remove")
def instances_remove(
    api_url: Annotated[str, typer.Argument(help="API URL of the custom instance")],
) -> None:
    """Remove one custom instance."""
    with _settings() as settings:
        if not settings.registry.remove_custom(api_url):
            typer.echo(f"Error: No custom instance with URL {api_url}", err=True)
            raise typer.Exit(1)
        typer.echo(f"✓ Removed {api_url}")


@instances_app.command("clear")
def instances_clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Don't ask for confirmation")] = False,
) -> None:
    """Remove all custom instances."""
    if not yes:
        typer.confirm("Remove all custom instances?", abort=True)
    with _settings() as settings:
        settings.registry.clear_all()
        typer.echo("✓ Cleared custom instances")


@app.command("use")
def use_instance(
    api_url: Annotated[str, typer.Argument(help="API URL of the instance")],
) -> None:
    """Select the default instance."""
    with _settings() as settings:
        state = settings.resolver.default_endpoint_changed(api_url)
        typer.echo(f"✓ Using {state.default_url}")


@app.command("auth-instance")
def auth_instance(
    api_url: Annotated[str, typer.Argument(help="API URL of the instance")],
) -> None:
    """Select the instance used for account and subscription calls."""
    with _settings() as settings:
        state = settings.resolver.auth_endpoint_changed(api_url)
        if state.auth_enabled:
            typer.echo(f"✓ Auth instance set to {state.auth_url}")
        else:
            typer.echo(
                f"✓ Remembered {api_url}; run 'tubelink auth-toggle on' to use it"
            )


@app.command("auth-toggle")
def auth_toggle(
    value: Annotated[Toggle, typer.Argument(help="on: separate auth instance, off: same")],
) -> None:
    """Use a separate instance for authenticated calls, or not."""
    with _settings() as settings:
        state = settings.resolver.auth_enabled_toggled(value is Toggle.ON)
        typer.echo(f"✓ Auth instance: {state.auth_url}")


def _credentials(
    settings: InstanceSettings, username: str | None, password: str | None
) -> tuple[str, str]:
    """Fill missing credentials from .netrc, then by prompting."""
    if username is None or password is None:
        netrc_login, netrc_password = get_credentials_from_netrc(settings.session.state.auth_url)
        if username is None:
            username = netrc_login
        if password is None and username == netrc_login:
            password = netrc_password
    if username is None:
        username = typer.prompt("Username")
    if password is None:
        password = typer.prompt("Password", hide_input=True)
    assert username is not None and password is not None
    return username, password


def _account_command(
    action: Callable[[InstanceSettings, str, str], None],
    username: str | None,
    password: str | None,
    done_message: str,
) -> None:
    with _settings() as settings:
        user, secret = _credentials(settings, username, password)
        action(settings, user, secret)
        typer.echo(f"✓ {done_message} at {settings.session.state.auth_url}")


@app.command()
def login(
    username: Annotated[str | None, typer.Option("--username", "-u")] = None,
    password: Annotated[str | None, typer.Option("--password", "-p")] = None,
) -> None:
    """Log in at the auth instance (credentials fall back to ~/.netrc)."""
    _account_command(
        lambda s, u, p: s.session.request_login(u, p), username, password, "Logged in"
    )


@app.command()
def register(
    username: Annotated[str | None, typer.Option("--username", "-u")] = None,
    password: Annotated[str | None, typer.Option("--password", "-p")] = None,
) -> None:
    """Create an account at the auth instance and log in."""
    _account_command(
        lambda s, u, p: s.session.request_register(u, p), username, password, "Registered"
    )


@app.command()
def logout() -> None:
    """Forget the session token."""
    with _settings() as settings:
        settings.session.request_logout()


@app.command("delete-account")
def delete_account(
    password: Annotated[str | None, typer.Option("--password", "-p")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Don't ask for confirmation")] = False,
) -> None:
    """Delete the logged-in account."""
    with _settings() as settings:
        if not settings.session.is_logged_in():
            typer.echo("Error: Not logged in", err=True)
            raise typer.Exit(1)
        if not yes:
            typer.confirm(
                f"Delete your account at {settings.session.state.auth_url}?", abort=True
            )
        if password is None:
            password = typer.prompt("Password", hide_input=True)
        settings.session.request_delete_account(password)
        typer.echo("✓ Account deleted")


@app.command("import")
def import_subscriptions(
    file: Annotated[Path, typer.Argument(help="NewPipe JSON, YouTube CSV or JSON id list")],
) -> None:
    """Subscribe to every channel in a subscription file."""
    with _settings() as settings:
        report = settings.transfer.import_subscriptions(file)
        if report is None:
            typer.echo(f"Error: Cannot read {file}", err=True)
            raise typer.Exit(1)
        typer.echo(f"✓ Imported {report.count} subscriptions")


@app.command("export")
def export_subscriptions(
    file: Annotated[Path, typer.Argument(help="Destination (NewPipe JSON)")] = Path(
        "subscriptions.json"
    ),
) -> None:
    """Write the subscription list to a file."""
    with _settings() as settings:
        report = settings.transfer.export_subscriptions(file)
        if report is None:
            typer.echo(f"Error: Cannot write {file}", err=True)
            raise typer.Exit(1)
        typer.echo(f"✓ Exported {report.count} subscriptions to {file}")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
