"""Command-line interface for the timer tool."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, NoReturn, Optional

import typer

from . import commands
from .codec import format_date
from .errors import (
    InvalidDateError,
    InvalidTimerNameError,
    TimerAlreadyExistsError,
    TimerNotFoundError,
    TimerStateError,
)
from .paths import resolve_directory_path
from .reporting import TimerPrinter, format_duration
from .store import TIMER_SUFFIX, TimerStore

logger = logging.getLogger(__name__)

app = typer.Typer(help="Track time with Markdown timer files.")


@dataclass(slots=True)
class CliState:
    store: TimerStore
    use_running: bool = False
    timer_path: Optional[Path] = None


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Option(
        None,
        "--directory",
        "-d",
        path_type=Path,
        help="Override the timers directory for this command.",
    ),
    running: bool = typer.Option(
        False,
        "--running",
        "-r",
        help="Use the first running timer (stop, split, tag).",
    ),
    timer_path: Optional[Path] = typer.Option(
        None,
        "--timer-path",
        "-p",
        path_type=Path,
        help="Select a timer by the path of its Markdown file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if directory is not None:
        directory = resolve_directory_path(directory, relative_to=Path.cwd())
    ctx.obj = CliState(
        store=TimerStore.from_config_file(directory),
        use_running=running,
        timer_path=timer_path,
    )


@app.command()
def start(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the new timer."),
    tags: Optional[List[str]] = typer.Option(
        None, "--tag", "-t", help="Tag to attach; may be repeated."
    ),
) -> None:
    """Start a new timer."""
    state = _state(ctx)
    with _reporting_errors():
        change = commands.start_timer(state.store, name, tags or ())
    typer.echo(f"✅ Started timer '{name}' at {format_date(change.record.start_time)}")


@app.command()
def stop(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME]"),
) -> None:
    """Stop a running timer."""
    state = _state(ctx)
    name, _ = _target_and_rest(state, args, extra=0, usage="stop <name>")
    with _reporting_errors():
        change = commands.stop_timer(state.store, name)
    typer.echo(
        f"✅ Stopped timer '{name}' - Duration: {format_duration(change.record.duration)}"
    )


@app.command()
def split(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME] [NEW_NAME]"),
) -> None:
    """Stop a timer and start a successor that inherits its tags."""
    state = _state(ctx)
    values = list(args or [])
    if _uses_implicit_target(state):
        if len(values) > 1:
            _fail("❌ Usage: timer split [--running] [new_name]")
        name, _ = _target_and_rest(state, [], extra=0, usage="split <name> [new_name]")
        new_name = values[0] if values else None
    else:
        if not values or len(values) > 2:
            _fail("❌ Usage: timer [--directory <path>] split <name> [new_name]")
        name = values[0]
        new_name = values[1] if len(values) == 2 else None

    with _reporting_errors():
        result = commands.split_timer(state.store, name, new_name)
    typer.echo(
        f"✅ Split timer '{name}' into '{result.started.name}' at {format_date(result.split_time)}"
    )


@app.command()
def tag(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME] TAG"),
) -> None:
    """Add a tag to a timer."""
    state = _state(ctx)
    name, rest = _target_and_rest(state, args, extra=1, usage="tag <name> <tag>")
    value = rest[0]
    with _reporting_errors():
        change = commands.tag_timer(state.store, name, value)
    if change.changed:
        typer.echo(f"✅ Added tag '{value}' to timer '{name}'")
    else:
        typer.echo(f"⚠️  Tag '{value}' already exists on timer '{name}'")


@app.command("remove-tag")
def remove_tag(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME] TAG"),
) -> None:
    """Remove a tag from a timer."""
    state = _state(ctx)
    name, rest = _target_and_rest(state, args, extra=1, usage="remove-tag <name> <tag>")
    value = rest[0]
    with _reporting_errors():
        change = commands.remove_tag(state.store, name, value)
    if change.changed:
        typer.echo(f"✅ Removed tag '{value}' from timer '{name}'")
    else:
        typer.echo(f"⚠️  Tag '{value}' not found on timer '{name}'")


@app.command("set-start")
def set_start(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME] ISO8601"),
) -> None:
    """Set the start time of a timer."""
    state = _state(ctx)
    name, rest = _target_and_rest(
        state, args, extra=1, usage="set-start <name> <ISO8601-datetime>"
    )
    with _reporting_errors():
        change = commands.set_start(state.store, name, rest[0])
    typer.echo(
        f"✅ Set start time for timer '{name}' to {format_date(change.record.start_time)}"
    )


@app.command("set-stop")
def set_stop(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME] ISO8601"),
) -> None:
    """Set the stop time of a timer."""
    state = _state(ctx)
    name, rest = _target_and_rest(
        state, args, extra=1, usage="set-stop <name> <ISO8601-datetime>"
    )
    with _reporting_errors():
        change = commands.set_stop(state.store, name, rest[0])
    typer.echo(
        f"✅ Set stop time for timer '{name}' to {format_date(change.record.stop_time)}"
    )


@app.command()
def rename(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[OLD_NAME] NEW_NAME"),
) -> None:
    """Rename a timer file."""
    state = _state(ctx)
    name, rest = _target_and_rest(state, args, extra=1, usage="rename <old_name> <new_name>")
    with _reporting_errors():
        destination = commands.rename_timer(state.store, name, rest[0])
    typer.echo(f"✏️  Renamed timer '{name}' to '{destination.name[: -len(TIMER_SUFFIX)]}'")


@app.command()
def archive(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME]"),
) -> None:
    """Move a timer into the archive directory."""
    state = _state(ctx)
    name, _ = _target_and_rest(state, args, extra=0, usage="archive <name>")
    with _reporting_errors():
        destination = commands.archive_timer(state.store, name)
    typer.echo(f"📦 Archived timer '{name}' to {destination}")


@app.command()
def show(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME]"),
) -> None:
    """Show timer details."""
    state = _state(ctx)
    name, _ = _target_and_rest(state, args, extra=0, usage="show <name>")
    record = state.store.load(name)
    if record is None:
        _fail(f"❌ Timer '{name}' not found!")
    TimerPrinter(state.store).print_timer(name, record)


@app.command("list")
def list_timers(ctx: typer.Context) -> None:
    """List all timers."""
    TimerPrinter(_state(ctx).store).print_listing()


@app.command()
def button(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Title of a button from config.json."),
    args: Optional[List[str]] = typer.Argument(None, metavar="[NAME]"),
    arguments: Optional[List[str]] = typer.Option(
        None, "--arg", "-a", help="Button argument as key=value; may be repeated."
    ),
) -> None:
    """Run a configured custom button command."""
    from .buttons import button_applies_to, run_button_command

    state = _state(ctx)
    configured = {item.title: item for item in state.store.config.custom_buttons}
    selected = configured.get(title)
    if selected is None:
        _fail(f"❌ No custom button titled '{title}'")

    values = _parse_key_values(arguments or [])
    missing = [arg.name for arg in selected.arguments if arg.name not in values]
    if missing:
        _fail(f"❌ Missing button arguments: {', '.join(missing)}")

    record = None
    timer_path = None
    if args or _uses_implicit_target(state):
        name, _ = _target_and_rest(state, args, extra=0, usage="button <title> [name]")
        record = state.store.load(name)
        if record is None:
            _fail(f"❌ Timer '{name}' not found!")
        timer_path = state.store.timer_path(name)
    if not button_applies_to(selected, record):
        _fail(f"⚠️  Button '{title}' is not available for this timer.")

    result = run_button_command(selected.command, timer_path, values)
    if result.output:
        typer.echo(result.output)
    if not result.success:
        raise typer.Exit(code=result.exit_code if result.exit_code > 0 else 1)


@app.command()
def dashboard(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8766, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Serve the live dashboard for the timers directory."""
    from .server_runner import run_dashboard

    run_dashboard(
        host=host,
        port=port,
        store=_state(ctx).store,
        open_browser=open_browser,
    )


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _uses_implicit_target(state: CliState) -> bool:
    return state.timer_path is not None or state.use_running


def _target_and_rest(
    state: CliState,
    args: Optional[List[str]],
    *,
    extra: int,
    usage: str,
) -> tuple[str, list[str]]:
    """Pick the timer a command acts on and return the remaining arguments.

    ``--timer-path`` wins over ``--running``; otherwise the first positional
    argument names the timer.
    """
    values = list(args or [])
    if state.timer_path is not None:
        if len(values) != extra:
            _fail(f"❌ Usage: timer --timer-path <path> {usage.split(' ', 1)[0]} ...")
        return _name_from_timer_path(state.store, state.timer_path), values
    if state.use_running:
        if len(values) != extra:
            _fail(f"❌ Usage: timer --running {usage.split(' ', 1)[0]} ...")
        running_name = state.store.first_running_name()
        if running_name is None:
            _fail("⚠️  No running timers found.")
        return running_name, values
    if len(values) != extra + 1:
        _fail(f"❌ Usage: timer [--directory <path>] {usage}")
    return values[0], values[1:]


def _name_from_timer_path(store: TimerStore, timer_path: Path) -> str:
    path = timer_path.expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    if not store.contains_path(path):
        _fail(
            f"❌ Timer path {timer_path} is outside the timers directory "
            f"{store.timers_directory}"
        )
    filename = path.name
    if filename.endswith(TIMER_SUFFIX):
        filename = filename[: -len(TIMER_SUFFIX)]
    if not filename.strip():
        _fail(f"❌ Could not determine a timer name from {timer_path}")
    return filename


def _parse_key_values(items: List[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for item in items:
        key, separator, value = item.partition("=")
        if not separator or not key:
            _fail(f"❌ Button arguments must look like key=value, got '{item}'")
        values[key] = value
    return values


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn domain failures into console messages and a non-zero exit."""
    try:
        yield
    except TimerNotFoundError as exc:
        _fail(f"❌ Timer '{exc.name}' not found!")
    except TimerAlreadyExistsError as exc:
        _fail(f"⚠️  Timer '{exc.name}' already exists.")
    except InvalidTimerNameError:
        _fail("❌ Invalid name provided.")
    except TimerStateError as exc:
        _fail(f"⚠️  {exc}!")
    except InvalidDateError as exc:
        _fail(f"❌ {exc}")
    except OSError as exc:
        logger.debug("File operation failed", exc_info=True)
        _fail(f"❌ Error saving timer: {exc}")


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)
