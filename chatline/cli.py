"""
chatline.cli - Typer CLI entry point.

Inspect a transcription's timeline, show the chat feed at a cursor,
run scripted transport sessions, and replay conversations live.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from chatline import __version__
from chatline.config import (
    CONFIG_FILENAME,
    ChatlineConfig,
    create_default_config,
    find_config,
    load_config,
    write_config,
)
from chatline.exceptions import ChatlineError, DeviceError
from chatline.io import export_timeline, load_transcription
from chatline.logging import configure_logging
from chatline.render import render_feed, render_timeline_table, render_view, speaker_sides
from chatline.session import run_script
from chatline.timeline.builder import build_timeline, timings_to_messages, total_duration
from chatline.timeline.models import Transcription
from chatline.timeline.query import get_visible_messages, update_message_states
from chatline.utils import format_time, format_time_precise

app = typer.Typer(
    name="chatline",
    help="Transcript replay engine.\n\n"
    "Replays a two-speaker conversation as a synchronized chat feed, "
    "highlighting the line being spoken.",
    add_completion=False,
)
console = Console()

DEVICE_KINDS = ("polling", "push")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"chatline {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Chatline - transcript replay engine."""
    configure_logging(verbose)


def _resolve_config(config_path: str | None) -> ChatlineConfig:
    try:
        if config_path:
            return load_config(Path(config_path))
        found = find_config()
        if found:
            return load_config(found)
    except (ChatlineError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    return ChatlineConfig()


def _load(file: str) -> Transcription:
    try:
        return load_transcription(Path(file))
    except (ChatlineError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _check_device(device: str | None) -> None:
    if device is not None and device not in DEVICE_KINDS:
        console.print(f"[red]Error: Unknown device '{device}' (use polling or push)[/red]")
        raise typer.Exit(1)


def _report_device_error(error: DeviceError) -> None:
    console.print(f"[yellow]Device error: {error}[/yellow]")


@app.command("timeline")
def show_timeline(
    file: str = typer.Argument(..., help="Transcription file (JSON or YAML)"),
    json_out: str | None = typer.Option(None, "--json", "-j", help="Also write the timeline as JSON"),
) -> None:
    """Build and print the phrase timeline."""
    transcription = _load(file)
    timings = build_timeline(transcription)

    if not timings:
        console.print("[yellow]Transcription has no phrases.[/yellow]")
    else:
        console.print(render_timeline_table(timings))

    console.print(
        f"\n[green]✓[/green] {len(timings)} phrase(s), "
        f"total {format_time_precise(total_duration(timings))}"
    )

    if json_out:
        export_timeline(Path(json_out), timings)
        console.print(f"[dim]  Wrote {json_out}[/dim]")


@app.command("feed")
def show_feed(
    file: str = typer.Argument(..., help="Transcription file (JSON or YAML)"),
    at: int = typer.Option(0, "--at", "-t", help="Cursor position in milliseconds"),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to chatline.yaml"),
) -> None:
    """Show the chat feed visible at a cursor position."""
    config = _resolve_config(config_path)
    transcription = _load(file)
    timings = build_timeline(transcription)
    messages = timings_to_messages(timings)

    visible = update_message_states(get_visible_messages(messages, at), at)
    console.print(render_feed(visible, speaker_sides(timings, config)))
    console.print(f"\n[dim]{len(visible)}/{len(messages)} message(s) at {format_time(at)}[/dim]")


@app.command("simulate")
def simulate(
    file: str = typer.Argument(..., help="Transcription file (JSON or YAML)"),
    steps: list[str] = typer.Argument(
        ..., help="Steps: play, pause, rewind, ff, repeat, seek:<ms>, +<ms>"
    ),
    device: str | None = typer.Option(None, "--device", "-d", help="Device model: polling or push"),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to chatline.yaml"),
) -> None:
    """Run a scripted transport session on a virtual clock."""
    config = _resolve_config(config_path)
    transcription = _load(file)

    _check_device(device)

    try:
        coordinator = run_script(
            transcription,
            steps,
            config=config,
            device_kind=device,
            on_error=_report_device_error,
        )
    except ChatlineError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    with coordinator:
        state = coordinator.state
        table = Table(title="Playback State")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("playing", str(state.is_playing))
        table.add_row("time", format_time_precise(state.current_time))
        table.add_row("phrase", str(state.current_phrase_index))
        table.add_row("rate", f"{state.playback_rate:.2f}x")
        table.add_row("seeking", str(state.is_seeking))

        console.print(render_feed(coordinator.visible_messages, speaker_sides(coordinator.timeline, config)))
        console.print(table)


async def _replay(transcription: Transcription, config: ChatlineConfig, device: str, speed: float) -> None:
    from chatline.playback.scheduler import AsyncioScheduler
    from chatline.session import create_session

    scheduler = AsyncioScheduler(speed=speed)
    finished = asyncio.Event()
    loaded = asyncio.Event()

    coordinator = create_session(
        transcription,
        scheduler,
        config=config,
        device_kind=device,
        on_error=_report_device_error,
    )
    sides = speaker_sides(coordinator.timeline, config)

    with coordinator, Live(console=console, refresh_per_second=20) as live:

        def on_change(old, new) -> None:
            if new.is_loaded and not old.is_loaded:
                loaded.set()
            if old.is_playing and not new.is_playing:
                finished.set()
            if not finished.is_set():
                live.update(render_view(coordinator.visible_messages, new, sides))

        coordinator.subscribe(on_change)
        await loaded.wait()
        coordinator.toggle_play_pause()
        await finished.wait()


@app.command("play")
def play(
    file: str = typer.Argument(..., help="Transcription file (JSON or YAML)"),
    device: str | None = typer.Option(None, "--device", "-d", help="Device model: polling or push"),
    speed: float = typer.Option(1.0, "--speed", "-s", help="Clock speed multiplier"),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to chatline.yaml"),
) -> None:
    """Replay the conversation live in the terminal."""
    config = _resolve_config(config_path)
    _check_device(device)
    transcription = _load(file)

    if speed <= 0:
        console.print("[red]Error: --speed must be positive[/red]")
        raise typer.Exit(1)

    timings = build_timeline(transcription)
    if not timings:
        console.print("[yellow]Transcription has no phrases.[/yellow]")
        raise typer.Exit(0)

    try:
        asyncio.run(_replay(transcription, config, device or config.device, speed))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        raise typer.Exit(130)

    console.print(f"[green]✓[/green] Replayed {len(timings)} phrase(s)")


@app.command("init")
def init_config(
    path: str = typer.Argument(".", help="Directory to write chatline.yaml in"),
    device: str = typer.Option("polling", "--device", "-d", help="Default device: polling or push"),
) -> None:
    """Write a default chatline.yaml."""
    config_file = Path(path) / CONFIG_FILENAME
    if config_file.exists():
        console.print(f"[red]Error: '{config_file}' already exists[/red]")
        raise typer.Exit(1)

    _check_device(device)

    write_config(create_default_config(device), config_file)
    console.print(f"[green]✓[/green] Created {config_file}")


if __name__ == "__main__":
    app()
