"""
chatline.render - Rich renderables for the terminal chat view.

Chat bubbles aligned per speaker, a media bar, and a timeline table.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chatline.config import ChatlineConfig
from chatline.playback.state import PlaybackState
from chatline.timeline.models import Message, PhraseTiming
from chatline.utils import calculate_progress, format_time, format_time_precise

BAR_WIDTH = 30


def speaker_sides(
    timings: tuple[PhraseTiming, ...],
    config: ChatlineConfig | None = None,
) -> dict[str, str]:
    """Map each speaker to "left" or "right".

    Configured left/right speakers win; everyone else alternates by
    declared speaker order, first speaker on the left.
    """
    sides: dict[str, str] = {}
    for timing in timings:
        if timing.speaker not in sides:
            sides[timing.speaker] = "left" if timing.speaker_index % 2 == 0 else "right"

    if config is not None:
        if config.left_speaker:
            sides[config.left_speaker] = "left"
        if config.right_speaker:
            sides[config.right_speaker] = "right"
    return sides


def render_message(message: Message, side: str = "left") -> RenderableType:
    border = "bold yellow" if message.is_current else ("cyan" if side == "left" else "green")
    bubble = Panel(
        Text(message.text, style="bold" if message.is_current else ""),
        title=message.sender.capitalize(),
        title_align=side,
        subtitle=format_time(message.timestamp),
        subtitle_align=side,
        border_style=border,
        expand=False,
    )
    return Align(bubble, align=side)


def render_feed(messages: tuple[Message, ...], sides: dict[str, str]) -> RenderableType:
    if not messages:
        return Text("(no messages yet)", style="dim")
    return Group(*(render_message(m, sides.get(m.sender, "left")) for m in messages))


def render_media_bar(state: PlaybackState) -> Text:
    """One-line transport readout: status, elapsed, progress bar, total, rate."""
    progress = calculate_progress(state.current_time, state.total_time)
    filled = round(progress * BAR_WIDTH)
    if not state.is_loaded:
        status = "…"
    elif state.is_playing:
        status = "▶"
    else:
        status = "⏸"

    bar = Text()
    bar.append(f"{status} ")
    bar.append(format_time(state.current_time), style="bold")
    bar.append(" [")
    bar.append("━" * filled, style="cyan")
    bar.append("─" * (BAR_WIDTH - filled), style="dim")
    bar.append("] ")
    bar.append(format_time(state.total_time))
    bar.append(f"  {state.playback_rate:.2f}x", style="yellow" if state.is_repeating else "dim")
    return bar


def render_view(
    messages: tuple[Message, ...],
    state: PlaybackState,
    sides: dict[str, str],
) -> RenderableType:
    return Group(render_feed(messages, sides), Text(""), render_media_bar(state))


def render_timeline_table(timings: tuple[PhraseTiming, ...]) -> Table:
    table = Table(title="Timeline")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Speaker", style="cyan")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")
    table.add_column("Text")

    for index, timing in enumerate(timings):
        table.add_row(
            str(index),
            timing.speaker,
            format_time_precise(timing.start_time),
            format_time_precise(timing.end_time),
            timing.text,
        )
    return table
