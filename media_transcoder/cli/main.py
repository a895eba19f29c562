"""
CLI interface for the media transcoder.

This module provides the command-line interface using Typer and Rich.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import ConfigManager, ResolvedConfig, get_config_manager
from ..executor import FFmpegEncoder
from ..inspector import MediaInspector
from ..models import TranscodeCommand, TranscodeJob, TranscodeOutcome, TranscodeState
from ..transcoder import TranscodeOrchestrator
from ..utils import TranscoderError, get_logger, setup_logger

# Initialize Typer app
app = typer.Typer(
    name="media-transcoder",
    help="Re-encode media into a playback-compatible format",
    add_completion=False,
)

# Console for rich output
console = Console()

# Logger
logger = get_logger(__name__)


def _load_config(
    config_file: Optional[Path],
    accel: Optional[str] = None,
    codec: Optional[str] = None,
) -> ResolvedConfig:
    """Load the configuration and apply command-line overrides."""
    if config_file:
        config = ConfigManager(config_file).load()
    else:
        config = get_config_manager().config

    overrides = {"accel": accel, "target_video_codec": codec}
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config

    validated = ResolvedConfig.from_overrides(updates)
    return config.model_copy(update={key: getattr(validated, key) for key in updates})


def _command_table(command: TranscodeCommand, uses_hardware: bool) -> Table:
    table = Table(title="Encoder Command", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Input options", " ".join(command.input_options) or "-")
    table.add_row("Output options", " ".join(command.output_options))
    table.add_row("Two-pass", "yes" if command.two_pass else "no")
    table.add_row("Encoding", "hardware" if uses_hardware else "software")
    return table


@app.command()
def plan(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Input media file to evaluate",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Custom configuration file",
    ),
    accel: Optional[str] = typer.Option(
        None,
        "--accel",
        help="Hardware acceleration: disabled, nvenc, qsv, vaapi",
    ),
    codec: Optional[str] = typer.Option(
        None,
        "--codec",
        help="Target video codec: h264, hevc, vp9",
    ),
) -> None:
    """
    Show whether a file needs transcoding and the command that would run.
    """
    try:
        asyncio.run(_plan_async(input_file, config_file, accel, codec))
    except TranscoderError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


async def _plan_async(
    input_file: Path,
    config_file: Optional[Path],
    accel: Optional[str],
    codec: Optional[str],
) -> None:
    config = _load_config(config_file, accel, codec)
    probe = await MediaInspector().inspect(input_file)

    orchestrator = TranscodeOrchestrator(encoder=FFmpegEncoder())
    video = orchestrator.evaluate(probe, config)
    if video is None:
        console.print(f"[green]✓[/green] Transcode not required for {input_file.name}")
        return

    console.print(
        f"[cyan]Primary video stream:[/cyan] #{video.index} {video.codec} {video.resolution}"
    )
    command, uses_hardware = await orchestrator.prepare(config, video)
    console.print(_command_table(command, uses_hardware))


@app.command()
def transcode(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Input media file to transcode",
    ),
    output_file: Path = typer.Argument(
        ...,
        dir_okay=False,
        help="Encoded output file",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Custom configuration file",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        min=0,
        help="Abort the job after this many seconds",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log",
        help="Log file path",
    ),
) -> None:
    """
    Transcode a media file if the configured policy requires it.

    Hardware encoding falls back to software encoding once if it fails.
    """
    setup_logger(
        level="DEBUG" if verbose else "INFO",
        log_file=log_file,
        verbose=verbose,
        console=console,
    )

    try:
        outcome = asyncio.run(_transcode_async(input_file, output_file, config_file, timeout))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Transcoding cancelled by user[/yellow]")
        sys.exit(130)
    except asyncio.TimeoutError:
        console.print(f"[bold red]✗ Error:[/bold red] Transcoding exceeded {timeout}s")
        sys.exit(1)
    except TranscoderError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {escape(str(e))}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if outcome.state == TranscodeState.NOT_REQUIRED:
        console.print(f"[green]✓[/green] Transcode not required for {input_file.name}")
        return

    if outcome.state == TranscodeState.FAILED:
        console.print(
            Panel.fit(
                "[bold red]✗ Transcoding failed[/bold red]\n"
                f"[dim]{escape(str(outcome.error))}[/dim]",
                border_style="red",
            )
        )
        sys.exit(1)

    mode = "software (hardware fallback)" if outcome.hardware_fallback else "configured"
    console.print(
        Panel.fit(
            "[bold green]✓ Transcoding completed successfully![/bold green]\n"
            f"[dim]Output: {outcome.output_path}[/dim]\n"
            f"[dim]Encoder: {mode}[/dim]",
            border_style="green",
        )
    )


async def _transcode_async(
    input_file: Path,
    output_file: Path,
    config_file: Optional[Path],
    timeout: Optional[float],
) -> TranscodeOutcome:
    config = _load_config(config_file)
    probe = await MediaInspector().inspect(input_file)

    output_file.parent.mkdir(parents=True, exist_ok=True)
    job = TranscodeJob(asset_id=input_file.stem, source_path=input_file, output_path=output_file)
    orchestrator = TranscodeOrchestrator(encoder=FFmpegEncoder())

    return await asyncio.wait_for(orchestrator.run(job, probe, config), timeout=timeout)


@app.command("init-config")
def init_config(
    path: Optional[Path] = typer.Argument(
        None,
        dir_okay=False,
        help="Configuration file to create (default: ~/.media-transcoder.yaml)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file",
    ),
) -> None:
    """
    Create a configuration file holding the defaults.
    """
    try:
        created = ConfigManager().init_default_config(path, force=force)
    except TranscoderError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Created config file: {created}")


def main() -> None:
    """
    Main entry point for CLI.
    """
    app()


if __name__ == "__main__":
    main()
