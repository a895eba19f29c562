"""
Async FFmpeg invocation.

AsyncFFmpegProcess runs one FFmpeg or FFprobe invocation off the event loop,
reporting encode progress from stderr. A cancelled or timed-out invocation
kills its process before the exception leaves run(). FFmpegEncoder turns a
TranscodeCommand into one or two invocations.
"""

import asyncio
import codecs
import re
from collections import deque
from pathlib import Path
from typing import Callable, Optional

from ..models import TranscodeCommand
from ..utils import FFmpegError, ProcessTimeoutError, get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[float, Optional[float]], None]

TERMINATE_GRACE_SECONDS = 5.0
STDERR_CHUNK_SIZE = 4096
# Older stderr lines are discarded beyond this many
STDERR_HISTORY_LINES = 1000

# Lines FFmpeg prints when an encoder or accelerator refuses to start
FAILURE_MARKERS = (
    "No capable devices found",
    "Unknown encoder",
    "Device creation failed",
    "Cannot load",
    "Error while opening encoder",
    "Error initializing output stream",
    "Invalid argument",
    "No such file or directory",
)

_CLOCK = r"(\d+):(\d{2}):(\d{2}(?:\.\d+)?)"
_DURATION_RE = re.compile(r"Duration: " + _CLOCK)
_TIME_RE = re.compile(r"time=" + _CLOCK)
_FPS_RE = re.compile(r"fps=\s*(\d+(?:\.\d+)?)")
_LINE_BREAK_RE = re.compile(r"[\r\n]")


def _seconds(match: "re.Match[str]") -> float:
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def summarize_stderr(stderr: str) -> str:
    """
    Condense FFmpeg diagnostics into one line.

    The first line carrying a known failure marker wins; otherwise the last
    three non-empty lines are joined.
    """
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    for line in lines:
        if any(marker.lower() in line.lower() for marker in FAILURE_MARKERS):
            return line
    return " | ".join(lines[-3:]) if lines else "no diagnostics"


class AsyncFFmpegProcess:
    """
    One FFmpeg/FFprobe subprocess.

    stdout is collected whole; stderr is split into lines as it arrives so
    progress can be reported while the encode runs.
    """

    def __init__(
        self,
        command: list[str],
        timeout: Optional[float] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Args:
            command: Full argv, executable first
            timeout: Seconds before the process is killed (None = unbounded)
            progress_callback: Receives (fraction 0.0-1.0, fps or None)
        """
        self.command = command
        self.timeout = timeout
        self.progress_callback = progress_callback
        self._process: Optional[asyncio.subprocess.Process] = None
        self._duration: Optional[float] = None
        self._stderr_lines: deque[str] = deque(maxlen=STDERR_HISTORY_LINES)

    async def run(self) -> tuple[str, str]:
        """
        Start the process and wait for it to exit.

        Returns:
            Tuple of (stdout, stderr)

        Raises:
            FFmpegError: If the executable cannot start or exits non-zero
            ProcessTimeoutError: If the timeout elapses first
        """
        logger.debug(f"Executing: {' '.join(self.command)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise FFmpegError(
                f"Failed to start {self.command[0]}: {e}", command=self.command
            ) from e

        try:
            stdout = await asyncio.wait_for(self._collect(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self.terminate()
            raise ProcessTimeoutError(
                f"{self.command[0]} exceeded timeout of {self.timeout}s",
                timeout=self.timeout or 0.0,
            )
        except BaseException:
            # Cancellation included: never leave an orphaned encoder behind
            await self.terminate()
            raise

        stderr = "\n".join(self._stderr_lines)
        if self._process.returncode != 0:
            raise FFmpegError(
                f"FFmpeg failed with code {self._process.returncode}: "
                f"{summarize_stderr(stderr)}",
                command=self.command,
                stderr=stderr,
            )

        return stdout, stderr

    async def _collect(self) -> str:
        if not self._process:
            raise RuntimeError("Process not started")

        stdout, _ = await asyncio.gather(self._read_stdout(), self._read_stderr())
        await self._process.wait()
        return stdout

    async def _read_stdout(self) -> str:
        if not self._process or not self._process.stdout:
            return ""

        data = await self._process.stdout.read()
        return data.decode(errors="replace") if data else ""

    async def _read_stderr(self) -> None:
        """
        Consume stderr in fixed-size chunks.

        Progress records end in a carriage return rather than a newline, so
        lines are split on both.
        """
        if not self._process or not self._process.stderr:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await self._process.stderr.read(STDERR_CHUNK_SIZE)
            if not chunk:
                break
            pending += decoder.decode(chunk)
            *complete, pending = _LINE_BREAK_RE.split(pending)
            for line in complete:
                self._handle_stderr_line(line)

        self._handle_stderr_line(pending + decoder.decode(b"", final=True))

    def _handle_stderr_line(self, line: str) -> None:
        line = line.strip()
        if line:
            self._stderr_lines.append(line)
            self._track_progress(line)

    def _track_progress(self, line: str) -> None:
        if self._duration is None:
            match = _DURATION_RE.search(line)
            if match:
                self._duration = _seconds(match)
            return

        if not self.progress_callback or self._duration <= 0:
            return

        match = _TIME_RE.search(line)
        if not match:
            return

        fps_match = _FPS_RE.search(line)
        fps = float(fps_match.group(1)) if fps_match else None
        try:
            self.progress_callback(min(_seconds(match) / self._duration, 1.0), fps)
        except Exception as e:
            logger.warning(f"Progress callback raised: {e}")

    async def terminate(self) -> None:
        """Send SIGTERM, then SIGKILL if the process outlives the grace period."""
        if self._process is None or self._process.returncode is not None:
            return

        logger.warning(f"Stopping {self.command[0]} (pid {self._process.pid})")
        try:
            self._process.terminate()
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(self._process.wait(), timeout=TERMINATE_GRACE_SECONDS)
        except asyncio.TimeoutError:
            self._process.kill()
            await self._process.wait()

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    @property
    def stderr_output(self) -> list[str]:
        """Most recent stderr lines, blank lines dropped."""
        return list(self._stderr_lines)


class FFmpegEncoder:
    """
    Runs TranscodeCommands with the FFmpeg binary.

    Two-pass commands run an analysis pass writing to the null muxer, then
    the encoding pass. Pass log files are removed afterwards.
    """

    NULL_OUTPUT = "/dev/null"

    def __init__(
        self,
        binary: str = "ffmpeg",
        timeout: Optional[float] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize encoder.

        Args:
            binary: FFmpeg executable
            timeout: Maximum time per FFmpeg invocation in seconds
            progress_callback: Callback receiving (progress 0.0-1.0, fps)
        """
        self.binary = binary
        self.timeout = timeout
        self.progress_callback = progress_callback

    async def transcode(
        self, input_path: Path, output_path: Path, command: TranscodeCommand
    ) -> None:
        """
        Encode input_path into output_path.

        Raises:
            FFmpegError: If FFmpeg fails
            ProcessTimeoutError: If an invocation exceeds the timeout
        """
        if not command.two_pass:
            await self._run(command.to_args(input_path, output_path, self.binary))
            return

        try:
            await self._run(self.build_pass_args(command, input_path, output_path, 1))
            await self._run(self.build_pass_args(command, input_path, output_path, 2))
        finally:
            self.remove_pass_logs(output_path)

    def build_pass_args(
        self,
        command: TranscodeCommand,
        input_path: Path,
        output_path: Path,
        pass_number: int,
    ) -> list[str]:
        """
        Build the argv of one pass of a two-pass encode.

        Args:
            command: Two-pass command
            input_path: Source media file
            output_path: Destination file, also the pass log prefix
            pass_number: 1 for analysis, 2 for encoding

        Returns:
            Full argv for the pass
        """
        args = [
            self.binary,
            "-y",
            *command.input_options,
            "-i",
            str(input_path),
            *command.output_options,
            "-pass",
            str(pass_number),
            "-passlogfile",
            str(output_path),
        ]
        if pass_number == 1:
            args.extend(["-f", "null", self.NULL_OUTPUT])
        else:
            args.append(str(output_path))
        return args

    def remove_pass_logs(self, output_path: Path) -> None:
        """Delete the pass log files left next to the output."""
        for suffix in ("-0.log", "-0.log.mbtree"):
            log_file = Path(f"{output_path}{suffix}")
            try:
                log_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove pass log {log_file}: {e}")

    async def _run(self, args: list[str]) -> None:
        process = AsyncFFmpegProcess(args, self.timeout, self.progress_callback)
        await process.run()


async def run_ffprobe_async(
    input_file: Path,
    additional_args: Optional[list[str]] = None,
    ffprobe_path: str = "ffprobe",
) -> str:
    """
    Run FFprobe command asynchronously.

    Args:
        input_file: Path to media file
        additional_args: Additional FFprobe arguments
        ffprobe_path: FFprobe executable

    Returns:
        FFprobe output as string

    Raises:
        FFmpegError: If FFprobe fails
    """
    command = [ffprobe_path, "-v", "quiet"]

    if additional_args:
        command.extend(additional_args)

    command.append(str(input_file))

    process = AsyncFFmpegProcess(command)
    stdout, _ = await process.run()
    return stdout
