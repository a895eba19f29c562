"""
Transcode orchestration for a single asset.

Runs the policy check, builds the encoder command and invokes the encoder.
A hardware backend gets exactly one fallback to software encoding: either
while building the command (no usable device) or after a failed hardware
invocation. Nothing else is retried.
"""

import time
from pathlib import Path
from typing import Optional, Protocol

from ..config import ResolvedConfig, TranscodeHWAccel
from ..hardware import HardwareDeviceSelector
from ..models import (
    ProbeResult,
    TranscodeAttempt,
    TranscodeCommand,
    TranscodeJob,
    TranscodeOutcome,
    TranscodeState,
    VideoStreamInfo,
)
from ..planner import is_transcode_required, select_audio_stream, select_video_stream
from ..utils import HardwareError, UnsupportedCodecError, get_logger
from .bitrate import calculate_bitrates
from .options import build_command

logger = get_logger(__name__)


class Encoder(Protocol):
    """Runs an encoder command against a source file."""

    async def transcode(
        self, input_path: Path, output_path: Path, command: TranscodeCommand
    ) -> None:
        """Encode input_path into output_path; raise on failure."""
        ...


class AssetStore(Protocol):
    """Persists where an asset's encoded file lives."""

    async def save_encoded_path(self, asset_id: str, path: Path) -> None:
        ...


class TranscodeOrchestrator:
    """
    Drives one asset from probe result to encoded file.

    The orchestrator holds no per-job state; one instance can run many jobs
    concurrently.
    """

    def __init__(
        self,
        encoder: Encoder,
        device_selector: Optional[HardwareDeviceSelector] = None,
        asset_store: Optional[AssetStore] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            encoder: Encoder invoking FFmpeg
            device_selector: Accelerator device selector
            asset_store: Receives the encoded path of successful jobs
        """
        self.encoder = encoder
        self.device_selector = device_selector or HardwareDeviceSelector()
        self.asset_store = asset_store

    def evaluate(self, probe: ProbeResult, config: ResolvedConfig) -> Optional[VideoStreamInfo]:
        """
        Decide whether the asset needs transcoding.

        Args:
            probe: Probe result of the source
            config: Resolved configuration

        Returns:
            Primary video stream if a transcode is required, else None
        """
        video = select_video_stream(probe.video_streams)
        audio = select_audio_stream(probe.audio_streams)

        if not is_transcode_required(config, video, audio, probe.format_name):
            return None

        if config.accel is None:
            logger.warning("Skipping transcode, hardware acceleration backend is not recognised")
            return None

        return video

    async def prepare(
        self, config: ResolvedConfig, video: VideoStreamInfo
    ) -> tuple[TranscodeCommand, bool]:
        """
        Build the command for the configured backend.

        A hardware backend whose device cannot be selected, or whose options
        cannot be built for the device, is replaced by software encoding.

        Args:
            config: Resolved configuration
            video: Primary video stream

        Returns:
            Tuple of (command, uses_hardware)

        Raises:
            UnsupportedCodecError: If the codec/backend pairing is unsupported
        """
        bitrates = calculate_bitrates(config.max_bitrate)

        if config.accel != TranscodeHWAccel.DISABLED:
            try:
                device = await self.device_selector.select(config.accel)
                return build_command(config, video, bitrates, device), True
            except HardwareError as e:
                logger.warning(f"Hardware acceleration unavailable, using software encoding: {e}")

        return self.build_software_command(config, video), False

    def build_software_command(
        self, config: ResolvedConfig, video: VideoStreamInfo
    ) -> TranscodeCommand:
        """Build the command with hardware acceleration disabled."""
        software = config.with_accel(TranscodeHWAccel.DISABLED)
        return build_command(software, video, calculate_bitrates(software.max_bitrate))

    async def run(
        self, job: TranscodeJob, probe: ProbeResult, config: ResolvedConfig
    ) -> TranscodeOutcome:
        """
        Transcode one asset.

        Encoder failures never propagate; they are reported in the outcome.
        Cancellation propagates unchanged.

        Args:
            job: Asset identity and paths
            probe: Probe result of the source
            config: Resolved configuration

        Returns:
            Terminal outcome of the job
        """
        video = self.evaluate(probe, config)
        if video is None:
            logger.info(f"Transcode not required for asset {job.asset_id}")
            return TranscodeOutcome(state=TranscodeState.NOT_REQUIRED)

        outcome = TranscodeOutcome(state=TranscodeState.BUILDING_COMMAND)
        try:
            command, uses_hardware = await self.prepare(config, video)
        except UnsupportedCodecError as e:
            logger.error(f"Cannot transcode asset {job.asset_id}: {e}")
            outcome.state = TranscodeState.FAILED
            outcome.error = e
            return outcome

        outcome.hardware_fallback = config.accel != TranscodeHWAccel.DISABLED and not uses_hardware

        if uses_hardware:
            attempt = await self._invoke(TranscodeState.INVOKING_HARDWARE, job, command)
            outcome.attempts.append(attempt)
            if attempt.success:
                return await self._complete(job, outcome)

            logger.warning(
                f"Hardware transcode failed for asset {job.asset_id}, "
                f"retrying with software encoding: {attempt.error}"
            )
            outcome.hardware_fallback = True
            try:
                command = self.build_software_command(config, video)
            except UnsupportedCodecError as e:
                logger.error(f"Cannot build software command for asset {job.asset_id}: {e}")
                outcome.state = TranscodeState.FAILED
                outcome.error = e
                return outcome

        attempt = await self._invoke(TranscodeState.INVOKING_SOFTWARE, job, command)
        outcome.attempts.append(attempt)
        if attempt.success:
            return await self._complete(job, outcome)

        logger.error(f"Transcode failed for asset {job.asset_id}: {attempt.error}")
        outcome.state = TranscodeState.FAILED
        outcome.error = attempt.error
        return outcome

    async def _invoke(
        self, state: TranscodeState, job: TranscodeJob, command: TranscodeCommand
    ) -> TranscodeAttempt:
        """Run the encoder once and record the attempt."""
        mode = "hardware" if state == TranscodeState.INVOKING_HARDWARE else "software"
        logger.info(f"Transcoding asset {job.asset_id} with {mode} encoding")
        logger.debug(f"Output options: {' '.join(command.output_options)}")

        start = time.monotonic()
        try:
            await self.encoder.transcode(job.source_path, job.output_path, command)
        except Exception as e:
            return TranscodeAttempt(
                state=state, command=command, error=e, duration=time.monotonic() - start
            )

        duration = time.monotonic() - start
        logger.info(f"Encoded asset {job.asset_id} in {duration:.2f}s")
        return TranscodeAttempt(state=state, command=command, duration=duration)

    async def _complete(self, job: TranscodeJob, outcome: TranscodeOutcome) -> TranscodeOutcome:
        outcome.state = TranscodeState.DONE
        outcome.output_path = job.output_path
        if self.asset_store is not None:
            await self.asset_store.save_encoded_path(job.asset_id, job.output_path)
        return outcome
