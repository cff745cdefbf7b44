"""
Collection lifecycle controller.

Drives one run through INIT -> PREFLIGHT_OK -> COLLECTING -> FINALIZING -> DONE:
checks privileges and tools, writes the info file, starts perf, waits for the
collection window (or a stop signal), then finalizes exactly once.

SIGINT/SIGTERM handlers only record the stop request. The main loop notices it
at its next poll and runs finalization itself; the cleanup latch makes sure
finalization happens once no matter how many triggers race for it.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from types import FrameType
from typing import Any, Callable, Dict, Optional

from gcollect.artifacts import RunArtifacts
from gcollect.config import (
    EXIT_CODE, PERF_BIN, PROC_CMDLINE, POLL_INTERVAL, PROGRESS_INTERVAL, MANUAL_WAIT_SLICE,
)
from gcollect.cores import CoreSet, select_cores
from gcollect.dependency_check import validate_collection_dependencies
from gcollect.environment import has_perf_privileges, check_disk_space
from gcollect.error_messages import format_error
from gcollect.errors import CrashError, PrivilegeError
from gcollect.finalize import FinalizationPipeline, FinalizationReport, StopReason
from gcollect.progress import collection_countdown
from gcollect.run_config import RunConfig
from gcollect.supervisor import SamplerProcess, StartupTiming, build_perf_command
from gcollect.system_info import InfoFile
from gcollect.uploader import upload_bundle
from gcollect.utils import CommandExecutor


class RunPhase(Enum):
    INIT = auto()
    PREFLIGHT_OK = auto()
    COLLECTING = auto()
    FINALIZING = auto()
    DONE = auto()


class CleanupLatch:
    """
    Single-fire latch guarding finalization.

    engage() is a non-blocking test-and-set on a lock, so it is atomic across
    threads and cannot deadlock when re-entered from a signal handler running
    on the thread that already holds it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def engage(self) -> bool:
        """Return True for the first caller only."""
        return self._lock.acquire(blocking=False)

    @property
    def engaged(self) -> bool:
        return self._lock.locked()


@dataclass
class RunState:
    config: RunConfig
    phase: RunPhase = RunPhase.INIT
    artifacts: Optional[RunArtifacts] = None
    core_set: Optional[CoreSet] = None
    sampler: Optional[SamplerProcess] = None
    cleanup: CleanupLatch = field(default_factory=CleanupLatch)
    stop_requested: bool = False
    stop_signal: Optional[int] = None
    started: Optional[datetime] = None
    report: Optional[FinalizationReport] = None

    def request_stop(self, signum: Optional[int] = None) -> None:
        # Called from signal handlers: plain attribute writes only
        if not self.stop_requested:
            self.stop_signal = signum
        self.stop_requested = True


class SignalStopHandler(AbstractContextManager["SignalStopHandler"]):
    """Routes SIGINT/SIGTERM to a stop callback while active, then restores the previous handlers."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, on_signal: Callable[[int], None]) -> None:
        self._on_signal = on_signal
        self._prev_handlers: Dict[int, Any] = {}

    def __enter__(self) -> "SignalStopHandler":
        for sig in self.SIGNALS:
            self._prev_handlers[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle_signal)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler)
        self._prev_handlers.clear()

    def _handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        self._on_signal(signum)


class LifecycleController:

    def __init__(self, config: RunConfig, logger,
                 executor: Optional[CommandExecutor] = None,
                 timing: Optional[StartupTiming] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 uploader=upload_bundle,
                 cmdline_path: str = PROC_CMDLINE,
                 popen=subprocess.Popen,
                 perf_bin: str = PERF_BIN):
        self.logger = logger
        self.state = RunState(config=config)
        self.executor = executor or CommandExecutor(logger=logger)
        self.timing = timing or StartupTiming()
        self._sleep = sleep
        self.uploader = uploader
        self.cmdline_path = cmdline_path
        self.popen = popen
        self.perf_bin = perf_bin
        self.info_file: Optional[InfoFile] = None

    @property
    def config(self) -> RunConfig:
        return self.state.config

    def run(self) -> EXIT_CODE:
        """
        Execute the whole run.

        Returns:
            EXIT_CODE.SUCCESS for timer expiry or a signal-driven stop.

        Raises:
            ConfigurationError, DependencyError, PrivilegeError: before any file
                is written.
            StartError: perf did not come up; nothing is finalized.
            CrashError: perf exited on its own; raised after finalization.
        """
        self.config.validate()

        if self.config.what_if:
            return self.what_if()

        self.preflight()

        with SignalStopHandler(self._on_signal):
            self.start_collection()
            reason = StopReason.ABORTED
            try:
                reason = self.wait_for_completion()
            finally:
                self.finalize(reason)

        if reason is StopReason.SAMPLER_EXITED:
            elapsed = (datetime.now() - self.state.started).total_seconds()
            raise CrashError(
                format_error('SAMPLER_CRASHED', elapsed=int(elapsed), exit_code=self.state.sampler.returncode),
                exit_code=self.state.sampler.returncode,
                elapsed=elapsed,
            )
        return EXIT_CODE.SUCCESS

    def preflight(self) -> None:
        """INIT -> PREFLIGHT_OK. Nothing is written to disk before this passes."""
        if not has_perf_privileges():
            raise PrivilegeError(
                format_error('PRIVILEGES_INSUFFICIENT', command="gcollect"),
                euid=os.geteuid(),
            )

        self.state.config = validate_collection_dependencies(self.config, logger=self.logger)

        os.makedirs(self.config.output_dir, exist_ok=True)
        issue = check_disk_space(self.config.output_dir)
        if issue:
            self.logger.warning(issue.message)
            self.logger.warning(issue.suggestion)

        self.state.phase = RunPhase.PREFLIGHT_OK

    def what_if(self) -> EXIT_CODE:
        """Show what would run without touching the filesystem or starting perf."""
        artifacts = RunArtifacts.generate(self.config.output_dir, self.config.label)
        core_set = select_cores(self.config, logger=self.logger, cmdline_path=self.cmdline_path)
        command = build_perf_command(self.perf_bin, self.config.events, self.config.perf_extra_opts,
                                     core_set.sampler_args(), artifacts.perf_file)
        sampler = SamplerProcess(command, artifacts.perf_file, self.logger)

        self.logger.info("What-if mode: no data will be collected")
        self.logger.info(f"Target cores: {core_set.describe()}")
        self.logger.info(f"Command: {sampler.command_str}")
        self.logger.info(f"Perf data file: {artifacts.perf_file}")
        self.logger.info(f"Info file: {artifacts.info_file}")
        if self.config.create_bundle:
            self.logger.info(f"Bundle file: {artifacts.bundle_file}")
        return EXIT_CODE.SUCCESS

    def start_collection(self) -> None:
        """PREFLIGHT_OK -> COLLECTING."""
        config = self.config
        artifacts = RunArtifacts.generate(config.output_dir, config.label)
        self.state.artifacts = artifacts

        self.logger.info(f"Output directory: {config.output_dir}")
        self.logger.info(f"Perf data file: {artifacts.perf_file}")
        self.logger.info(f"Info file: {artifacts.info_file}")
        if config.create_bundle:
            self.logger.info(f"Bundle file: {artifacts.bundle_file}")

        self.state.core_set = select_cores(config, logger=self.logger, cmdline_path=self.cmdline_path)

        self.info_file = InfoFile(artifacts.info_file, self.executor, self.logger, cmdline_path=self.cmdline_path)
        self.info_file.write_header(config, artifacts, self.state.core_set)
        self.info_file.collect_system_info(config)

        command = build_perf_command(self.perf_bin, config.events, config.perf_extra_opts,
                                     self.state.core_set.sampler_args(), artifacts.perf_file)
        sampler = SamplerProcess(command, artifacts.perf_file, self.logger,
                                 timing=self.timing, sleep=self._sleep, popen=self.popen)

        self.logger.info("Starting perf data collection...")
        self.logger.info(f"Target cores: {self.state.core_set.describe()}")
        self.logger.info(f"Command: {sampler.command_str}")

        self.state.sampler = sampler
        sampler.start()
        self.state.started = datetime.now()
        self.state.phase = RunPhase.COLLECTING

        self.logger.status(f"Perf recording started (PID: {sampler.pid})")
        if config.is_timed:
            self.logger.info(f"Collection mode: TIMED ({config.duration}s)")
            self.logger.info(f"Will automatically stop after {config.duration} seconds")
            self.logger.info("Or press Ctrl+C to stop early")
        else:
            self.logger.info("Collection mode: MANUAL STOP")
            self.logger.info("Press Ctrl+C to stop data collection when the test is complete")
        self.logger.status("Data collection is now running...")

    def wait_for_completion(self) -> StopReason:
        if self.config.is_timed:
            return self._wait_timed()
        return self._wait_manual()

    def _stop_observed(self) -> bool:
        return self.state.stop_requested or self.state.cleanup.engaged

    def _wait_manual(self) -> StopReason:
        sampler = self.state.sampler
        while True:
            if self._stop_observed():
                return StopReason.INTERRUPTED
            if sampler.wait(timeout=MANUAL_WAIT_SLICE) is not None:
                if self._stop_observed():
                    return StopReason.INTERRUPTED
                self.logger.error("Perf process terminated unexpectedly")
                return StopReason.SAMPLER_EXITED

    def _wait_timed(self) -> StopReason:
        sampler = self.state.sampler
        duration = self.config.duration
        elapsed = 0

        with collection_countdown(duration, logger=self.logger) as tick:
            while elapsed < duration:
                if self._stop_observed():
                    self.logger.info(f"Collection stopped early at {elapsed}s")
                    return StopReason.INTERRUPTED
                if not sampler.is_running():
                    if self._stop_observed():
                        return StopReason.INTERRUPTED
                    self.logger.error("Perf process terminated unexpectedly")
                    return StopReason.SAMPLER_EXITED

                self._sleep(POLL_INTERVAL)
                elapsed += 1
                tick()

                if elapsed % PROGRESS_INTERVAL == 0:
                    self.logger.info(f"Collection progress: {elapsed}/{duration}s")

        if self.state.stop_requested:
            return StopReason.INTERRUPTED
        self.logger.info(f"Collection duration reached ({duration}s)")
        return StopReason.DURATION_REACHED

    def finalize(self, reason: StopReason) -> bool:
        """
        COLLECTING -> FINALIZING -> DONE, at most once.

        Returns:
            True if this call ran the finalization stages, False if another
            trigger already did.
        """
        if not self.state.cleanup.engage():
            self.logger.debug(f"Finalization already done; ignoring trigger ({reason.value})")
            return False

        self.state.phase = RunPhase.FINALIZING
        if reason is StopReason.SAMPLER_EXITED and self.state.sampler:
            self.state.sampler.mark_crashed()

        pipeline = FinalizationPipeline(self.config, self.state.artifacts, self.info_file,
                                        self.executor, self.logger, uploader=self.uploader)
        self.state.report = pipeline.run(self.state.sampler, reason, started=self.state.started)
        self.state.phase = RunPhase.DONE
        return True

    def _on_signal(self, signum: int) -> None:
        first = not self.state.stop_requested
        self.state.request_stop(signum)
        if first:
            self.logger.warning(f"Received {signal.Signals(signum).name}, stopping collection...")
