"""
Post-collection finalization stages.

Once sampling stops the run is finalized in a fixed order: stop perf, append
the summary to the info file, build the optional symbol archive, bundle the
outputs, upload the bundle, and report where the results are. A failing stage
is logged and the next stage still runs; none of them changes the exit code.
"""

import enum
import os
import tarfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from gcollect.config import PERF_BIN
from gcollect.error_messages import format_error
from gcollect.errors import StageError, ErrorCode, UploadError
from gcollect.uploader import upload_bundle, UploadResult

PARTIAL_SUFFIX = ".partial"


class StopReason(enum.Enum):
    DURATION_REACHED = "collection duration reached"
    INTERRUPTED = "stopped by signal"
    SAMPLER_EXITED = "perf exited unexpectedly"
    ABORTED = "collection aborted by an internal error"


@dataclass
class FinalizationReport:
    stop_reason: StopReason
    sampler_exit_code: Optional[int] = None
    symbol_archive: Optional[str] = None
    bundle_path: Optional[str] = None
    files: List[str] = field(default_factory=list)
    upload_result: Optional[UploadResult] = None
    upload_error: Optional[UploadError] = None
    stage_errors: List[StageError] = field(default_factory=list)


class FinalizationPipeline:

    def __init__(self, config, artifacts, info_file, executor, logger,
                 uploader: Callable[..., UploadResult] = upload_bundle):
        self.config = config
        self.artifacts = artifacts
        self.info_file = info_file
        self.executor = executor
        self.logger = logger
        self.uploader = uploader

    def run(self, sampler, stop_reason: StopReason, started: Optional[datetime] = None) -> FinalizationReport:
        self.logger.info("Cleaning up and finalizing data collection...")
        report = FinalizationReport(stop_reason=stop_reason)

        if sampler is not None:
            report.sampler_exit_code = sampler.stop()

        ended = datetime.now()
        elapsed = (ended - started).total_seconds() if started else None
        try:
            self.info_file.append_summary(ended, stop_reason.value, elapsed, report.sampler_exit_code)
        except OSError as e:
            self.logger.warning(f"Failed to write collection summary: {e}")

        if self.config.create_symbol_archive and os.path.isfile(self.artifacts.perf_file):
            try:
                report.symbol_archive = self.create_symbol_archive()
            except StageError as e:
                self.logger.warning(e.message)
                report.stage_errors.append(e)

        if self.config.create_bundle:
            try:
                report.bundle_path = self.create_bundle()
            except StageError as e:
                self.logger.warning(e.message)
                report.stage_errors.append(e)

        if self.config.upload:
            if not self.config.create_bundle:
                self.logger.warning("Upload requires a bundle; bundling is disabled so the upload is skipped")
            elif report.bundle_path:
                self.upload(report)
            else:
                self.logger.warning("No bundle was created; the upload is skipped")

        report.files = self.artifacts.existing_outputs()
        self.print_report(report)
        return report

    def create_symbol_archive(self) -> str:
        """Run `perf archive` on the data file; returns the archive path."""
        self.logger.info("Creating symbol archive for offline analysis...")
        archive = self.artifacts.symbol_archive_file
        try:
            _, stderr, return_code = self.executor.execute([PERF_BIN, "archive", self.artifacts.perf_file])
        except OSError as e:
            raise StageError(f"Failed to create symbol archive: {e}", stage="symbol-archive",
                             code=ErrorCode.STAGE_SYMBOL_ARCHIVE, path=archive) from e

        if return_code != 0 or not os.path.isfile(archive):
            self.logger.debug(f"perf archive stderr: {stderr.strip()}")
            raise StageError("Failed to create symbol archive (perf archive not available or failed)",
                             stage="symbol-archive", code=ErrorCode.STAGE_SYMBOL_ARCHIVE, path=archive,
                             suggestion="Symbol archives are rarely needed for optimized production binaries")

        self.logger.status(f"Symbol archive created: {archive}")
        return archive

    def create_bundle(self) -> str:
        """
        Pack the per-run outputs into the bundle and remove the originals.

        The tarball is written under a temporary name and renamed into place,
        so a failed attempt never leaves a truncated bundle behind and the
        original files stay untouched.
        """
        self.logger.info("Creating bundle tarball...")
        bundle = self.artifacts.bundle_file
        files = self.artifacts.existing_outputs()
        if not files:
            raise StageError("No output files to bundle", stage="bundle",
                             code=ErrorCode.STAGE_BUNDLE, path=bundle)

        partial = bundle + PARTIAL_SUFFIX
        try:
            with tarfile.open(partial, "w:gz") as tar:
                for path in files:
                    tar.add(path, arcname=os.path.basename(path))
            os.replace(partial, bundle)
        except (OSError, tarfile.TarError) as e:
            if os.path.exists(partial):
                os.remove(partial)
            raise StageError(f"Failed to create bundle tarball: {e}", stage="bundle",
                             code=ErrorCode.STAGE_BUNDLE, path=bundle) from e

        self.logger.status(f"Bundle created: {bundle}")
        for path in files:
            try:
                os.remove(path)
            except OSError as e:
                self.logger.warning(f"Could not remove {path} after bundling: {e}")
        self.logger.info("Individual files archived into bundle")
        return bundle

    def upload(self, report: FinalizationReport) -> None:
        try:
            report.upload_result = self.uploader(
                report.bundle_path,
                self.config.upload_url,
                self.config.upload_token,
                self.config.upload_timeout,
                logger=self.logger,
            )
        except UploadError as e:
            report.upload_error = e
            self.logger.warning(str(e))
            return

        checksum = report.upload_result.checksum
        self.logger.status("Bundle uploaded" + (f" (checksum: {checksum})" if checksum else ""))

    def print_report(self, report: FinalizationReport) -> None:
        self.logger.result("Data collection completed!")

        if report.bundle_path and os.path.isfile(report.bundle_path):
            if report.upload_result:
                self.logger.result(f"Bundle uploaded to {self.config.upload_url}")
                self.logger.result(f"  Local copy: {report.bundle_path}")
            elif report.upload_error:
                for line in format_error('UPLOAD_MANUAL_TRANSFER', bundle=report.bundle_path).splitlines():
                    self.logger.result(line)
            else:
                self.logger.result("Output bundle:")
                self.logger.result(f"  {report.bundle_path}")
                self.logger.result("Transfer this file for analysis")
            return

        labels = {
            self.artifacts.perf_file: "Perf data",
            self.artifacts.info_file: "Info file",
            self.artifacts.symbol_archive_file: "Symbol archive",
        }
        self.logger.result("Output files:")
        for path in report.files:
            self.logger.result(f"  {labels.get(path, 'File')}: {path}")
