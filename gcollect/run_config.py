"""
Resolved configuration for one collection run.

RunConfig is built once from the parsed command line (after any YAML
overrides), validated, and never mutated afterwards. Feature toggles that
preflight has to turn off produce a new RunConfig via with_overrides().
"""

import dataclasses
import os
import shlex
from dataclasses import dataclass, field
from typing import List

from gcollect.config import (
    CoreMode, CORE_MODES, DEFAULT_PERF_EVENTS, DEFAULT_PERF_EXTRA_OPTS, DEFAULT_DURATION,
    DEFAULT_OUTPUT_DIR, DEFAULT_TURBOSTAT_ITERATIONS, DEFAULT_UPLOAD_TIMEOUT,
    UPLOAD_TOKEN_ENV, UPLOAD_URL_ENV,
)
from gcollect.error_messages import format_error
from gcollect.errors import ConfigurationError, ErrorCode


@dataclass(frozen=True)
class RunConfig:
    events: str = DEFAULT_PERF_EVENTS
    duration: int = DEFAULT_DURATION
    label: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    core_mode: CoreMode = CoreMode.AUTO
    manual_cores: str = ""
    perf_extra_opts: List[str] = field(default_factory=lambda: shlex.split(DEFAULT_PERF_EXTRA_OPTS))
    include_turbostat: bool = True
    turbostat_iterations: int = DEFAULT_TURBOSTAT_ITERATIONS
    create_bundle: bool = True
    create_symbol_archive: bool = False
    upload: bool = False
    upload_url: str = ""
    upload_token: str = ""
    upload_timeout: int = DEFAULT_UPLOAD_TIMEOUT
    what_if: bool = False

    @property
    def is_timed(self) -> bool:
        return self.duration > 0

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        """Build a RunConfig from an argparse namespace."""
        core_mode = args.core_mode
        if not isinstance(core_mode, CoreMode):
            if core_mode not in CORE_MODES:
                raise ConfigurationError(
                    f"Unsupported core mode: {core_mode}",
                    parameter="core_mode",
                    expected=CORE_MODES,
                    actual=core_mode,
                )
            core_mode = CoreMode(core_mode)

        extra_opts = args.perf_opts
        if isinstance(extra_opts, str):
            extra_opts = shlex.split(extra_opts)

        upload_token = args.upload_token or os.environ.get(UPLOAD_TOKEN_ENV, "")
        upload_url = args.upload_url or os.environ.get(UPLOAD_URL_ENV, "")

        return cls(
            events=args.events,
            duration=args.duration,
            label=str(args.label or ""),
            output_dir=args.output_dir,
            core_mode=core_mode,
            manual_cores=str(args.cores or "").strip(),
            perf_extra_opts=list(extra_opts or []),
            include_turbostat=args.turbostat,
            turbostat_iterations=args.turbostat_iterations,
            create_bundle=args.bundle,
            create_symbol_archive=args.symbol_archive,
            upload=args.upload,
            upload_url=upload_url,
            upload_token=upload_token,
            upload_timeout=args.upload_timeout,
            what_if=getattr(args, 'what_if', False),
        )

    def validate(self) -> "RunConfig":
        """
        Check cross-field invariants. Runs before any file is touched.

        Raises:
            ConfigurationError: On the first violated invariant.
        """
        if self.core_mode is CoreMode.MANUAL and not self.manual_cores:
            raise ConfigurationError(
                format_error('CONFIG_MANUAL_CORES_MISSING'),
                parameter="cores",
                suggestion="Pass --cores <list> or use --core-mode auto",
                code=ErrorCode.CONFIG_MISSING_REQUIRED,
            )
        if self.duration < 0:
            raise ConfigurationError(
                "Collection duration cannot be negative",
                parameter="duration",
                expected=">= 0 (0 = manual stop)",
                actual=self.duration,
            )
        if not self.events.strip():
            raise ConfigurationError(
                "No perf events given",
                parameter="events",
                code=ErrorCode.CONFIG_MISSING_REQUIRED,
            )
        if self.turbostat_iterations <= 0:
            raise ConfigurationError(
                "Turbostat iterations must be positive",
                parameter="turbostat_iterations",
                expected="> 0",
                actual=self.turbostat_iterations,
            )
        if self.upload_timeout <= 0:
            raise ConfigurationError(
                "Upload timeout must be positive",
                parameter="upload_timeout",
                expected="> 0",
                actual=self.upload_timeout,
            )
        if self.upload and not self.upload_url:
            raise ConfigurationError(
                format_error('CONFIG_UPLOAD_URL_MISSING', env_var=UPLOAD_URL_ENV),
                parameter="upload_url",
                code=ErrorCode.CONFIG_MISSING_REQUIRED,
            )
        return self

    def with_overrides(self, **changes) -> "RunConfig":
        return dataclasses.replace(self, **changes)

    def describe(self) -> dict:
        """Human-readable settings, in the order they are written to the info file."""
        return {
            'Perf Events': self.events,
            'Collection Duration': f"{self.duration}s "
                                   f"{'(timed)' if self.is_timed else '(manual stop)'}",
            'Test Label': self.label or "(none)",
            'Core Mode': self.core_mode.value,
            'Extra Perf Options': shlex.join(self.perf_extra_opts),
            'Include Turbostat': _yes_no(self.include_turbostat),
            'Create Bundle': _yes_no(self.create_bundle),
            'Create Symbol Archive': _yes_no(self.create_symbol_archive),
            'Upload': self.upload_url if self.upload else "no",
        }


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"
