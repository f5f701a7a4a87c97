"""
Batch orchestration.

Plans and runs one signing attempt per resolved input file and folds the
per-file outcomes into a single process status.
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol, TextIO, Tuple, Union

from .naming import DEFAULT_EXTENSION, OutputNaming, build_output_path
from .paths import is_readable, resolve


class SigningInvoker(Protocol):
    """Anything able to sign one input file into one output file."""

    def sign(self, input_path: str, output_path: str) -> bool:
        ...


Invoker = Union[Callable[[str, str], bool], SigningInvoker]


class ProcessStatus(Enum):
    """Outcome of a whole batch."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    ALL_FAILED = "all_failed"
    # Reserved for the command line layer, never returned by a batch run.
    NO_COMMAND = "no_command"


@dataclass(frozen=True)
class SigningConfig:
    """Read-only description of a batch."""

    patterns: Tuple[str, ...] = ()
    in_file: Optional[str] = None
    out_file: Optional[str] = None
    out_dir: str = ""
    out_prefix: str = ""
    out_suffix: str = ""
    default_extension: str = DEFAULT_EXTENSION
    assume_default_extension: bool = False

    @property
    def naming(self) -> OutputNaming:
        return OutputNaming(
            directory=self.out_dir,
            prefix=self.out_prefix,
            suffix=self.out_suffix,
            extension=self.default_extension,
            assume_extension=self.assume_default_extension,
        )

    @property
    def explicit_pair(self) -> bool:
        return bool(self.in_file) and bool(self.out_file)

    def has_work(self) -> bool:
        """True if the configuration names anything to sign."""
        return bool(self.patterns) or self.explicit_pair


@dataclass(frozen=True)
class ResolvedFile:
    """An input file paired with the path its signed copy is written to."""

    input_path: str
    output_path: str


@dataclass
class BatchResult:
    """Success and failure counters of a single batch run."""

    success_count: int = 0
    failed_count: int = 0

    def record(self, ok: bool) -> None:
        if ok:
            self.success_count += 1
        else:
            self.failed_count += 1

    def status(self) -> ProcessStatus:
        """
        Derive the process status from the counters.

        A batch without failures succeeds, including one that signed nothing.
        """
        if self.failed_count == 0:
            return ProcessStatus.SUCCESS
        if self.success_count > 0:
            return ProcessStatus.PARTIAL_FAILURE
        return ProcessStatus.ALL_FAILED


def _as_callable(invoker: Invoker) -> Callable[[str, str], bool]:
    sign = getattr(invoker, "sign", None)
    if callable(sign):
        return sign
    return invoker


class BatchOrchestrator:
    """
    Drives pattern resolution, output naming and signing for one batch.

    Files are handled strictly one after another, in pattern order and then
    in resolution order. A failing file is counted and never stops the batch.
    """

    def __init__(self, invoker: Optional[Invoker] = None, errors: Optional[TextIO] = None):
        self.invoker = invoker
        self.errors = errors
        self._invoke = _as_callable(invoker)

    @property
    def error_stream(self) -> TextIO:
        return self.errors if self.errors is not None else sys.stderr

    def report(self, message: str) -> None:
        print(message, file=self.error_stream)

    def plan(self, config: SigningConfig) -> Iterator[ResolvedFile]:
        """
        Yield the files a batch would sign, without signing anything.

        Unreadable files are left out.

        Args:
            config: Batch configuration

        Yields:
            Resolved input/output pairs in processing order
        """
        if not config.patterns:
            if config.explicit_pair:
                yield ResolvedFile(config.in_file, config.out_file)
            return

        for resolved, readable in self._resolve_all(config):
            if readable:
                yield resolved

    def sign_all(self, config: SigningConfig) -> BatchResult:
        """
        Sign every file of the batch.

        In explicit pair mode exactly one file is signed and no pattern is
        resolved.

        Args:
            config: Batch configuration

        Returns:
            Counters of this run
        """
        result = BatchResult()

        if not config.patterns:
            result.record(self._sign(ResolvedFile(config.in_file, config.out_file)))
            return result

        for resolved, readable in self._resolve_all(config):
            if not readable:
                result.record(False)
                self.report(f"File '{resolved.input_path}' is not readable.")
                continue
            result.record(self._sign(resolved))

        return result

    def run(self, config: SigningConfig) -> ProcessStatus:
        """Sign every file of the batch and return the combined status."""
        return self.sign_all(config).status()

    def _resolve_all(self, config: SigningConfig) -> Iterator[Tuple[ResolvedFile, bool]]:
        naming = config.naming
        for pattern in config.patterns:
            for input_path in resolve(pattern):
                output_path = build_output_path(os.path.basename(input_path), naming)
                yield ResolvedFile(input_path, output_path), is_readable(input_path)

    def _sign(self, resolved: ResolvedFile) -> bool:
        try:
            return bool(self._invoke(resolved.input_path, resolved.output_path))
        except Exception as e:
            self.report(f"Error signing '{resolved.input_path}': {e}")
            return False


def run_batch(config: SigningConfig, invoke: Invoker, errors: Optional[TextIO] = None) -> ProcessStatus:
    """Run one batch with ``invoke`` as the signing operation."""
    return BatchOrchestrator(invoke, errors).run(config)
