"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, as_completed
from dataclasses import dataclass
from pathlib import Path

from .aggregator import FragmentLoader, aggregate
from .deadline import NO_DEADLINE, Deadline
from .errors import TokenizeError
from .extender import find_clone_pairs
from .index import build_index
from .models import (
    Clone,
    CloneReport,
    DetectionConfig,
    GroupResult,
    Occurrence,
    TokenStream,
)
from .tokenizer import Language, get_strategy

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BATCH_SIZE = 100

ProgressCallback = Callable[[int], None]


@dataclass(slots=True)
class ProcessingResult:
    """Result of tokenizing a single file."""

    filepath: str
    success: bool
    error: str | None = None
    stream: TokenStream | None = None
    error_kind: str | None = None


def process_file(filepath: str, language: Language, fuzzy: bool) -> ProcessingResult:
    """
    Tokenize one file, turning every per-file failure into a result.

    Args:
        filepath: Path of the file to tokenize
        language: Language tag selecting the tokenizer strategy
        fuzzy: Replace identifiers with per-class placeholders

    Returns:
        ProcessingResult holding the token stream on success.
    """

    try:
        try:
            st_size = os.path.getsize(filepath)
            if st_size > MAX_FILE_SIZE:
                return ProcessingResult(
                    filepath=filepath,
                    success=False,
                    error=f"File too large: {st_size} bytes (max {MAX_FILE_SIZE})",
                    error_kind="file_too_large",
                )
        except OSError as e:
            return ProcessingResult(
                filepath=filepath,
                success=False,
                error=f"Cannot stat file: {e}",
                error_kind="stat_error",
            )

        try:
            content = Path(filepath).read_bytes()
        except OSError as e:
            return ProcessingResult(
                filepath=filepath,
                success=False,
                error=f"Cannot read file: {e}",
                error_kind="source_read_error",
            )

        try:
            stream = get_strategy(language).tokenize(content, filepath, fuzzy=fuzzy)
        except TokenizeError as e:
            return ProcessingResult(
                filepath=filepath,
                success=False,
                error=str(e),
                error_kind="tokenize_error",
            )

        return ProcessingResult(filepath=filepath, success=True, stream=stream)

    except Exception as e:
        return ProcessingResult(
            filepath=filepath,
            success=False,
            error=f"Unexpected error: {type(e).__name__}: {e}",
            error_kind="unexpected_error",
        )


class ProgressCounter:
    """Monotonic count of completed files, safe to advance from any thread."""

    __slots__ = ("_callback", "_completed", "_lock")

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._completed = 0
        self._lock = threading.Lock()

    @property
    def completed(self) -> int:
        return self._completed

    def advance(self) -> int:
        # callbacks observe strictly increasing counts
        with self._lock:
            self._completed += 1
            completed = self._completed
            if self._callback is not None:
                self._callback(completed)
        return completed


def _line_fragment_loader() -> FragmentLoader:
    cache: dict[str, list[str]] = {}

    def _load(occurrence: Occurrence) -> str:
        lines = cache.get(occurrence.filepath)
        if lines is None:
            try:
                text = Path(occurrence.filepath).read_text("utf-8", errors="replace")
            except OSError:
                text = ""
            lines = text.splitlines()
            cache[occurrence.filepath] = lines
        return "\n".join(lines[occurrence.start_line - 1 : occurrence.end_line])

    return _load


def detect_clones(
    streams: Sequence[TokenStream],
    config: DetectionConfig,
    *,
    deadline: Deadline = NO_DEADLINE,
    fragment_loader: FragmentLoader | None = None,
) -> list[Clone]:
    """Index, extend and aggregate the token streams of one language group."""
    index = build_index(streams, config.min_tokens, deadline=deadline)
    pairs = find_clone_pairs(index, config.min_lines, deadline=deadline)
    deadline.check()
    return aggregate(
        pairs,
        index=index,
        min_lines=config.min_lines,
        fragment_loader=fragment_loader,
    )


class CloneDetector:
    """
    Engine shared by the language groups of one run.

    Files are tokenized through ``executor`` when one is given, then indexed
    and matched in this process. A pool that fails to run is dropped for the
    rest of the run and the remaining files are tokenized in-process.
    """

    __slots__ = ("deadline", "executor", "progress")

    def __init__(
        self,
        *,
        executor: Executor | None = None,
        progress: ProgressCounter | None = None,
        deadline: Deadline = NO_DEADLINE,
    ) -> None:
        self.executor = executor
        self.progress = progress
        self.deadline = deadline

    def copy_paste_detection(
        self,
        files: Sequence[str],
        language: Language,
        config: DetectionConfig,
        *,
        group: str | None = None,
    ) -> GroupResult:
        results, parallel_error = self._tokenize(files, language, config.fuzzy)

        streams: list[TokenStream] = []
        failed_files: list[str] = []
        for fp in files:
            result = results[fp]
            if result.success and result.stream is not None:
                streams.append(result.stream)
            else:
                failed_files.append(f"{fp}: {result.error}")

        clones = detect_clones(
            streams,
            config,
            deadline=self.deadline,
            fragment_loader=_line_fragment_loader(),
        )
        report = CloneReport(
            group=group or f"*.{language.value}",
            language=language.value,
            clones=tuple(clones),
            file_count=len(streams),
            line_count=sum(s.line_count for s in streams),
        )
        return GroupResult(
            report=report,
            files_analyzed=len(streams),
            failed_files=failed_files,
            parallel_error=parallel_error,
        )

    def _advance(self) -> None:
        if self.progress is not None:
            self.progress.advance()

    def _tokenize(
        self,
        files: Sequence[str],
        language: Language,
        fuzzy: bool,
    ) -> tuple[dict[str, ProcessingResult], str | None]:
        results: dict[str, ProcessingResult] = {}
        parallel_error: str | None = None
        if self.executor is not None:
            try:
                self._tokenize_parallel(files, language, fuzzy, results)
            except (OSError, RuntimeError, PermissionError) as e:
                parallel_error = str(e) or type(e).__name__
                self.executor = None

        for fp in files:
            if fp in results:
                continue
            self.deadline.check()
            results[fp] = process_file(fp, language, fuzzy)
            self._advance()
        return results, parallel_error

    def _tokenize_parallel(
        self,
        files: Sequence[str],
        language: Language,
        fuzzy: bool,
        results: dict[str, ProcessingResult],
    ) -> None:
        assert self.executor is not None
        # Process in batches to manage memory
        for i in range(0, len(files), BATCH_SIZE):
            batch = files[i : i + BATCH_SIZE]
            futures: list[Future[ProcessingResult]] = [
                self.executor.submit(process_file, fp, language, fuzzy)
                for fp in batch
            ]
            future_to_fp = {id(fut): fp for fut, fp in zip(futures, batch, strict=True)}
            for future in as_completed(futures):
                self.deadline.check()
                results[future_to_fp[id(future)]] = future.result()
                self._advance()
