"""State Factory - Shared utility for building a TraceState from log files.

This module provides the single entry point the commands use to turn a
list of log files into a merged TraceState. Files (or chunks of files)
are parsed as independent shards on a process pool and the partial
states are merged by tree reduction.
"""

from __future__ import annotations

import gzip
import os
from concurrent.futures import ProcessPoolExecutor
from glob import glob
from pathlib import Path
from typing import Any, Callable, Iterator, Sequence

from mailparse.graph.builder import ShardLine, parse_shard
from mailparse.graph.diagnostics import DiagnosticCallback
from mailparse.graph.parsers.postfix import PostfixClassifier
from mailparse.graph.state import TraceState, reduce_states

# Called as (source, shard state) when a shard is done
ProgressCallback = Callable[[str, TraceState], None]


def discover_log_files(patterns: Sequence[str]) -> list[Path]:
    """Expand glob patterns (``**`` allowed) into a sorted list of files.

    Args:
        patterns: Glob patterns, e.g. ``/var/log/**/mail*.log``.

    Returns:
        Matching regular files, deduplicated and sorted.

    Raises:
        FileNotFoundError: If no pattern matches any file.
    """
    found: set[Path] = set()
    for pattern in patterns:
        for match in glob(pattern, recursive=True):
            path = Path(match)
            if path.is_file():
                found.add(path)
    if not found:
        raise FileNotFoundError(f"No log file found at {', '.join(patterns)}")
    return sorted(found)


def iter_log_lines(path: Path) -> Iterator[ShardLine]:
    """Read a log file as (source, line number, text) triples.

    Lines are split on ``\\n`` only and decoded as UTF-8 with invalid
    bytes replaced. Files ending in ``.gz`` are decompressed.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    source = str(path)
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "rb") as handle:
        for line_number, raw in enumerate(handle, start=1):
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            yield source, line_number, text


def split_chunks(lines: Sequence[ShardLine], chunk_lines: int) -> list[list[ShardLine]]:
    """Split lines into consecutive chunks of at most chunk_lines lines."""
    if chunk_lines <= 0:
        return [list(lines)]
    return [list(lines[i : i + chunk_lines]) for i in range(0, len(lines), chunk_lines)]


def _parse_file(path: str, classifier: PostfixClassifier) -> TraceState:
    """Worker entry point: parse a whole file as one shard."""
    return parse_shard(iter_log_lines(Path(path)), classifier)


def _parse_chunk(lines: list[ShardLine], classifier: PostfixClassifier) -> TraceState:
    """Worker entry point: parse an in-memory chunk as one shard."""
    return parse_shard(lines, classifier)


Shard = tuple[str, Callable[..., TraceState], Any]


def _plan_shards(paths: Sequence[Path], chunk_lines: int) -> list[Shard]:
    """Decide the shards to parse: (source, worker function, argument)."""
    shards: list[Shard] = []
    for path in paths:
        if chunk_lines > 0:
            lines = list(iter_log_lines(path))
            for chunk in split_chunks(lines, chunk_lines):
                shards.append((str(path), _parse_chunk, chunk))
        else:
            shards.append((str(path), _parse_file, str(path)))
    return shards


def resolve_jobs(jobs: int) -> int:
    """Number of worker processes for a ``jobs`` setting (0 = one per CPU)."""
    if jobs > 0:
        return jobs
    return os.cpu_count() or 1


def load_state(
    paths: Sequence[Path],
    config: dict[str, Any] | None = None,
    jobs: int | None = None,
    chunk_lines: int | None = None,
    classifier: PostfixClassifier | None = None,
    on_diagnostic: DiagnosticCallback | None = None,
    on_progress: ProgressCallback | None = None,
) -> TraceState:
    """Parse log files into one merged TraceState.

    This is the standard way for commands to obtain a TraceState. It
    handles:
    - Classifier construction from the ``[parser]`` config section
    - Sharding per file, or per chunk of ``chunk_lines`` lines
    - Parallel parsing on ``jobs`` worker processes (1 = in-process)
    - Tree reduction of the partial states

    Diagnostics are reported shard by shard, in shard order, once each
    shard completes.

    Args:
        paths: Log files to read.
        config: Configuration dict (optional).
        jobs: Worker processes; overrides ``workers.jobs``.
        chunk_lines: Lines per shard; overrides ``workers.chunk_lines``.
        classifier: Line classifier; overrides the ``[parser]`` section.
        on_diagnostic: Called with each shard's diagnostics.
        on_progress: Called with (source, shard state) per finished shard.

    Returns:
        The merged TraceState.

    Raises:
        OSError: If a log file cannot be read.
    """
    config = config or {}
    workers_config = config.get("workers", {})
    if jobs is None:
        jobs = int(workers_config.get("jobs", 0))
    if chunk_lines is None:
        chunk_lines = int(workers_config.get("chunk_lines", 0))
    if classifier is None:
        classifier = PostfixClassifier.from_config(config)

    shards = _plan_shards(paths, chunk_lines)
    workers = min(resolve_jobs(jobs), max(len(shards), 1))

    states: list[TraceState] = []
    if workers <= 1:
        for source, func, arg in shards:
            state = func(arg, classifier)
            _report_shard(source, state, on_diagnostic, on_progress)
            states.append(state)
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(func, arg, classifier) for _, func, arg in shards]
            for (source, _, _), future in zip(shards, futures):
                state = future.result()
                _report_shard(source, state, on_diagnostic, on_progress)
                states.append(state)

    return reduce_states(states)


def _report_shard(
    source: str,
    state: TraceState,
    on_diagnostic: DiagnosticCallback | None,
    on_progress: ProgressCallback | None,
) -> None:
    if on_diagnostic is not None:
        for diagnostic in state.diagnostics:
            on_diagnostic(diagnostic)
    if on_progress is not None:
        on_progress(source, state)
