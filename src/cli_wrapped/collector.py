"""Collect sessions and messages from a data source's directory tree."""

from __future__ import annotations

import concurrent.futures
import json
import logging
import os
from pathlib import Path
from typing import Optional

from .config import (
    DOCUMENT_FILE_SUFFIX,
    LOG_FILE_SUFFIX,
    MAX_WORKERS,
    DataPaths,
    check_data_exists,
    get_data_path,
    validate_source,
)
from .models import CollectedData, ParseResult, ProjectData
from .parser import DOCUMENT_PARSERS, LOG_PARSERS

logger = logging.getLogger(__name__)

# Sources whose sessions can show up in more than one file
FRAGMENTED_SOURCES = {"claude", "opencode"}


def read_text(path: Path) -> Optional[str]:
    """Read a file, returning None if it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        logger.warning("Failed to read %s: %s", path, e)
        return None


def find_jsonl_files(root: Path) -> list[Path]:
    """Recursively find log files under root, skipping unreadable directories."""
    files: list[Path] = []

    def on_error(e: OSError) -> None:
        logger.warning("Failed to read %s: %s", e.filename, e)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(LOG_FILE_SUFFIX):
                files.append(Path(dirpath) / name)
    return files


def build_projects(sessions: list, source: str) -> list[ProjectData]:
    """Group sessions by working directory, in first-seen order."""
    counts: dict[str, int] = {}
    for session in sessions:
        counts[session.cwd] = counts.get(session.cwd, 0) + 1
    return [
        ProjectData(path=path, session_count=count, source=source)
        for path, count in counts.items()
    ]


def merge_results(results: list[ParseResult], source: str) -> CollectedData:
    """Fold per-unit results into one collection.

    Runs after every parse in the batch has finished. For sources whose
    sessions are fragmented across files, the first registered id wins.
    """
    sessions = []
    messages = []
    seen: set[str] = set()
    dedupe = source in FRAGMENTED_SOURCES

    for result in results:
        for session in result.sessions:
            if dedupe:
                if session.id in seen:
                    continue
                seen.add(session.id)
            sessions.append(session)
        messages.extend(result.messages)

    return CollectedData(
        sessions=sessions,
        messages=messages,
        projects=build_projects(sessions, source),
    )


def _parse_log_file(source: str, path: Path, year: Optional[int]) -> ParseResult:
    text = read_text(path)
    if text is None:
        return ParseResult()
    return LOG_PARSERS[source](text, year)


def collect_log_files(source: str, root: Path, year: Optional[int] = None) -> list[ParseResult]:
    """Parse every log file of a line-oriented source in parallel."""
    files = find_jsonl_files(root)
    if not files:
        return []

    with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        return list(executor.map(lambda path: _parse_log_file(source, path, year), files))


# ============ OpenCode document trees ============


def _list_group(group_dir: Path) -> list[Path]:
    try:
        return sorted(
            entry
            for entry in group_dir.iterdir()
            if entry.name.endswith(DOCUMENT_FILE_SUFFIX) and entry.is_file()
        )
    except OSError as e:
        logger.warning("Failed to read %s: %s", group_dir, e)
        return []


def find_documents(tree_root: Path) -> list[Path]:
    """List <tree_root>/<group>/<document>.json files, one listing per group in parallel."""
    try:
        groups = sorted(entry for entry in tree_root.iterdir() if entry.is_dir())
    except OSError as e:
        logger.warning("Failed to read %s: %s", tree_root, e)
        return []
    if not groups:
        return []

    with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        listings = list(executor.map(_list_group, groups))
    return [path for listing in listings for path in listing]


def _parse_document(kind: str, path: Path, year: Optional[int]) -> ParseResult:
    text = read_text(path)
    if text is None:
        return ParseResult()
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        return ParseResult()
    return DOCUMENT_PARSERS[kind](document, year)


def collect_document_tree(kind: str, tree_root: Path, year: Optional[int] = None) -> list[ParseResult]:
    """Parse every document of one OpenCode tree ("session" or "message") in parallel."""
    documents = find_documents(tree_root)
    if not documents:
        return []

    with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        return list(executor.map(lambda path: _parse_document(kind, path, year), documents))


def collect_opencode(root: Path, year: Optional[int] = None) -> CollectedData:
    """Collect the session and message trees of an OpenCode storage directory concurrently."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(DOCUMENT_PARSERS)) as executor:
        future_to_kind = {
            executor.submit(collect_document_tree, kind, root / kind, year): kind
            for kind in DOCUMENT_PARSERS
        }
        results = {future_to_kind[future]: future.result() for future in future_to_kind}

    return merge_results(results["session"] + results["message"], "opencode")


def collect_all(
    source: str,
    year: Optional[int] = None,
    paths: Optional[DataPaths] = None,
) -> CollectedData:
    """Collect sessions, messages and projects for a source.

    A missing or unreadable root yields empty collections.
    """
    validate_source(source)
    root = get_data_path(source, paths)

    if not check_data_exists(source, paths):
        logger.debug("No %s data at %s", source, root)
        return CollectedData()

    if source == "opencode":
        collected = collect_opencode(root, year)
    else:
        collected = merge_results(collect_log_files(source, root, year), source)

    logger.debug(
        "Collected %d sessions, %d messages, %d projects from %s",
        len(collected.sessions),
        len(collected.messages),
        len(collected.projects),
        root,
    )
    return collected
