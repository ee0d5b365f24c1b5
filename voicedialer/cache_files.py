"""
On-disk layout of the grammar cache directory.

    <cache_dir>/voicedialer.<fingerprint>.g2g   compiled grammar (at most one)
    <cache_dir>/openentries.json                open-entry index
"""

from pathlib import Path

from voicedialer.logger import get_logger

logger = get_logger(__name__)

GRAMMAR_SUFFIX = ".g2g"
GRAMMAR_PREFIX = "voicedialer."
OPEN_ENTRIES_FILE = "openentries.json"


def grammar_path(cache_dir: Path, contact_fingerprint: str) -> Path:
    return Path(cache_dir) / f"{GRAMMAR_PREFIX}{contact_fingerprint}{GRAMMAR_SUFFIX}"


def open_entries_path(cache_dir: Path) -> Path:
    return Path(cache_dir) / OPEN_ENTRIES_FILE


def delete_all_grammar_files(cache_dir: Path) -> int:
    """Delete every compiled grammar in cache_dir. Returns the count removed.

    Only one should exist at a time, but stale ones are removed too.
    """
    cache_dir = Path(cache_dir)
    if not cache_dir.is_dir():
        return 0
    removed = 0
    for path in cache_dir.glob(f"*{GRAMMAR_SUFFIX}"):
        logger.debug(f"Deleting grammar file {path}")
        path.unlink(missing_ok=True)
        removed += 1
    return removed


def delete_cached_grammar_files(cache_dir: Path):
    """Delete grammar and open-entry files so both are rebuilt from scratch."""
    delete_all_grammar_files(cache_dir)
    oe = open_entries_path(cache_dir)
    logger.debug(f"Deleting open entries {oe}")
    oe.unlink(missing_ok=True)
