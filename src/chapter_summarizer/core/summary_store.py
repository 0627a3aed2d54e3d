"""Persist generated summaries as timestamped plain-text records."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable

from chapter_summarizer.errors import StoreError
from chapter_summarizer.models.summary import SummaryRecord

log = logging.getLogger(__name__)

FILENAME_TIME_FORMAT = "%Y%m%d_%H%M%S"
HEADER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_TITLE_LENGTH = 80


def sanitize_title(title: str) -> str:
    """Make a chapter title safe for use in a filename.

    Keeps ASCII letters, digits, spaces and hyphens, then turns whitespace
    runs into underscores.
    """
    cleaned = re.sub(r"[^A-Za-z0-9\s-]", "", title).strip()
    cleaned = re.sub(r"\s+", "_", cleaned)
    return cleaned[:MAX_TITLE_LENGTH] or "untitled"


def format_record(record: SummaryRecord) -> str:
    """Render a record as header lines, a blank line and the body."""
    return (
        f"Chapter: {record.chapter_title}\n"
        f"Date: {record.timestamp.strftime(HEADER_TIME_FORMAT)}\n"
        f"Model: {record.model}\n"
        f"\n"
        f"{record.content}\n"
    )


class SummaryStore:
    """Append-only directory of saved summaries."""

    SUFFIX = ".txt"

    def __init__(self, directory: Path, clock: Callable[[], datetime] = datetime.now):
        self.directory = directory
        self._clock = clock

    def _ensure_dir(self) -> None:
        """Create the summaries directory if it doesn't exist."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def _new_path(self, timestamp: datetime, chapter_title: str) -> Path:
        stem = f"{timestamp.strftime(FILENAME_TIME_FORMAT)}_{sanitize_title(chapter_title)}"
        path = self.directory / f"{stem}{self.SUFFIX}"
        counter = 2
        # Never overwrite a record saved within the same second
        while path.exists():
            path = self.directory / f"{stem}_{counter}{self.SUFFIX}"
            counter += 1
        return path

    def save(self, chapter_title: str, content: str, model: str) -> Path:
        """Write a new summary record and return its path.

        Raises:
            StoreError: If the directory or file cannot be written.
        """
        record = SummaryRecord(
            chapter_title=chapter_title,
            timestamp=self._clock().replace(microsecond=0),
            model=model,
            content=content,
        )
        try:
            self._ensure_dir()
            path = self._new_path(record.timestamp, chapter_title)
            with open(path, "x", encoding="utf-8") as f:
                f.write(format_record(record))
        except OSError as e:
            raise StoreError(f"Could not save summary: {e}") from e

        log.info(f"Saved summary to {path}")
        return path

    def list(self) -> list[SummaryRecord]:
        """Return saved records, newest first. A missing directory is empty."""
        if not self.directory.is_dir():
            return []

        records = []
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            try:
                records.append(self._read_record(path))
            except StoreError as e:
                log.warning(f"Skipping unreadable summary {path.name}: {e.message}")

        records.sort(key=lambda r: (r.timestamp, r.path.name if r.path else ""), reverse=True)
        return records

    def resolve(self, path: Path | str) -> Path:
        """Resolve a bare filename against the store directory.

        Paths with a directory part are used as given.
        """
        candidate = Path(path)
        if not candidate.is_absolute() and candidate.parent == Path("."):
            return self.directory / candidate
        return candidate

    def load(self, path: Path | str) -> str:
        """Return the full text of a saved record.

        Raises:
            StoreError: If the file cannot be read.
        """
        target = self.resolve(path)
        try:
            return target.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Could not read summary: {e}") from e

    def delete(self, path: Path | str) -> None:
        """Remove a saved record from the store directory.

        Raises:
            StoreError: If the file is outside the store or cannot be removed.
        """
        target = self.resolve(path)
        if target.resolve().parent != self.directory.resolve():
            raise StoreError(f"Not a saved summary: {target}")
        try:
            target.unlink()
        except OSError as e:
            raise StoreError(f"Could not delete summary: {e}") from e
        log.info(f"Deleted summary {target.name}")

    def _read_record(self, path: Path) -> SummaryRecord:
        """Parse a record file, falling back to its filename for metadata."""
        text = self.load(path)
        header, sep, body = text.partition("\n\n")
        fields: dict[str, str] = {}
        if sep:
            for line in header.splitlines():
                key, colon, value = line.partition(": ")
                if colon:
                    fields[key] = value

        timestamp = None
        if "Date" in fields:
            try:
                timestamp = datetime.strptime(fields["Date"], HEADER_TIME_FORMAT)
            except ValueError:
                timestamp = None

        if timestamp is None or "Chapter" not in fields:
            return self._record_from_filename(path, text)

        return SummaryRecord(
            chapter_title=fields["Chapter"],
            timestamp=timestamp,
            model=fields.get("Model", "unknown"),
            content=body.rstrip("\n"),
            path=path,
        )

    def _record_from_filename(self, path: Path, text: str) -> SummaryRecord:
        stamp, title = path.stem[:15], path.stem[16:]
        try:
            timestamp = datetime.strptime(stamp, FILENAME_TIME_FORMAT)
        except ValueError:
            timestamp = datetime.fromtimestamp(path.stat().st_mtime).replace(microsecond=0)
            title = path.stem
        return SummaryRecord(
            chapter_title=title.replace("_", " ") or path.stem,
            timestamp=timestamp,
            model="unknown",
            content=text.strip(),
            path=path,
        )
