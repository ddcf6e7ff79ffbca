from __future__ import annotations

import logging

from mi_matcher.logging.error_log import ErrorLogBuffer
from mi_matcher.models.archive_member import ArchiveMember, MemberStatus
from mi_matcher.models.error_record import ErrorRecord
from .progress import ProgressTracker

"""Extraction observers.

The extractor reports per-member progress through an ExtractionObserver instead
of logging itself. The base class is a no-op; MemberCollector keeps the
members for summary/exit-code decisions; LoggingObserver additionally writes to
the application logger, drives the tqdm progress bar and fills the error log.
"""

__all__ = [
    "ExtractionObserver",
    "MemberCollector",
    "LoggingObserver",
]


class ExtractionObserver:
    """No-op observer. Subclass and override what you need."""

    def on_start(self, total_members: int) -> None:
        pass

    def on_member(self, member: ArchiveMember) -> None:
        pass

    def on_finish(self, entries: int) -> None:
        pass


class MemberCollector(ExtractionObserver):
    """Collects every reported ArchiveMember in archive order."""

    def __init__(self) -> None:
        self.members: list[ArchiveMember] = []
        self.total_members = 0
        self.entries = 0

    def on_start(self, total_members: int) -> None:
        self.total_members = total_members

    def on_member(self, member: ArchiveMember) -> None:
        self.members.append(member)

    def on_finish(self, entries: int) -> None:
        self.entries = entries

    def count(self, status: MemberStatus) -> int:
        return sum(1 for m in self.members if m.status is status)


class LoggingObserver(MemberCollector):
    def __init__(
        self,
        logger: logging.Logger,
        error_log: ErrorLogBuffer | None = None,
        *,
        show_progress: bool = True,
    ) -> None:
        super().__init__()
        self.logger = logger
        self.error_log = error_log
        self.show_progress = show_progress
        self._progress: ProgressTracker | None = None

    def on_start(self, total_members: int) -> None:
        super().on_start(total_members)
        self.logger.info(f"billing archive: {total_members} eligible member(s)")
        if self.show_progress:
            self._progress = ProgressTracker(total_members, description="Reading billing files")

    def on_member(self, member: ArchiveMember) -> None:
        super().on_member(member)
        if member.status is MemberStatus.LOADED:
            self.logger.info(
                f"loaded {member.name} rows={member.rows_read} records={member.records} "
                f"serial_col={member.serial_column} value_col={member.value_column} "
                f"value_header={member.value_header!r}"
            )
        elif member.status is MemberStatus.SKIPPED:
            self.logger.info(f"skipped {member.name}: {member.reason} (size={member.size})")
        else:
            self.logger.warning(f"failed {member.name}: {member.reason}")
            if self.error_log is not None:
                self.error_log.append(
                    ErrorRecord.create(
                        file=member.name,
                        source="billing",
                        error_type="DECODE_ERROR",
                        message=member.reason or "",
                    )
                )
        if self._progress is not None:
            self._progress.advance(member.name)
            self._progress.set_postfix(
                loaded=self.count(MemberStatus.LOADED),
                failed=self.count(MemberStatus.FAILED),
            )

    def on_finish(self, entries: int) -> None:
        super().on_finish(entries)
        if self._progress is not None:
            self._progress.close()
            self._progress = None
        self.logger.debug(f"billing dictionary entries={entries}")
