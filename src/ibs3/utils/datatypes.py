"""
Contains classes representing backup intervals and the files a run produces.
"""
import os
from datetime import date
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import List, Optional

from .converters import format_date


@total_ordering
class Interval(Enum):
    """
    Backup tiers. Ordered from the longest to the shortest interval:
    base < yearly < monthly < weekly < daily
    """
    BASE = 'base'
    YEARLY = 'yearly'
    MONTHLY = 'monthly'
    WEEKLY = 'weekly'
    DAILY = 'daily'

    def __str__(self):
        return self.value

    def __lt__(self, other):
        if not isinstance(other, Interval):
            return NotImplemented
        return self.level < other.level

    @property
    def level(self) -> int:
        """
        tar --level for this interval. base=0 ... daily=4
        """
        return _ORDER.index(self)

    @property
    def predecessor(self) -> Optional['Interval']:
        """
        Interval whose snapshot state seeds this one. None for base.
        """
        if self is Interval.BASE:
            return None
        return _ORDER[self.level - 1]

    @classmethod
    def ordered(cls) -> List['Interval']:
        return list(_ORDER)


_ORDER = (Interval.BASE, Interval.YEARLY, Interval.MONTHLY, Interval.WEEKLY, Interval.DAILY)


class Artifact:
    """
    Archive + snapshot state produced by one build.
    Both files live in the work dir and are removed after the upload.
    """

    def __init__(self, interval: Interval, name: str, run_date: date,
                 work_dir: Optional[Path] = None):
        """
        :param interval: interval of the archive
        :param name: base name of the backed up directory
        :param run_date: date of the run
        :param work_dir: folder containing the files
        """
        self.interval = interval
        self.name = name
        self.date = run_date
        self.work_dir = Path(work_dir) if work_dir else Path('.')

    def __str__(self):
        return f'{self.interval.value.capitalize()} Backup {self.archive_path.name}'

    def __repr__(self):
        return f'Artifact({self.interval.value!r}, {self.name!r}, {format_date(self.date)!r})'

    def __eq__(self, other):
        if not isinstance(other, Artifact):
            return NotImplemented
        return (self.interval, self.name, self.date) == (other.interval, other.name, other.date)

    def __hash__(self):
        return hash((self.interval, self.name, self.date))

    @property
    def _stem(self) -> str:
        return f'{self.interval.value}_{self.name}_{format_date(self.date)}'

    @property
    def archive_path(self) -> Path:
        return self.work_dir / f'{self._stem}.tar.gz'

    @property
    def snapshot_path(self) -> Path:
        return self.work_dir / f'{self._stem}.snar'

    @property
    def files(self) -> List[Path]:
        return [self.archive_path, self.snapshot_path]


class UploadJob:
    """
    A file which has to be uploaded + its size.
    """

    def __init__(self, path: Path, size: Optional[int] = None):
        self.path = Path(path)
        self.size = size if size is not None else os.path.getsize(self.path)

    def __str__(self):
        return f'{self.key} ({self.size} bytes)'

    @property
    def key(self) -> str:
        """
        object key -> the name of the file
        """
        return self.path.name
