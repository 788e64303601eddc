"""
Storage of the tar snapshot files (snar) which link the incremental chain.
"""
import os
import shutil
from pathlib import Path
from typing import Optional

from loguru import logger

from ibs3.utils.datatypes import Artifact, Interval


class MissingSnapshotError(FileNotFoundError):
    """
    The snapshot state of the predecessor interval does not exist yet.
    """


class SnapshotStateStore:
    """
    Keeps one snapshot record per (directory, interval) in the work dir.
    {interval}_{name}.snar is the current chain position of an interval.
    {name}.snar is the working copy handed to tar during a build.
    """

    def __init__(self, work_dir: Path):
        """
        :param work_dir: folder for snapshot records and archives
        """
        self.work_dir = Path(work_dir)

    def record(self, name: str, interval: Interval) -> Path:
        return self.work_dir / f'{interval.value}_{name}.snar'

    def working(self, name: str) -> Path:
        return self.work_dir / f'{name}.snar'

    def exists(self, name: str, interval: Interval) -> bool:
        return self.record(name, interval).is_file()

    def seed(self, name: str, predecessor: Optional[Interval]) -> Path:
        """
        Prepare the working snapshot file for a build.
        The record of the predecessor is copied. It stays intact for later runs.
        :param name: directory name
        :param predecessor: interval to branch from. None for a base backup.
        :return: path of the working snapshot file
        """
        working = self.working(name)
        if predecessor is None:
            # level 0 -> tar starts a new chain
            if working.exists():
                logger.debug(f'Removing stale working snapshot {working}')
                working.unlink()
            return working

        source = self.record(name, predecessor)
        if not source.is_file():
            raise MissingSnapshotError(
                f'No {predecessor} snapshot for {name} ({source})! '
                f'Create a {predecessor} backup first.')
        logger.info(f'Using {source.name} to create an incremental backup...')
        shutil.copyfile(source, working)
        return working

    def commit(self, working: Path, artifact: Artifact) -> Path:
        """
        Store the updated snapshot state of a finished build.
        Overwrites the previous record of the interval.
        :param working: working snapshot file updated by tar
        :param artifact: the artifact the build produced
        :return: path of the new record
        """
        target = self.record(artifact.name, artifact.interval)
        shutil.copyfile(working, artifact.snapshot_path)
        os.replace(working, target)
        logger.debug(f'Snapshot state of {artifact.interval} {artifact.name} -> {target.name}')
        return target

    def discard(self, working: Path) -> None:
        """
        Remove the working snapshot file after a failed build.
        """
        if Path(working).exists():
            os.remove(working)
