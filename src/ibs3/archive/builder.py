"""
Builds one archive of the incremental chain.
"""
import os
from datetime import date
from enum import Enum
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ibs3.archive.state import SnapshotStateStore
from ibs3.archive.tar import TarArchiver
from ibs3.utils.datatypes import Artifact, Interval


class ConflictPolicy(Enum):
    """
    What to do if an artifact of the same day already exists.
    """
    OVERWRITE = 'overwrite'
    REJECT = 'reject'


class ArtifactConflictError(FileExistsError):
    """
    An artifact for the same interval, directory and day already exists.
    """


class ArchiveBuilder:
    """
    Creates an archive + snapshot state for an interval.
    """

    def __init__(self, archiver: TarArchiver, state_store: SnapshotStateStore,
                 conflict_policy: ConflictPolicy = ConflictPolicy.OVERWRITE):
        """
        :param archiver: archiving primitive
        :param state_store: snapshot records
        :param conflict_policy: handling of same-day artifacts. default: overwrite
        """
        self.archiver = archiver
        self.state_store = state_store
        self.conflict_policy = conflict_policy

    def artifact(self, target: Interval, directory: Path,
                 run_date: Optional[date] = None) -> Artifact:
        """
        Get the artifact a build of target would create.
        """
        return Artifact(target, Path(directory).name, run_date or date.today(),
                        work_dir=self.state_store.work_dir)

    def resolve_conflict(self, artifact: Artifact, existing: List[str]) -> None:
        """
        Apply the conflict policy to files of artifact which already exist.
        :param artifact: artifact to build
        :param existing: names of the files of artifact which exist locally or in the store
        :raises ArtifactConflictError: policy reject and existing is not empty
        """
        if not existing:
            return
        match self.conflict_policy:
            case ConflictPolicy.REJECT:
                raise ArtifactConflictError(
                    f'{artifact} already exists for {artifact.date}! '
                    f'({", ".join(existing)})')
            case ConflictPolicy.OVERWRITE:
                logger.warning(f'Overwriting existing {artifact} of the same day.')

    def build(self, predecessor: Optional[Interval], level: int, target: Interval,
              directory: Path, run_date: Optional[date] = None) -> Artifact:
        """
        Create the archive of directory for the target interval.
        The snapshot record of target is only replaced if tar succeeded.
        :param predecessor: interval to branch from. None for base.
        :param level: tar level
        :param target: interval of the new archive
        :param directory: directory to back up
        :param run_date: date used in the file names. default: today
        :return: created artifact
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f'Source directory {directory} does not exist!')
        artifact = self.artifact(target, directory, run_date)
        self.resolve_conflict(artifact, [x.name for x in artifact.files if x.exists()])

        working = self.state_store.seed(artifact.name, predecessor)
        logger.info(f'Creating a new {target} backup (level {level}) of {directory}: '
                    f'{artifact.archive_path.name}')
        try:
            self.archiver.create(directory, working, level, artifact.archive_path)
        except Exception:
            self.state_store.discard(working)
            if artifact.archive_path.exists():
                os.remove(artifact.archive_path)
            raise
        self.state_store.commit(working, artifact)
        return artifact

    def build_interval(self, interval: Interval, directory: Path,
                       run_date: Optional[date] = None) -> Artifact:
        """
        Shortcut for build() with the predecessor and level of interval.
        """
        return self.build(interval.predecessor, interval.level, interval, directory, run_date)
