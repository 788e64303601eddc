"""
Runs a backup: build the cascade of archives, upload them, clean up.
"""
import os
from datetime import date
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ibs3.archive.builder import ArchiveBuilder
from ibs3.planner import cascade
from ibs3.storage.uploader import Uploader
from ibs3.utils.datatypes import Artifact, Interval


class BackupRunner:
    """
    Creates the archives of one run and uploads them.
    Fails fast. Any error aborts the run and keeps the local files.
    """

    def __init__(self, builder: ArchiveBuilder, uploader: Uploader):
        self.builder = builder
        self.uploader = uploader

    def check_conflicts(self, interval: Interval, directory: Path,
                        run_date: Optional[date] = None) -> None:
        """
        Apply the conflict policy to every artifact of the cascade before anything is built.
        A file conflicts if it exists in the work dir or in the store.
        :param interval: requested interval
        :param directory: directory to back up
        :param run_date: date of the run. default: today
        :raises ArtifactConflictError: policy reject and an artifact exists
        """
        for target in cascade(interval):
            artifact = self.builder.artifact(target, directory, run_date)
            existing = [x.name for x in artifact.files
                        if x.exists() or self.uploader.exists(x.name)]
            self.builder.resolve_conflict(artifact, existing)

    def build(self, interval: Interval, directory: Path,
              run_date: Optional[date] = None) -> List[Artifact]:
        """
        Build the requested interval and all shorter ones.
        :param interval: requested interval
        :param directory: directory to back up
        :param run_date: date of the run. default: today
        :return: created artifacts in build order
        """
        run_date = run_date or date.today()
        return [self.builder.build_interval(x, directory, run_date) for x in cascade(interval)]

    def run(self, interval: Interval, directory: Path,
            run_date: Optional[date] = None) -> List[Artifact]:
        """
        Perform a backup.
        :param interval: requested interval
        :param directory: directory to back up
        :param run_date: date of the run. default: today
        :return: uploaded artifacts
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f'Source directory {directory} does not exist!')
        run_date = run_date or date.today()
        logger.info(f'Performing a {interval} backup of {directory}...')

        self.check_conflicts(interval, directory, run_date)
        artifacts = self.build(interval, directory, run_date)
        files = [x for artifact in artifacts for x in artifact.files]
        self.uploader.upload_all(files)

        for file in files:
            logger.debug(f'Removing uploaded file {file}')
            os.remove(file)
        logger.info(f'{interval.value.capitalize()} backup of {directory} complete! '
                    f'({len(artifacts)} archives)')
        return artifacts
