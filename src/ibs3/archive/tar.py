"""
GNU tar wrapper / archive actions
"""
import shutil
import subprocess
from pathlib import Path
from typing import List

from loguru import logger

TAR_FILES_DIFFER = 1


class ArchiveError(RuntimeError):
    """
    tar failed to create an archive.
    """


class TarArchiver:
    """
    Creates incremental archives with GNU tar (--listed-incremental).
    """

    def __init__(self, tar_command: str = 'tar'):
        """
        Init a new archiver.
        :param tar_command: tar binary. Has to be GNU tar. default: tar
        """
        if not shutil.which(tar_command):
            raise FileNotFoundError(f'tar command {tar_command} not found!')
        self.tar_command = tar_command

    def _create_command(self, source: Path, snapshot: Path, level: int,
                        archive: Path) -> List[str]:
        """
        Build the tar command line.
        The directory is archived relative to its parent.
        :param source: directory to archive
        :param snapshot: snapshot file for --listed-incremental
        :param level: incremental level
        :param archive: output file
        :return: command
        """
        source = Path(source).absolute()
        return [
            self.tar_command,
            f'--listed-incremental={Path(snapshot).absolute()}',
            f'--level={level}',
            '--gzip',
            '--create',
            '--preserve-permissions',
            f'--file={Path(archive).absolute()}',
            '-C', str(source.parent),
            source.name,
        ]

    def create(self, source: Path, snapshot: Path, level: int, archive: Path) -> Path:
        """
        Create an archive of source. Updates the snapshot file in place.
        :param source: directory to archive
        :param snapshot: snapshot file (read and updated by tar)
        :param level: incremental level. 0 for a full dump.
        :param archive: output file
        :return: path of the archive
        """
        command = self._create_command(source, snapshot, level, archive)
        logger.debug(f'Running: {" ".join(command)}')
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise ArchiveError(f'Failed executing {self.tar_command}: {e}') from e
        if result.returncode not in (0, TAR_FILES_DIFFER):
            raise ArchiveError(
                f'tar failed with exit code {result.returncode} for {source}: '
                f'{result.stderr.strip()}'
            )
        if result.stderr:
            # e.g. "file changed as we read it" (exit code 1, archive is still usable)
            logger.warning(result.stderr.strip())
        return Path(archive)

    @staticmethod
    def extract_command(archive: Path or str, snapshot: Path or str, level: int) -> str:
        """
        Get the command for restoring an archive. Will not run it.
        :param archive: archive file
        :param snapshot: snapshot file belonging to the archive
        :param level: level of the archive
        :return: shell command
        """
        return f'tar --listed-incremental={snapshot} --level={level} -zxvpf {archive}'
