"""
Creates tiered incremental backups of a directory with GNU tar and uploads them.
"""
import sys
from datetime import date
from pathlib import Path

import click
from dynaconf import Dynaconf
from loguru import logger

from ibs3.archive.builder import ArchiveBuilder, ConflictPolicy
from ibs3.archive.state import SnapshotStateStore
from ibs3.archive.tar import TarArchiver
from ibs3.planner import cascade, scheduled_interval
from ibs3.restore import parse_artifacts, restore_chain, restore_commands
from ibs3.runner import BackupRunner
from ibs3.storage.backends.base import BackupTarget, ObjectStore
from ibs3.storage.backends.disk import DiskStore
from ibs3.storage.backends.s3 import S3Store
from ibs3.storage.uploader import Uploader
from ibs3.utils.config import parse_config
from ibs3.utils.converters import mib_to_bytes
from ibs3.utils.datatypes import Interval
from ibs3.utils.logging import setup_logging
from ibs3.utils.retry import RetriesExhaustedError


class CtxArgs:
    """
    Cache object for arguments between click group and commands.
    """

    def __init__(self, config_folder: Path, settings: Dynaconf, store: ObjectStore):
        self.config_folder = Path(config_folder)
        self.settings = settings
        self.store = store


def create_store(settings: Dynaconf) -> ObjectStore:
    """
    Create the object store for the configured target.
    :param settings: parsed config
    :return: store
    """
    match settings('backup.target', cast=BackupTarget):
        case BackupTarget.S3:
            return S3Store(
                bucket=settings('backup.s3.bucket', default=None),
                endpoint=settings('backup.s3.endpoint', default=None),
                region=settings('backup.s3.region', default=None),
                access_key_id=settings('backup.s3.access_key_id', default=None),
                secret_access_key=settings('backup.s3.secret_access_key', default=None),
            )
        case BackupTarget.DISK:
            return DiskStore(settings('backup.disk.dir', cast=Path, default=None))


def create_runner(settings: Dynaconf, store: ObjectStore) -> BackupRunner:
    """
    Wire the archive builder and the uploader from the config.
    """
    builder = ArchiveBuilder(
        archiver=TarArchiver(settings('backup.tar_command', default='tar')),
        state_store=SnapshotStateStore(settings('backup.work_dir', cast=Path, default=Path('.'))),
        conflict_policy=settings('backup.on_conflict', cast=ConflictPolicy,
                                 default=ConflictPolicy.OVERWRITE),
    )
    uploader = Uploader(
        store=store,
        part_size=mib_to_bytes(settings('upload.part_size', cast=int, default=100)),
        multipart_threshold=mib_to_bytes(
            settings('upload.multipart_threshold', cast=int, default=100)),
        max_attempts=settings('upload.max_attempts', cast=int, default=3),
    )
    return BackupRunner(builder, uploader)


@click.group()
@click.option(
    '-c',
    '--config-folder',
    help='Folder where the config files are stored. /etc/ibs3 by default.'
         ' Make sure that the user has read and write access to the folder.',
    default='/etc/ibs3',
)
@click.pass_context
@click.version_option(package_name='ibs3')
def main(ctx, config_folder):
    """
    Create tiered incremental backups and upload them to S3.
    """
    try:
        settings = parse_config(Path(config_folder))
        log_dir = settings('logging.dir', cast=Path, default=None)
        if log_dir:
            setup_logging(log_dir, settings('logging.level', default='INFO'))
        store = create_store(settings)
    except Exception as e:
        logger.critical(f'Error during config parsing! {e}')
        sys.exit(1)
    ctx.obj = CtxArgs(config_folder, settings, store)


@main.command('backup')
@click.option('-b', '--base', 'interval', flag_value=Interval.BASE.value,
              help='Full backup. Restarts all chains.')
@click.option('-y', '--yearly', 'interval', flag_value=Interval.YEARLY.value)
@click.option('-m', '--monthly', 'interval', flag_value=Interval.MONTHLY.value)
@click.option('-w', '--weekly', 'interval', flag_value=Interval.WEEKLY.value)
@click.option('-d', '--daily', 'interval', flag_value=Interval.DAILY.value)
@click.argument('directory', type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def backup_command(ctx, interval, directory):
    """
    Perform a backup of DIRECTORY.
    Without an interval flag, the interval is chosen by the date:
    yearly on Jan 1st, monthly on the 1st, weekly on the 7th/14th/21st/28th,
    daily otherwise. Schedule this command once per day.
    """
    args: CtxArgs = ctx.obj
    interval = Interval(interval) if interval else scheduled_interval(date.today())
    click.secho(f'Performing a {interval} backup of {directory}...', fg='green')
    click.secho(f'Building: {" -> ".join(x.value for x in cascade(interval))}\n', fg='cyan')
    try:
        runner = create_runner(args.settings, args.store)
        artifacts = runner.run(interval, directory)
    except RetriesExhaustedError as e:
        logger.critical(f'Upload failed! {e}')
        sys.exit(1)
    except Exception as e:
        logger.critical(f'Backup failed! {e}')
        sys.exit(1)
    for artifact in artifacts:
        click.secho(f'Uploaded {artifact.archive_path.name}', fg='yellow')
    click.secho('Backup complete!', fg='green', bold=True)


@main.command('list')
@click.pass_context
def list_command(ctx):
    """
    List all backups in the store.
    """
    args: CtxArgs = ctx.obj
    try:
        backups = parse_artifacts(args.store.list_keys())
    except Exception as e:
        logger.critical(f'Could not list backups! {e}')
        sys.exit(1)
    if len(backups) == 0:
        click.secho('None! You have to create a backup first...', fg='red', file=sys.stderr)
        sys.exit(1)
    output = click.style('Listing backups:\n', fg='green', bold=True)
    for name, artifacts in sorted(backups.items()):
        output += click.style(f'{name}\n', fg='cyan')
        for artifact in artifacts:
            output += click.style(f'\t{artifact.interval.value:<8} @ {artifact.date}\n',
                                  fg='yellow')
    output += ('\nCall the restore command with the name of a directory '
               'to get the restore commands.\n')
    output += click.style(
        f'ibs3 -c {args.config_folder} restore {sorted(backups)[0]}', fg='green')
    click.echo(output)


@main.command('restore')
@click.argument('name', required=True)
@click.option('--until', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Restore the state of this day. Newest backup by default.')
@click.pass_context
def restore_command(ctx, name, until):
    """
    Generate the restore commands for the backups of directory NAME.
    Download the listed files and run the commands in order.
    """
    args: CtxArgs = ctx.obj
    try:
        backups = parse_artifacts(args.store.list_keys())
    except Exception as e:
        logger.critical(f'Could not list backups! {e}')
        sys.exit(1)
    chain = restore_chain(backups.get(name, []), until.date() if until else None)
    if not chain:
        click.secho(f'No base backup for {name}! Check the name!\n', file=sys.stderr,
                    fg='red', bold=True)
        ctx.invoke(list_command)
        sys.exit(1)

    click.secho('Download these files from the store:\n', fg='green')
    for artifact in chain:
        click.secho(f'{artifact.archive_path.name}\n{artifact.snapshot_path.name}', fg='yellow')
    click.secho('\nRun the following commands in order to restore the backup:\n', fg='green')
    for command in restore_commands(chain):
        click.secho(command, fg='green')


if __name__ == '__main__':
    main()
