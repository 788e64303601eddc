"""
config handling for dynaconf
"""
import os
import sys
from importlib.resources import files
from pathlib import Path

from dynaconf import Dynaconf, Validator
from loguru import logger

from ibs3.archive.builder import ConflictPolicy
from ibs3.storage.backends.base import BackupTarget


def write_default_config(config_folder: Path) -> Path:
    """
    Create default.toml in the config folder if it does not exist yet.
    :param config_folder: config folder
    :return: path of default.toml
    """
    default_config = config_folder / 'default.toml'
    if not os.path.isfile(default_config):
        config_folder.mkdir(parents=True, exist_ok=True)
        with open(default_config, 'w', encoding='utf-8') as f:
            f.write(files('ibs3.data').joinpath('default.toml').read_text())
    return default_config


def parse_config(config_folder: Path) -> Dynaconf:
    """
    Parse config with dynaconf.
    default.toml < config.toml < IBS3_ environment variables
    e.g. IBS3_BACKUP__S3__BUCKET=my-bucket
    :param config_folder: folder containing the config files
    :return: Dynaconf
    """
    try:
        write_default_config(config_folder)
    except Exception as e:
        logger.critical(f'Failed to create default config in {config_folder}. '
                        'Consider creating the folder writeable for this user '
                        f'or choose a different path. Error: {e}')
        sys.exit(1)

    settings = Dynaconf(
        envvar_prefix='IBS3',
        settings_files=['default.toml', 'config.toml'],
        root_path=str(config_folder),
        merge_enabled=True,
        validators=[
            Validator('backup.target', must_exist=True, cast=BackupTarget),
            Validator('backup.work_dir', default='.'),
            Validator('backup.tar_command', default='tar'),
            Validator('backup.on_conflict', default='overwrite', cast=ConflictPolicy),
            Validator('upload.part_size', cast=int, default=100, gte=1),
            Validator('upload.multipart_threshold', cast=int, default=100, gte=0),
            Validator('upload.max_attempts', cast=int, default=3, gte=1),
        ]
    )
    # the store constructors validate bucket / dir -> depends on the target
    return settings
