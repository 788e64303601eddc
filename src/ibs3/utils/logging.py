import os
from pathlib import Path

from loguru import logger

LOG_FILE = 'ibs3.log'


def setup_logging(log_dir: Path, log_level: str) -> int:
    """
    Add a daily rotated log file in log_dir.
    :return: id of the sink. Pass it to logger.remove() to detach it.
    """
    if not os.path.isdir(log_dir):
        os.makedirs(log_dir, exist_ok=True)
    format_string = '{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}'
    return logger.add(Path(log_dir) / LOG_FILE,
                      format=format_string,
                      rotation='00:00',
                      retention='14 days',
                      level=log_level,
                      backtrace=True,
                      diagnose=False)
