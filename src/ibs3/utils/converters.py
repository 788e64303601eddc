"""
helpers for converting values from one format to a different one
"""
import base64
import hashlib
import re
from datetime import date, datetime
from pathlib import Path

DATE_FORMAT = '%Y-%m-%d'
MIB = 1024 * 1024

FILE_NAME_PATTERN = re.compile(
    r'^(base|yearly|monthly|weekly|daily)_(.+)_(\d{4}-\d{2}-\d{2})\.(tar\.gz|snar)$'
)


def parse_date(value: str) -> date:
    """
    Convert the given date string to a date object.
    Format: DATE_FORMAT
    :param value: date to parse
    :return: parsed date
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def format_date(value: date) -> str:
    """
    Convert the given date object to the correct string.
    :param value: date object
    :return: formatted date
    """
    return value.strftime(DATE_FORMAT)


def mib_to_bytes(mib: int) -> int:
    return int(mib) * MIB


def parse_file_name(file_path: str or Path) -> dict:
    """
    Parse the given file_path.
    {interval}_{name}_{date}.tar.gz or {interval}_{name}_{date}.snar
    :param file_path:
    :return: Dictionary with keys: interval, name, date, kind, path
    """
    match = FILE_NAME_PATTERN.match(Path(file_path).name)
    if not match:
        raise ValueError(f'Invalid file name: {file_path}')
    return {
        'interval': match.group(1),
        'name': match.group(2),
        'date': parse_date(match.group(3)),
        'kind': 'archive' if match.group(4) == 'tar.gz' else 'snapshot',
        'path': Path(file_path),
    }


def md5_digest(path: str or Path, chunk_size: int = MIB) -> str:
    """
    Base64 encoded MD5 digest of a file. Same format as the Content-MD5 header.
    :param path: file to hash
    :param chunk_size: read size
    :return: digest
    """
    hasher = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            hasher.update(chunk)
    return base64.b64encode(hasher.digest()).decode('ascii')
