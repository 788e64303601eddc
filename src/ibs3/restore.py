"""
Find the archives needed for restoring a directory.
Archives have to be extracted in order: base -> yearly -> monthly -> weekly -> daily
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

from loguru import logger

from ibs3.archive.tar import TarArchiver
from ibs3.utils.converters import parse_file_name
from ibs3.utils.datatypes import Artifact, Interval


def parse_artifacts(keys: Iterable[str]) -> Dict[str, List[Artifact]]:
    """
    Group stored files by directory name.
    Only dates with both the archive and the snapshot file are returned.
    :param keys: object keys / file names
    :return: dict name -> artifacts sorted by date and interval
    """
    found = defaultdict(set)
    for key in keys:
        try:
            data = parse_file_name(key)
        except ValueError:
            logger.debug(f'Ignoring unknown file {key}')
            continue
        found[(data['interval'], data['name'], data['date'])].add(data['kind'])

    artifacts = defaultdict(list)
    for (interval, name, day), kinds in found.items():
        if kinds != {'archive', 'snapshot'}:
            logger.warning(f'Incomplete backup {interval}_{name}_{day}: only {kinds}')
            continue
        artifacts[name].append(Artifact(Interval(interval), name, day))
    for name in artifacts:
        artifacts[name].sort(key=lambda x: (x.date, x.interval.level))
    return dict(artifacts)


def restore_chain(artifacts: List[Artifact], until: date = None) -> List[Artifact]:
    """
    Get the newest restorable chain.
    Newest base first, then for each shorter interval the newest artifact
    which is not older than the previous link.
    Empty if there is no base backup.
    :param artifacts: artifacts of one directory
    :param until: ignore artifacts newer than this date
    :return: chain in restore order
    """
    if until:
        artifacts = [x for x in artifacts if x.date <= until]
    chain = []
    for interval in Interval.ordered():
        candidates = [x for x in artifacts if x.interval is interval]
        if chain:
            candidates = [x for x in candidates if x.date >= chain[-1].date]
        if not candidates:
            # shorter intervals branch from this one -> the chain ends here
            break
        chain.append(max(candidates, key=lambda x: x.date))
    return chain


def restore_commands(chain: List[Artifact]) -> List[str]:
    """
    Get the tar commands for restoring the chain. Will not run them.
    """
    return [
        TarArchiver.extract_command(x.archive_path.name, x.snapshot_path.name, x.interval.level)
        for x in chain
    ]
