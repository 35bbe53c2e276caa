"""
fxrecv.writer

Flush reassembled files to persistent storage.
"""

from __future__ import annotations

import errno
import logging
import os
from typing import Callable, List, Optional

from .errors import MissingNameError
from .store import FileGroup, ReassemblyStore

__all__ = ["FileWriter", "write_all_files", "write_file_bytes"]

logger = logging.getLogger(__name__)

Sink = Callable[[str, bytes], None]


def write_file_bytes(path: str, data: bytes) -> None:
    """
    Create or truncate `path` and write `data` in full.

    A path the OS cannot represent (embedded NUL) is reported as `OSError`.
    """
    try:
        f = open(path, "wb")
    except ValueError as exc:
        raise OSError(errno.EINVAL, str(exc), path) from exc
    with f:
        f.write(data)


class FileWriter:
    """
    File-system backed writer for completed file groups.

    Names are interpreted relative to `root`, which defaults to the current
    working directory. With the default sink `root` is created up front.
    """

    def __init__(self, root: str = ".", *, sink: Optional[Sink] = None) -> None:
        self.root = root
        if sink is None:
            os.makedirs(self.root, exist_ok=True)
        self.sink = sink or write_file_bytes

    def path_for(self, group: FileGroup) -> str:
        if group.name is None:
            raise MissingNameError(f"file {group.file_id} has no name; was a header received?")
        return os.path.join(self.root, group.name)

    def write_group(self, group: FileGroup) -> str:
        """
        Write one group's chunks in index order and return the stored path.
        """
        path = self.path_for(group)
        data = group.assemble()
        self.sink(path, data)
        logger.info("wrote %s (%d bytes, %d chunks)", path, len(data), len(group.chunks))
        return path

    def write_all(self, store: ReassemblyStore) -> List[str]:
        """
        Write every group in file_id order. The first failure aborts the rest.
        """
        return [self.write_group(store[fid]) for fid in sorted(store.groups)]


def write_all_files(
    store: ReassemblyStore,
    *,
    root: str = ".",
    sink: Optional[Sink] = None,
) -> List[str]:
    return FileWriter(root, sink=sink).write_all(store)
