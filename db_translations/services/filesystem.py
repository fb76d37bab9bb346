"""Thin file-system wrapper used by the language loader and the bucket cache.

Kept as a class so tests (or another storage backend) can swap it out.
"""

import logging
import os
import shutil

logger = logging.getLogger(__name__)


class Filesystem:
    """Local disk access with UTF-8 text files."""

    def exists(self, path):
        return os.path.isfile(path)

    def is_directory(self, path):
        return os.path.isdir(path)

    def read(self, path):
        with open(path, 'r', encoding='utf-8') as fh:
            return fh.read()

    def write(self, path, contents):
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write(contents)
        return len(contents)

    def make_directory(self, path, mode=0o755, recursive=True):
        if recursive:
            os.makedirs(path, mode=mode, exist_ok=True)
        elif not os.path.isdir(path):
            os.mkdir(path, mode)

    def delete(self, path):
        """Delete a file. Returns False if it was not there."""
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False

    def delete_directory(self, path):
        """Delete a directory tree. Returns False if it was not there."""
        if not os.path.isdir(path):
            return False
        shutil.rmtree(path)
        logger.info(f"Deleted directory {path}")
        return True
