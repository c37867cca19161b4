#!/usr/bin/env python
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0
#
# httpasset - Static assets served from the running binary
# Copyright (C) 2025-2026 httpasset contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
File handles returned by asset views.

Every handle is a raw binary stream with the same capability set: read,
seek, stat, listChildren and close. The variants differ in what they allow:

- DirectoryHandle: no read, no seek, always-empty listing
- StoredFileHandle: read and full seek, data is a plain byte range
- CompressedFileHandle: sequential read only, every seek fails

A handle belongs to the caller that opened it and is not thread-safe.
"""

import io
import stat as _stat
import zipfile
import zlib

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, List, Optional

from httpasset.Archive import CompressionMethod
from httpasset.Errors import (
    ArchiveCorruptError, ClosedError, NotADirError, ReadOnDirectoryError, SeekOnDirectoryError,
    SeekUnsupportedOnCompressedEntryError
)
from httpasset.Namespace import NamespaceNode

FILE_MODE = _stat.S_IFREG | 0o444
DIRECTORY_MODE = _stat.S_IFDIR | 0o555


@dataclass(frozen=True)
class Stat:
    """File/directory metadata"""
    size: int
    mtime: Optional[float]
    isDir: bool
    name: str = ''
    mode: int = FILE_MODE

    def isDirectory(self) -> bool:
        return self.isDir


# Shared by every archive directory: archives carry no directory metadata worth reporting.
DIRECTORY_STAT = Stat(size=0, mtime=None, isDir=True, name='', mode=DIRECTORY_MODE)


class HandleKind(Enum):
    DIRECTORY = 'directory'
    STORED = 'stored'
    COMPRESSED = 'compressed'
    LOCAL_FILE = 'local-file'
    LOCAL_DIRECTORY = 'local-directory'


class AssetHandle(io.RawIOBase):
    """Base of all handles, holds the path and the closed-state checks"""

    kind: HandleKind

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    @property
    def name(self) -> str:
        return self.path.rstrip('/').rsplit('/', 1)[-1]

    def _ensureOpen(self):
        if self.closed:
            raise ClosedError('I/O operation on closed file')

    def stat(self) -> Stat:
        raise NotImplementedError

    def listChildren(self, count: int = -1) -> List[Stat]:
        """
        List directory entries.

        Args:
            count: Maximum number of entries, <= 0 for all remaining

        Returns:
            List of Stat for the next entries, empty when exhausted
        """
        self._ensureOpen()
        raise NotADirError(f'Not a directory: {self.path}')

    def __repr__(self):
        return f'<{self.__class__.__name__} path={self.path!r}>'


class DirectoryHandle(AssetHandle):
    """Handle on a directory inferred from archive paths"""

    kind = HandleKind.DIRECTORY

    def readable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def read(self, size=-1):
        self._ensureOpen()
        raise ReadOnDirectoryError(f'Is a directory: {self.path}')

    def readall(self):
        return self.read()

    def readinto(self, b):
        return self.read()

    def seek(self, offset, whence=io.SEEK_SET):
        self._ensureOpen()
        raise SeekOnDirectoryError(f'Is a directory: {self.path}')

    def tell(self):
        return self.seek(0, io.SEEK_CUR)

    def stat(self) -> Stat:
        """
        Return the shared DIRECTORY_STAT.

        Every archive directory reports the same zero-value record, so its name is
        empty rather than the last path component. Use handle.name for that.
        """
        self._ensureOpen()
        return DIRECTORY_STAT

    def listChildren(self, count: int = -1) -> List[Stat]:
        # Archive directories are never enumerated; an empty listing is enough for
        # file servers to answer a directory request without failing.
        self._ensureOpen()
        return []


class _MemberHandle(AssetHandle):
    """Common reading logic for handles over an archive member"""

    def __init__(self, node: NamespaceNode, reader: BinaryIO):
        super().__init__(node.path)
        self.entry = node.entry
        self._reader = reader
        self._pos = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        self._ensureOpen()

        want = len(b)
        if want <= 0:
            return 0

        try:
            data = self._reader.read(want)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            # Bad member data: CRC mismatch, corrupt deflate stream or a truncated member
            raise ArchiveCorruptError(f'{self.path}: {e}') from e
        except ValueError as e:
            # The view was closed under us and the archive file went away
            raise ClosedError(f'{self.path}: {e}') from e

        n = len(data)
        b[:n] = data
        self._pos += n
        return n

    def tell(self) -> int:
        self._ensureOpen()
        return self._pos

    def stat(self) -> Stat:
        self._ensureOpen()
        return Stat(
            size=self.entry.uncompressedSize,
            mtime=self.entry.mtime,
            isDir=False,
            name=self.name,
            mode=FILE_MODE,
        )

    def close(self):
        try:
            if not self.closed:
                self._reader.close()
        finally:
            super().close()


class StoredFileHandle(_MemberHandle):
    """Handle on an uncompressed entry, fully seekable"""

    kind = HandleKind.STORED

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._ensureOpen()

        if whence == io.SEEK_SET:
            newPos = offset
        elif whence == io.SEEK_CUR:
            newPos = self._pos + offset
        elif whence == io.SEEK_END:
            newPos = self.entry.uncompressedSize + offset
        else:
            raise ValueError(f'Invalid whence ({whence})')

        if newPos < 0:
            raise ValueError(f'Negative seek position {newPos}')

        newPos = min(self.entry.uncompressedSize, int(newPos))

        try:
            self._reader.seek(newPos)
        except ValueError as e:
            raise ClosedError(f'{self.path}: {e}') from e

        self._pos = newPos
        return self._pos


class CompressedFileHandle(_MemberHandle):
    """Handle on a compressed entry, readable front to back only"""

    kind = HandleKind.COMPRESSED

    def seekable(self) -> bool:
        return False

    def seek(self, offset, whence=io.SEEK_SET):
        self._ensureOpen()
        # Read and discard up to the wanted offset, or store the entry uncompressed.
        raise SeekUnsupportedOnCompressedEntryError(f'Cannot seek in compressed entry {self.path}')


def openHandle(node: NamespaceNode) -> AssetHandle:
    """
    Create a new handle for a namespace node.

    Args:
        node: Node to open

    Returns:
        DirectoryHandle, StoredFileHandle or CompressedFileHandle
    """
    if node.isDir:
        return DirectoryHandle(node.path)

    reader = node.entry.openReader()
    if node.entry.compressionMethod == CompressionMethod.STORED:
        return StoredFileHandle(node, reader)
    return CompressedFileHandle(node, reader)
