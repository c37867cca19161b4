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
FileSystem abstraction behind an asset view

Provides a unified interface for serving files from different sources:
- ZipFileSystem: Archive appended to the running binary
- LocalFileSystem: Local directory (wraps os.* calls), used as fallback
- UnavailableFileSystem: Stub that fails every open with the init error

Paths are POSIX style and must be absolute ("/dir/file.txt").
"""

import io
import os
import posixpath
import stat as _stat

from typing import BinaryIO, List, Protocol

from httpasset.Archive import Archive
from httpasset.Errors import AssetError, ClosedError, NotExistError
from httpasset.Handles import AssetHandle, DirectoryHandle, HandleKind, Stat, openHandle
from httpasset.Kernel import getLogger
from httpasset.Namespace import Namespace

logger = getLogger(__name__)


class FileSystem(Protocol):
    """FileSystem protocol that all implementations must follow"""

    def describe(self) -> str:
        ... # Human readable source, for logs

    def open(self, path: str) -> AssetHandle:
        ...

    def stat(self, path: str) -> Stat:
        ...

    def exists(self, path: str) -> bool:
        ...

    def isDir(self, path: str) -> bool:
        ...

    def isFile(self, path: str) -> bool:
        ...

    def close(self) -> None:
        ...


class _FileSystemBase:
    """Shared helpers built on open()"""

    def stat(self, path: str) -> Stat:
        with self.open(path) as handle:
            return handle.stat()

    def exists(self, path: str) -> bool:
        """Check if path exists"""
        try:
            self.stat(path)
            return True
        except FileNotFoundError:
            return False

    def isFile(self, path: str) -> bool:
        """Check if path is a file"""
        try:
            return not self.stat(path).isDir
        except FileNotFoundError:
            return False

    def isDir(self, path: str) -> bool:
        """Check if path is a directory"""
        try:
            return self.stat(path).isDir
        except FileNotFoundError:
            return False


class ZipFileSystem(_FileSystemBase):
    """
    Archive-backed filesystem.

    Owns the archive (and through it the binary's file object) until closed.
    The namespace is immutable, so concurrent open() calls need no lock.
    """

    def __init__(self, archive: Archive, namespace: Namespace):
        self.archive = archive
        self.namespace = namespace

        logger.debug(
            f"ZipFileSystem initialized: {namespace.fileCount} files, {namespace.directoryCount} directories"
        )

    def describe(self) -> str:
        return f"archive appended to {getattr(self.archive.source, 'name', 'binary')}"

    def open(self, path: str) -> AssetHandle:
        """
        Open a file or directory of the archive.

        Args:
            path: Absolute path, e.g. "/a/file1"

        Returns:
            A new handle, never shared with other open() calls

        Raises:
            NotExistError: If path is unknown or not absolute
            ClosedError: If the filesystem was closed
        """
        if self.archive.closed:
            raise ClosedError()

        node = self.namespace.lookup(path)
        if node is None:
            raise NotExistError(path)

        return openHandle(node)

    def close(self) -> None:
        self.archive.close()


class LocalFileHandle(AssetHandle):
    """Handle on a regular file of the local filesystem"""

    kind = HandleKind.LOCAL_FILE

    def __init__(self, path: str, file: BinaryIO):
        super().__init__(path)
        self._file = file

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        self._ensureOpen()
        return self._file.readinto(b)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._ensureOpen()
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        self._ensureOpen()
        return self._file.tell()

    def stat(self) -> Stat:
        self._ensureOpen()
        st = os.fstat(self._file.fileno())
        return Stat(size=int(st.st_size), mtime=float(st.st_mtime), isDir=False, name=self.name, mode=st.st_mode)

    def close(self):
        try:
            if not self.closed:
                self._file.close()
        finally:
            super().close()


class LocalDirectoryHandle(DirectoryHandle):
    """Handle on a local directory; unlike archive directories, it lists real children"""

    kind = HandleKind.LOCAL_DIRECTORY

    def __init__(self, path: str, fullPath: str):
        super().__init__(path)
        self._fullPath = fullPath
        self._names = None
        self._cursor = 0

    def stat(self) -> Stat:
        self._ensureOpen()
        st = os.stat(self._fullPath)
        return Stat(size=0, mtime=float(st.st_mtime), isDir=True, name=self.name, mode=st.st_mode)

    def listChildren(self, count: int = -1) -> List[Stat]:
        self._ensureOpen()

        if self._names is None:
            self._names = sorted(os.listdir(self._fullPath))

        end = len(self._names) if count <= 0 else min(len(self._names), self._cursor + count)
        result = []
        for name in self._names[self._cursor:end]:
            try:
                st = os.stat(os.path.join(self._fullPath, name))
            except FileNotFoundError:
                logger.debug(f"Skipping vanished entry {name} in {self._fullPath}")
                continue
            isDir = _stat.S_ISDIR(st.st_mode)
            result.append(
                Stat(size=0 if isDir else int(st.st_size), mtime=float(st.st_mtime), isDir=isDir, name=name,
                     mode=st.st_mode)
            )
        self._cursor = end
        return result


class LocalFileSystem(_FileSystemBase):
    """
    Local filesystem backend.

    Serves the files below root. Request paths are cleaned with POSIX rules
    before joining, so "/../x" resolves to "<root>/x" and never escapes root.
    """

    def __init__(self, root: str):
        """
        Initialize LocalFileSystem.

        Args:
            root: Absolute or relative path to root directory
        """
        self.root = os.path.abspath(root)
        self._closed = False

        logger.debug(f"LocalFileSystem initialized: {self.root}")

    def describe(self) -> str:
        return f"local directory {self.root}"

    def _resolve(self, path: str) -> str:
        if not path.startswith('/'):
            raise NotExistError(path)

        rel = posixpath.normpath(path).lstrip('/')
        if rel in ('', '.'):
            return self.root
        return os.path.join(self.root, *rel.split('/'))

    def open(self, path: str) -> AssetHandle:
        """
        Open a file or directory below root.

        Args:
            path: Absolute POSIX path

        Returns:
            LocalFileHandle or LocalDirectoryHandle

        Raises:
            NotExistError: If path does not exist or is not absolute
            ClosedError: If the filesystem was closed
        """
        if self._closed:
            raise ClosedError()

        fullPath = self._resolve(path)
        try:
            # Avoid os.path.isdir() here: it triggers an extra stat() call.
            st = os.stat(fullPath)
            if _stat.S_ISDIR(st.st_mode):
                return LocalDirectoryHandle(path, fullPath)
            return LocalFileHandle(path, open(fullPath, 'rb'))
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotExistError(path) from e

    def close(self) -> None:
        self._closed = True


class UnavailableFileSystem(_FileSystemBase):
    """Filesystem left behind by a failed initialization; every open() raises the recorded error"""

    def __init__(self, error: AssetError):
        self.error = error

    def describe(self) -> str:
        return f"unavailable ({self.error})"

    def open(self, path: str) -> AssetHandle:
        raise self.error.with_traceback(None)

    def close(self) -> None:
        pass
