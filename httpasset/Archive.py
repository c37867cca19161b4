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
Locating and decoding a ZIP archive appended to an arbitrary binary.

The archive is found from the end of the file: the end-of-central-directory
record sits in the last 22 + 65535 bytes (fixed record plus the longest
possible comment). Everything in front of the archive (the executable code)
is ignored; zipfile resolves member offsets relative to that record.
"""

import struct
import threading
import time
import zipfile

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, List, Optional

from httpasset.Errors import ArchiveCorruptError, ArchiveNotFoundError, ClosedError, UnsupportedCompressionError
from httpasset.Kernel import getLogger

logger = getLogger(__name__)

# ZIP format constants (from PKZIP APPNOTE.TXT specification), taken from zipfile where it defines them
END_OF_CENTRAL_DIR_SIGNATURE = zipfile.stringEndArchive # b'PK\x05\x06'
END_OF_CENTRAL_DIR_SIZE = zipfile.sizeEndCentDir # 22
COMMENT_LENGTH_OFFSET = 20 # Last field of the end-of-central-directory record
MAX_COMMENT_LENGTH = 0xFFFF


class CompressionMethod(Enum):
    STORED = zipfile.ZIP_STORED # 0
    DEFLATED = zipfile.ZIP_DEFLATED # 8
    OTHER = -1 # bzip2, lzma, or anything zipfile may not decode

    @classmethod
    def fromCompressType(cls, compressType: int) -> 'CompressionMethod':
        if compressType == zipfile.ZIP_STORED:
            return cls.STORED
        if compressType == zipfile.ZIP_DEFLATED:
            return cls.DEFLATED
        return cls.OTHER


@dataclass(frozen=True)
class ArchiveEntry:
    """One record of the decoded archive"""
    path: str # Archive form: slash separated, no leading slash
    compressionMethod: CompressionMethod
    uncompressedSize: int
    compressedSize: int
    mtime: float
    isDir: bool
    opener: Callable[[], BinaryIO] = field(repr=False, compare=False)

    def openReader(self) -> BinaryIO:
        """Open a reader positioned at the start of this entry's data"""
        return self.opener()


def _dosTimeToTimestamp(dateTime) -> float:
    try:
        return time.mktime(tuple(dateTime) + (0, 0, -1))
    except (OverflowError, ValueError):
        return 0.0


def findEndOfCentralDirectory(source: BinaryIO, size: int) -> int:
    """
    Find the end-of-central-directory record in the tail of source.

    A candidate signature only counts when its comment length reaches exactly
    to the end of the file, so stray signature bytes inside the executable or
    inside the archive comment are skipped.

    Args:
        source: Seekable binary file object
        size: Total size of source in bytes

    Returns:
        int: Absolute offset of the record

    Raises:
        ArchiveNotFoundError: If no valid record is present
    """
    if size < END_OF_CENTRAL_DIR_SIZE:
        raise ArchiveNotFoundError(f'File too small to hold an archive ({size} bytes)')

    tailSize = min(size, END_OF_CENTRAL_DIR_SIZE + MAX_COMMENT_LENGTH)
    tailStart = size - tailSize

    try:
        source.seek(tailStart)
        tail = source.read(tailSize)
    except OSError as e:
        raise ArchiveCorruptError(f'Unable to read archive tail: {e}') from e

    if len(tail) != tailSize:
        raise ArchiveCorruptError(f'Short read on archive tail: got {len(tail)} of {tailSize} bytes')

    pos = tail.rfind(END_OF_CENTRAL_DIR_SIGNATURE)
    while pos >= 0:
        if pos + END_OF_CENTRAL_DIR_SIZE <= tailSize:
            commentLength, = struct.unpack_from('<H', tail, pos + COMMENT_LENGTH_OFFSET)
            if pos + END_OF_CENTRAL_DIR_SIZE + commentLength == tailSize:
                return tailStart + pos

        pos = tail.rfind(END_OF_CENTRAL_DIR_SIGNATURE, 0, pos)

    raise ArchiveNotFoundError('No end of central directory record found at end of file')


class Archive:
    """
    A decoded archive and the file it lives in.

    Owns the source file object: closing the archive closes the file, after
    which readers opened from it fail.
    """

    def __init__(self, source: BinaryIO, size: int, zipFile: zipfile.ZipFile):
        self.source = source
        self.size = size
        self._zipFile = zipFile
        self._closed = False
        self._lock = threading.Lock()

        entries = []
        for info in zipFile.infolist():
            entries.append(
                ArchiveEntry(
                    path=info.filename,
                    compressionMethod=CompressionMethod.fromCompressType(info.compress_type),
                    uncompressedSize=info.file_size,
                    compressedSize=info.compress_size,
                    mtime=_dosTimeToTimestamp(info.date_time),
                    isDir=info.is_dir(),
                    opener=lambda info=info: self._openMember(info),
                )
            )
        self._entries = tuple(entries)

    @property
    def entries(self) -> List[ArchiveEntry]:
        return list(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def _openMember(self, info: zipfile.ZipInfo) -> BinaryIO:
        if self._closed:
            raise ClosedError()

        try:
            return self._zipFile.open(info)
        except NotImplementedError as e:
            raise UnsupportedCompressionError(f'{info.filename}: {e}') from e
        except (zipfile.BadZipFile, struct.error, EOFError) as e:
            raise ArchiveCorruptError(f'{info.filename}: {e}') from e
        except ValueError as e:
            # zipfile reports reads on a closed source as ValueError
            if self._closed or self.source.closed:
                raise ClosedError() from e
            raise ArchiveCorruptError(f'{info.filename}: {e}') from e

    def close(self):
        """Release the archive and its source file. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        try:
            self._zipFile.close()
        finally:
            self.source.close()

        logger.debug('Archive closed')


def readArchive(source: BinaryIO, size: int, name: Optional[str] = None) -> Archive:
    """
    Decode the archive appended to source.

    The caller keeps ownership of source when decoding fails.

    Args:
        source: Seekable binary file object, typically the running binary
        size: Total size of source in bytes
        name: Display name for log messages

    Returns:
        Archive: The decoded archive, owning source

    Raises:
        ArchiveNotFoundError: If nothing that looks like an archive ends the file
        ArchiveCorruptError: If an archive is present but cannot be decoded
    """
    name = name or getattr(source, 'name', '<binary>')
    offset = findEndOfCentralDirectory(source, size)

    try:
        zipFile = zipfile.ZipFile(source, 'r')
    except (zipfile.BadZipFile, struct.error, EOFError, OSError, ValueError) as e:
        raise ArchiveCorruptError(f'Invalid archive in {name}: {e}') from e

    archive = Archive(source, size, zipFile)
    logger.debug(
        f'Found archive in {name}: {len(archive.entries)} entries, '
        f'end of central directory at {offset} of {size} bytes'
    )
    return archive
