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
Errors raised by asset views and their file handles.

Every error derives from AssetError. Errors that have a natural builtin
counterpart also derive from it, so callers written against plain file
objects (FileNotFoundError, IsADirectoryError, ...) keep working.
"""

import io


class AssetError(Exception):
    """Base error for asset view operations"""
    pass


# Initialization errors, recorded once and exposed through lastError.

class BinaryLocateError(AssetError, OSError):
    """The file backing the running program cannot be resolved or opened"""
    pass


class ArchiveNotFoundError(AssetError):
    """No archive is appended to the binary (not packaged yet)"""
    pass


class ArchiveCorruptError(AssetError):
    """An archive is present but cannot be decoded"""
    pass


class NamespaceConflictError(AssetError):
    """The archive records the same path as both a file and a directory"""

    def __init__(self, path, reason='file and directory share the same path'):
        super().__init__(f'{path}: {reason}')
        self.path = path


class UnsupportedCompressionError(AssetError):
    """The entry uses a compression method that cannot be decoded"""
    pass


# Per-call errors.

class NotExistError(AssetError, FileNotFoundError):
    """The path is not present in the view, or is not absolute"""

    def __init__(self, path):
        super().__init__(f'No such file or directory: {path!r}')
        self.path = path


class ClosedError(AssetError, ValueError):
    """Operation on a view or handle after it was closed"""

    def __init__(self, message='I/O operation on closed asset view'):
        super().__init__(message)


class NotADirError(AssetError, NotADirectoryError):
    """Directory listing requested on a file"""
    pass


class ReadOnDirectoryError(AssetError, IsADirectoryError):
    """Read requested on a directory handle"""
    pass


class SeekOnDirectoryError(AssetError, IsADirectoryError):
    """Seek requested on a directory handle"""
    pass


class SeekUnsupportedOnCompressedEntryError(AssetError, io.UnsupportedOperation):
    """Seek requested on a compressed entry, which is only readable sequentially"""
    pass
