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
Asset view lifecycle.

An AssetView lazily builds its backing filesystem on first use:

    locate running binary -> decode appended archive -> build namespace

The outcome is remembered. On failure the view serves a fallback directory
when one was given (the error stays available through lastError), otherwise
every open() raises the recorded error. close() releases the archive and
returns the view to UNINITIALIZED; open() then raises ClosedError until the
view is loaded again.

The process-wide view lives in AssetRegistry; init(), lastError(), close()
and open() are shortcuts to it. Code that prefers an explicit handle creates
its own AssetView and passes it around.
"""

import threading

from enum import Enum
from typing import Optional

from httpasset.Archive import readArchive
from httpasset.Errors import ArchiveCorruptError, AssetError, ClosedError, NamespaceConflictError
from httpasset.FileSystems import FileSystem, LocalFileSystem, UnavailableFileSystem, ZipFileSystem
from httpasset.Handles import AssetHandle
from httpasset.Kernel import AssetEvent, Singleton, getLogger
from httpasset.Locator import openSelfBinary
from httpasset.Namespace import buildNamespace

logger = getLogger(__name__)

# Errors meaning the archive is present but broken; strict views never hide them behind the fallback.
STRICT_ERRORS = (ArchiveCorruptError, NamespaceConflictError)


class LifecycleState(Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    FAILED = 'failed'


class AssetView:
    """
    Read-only view over the archive appended to the running binary.

    Thread Safety:
    - load() runs the initialization chain at most once per cycle, under a lock
    - open() reads the immutable namespace without locking
    - Handles returned by open() belong to the caller
    """

    def __init__(self, executablePath: Optional[str] = None, strict: bool = False):
        """
        Initialize AssetView. Nothing is read until load() or open().

        Args:
            executablePath: Binary holding the archive, defaults to the running program
            strict: If True, a corrupt or ambiguous archive never falls back to the local directory
        """
        self.executablePath = executablePath
        self.strict = strict

        self._lock = threading.Lock()
        self._state = LifecycleState.UNINITIALIZED
        self._filesystem = None
        self._lastError = None
        self._usingFallback = False
        self._closed = False

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def lastError(self) -> Optional[AssetError]:
        """Error of the most recent initialization, None if the archive was loaded"""
        return self._lastError

    @property
    def usingFallback(self) -> bool:
        return self._usingFallback

    @property
    def filesystem(self) -> Optional[FileSystem]:
        return self._filesystem

    def _openArchive(self) -> ZipFileSystem:
        source, size = openSelfBinary(self.executablePath)

        try:
            archive = readArchive(source, size)
        except BaseException:
            source.close()
            raise

        try:
            namespace = buildNamespace(archive.entries)
        except BaseException:
            archive.close()
            raise

        return ZipFileSystem(archive, namespace)

    def _initialize(self, fallbackDirectory: Optional[str]):
        """Run the initialization chain. Caller holds the lock."""
        try:
            filesystem = self._openArchive()
            error = None
        except AssetError as e:
            filesystem = None
            error = e

        usingFallback = False
        if error is None:
            state = LifecycleState.READY
            logger.info(f"Serving assets from {filesystem.describe()}")
        else:
            isStructural = isinstance(error, STRICT_ERRORS)
            if isStructural:
                logger.warning(f"Archive appended to binary is unusable: {error}")
            else:
                logger.debug(f"No usable archive in binary: {error}")

            if fallbackDirectory is not None and not (self.strict and isStructural):
                filesystem = LocalFileSystem(fallbackDirectory)
                state = LifecycleState.READY
                usingFallback = True
                logger.info(f"Falling back to {filesystem.describe()}")
            else:
                filesystem = UnavailableFileSystem(error)
                state = LifecycleState.FAILED

        self._lastError = error
        self._usingFallback = usingFallback
        self._closed = False
        self._filesystem = filesystem
        # Set last: open() checks the state without taking the lock
        self._state = state

    def load(self, fallbackDirectory: Optional[str] = None) -> 'AssetView':
        """
        Initialize the view if it is not initialized yet. Idempotent.

        The outcome sticks until close(): once the view is READY or FAILED, later
        calls return it unchanged whatever fallbackDirectory they pass. That
        includes a FAILED state left by a lazy open() that had no fallback, so
        call close() first to retry with a fallback directory.

        Args:
            fallbackDirectory: Local directory to serve when no usable archive is found

        Returns:
            AssetView: self, usable even when initialization failed
        """
        if self._state != LifecycleState.UNINITIALIZED:
            return self

        with self._lock:
            if self._state != LifecycleState.UNINITIALIZED:
                return self
            self._initialize(fallbackDirectory)
            filesystem, error, usingFallback = self._filesystem, self._lastError, self._usingFallback

        context = {'filesystem': filesystem, 'error': error, 'fallbackDirectory': fallbackDirectory}
        if usingFallback:
            AssetEvent.viewFallback.trigger(sender=self, context=context)
        AssetEvent.viewLoad.trigger(sender=self, context=context)

        return self

    def open(self, path: str) -> AssetHandle:
        """
        Open a file or directory.

        Args:
            path: Absolute path, e.g. "/index.html"

        Returns:
            A new handle owned by the caller

        Raises:
            NotExistError: If path is unknown or not absolute
            ClosedError: If the view was closed and not loaded again
            AssetError: The initialization error, when no fallback is in use
        """
        if self._closed:
            raise ClosedError()

        if self._state == LifecycleState.UNINITIALIZED:
            self.load()

        filesystem = self._filesystem
        if filesystem is None:
            raise ClosedError()

        return filesystem.open(path)

    def close(self):
        """Release the archive and reset to UNINITIALIZED. Idempotent, no-op before the first load."""
        with self._lock:
            if self._state == LifecycleState.UNINITIALIZED:
                return

            filesystem = self._filesystem
            self._state = LifecycleState.UNINITIALIZED
            self._filesystem = None
            self._usingFallback = False
            self._closed = True

        filesystem.close()
        logger.debug(f"Closed asset view over {filesystem.describe()}")

        AssetEvent.viewClose.trigger(sender=self, context={'filesystem': filesystem})

    def __enter__(self):
        return self.load()

    def __exit__(self, excType, excValue, traceback):
        self.close()


class AssetRegistry(Singleton):
    """Holds the process-wide AssetView"""

    def initialize(self, executablePath: Optional[str] = None, strict: bool = False):
        self.view = AssetView(executablePath=executablePath, strict=strict)

    def replace(self, view: AssetView) -> AssetView:
        """Swap the process-wide view, closing the previous one. Used by tests and embedding programs."""
        previous = self.view
        self.view = view
        if previous is not view:
            previous.close()
        return view


def getView() -> AssetView:
    return AssetRegistry.getInstance().view


def init(fallbackDirectory: Optional[str] = None) -> AssetView:
    """
    Initialize the process-wide view (once) and return it.

    Like AssetView.load(), a view that is already loaded or failed is returned as
    is, so an earlier failed open() wins over a later init(fallbackDirectory)
    until close() is called.
    """
    return getView().load(fallbackDirectory)


def lastError() -> Optional[AssetError]:
    return getView().lastError


def close():
    getView().close()


def open(path: str) -> AssetHandle:
    return getView().open(path)
