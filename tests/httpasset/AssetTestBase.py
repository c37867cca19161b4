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

import io
import os
import shutil
import tempfile
import unittest
import warnings
import zipfile

from httpasset.Kernel import AssetEvent, EventService
from httpasset.View import AssetRegistry, AssetView

TESTDATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'testdata')

# Stand-in for the executable code in front of the archive
FAKE_PREFIX = b'\x7fELF' + bytes(range(256)) * 64

SAMPLE_MEMBERS = [
    ('test.txt', b'hi', zipfile.ZIP_STORED),
    ('a/file1', b'a', zipfile.ZIP_STORED),
    ('a/compressed.txt', b'compressed file', zipfile.ZIP_DEFLATED),
    ('b/c/d/e.txt', b'e', zipfile.ZIP_STORED),
]


def _writeMembers(zf, members):
    with warnings.catch_warnings():
        # Duplicate names are written on purpose by some tests
        warnings.simplefilter('ignore', UserWarning)
        for name, data, compressType in members:
            if name.endswith('/'):
                zf.writestr(zipfile.ZipInfo(name), b'')
            else:
                zf.writestr(name, data, compress_type=compressType)


def buildZip(members=SAMPLE_MEMBERS, comment=b''):
    """Return the bytes of a standalone zip archive"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as zf:
        _writeMembers(zf, members)
        zf.comment = comment
    return buffer.getvalue()


def writeFakeBinary(path, members=SAMPLE_MEMBERS, prefix=FAKE_PREFIX, comment=b''):
    """Concatenate a fake executable and a zip, like `cat app assets.zip > app`"""
    with open(path, 'wb') as f:
        f.write(prefix)
        if members is not None:
            f.write(buildZip(members, comment))
    return path


def appendArchive(path, members=SAMPLE_MEMBERS):
    """Append a zip to an existing file in place, like `zip -A`"""
    with zipfile.ZipFile(path, 'a') as zf:
        _writeMembers(zf, members)
    return path


class AssetTestBase(unittest.TestCase):
    """Temporary directory, fresh event signals and a fresh process-wide view for each test"""

    def setUp(self):
        self.tempDir = tempfile.mkdtemp(prefix='httpasset-test-')

        EventService.getInstance().reset()
        for event in (AssetEvent.viewLoad, AssetEvent.viewFallback, AssetEvent.viewClose):
            event.register()

        self.registry = AssetRegistry.getInstance()
        self.registry.replace(AssetView())

    def tearDown(self):
        self.registry.replace(AssetView())
        shutil.rmtree(self.tempDir, ignore_errors=True)

    def createPath(self, name):
        return os.path.join(self.tempDir, name)

    def makeBinary(self, name='app', members=SAMPLE_MEMBERS, **kwargs):
        return writeFakeBinary(self.createPath(name), members, **kwargs)

    def assertReads(self, handle, expected):
        self.assertEqual(handle.read(), expected)
