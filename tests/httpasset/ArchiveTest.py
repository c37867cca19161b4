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
import unittest
import zipfile

from httpasset.Archive import (
    END_OF_CENTRAL_DIR_SIGNATURE, END_OF_CENTRAL_DIR_SIZE, CompressionMethod, findEndOfCentralDirectory, readArchive
)
from httpasset.Errors import (
    ArchiveCorruptError, ArchiveNotFoundError, AssetError, ClosedError, UnsupportedCompressionError
)

from tests.httpasset.AssetTestBase import FAKE_PREFIX, SAMPLE_MEMBERS, buildZip


def corruptCentralDirectory(data):
    data = bytearray(data)
    pos = data.find(b'PK\x01\x02')
    data[pos:pos + 2] = b'XX'
    return bytes(data)


def withCompressionMethod(data, method):
    """Rewrite the method of the first member in both its local and central headers"""
    data = bytearray(data)
    value = method.to_bytes(2, 'little')
    data[8:10] = value
    central = data.find(b'PK\x01\x02')
    data[central + 10:central + 12] = value
    return bytes(data)


class FindEndOfCentralDirectoryTest(unittest.TestCase):

    def testAfterPrefix(self):
        archive = buildZip()
        data = FAKE_PREFIX + archive
        offset = findEndOfCentralDirectory(io.BytesIO(data), len(data))
        self.assertEqual(offset, len(data) - END_OF_CENTRAL_DIR_SIZE)
        self.assertEqual(data[offset:offset + 4], END_OF_CENTRAL_DIR_SIGNATURE)

    def testSkipsSignatureInsideComment(self):
        comment = b'note ' + END_OF_CENTRAL_DIR_SIGNATURE + b'\0' * 18 + b' end'
        data = FAKE_PREFIX + buildZip(comment=comment)
        offset = findEndOfCentralDirectory(io.BytesIO(data), len(data))
        self.assertEqual(offset, len(data) - END_OF_CENTRAL_DIR_SIZE - len(comment))

    def testNoArchive(self):
        with self.assertRaises(ArchiveNotFoundError):
            findEndOfCentralDirectory(io.BytesIO(FAKE_PREFIX), len(FAKE_PREFIX))

    def testTooSmall(self):
        with self.assertRaises(ArchiveNotFoundError):
            findEndOfCentralDirectory(io.BytesIO(b'PK\x05\x06'), 4)

    def testStraySignatureInBinary(self):
        # A signature whose comment length does not reach the end of file is not a record
        data = FAKE_PREFIX + END_OF_CENTRAL_DIR_SIGNATURE + b'\0' * 16 + b'\x05\x00' + b'tail'
        with self.assertRaises(ArchiveNotFoundError):
            findEndOfCentralDirectory(io.BytesIO(data), len(data))

    def testShortRead(self):
        data = FAKE_PREFIX + buildZip()
        with self.assertRaises(ArchiveCorruptError):
            # Claimed size is larger than what the file holds
            findEndOfCentralDirectory(io.BytesIO(data[:100]), len(data))


class ArchiveTest(unittest.TestCase):

    def openSample(self, data=None):
        data = FAKE_PREFIX + buildZip() if data is None else data
        return readArchive(io.BytesIO(data), len(data), name='sample')

    def testEntries(self):
        archive = self.openSample()
        entries = {entry.path: entry for entry in archive.entries}

        self.assertEqual(sorted(entries), sorted(name for name, _, _ in SAMPLE_MEMBERS))

        self.assertEqual(entries['test.txt'].compressionMethod, CompressionMethod.STORED)
        self.assertEqual(entries['test.txt'].uncompressedSize, 2)
        self.assertEqual(entries['a/compressed.txt'].compressionMethod, CompressionMethod.DEFLATED)
        self.assertEqual(entries['a/compressed.txt'].uncompressedSize, len(b'compressed file'))
        self.assertFalse(entries['b/c/d/e.txt'].isDir)

        archive.close()

    def testOpenReader(self):
        archive = self.openSample()
        entries = {entry.path: entry for entry in archive.entries}

        with entries['a/compressed.txt'].openReader() as reader:
            self.assertEqual(reader.read(), b'compressed file')

        with entries['test.txt'].openReader() as reader:
            self.assertEqual(reader.read(), b'hi')

        archive.close()

    def testArchiveWithoutPrefix(self):
        archive = self.openSample(buildZip())
        self.assertEqual(len(archive.entries), len(SAMPLE_MEMBERS))
        archive.close()

    def testDirectoryEntry(self):
        archive = self.openSample(FAKE_PREFIX + buildZip([('empty/', b'', zipfile.ZIP_STORED)]))
        entry, = archive.entries
        self.assertTrue(entry.isDir)
        archive.close()

    def testNotFound(self):
        with self.assertRaises(ArchiveNotFoundError):
            self.openSample(FAKE_PREFIX)

    def testCorruptCentralDirectory(self):
        with self.assertRaises(ArchiveCorruptError) as context:
            self.openSample(FAKE_PREFIX + corruptCentralDirectory(buildZip()))
        self.assertIsInstance(context.exception, AssetError)

    def testUnsupportedCompression(self):
        data = FAKE_PREFIX + withCompressionMethod(buildZip([('x.bin', b'data', zipfile.ZIP_STORED)]), 99)
        archive = self.openSample(data)
        entry, = archive.entries

        self.assertEqual(entry.compressionMethod, CompressionMethod.OTHER)
        with self.assertRaises(UnsupportedCompressionError):
            entry.openReader()

        archive.close()

    def testClose(self):
        archive = self.openSample()
        entry = archive.entries[0]

        archive.close()
        self.assertTrue(archive.closed)
        self.assertTrue(archive.source.closed)

        # Harmless the second time
        archive.close()

        with self.assertRaises(ClosedError):
            entry.openReader()


if __name__ == '__main__':
    unittest.main()
