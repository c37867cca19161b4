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

from httpasset.Archive import readArchive
from httpasset.Errors import (
    ArchiveNotFoundError, ClosedError, NotADirError, NotExistError, ReadOnDirectoryError, SeekOnDirectoryError
)
from httpasset.FileSystems import (
    LocalDirectoryHandle, LocalFileHandle, LocalFileSystem, UnavailableFileSystem, ZipFileSystem
)
from httpasset.Namespace import buildNamespace

from tests.httpasset.AssetTestBase import FAKE_PREFIX, TESTDATA_DIR, buildZip


class ZipFileSystemTest(unittest.TestCase):

    def setUp(self):
        data = FAKE_PREFIX + buildZip()
        archive = readArchive(io.BytesIO(data), len(data))
        self.fs = ZipFileSystem(archive, buildNamespace(archive.entries))

    def tearDown(self):
        self.fs.close()

    def testOpen(self):
        with self.fs.open('/b/c/d/e.txt') as handle:
            self.assertEqual(handle.read(), b'e')

    def testPathsMustBeAbsolute(self):
        with self.assertRaises(NotExistError) as context:
            self.fs.open('test.txt')
        self.assertIsInstance(context.exception, FileNotFoundError)

        with self.assertRaises(NotExistError):
            self.fs.open('/bogus.txt')

    def testQueries(self):
        self.assertTrue(self.fs.exists('/a'))
        self.assertTrue(self.fs.isDir('/a'))
        self.assertFalse(self.fs.isFile('/a'))
        self.assertTrue(self.fs.isFile('/a/file1'))
        self.assertFalse(self.fs.exists('/nope'))
        self.assertFalse(self.fs.isDir('/nope'))

        self.assertEqual(self.fs.stat('/a/file1').size, 1)

    def testDescribe(self):
        self.assertIn('archive', self.fs.describe())

    def testClose(self):
        self.fs.close()
        self.fs.close()

        with self.assertRaises(ClosedError):
            self.fs.open('/test.txt')


class LocalFileSystemTest(unittest.TestCase):

    def setUp(self):
        self.fs = LocalFileSystem(TESTDATA_DIR)

    def testOpenFile(self):
        with self.fs.open('/hi.txt') as handle:
            self.assertIsInstance(handle, LocalFileHandle)
            self.assertEqual(handle.read(), b'hi\n')
            self.assertEqual(handle.seek(1), 1)
            self.assertEqual(handle.read(), b'i\n')

            st = handle.stat()
            self.assertEqual(st.name, 'hi.txt')
            self.assertEqual(st.size, 3)
            self.assertFalse(st.isDir)

            with self.assertRaises(NotADirError):
                handle.listChildren(1)

    def testPathsMustBeAbsolute(self):
        with self.assertRaises(NotExistError):
            self.fs.open('hi.txt')

    def testMissing(self):
        with self.assertRaises(NotExistError):
            self.fs.open('/missing.txt')

        # A file used as a directory
        with self.assertRaises(NotExistError):
            self.fs.open('/hi.txt/x')

    def testCannotEscapeRoot(self):
        with self.fs.open('/../../hi.txt') as handle:
            self.assertEqual(handle.read(), b'hi\n')

    def testRootDirectory(self):
        with self.fs.open('/') as handle:
            self.assertIsInstance(handle, LocalDirectoryHandle)
            self.assertTrue(handle.stat().isDir)
            self.assertIn('hi.txt', [child.name for child in handle.listChildren()])

            with self.assertRaises(ReadOnDirectoryError):
                handle.read()

            with self.assertRaises(SeekOnDirectoryError):
                handle.seek(0)

    def testClose(self):
        self.fs.close()
        with self.assertRaises(ClosedError):
            self.fs.open('/hi.txt')


class LocalDirectoryListingTest(unittest.TestCase):

    def setUp(self):
        self.root = tempfile.mkdtemp(prefix='httpasset-test-')
        for name in ('c.txt', 'a.txt', 'b.txt'):
            with open(os.path.join(self.root, name), 'wb') as f:
                f.write(name.encode())
        os.mkdir(os.path.join(self.root, 'sub'))

        self.fs = LocalFileSystem(self.root)

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def testListAll(self):
        with self.fs.open('/') as handle:
            children = handle.listChildren()

        self.assertEqual([child.name for child in children], ['a.txt', 'b.txt', 'c.txt', 'sub'])
        self.assertEqual(children[0].size, 5)
        self.assertTrue(children[3].isDir)

    def testListInBatches(self):
        with self.fs.open('/') as handle:
            self.assertEqual([child.name for child in handle.listChildren(3)], ['a.txt', 'b.txt', 'c.txt'])
            self.assertEqual([child.name for child in handle.listChildren(3)], ['sub'])
            self.assertEqual(handle.listChildren(3), [])

    def testSubdirectoryWithTrailingSlash(self):
        self.assertTrue(self.fs.isDir('/sub/'))
        self.assertTrue(self.fs.isFile('/a.txt'))


class UnavailableFileSystemTest(unittest.TestCase):

    def testOpenRaisesRecordedError(self):
        fs = UnavailableFileSystem(ArchiveNotFoundError('no archive'))

        for _ in range(2):
            with self.assertRaises(ArchiveNotFoundError):
                fs.open('/test.txt')

        fs.close()
        self.assertIn('no archive', fs.describe())


if __name__ == '__main__':
    unittest.main()
