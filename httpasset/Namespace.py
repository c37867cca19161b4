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
Path namespace synthesized from a flat archive entry list.

ZIP files don't always have explicit directory entries, so directories are
inferred from file paths: every ancestor of a file is a directory. The
mapping is built once and never mutated, so lookups need no locking.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Optional

from httpasset.Archive import ArchiveEntry
from httpasset.Errors import NamespaceConflictError

ROOT = '/'


class NodeKind(Enum):
    FILE = 'file'
    DIRECTORY = 'directory'


@dataclass(frozen=True)
class NamespaceNode:
    path: str # Absolute, e.g. "/a/file1"
    kind: NodeKind
    entry: Optional[ArchiveEntry] = None # Only set for files

    @property
    def isDir(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]


class Namespace:
    """Immutable mapping of absolute path -> NamespaceNode"""

    def __init__(self, nodes):
        self._nodes = MappingProxyType(dict(nodes))
        self.fileCount = sum(1 for node in self._nodes.values() if not node.isDir)
        # Root is synthetic, it is not a prefix of any entry path
        self.directoryCount = sum(1 for node in self._nodes.values() if node.isDir) - 1

    def lookup(self, path: str) -> Optional[NamespaceNode]:
        """
        Find the node for an absolute path.

        Args:
            path: Absolute path; a trailing slash is ignored

        Returns:
            The node, or None for unknown and non-absolute paths
        """
        if not path.startswith('/'):
            return None

        if path != ROOT:
            path = path.rstrip('/') or ROOT
        return self._nodes.get(path)

    def __contains__(self, path):
        return self.lookup(path) is not None

    def __len__(self):
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes)

    @property
    def nodes(self):
        return self._nodes


def _insertDirectory(nodes, path):
    existing = nodes.get(path)
    if existing is None:
        nodes[path] = NamespaceNode(path, NodeKind.DIRECTORY)
    elif not existing.isDir:
        raise NamespaceConflictError(path)


def buildNamespace(entries: Iterable[ArchiveEntry]) -> Namespace:
    """
    Build the namespace for a list of archive entries.

    Args:
        entries: Decoded archive entries

    Returns:
        Namespace: One FILE node per file entry, one DIRECTORY node per
                   distinct ancestor path, plus the root

    Raises:
        NamespaceConflictError: If a path is both a file and a directory, or
                                the same file is recorded twice
    """
    nodes = {ROOT: NamespaceNode(ROOT, NodeKind.DIRECTORY)}

    for entry in entries:
        parts = [part for part in entry.path.strip('/').split('/') if part]
        if not parts:
            continue

        for i in range(1, len(parts)):
            _insertDirectory(nodes, '/' + '/'.join(parts[:i]))

        path = '/' + '/'.join(parts)
        if entry.isDir:
            _insertDirectory(nodes, path)
            continue

        existing = nodes.get(path)
        if existing is not None:
            reason = 'duplicate file entry' if not existing.isDir else 'file and directory share the same path'
            raise NamespaceConflictError(path, reason)

        nodes[path] = NamespaceNode(path, NodeKind.FILE, entry)

    return Namespace(nodes)
