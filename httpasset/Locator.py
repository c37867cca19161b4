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

import os
import sys

from typing import BinaryIO, Optional, Tuple

from httpasset.Errors import BinaryLocateError
from httpasset.Kernel import getLogger

logger = getLogger(__name__)


def locateExecutable() -> str:
    """
    Resolve the path of the file containing the running program.

    Frozen executables (PyInstaller, cx_Freeze, ...) report themselves through
    sys.executable. Otherwise sys.argv[0] names the launched file (a script, a
    zipapp or a launcher with a payload appended); the interpreter binary is
    the last resort.

    Returns:
        str: Absolute path of the running image

    Raises:
        BinaryLocateError: If no candidate path can be resolved
    """
    if getattr(sys, 'frozen', False) and sys.executable:
        return os.path.abspath(sys.executable)

    launched = sys.argv[0] if sys.argv else ''
    if launched and os.path.isfile(launched):
        return os.path.abspath(launched)

    if sys.executable:
        return os.path.abspath(sys.executable)

    raise BinaryLocateError('Unable to resolve the path of the running program')


def openSelfBinary(path: Optional[str] = None) -> Tuple[BinaryIO, int]:
    """
    Open the running program's file for random-access reading.

    Args:
        path: Explicit binary path, defaults to locateExecutable()

    Returns:
        Tuple of (binary file object, total size in bytes)

    Raises:
        BinaryLocateError: If the file cannot be opened or measured, e.g. the
                           binary was deleted or replaced after launch
    """
    if path is None:
        path = locateExecutable()

    try:
        source = open(path, 'rb')
    except OSError as e:
        raise BinaryLocateError(f'Unable to open running binary {path}: {e}') from e

    try:
        size = os.fstat(source.fileno()).st_size
    except OSError as e:
        source.close()
        raise BinaryLocateError(f'Unable to stat running binary {path}: {e}') from e

    logger.debug(f'Opened running binary {path} ({size} bytes)')
    return source, size
