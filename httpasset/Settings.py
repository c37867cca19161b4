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
#
# Settings for the example server and CLI. The asset view itself reads no environment.

from httpasset.Utils import getEnv

DEFAULT_HOST = getEnv('HTTPASSET_HOST', '127.0.0.1')
DEFAULT_PORT = getEnv('HTTPASSET_PORT', 8000)

# Served when no archive is appended to the binary
DEFAULT_FALLBACK_DIRECTORY = getEnv('HTTPASSET_FALLBACK_DIRECTORY', 'assets')

# Refuse to fall back when the appended archive is corrupt or ambiguous
DEFAULT_STRICT = getEnv('HTTPASSET_STRICT', False)

# Transfer chunk size (64 KiB) used when copying handles to sockets
COPY_CHUNK_SIZE = getEnv('HTTPASSET_COPY_CHUNK_SIZE', 64 * 1024)

INDEX_FILE = 'index.html'
