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

import html
import posixpath
import re

from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from httpasset.Errors import AssetError, NotExistError
from httpasset.Kernel import PUBLIC_VERSION, getLogger
from httpasset.Settings import COPY_CHUNK_SIZE, DEFAULT_HOST, DEFAULT_PORT, INDEX_FILE
from httpasset.Utils import formatSize

logger = getLogger(__name__)


class AssetRequestHandler(SimpleHTTPRequestHandler):
    """Serves GET and HEAD requests from server.filesystem (an AssetView or any FileSystem)"""

    range = None

    # To let browser can resume downloads
    protocol_version = 'HTTP/1.1'
    server_version = f'httpasset/{PUBLIC_VERSION}'

    def _normalizeRequestPath(self):
        path = unquote(urlsplit(self.path).path)
        trailingSlash = path.endswith('/')

        path = '/' + posixpath.normpath(path).lstrip('/')
        if path == '/.':
            path = '/'
        elif trailingSlash and path != '/':
            path += '/'

        return path

    def _parseByteRange(self, byteRange):
        """
        Parse a single `bytes=` range.

        Returns (start, end) where end may be None for an open range, or
        (None, length) for a suffix range. Multiple ranges and anything
        malformed give None, and the header is then ignored.
        """
        reg = re.match(r'bytes=(\d*)-(\d*)$', byteRange.strip())
        if not reg or reg.groups() == ('', ''):
            logger.debug(f'Ignoring byte range {byteRange}')
            return None

        start, end = [int(x) if x else None for x in reg.groups()]
        if start is not None and end is not None and start > end:
            logger.debug(f'Ignoring byte range {byteRange}')
            return None
        return start, end

    def _resolveRange(self, size):
        """Map self.range onto a file of the given size, None when it cannot be satisfied"""
        start, end = self.range
        if start is None:
            # Suffix range: the last `end` bytes
            start, end = max(0, size - end), size - 1
        elif end is None or end >= size:
            end = size - 1

        if start >= size or start > end:
            return None
        return start, end

    def _parseRange(self):
        # Handler instances are reused across keep-alive requests
        self.range = None
        if 'Range' in self.headers:
            self.range = self._parseByteRange(self.headers['Range'])

    def _sendBytes(self, payload: bytes, ctype: str = "text/plain; charset=utf-8", sendBody=True):
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if sendBody:
            self.wfile.write(payload)

    def _handleRedirect(self):
        parts = urlsplit(self.path)
        location = urlunsplit((parts[0], parts[1], parts[2] + '/', parts[3], parts[4]))

        self.send_response(HTTPStatus.MOVED_PERMANENTLY)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _openIndex(self, path):
        try:
            index = self.server.filesystem.open(posixpath.join(path, INDEX_FILE))
        except NotExistError:
            return None

        if index.stat().isDir:
            index.close()
            return None
        return index

    def _handleDirectory(self, path, handle, sendBody):
        if not path.endswith('/'):
            self._handleRedirect()
            return

        index = self._openIndex(path)
        if index is not None:
            with index:
                self._handleFile(posixpath.join(path, INDEX_FILE), index, sendBody)
            return

        self._handleListing(path, handle, sendBody)

    def _handleListing(self, path, handle, sendBody):
        title = html.escape(f'Directory listing for {path}', quote=False)
        rows = []
        for child in handle.listChildren():
            name = child.name + '/' if child.isDir else child.name
            size = '-' if child.isDir else formatSize(child.size)
            rows.append(
                f'<li><a href="{quote(name)}">{html.escape(name, quote=False)}</a> <small>{size}</small></li>'
            )

        page = '\n'.join([
            '<!DOCTYPE HTML>',
            '<html lang="en">',
            '<head>',
            '<meta charset="utf-8">',
            f'<title>{title}</title>',
            '</head>',
            '<body>',
            f'<h1>{title}</h1>',
            '<hr>',
            '<ul>',
            *rows,
            '</ul>',
            '<hr>',
            '</body>',
            '</html>',
            '',
        ])
        self._sendBytes(page.encode('utf-8'), "text/html; charset=utf-8", sendBody)

    def _handleFile(self, path, handle, sendBody):
        st = handle.stat()
        size = st.size
        ctype = self.guess_type(path)

        # Compressed entries cannot seek, so they always answer with the full body
        seekable = handle.seekable()
        start, end = 0, size - 1
        partial = False

        if seekable and self.range is not None:
            resolved = self._resolveRange(size)
            if resolved is None:
                self.send_response(HTTPStatus.REQUESTED_RANGE_NOT_SATISFIABLE)
                self.send_header("Content-Range", f'bytes */{size}')
                self.send_header("Content-Length", "0")
                self.end_headers()
                return

            start, end = resolved
            partial = True

        if partial:
            self.send_response(HTTPStatus.PARTIAL_CONTENT)
            self.send_header("Content-Range", f'bytes {start}-{end}/{size}')
        else:
            self.send_response(HTTPStatus.OK)

        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(end - start + 1))
        if st.mtime is not None:
            self.send_header("Last-Modified", self.date_time_string(int(st.mtime)))
        if seekable:
            self.send_header("Accept-Ranges", "bytes")
        self.end_headers()

        if not sendBody:
            return

        if start:
            handle.seek(start)

        remaining = end - start + 1
        try:
            while remaining > 0:
                data = handle.read(min(COPY_CHUNK_SIZE, remaining))
                if not data:
                    break

                self.wfile.write(data)
                remaining -= len(data)
        except ConnectionError as e:
            logger.debug(f"Client disconnected while sending {path}: {e}")
            self.close_connection = True
        except AssetError as e:
            # Headers are already out; the only way to signal failure is to drop the connection
            logger.warning(f"Failed to send {path}: {e}")
            self.close_connection = True

        if remaining > 0:
            self.close_connection = True

    def _serve(self, sendBody):
        path = self._normalizeRequestPath()
        self._parseRange()

        try:
            handle = self.server.filesystem.open(path)
        except NotExistError:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return
        except AssetError as e:
            logger.warning(f"Unable to open {path}: {e}")
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR, str(e))
            return

        with handle:
            if handle.stat().isDir:
                self._handleDirectory(path, handle, sendBody)
            else:
                self._handleFile(path, handle, sendBody)

    def do_GET(self):
        self._serve(sendBody=True)

    def do_HEAD(self):
        self._serve(sendBody=False)

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


class AssetServer(ThreadingHTTPServer):

    request_queue_size = 16
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, filesystem, serverAddress, requestHandlerClass=None):
        self.filesystem = filesystem

        if requestHandlerClass is None:
            requestHandlerClass = AssetRequestHandler

        super().__init__(serverAddress, requestHandlerClass)

    @property
    def url(self):
        host, port = self.server_address[:2]
        return f'http://{host}:{port}/'

    def handle_error(self, request, client_address):
        logger.exception(f"Error while handling request from {client_address}")

    def start(self):
        # Start the given server instance
        self.serve_forever()


def createServer(filesystem, host=DEFAULT_HOST, port=DEFAULT_PORT, handlerClass=None):
    # Factory function to create an AssetServer bound to host:port
    return AssetServer(filesystem, (host, port), handlerClass)
