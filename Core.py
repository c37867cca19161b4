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
# Example program: serves the assets appended to its own binary over HTTP.
#
#   zip -r assets.zip index.html css/ js/
#   cat httpasset-server assets.zip > my-app      # or: zip -A my-app
#   ./my-app --port 8080
#
# Without an appended archive the local --assets directory is served instead.

import os
import signal
import sys

from httpasset.CLI import configureCLIParser, configureLogging, showVersion
from httpasset.Kernel import AssetEvent, getLogger
from httpasset.Server import createServer
from httpasset.Utils import flushPrint, formatSize
from httpasset.View import AssetRegistry, AssetView, LifecycleState

logger = getLogger(__name__)


def setupGracefulShutdown():
    """Setup signal handlers for graceful shutdown on multiple Ctrl+C"""
    context = {'shutdownInProgress': False}

    def signalHandler(signum, frame):
        if context['shutdownInProgress']:
            # Second Ctrl+C - force immediate exit without cleanup messages
            os._exit(0)
        else:
            # First Ctrl+C - set flag and raise KeyboardInterrupt normally
            context['shutdownInProgress'] = True
            raise KeyboardInterrupt()

    # Register signal handler for SIGINT (Ctrl+C)
    signal.signal(signal.SIGINT, signalHandler)


def onFallback(sender=None, context=None, **kwargs):
    error = context.get('error') if context else None
    directory = context.get('fallbackDirectory') if context else None
    flushPrint(f'No archive in binary ({error}), falling back to local assets in {directory}')


def describeView(view):
    if view.usingFallback:
        root = view.filesystem.root
        if not os.path.isdir(root):
            flushPrint(f'Warning: local assets directory {root} does not exist, every request will be 404')
        return f'local assets in {root}'

    filesystem = view.filesystem
    return (
        f'{filesystem.namespace.fileCount} files appended to the binary '
        f'({formatSize(filesystem.archive.size)} binary)'
    )


def main(argv=None):
    parser = configureCLIParser()
    args = parser.parse_args(argv)

    configureLogging(args.logLevel)

    if args.version:
        showVersion()
        return 0

    view = AssetRegistry.getInstance().replace(AssetView(strict=args.strict))

    AssetEvent.viewFallback.subscribe(onFallback)
    try:
        view.load(args.assets)
    finally:
        AssetEvent.viewFallback.unsubscribe(onFallback)

    if view.state == LifecycleState.FAILED:
        flushPrint(f'Unable to serve assets: {view.lastError}')
        return 1

    server = createServer(view, args.host, args.port)
    flushPrint(f'Serving {describeView(view)} at {server.url}')

    try:
        server.start()
    except KeyboardInterrupt:
        flushPrint('\nExiting on user request (Ctrl+C)...')
    finally:
        server.server_close()
        view.close()

    return 0


if __name__ == '__main__':
    setupGracefulShutdown()
    try:
        sys.exit(main() or 0)
    except KeyboardInterrupt:
        flushPrint('\nExiting on user request (Ctrl+C)...')
        sys.exit(0) # Exit with success code
    except OSError as e:
        logger.exception(e)
        flushPrint(f'Error: {e}')
        sys.exit(1)
