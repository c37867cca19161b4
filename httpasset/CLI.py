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

import argparse
import json
import os
import logging
import logging.config
import platform

from httpasset.Kernel import LOG_LEVEL_MAPPING, PUBLIC_VERSION, configureGlobalLogLevel, getLogger
from httpasset.Settings import DEFAULT_FALLBACK_DIRECTORY, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_STRICT
from httpasset.Utils import flushPrint, getEnv

logger = getLogger(__name__)


def configureLogging(logLevel):
    """Configure logging level for the application using Kernel's centralized configuration or config file

    Priority order:
    1. logLevel parameter (from --log-level CLI argument)
    2. HTTPASSET_LOGGING_LEVEL environment variable
    3. Default to None (no configuration change)

    Both logLevel and HTTPASSET_LOGGING_LEVEL can be:
    - A logging level name (DEBUG, INFO, WARNING, ERROR)
    - A path to a logging configuration JSON file
    """

    def suppressNoisyLogger():
        logging.getLogger('sentry_sdk').setLevel(logging.INFO)

    # Priority: CLI argument > environment variable > None (no change)
    if logLevel is None:
        logLevel = getEnv('HTTPASSET_LOGGING_LEVEL', None)

    # If still None, skip configuration (keep existing behavior)
    if logLevel is None:
        suppressNoisyLogger()
        return None

    # Check if logLevel is a file path
    if os.path.isfile(logLevel):
        try:
            # Load logging configuration from JSON file
            with open(logLevel, 'r') as configFile:
                configDict = json.load(configFile)

            # Apply the dictionary configuration
            logging.config.dictConfig(configDict)
            logger.info(f"Logging configured from file: {logLevel}")
            suppressNoisyLogger()
            return logLevel

        except (json.JSONDecodeError, FileNotFoundError, KeyError, ValueError) as e:
            flushPrint(f"Failed to load logging config from {logLevel}: {e}")
            flushPrint("Falling back to default logging level configuration")

    if logLevel.upper() in LOG_LEVEL_MAPPING:
        configureGlobalLogLevel(LOG_LEVEL_MAPPING[logLevel.upper()])
        logger.info(f"Logging level set to {logLevel}")
    else:
        logger.warning(f"Invalid logging level '{logLevel}', using WARNING as default")
        configureGlobalLogLevel(logging.WARNING)

    suppressNoisyLogger()

    return logLevel


def showVersion():
    """Display version information"""
    flushPrint(f"httpasset v{PUBLIC_VERSION}")
    uname = platform.uname()
    flushPrint(f"Architecture: {uname.system} {uname.release} {uname.machine}")


def configureCLIParser():
    """Configure the parser of the example asset server

    Returns:
        argparse.ArgumentParser
    """

    # Argument validators.
    def validatePort(portStr):
        """Validate port number for argparse, 0 picks a free port"""
        try:
            port = int(portStr)
            if not (0 <= port <= 65535):
                raise argparse.ArgumentTypeError(f"Port {port} is out of valid range (0-65535)")
            return port
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid port number: {portStr}")

    def validateLogLevel(logLevel):
        """Validate log level for argparse"""
        # Allow file paths (they'll be validated later)
        if os.path.exists(logLevel):
            return logLevel

        validLevels = list(LOG_LEVEL_MAPPING)
        if logLevel.upper() not in validLevels:
            raise argparse.ArgumentTypeError(
                f"Invalid log level '{logLevel}'. Valid levels are: {', '.join(validLevels)}"
            )
        return logLevel.upper()

    parser = argparse.ArgumentParser(
        description="Serve the static assets appended to this program, or a local directory when none are.",
    )
    parser.add_argument("--version", action="store_true", help="Show version information")
    parser.add_argument(
        "--host", default=DEFAULT_HOST, help=f"Address to listen on (default: {DEFAULT_HOST})", metavar="HOST"
    )
    parser.add_argument(
        "--port",
        type=validatePort,
        default=DEFAULT_PORT,
        help=f"Port to listen on, 0 for any free port (default: {DEFAULT_PORT})",
        metavar="PORT"
    )
    parser.add_argument(
        "--assets",
        default=DEFAULT_FALLBACK_DIRECTORY,
        help=f"Local directory served when no archive is appended (default: {DEFAULT_FALLBACK_DIRECTORY})",
        metavar="DIR",
        dest="assets"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=DEFAULT_STRICT,
        help="Do not fall back to the local directory when the appended archive is corrupt"
    )
    parser.add_argument(
        "--log-level",
        type=validateLogLevel,
        help="Set logging level (DEBUG, INFO, WARNING, ERROR) or path to logging config JSON file",
        metavar="LEVEL_OR_FILE",
        dest="logLevel"
    )

    return parser
