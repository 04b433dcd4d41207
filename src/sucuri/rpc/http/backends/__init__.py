# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# HTTP RPC Backends
"""
Backend implementations for HTTP RPC clients.
"""

from .httpx import HTTPXHttpRPCBackend, HTTPXResponseStream

__all__ = [
    "HTTPXHttpRPCBackend",
    "HTTPXResponseStream",
]
