#!/usr/bin/env python

"""
    Rently, the rental marketplace lending core

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

__version__ = '0.1.0'
