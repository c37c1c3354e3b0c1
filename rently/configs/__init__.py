#!/usr/bin/env python

"""
    Configurations for Rently

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os
from decimal import Decimal


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
HOST = os.environ.get('RENTLY_HOST', 'localhost')
PORT = int(os.environ.get('RENTLY_PORT', 8080))
WORKERS = int(os.environ.get('RENTLY_WORKERS', 1))
DEBUG = bool(int(os.environ.get('RENTLY_DEBUG', 0)))
LOG_LEVEL = os.environ.get('RENTLY_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('RENTLY_SSL_CRT')
SSL_KEY = os.environ.get('RENTLY_SSL_KEY')
ALLOWED_ORIGINS = [
    o.strip() for o in
    os.environ.get('RENTLY_ALLOWED_ORIGINS', 'http://localhost:3000').split(',')
    if o.strip()
]

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}
if SSL_CRT and SSL_KEY:
    OPTIONS['ssl_keyfile'] = SSL_KEY
    OPTIONS['ssl_certfile'] = SSL_CRT

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'rently'),
}

# Database configuration
DB_URI = (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

# Rental policy; money knobs are parsed as Decimal so fees stay exact
LATE_FEE_RATE = Decimal(os.environ.get('RENTLY_LATE_FEE_RATE', '0.10'))
GOOD_REFUND_RATE = Decimal(os.environ.get('RENTLY_GOOD_REFUND_RATE', '0.90'))
EXCELLENT_REFUND_RATE = Decimal(os.environ.get('RENTLY_EXCELLENT_REFUND_RATE', '1.00'))

# Longest rental accepted, in days
MAX_RENTAL_DAYS = int(os.environ.get('RENTLY_MAX_RENTAL_DAYS', 3650))

# Fresh-read retries after an optimistic version conflict
CONFLICT_RETRIES = int(os.environ.get('RENTLY_CONFLICT_RETRIES', 3))

__all__ = [
    'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'OPTIONS', 'DB_URI',
    'DB_CONFIG', 'TESTING', 'ALLOWED_ORIGINS', 'LATE_FEE_RATE',
    'GOOD_REFUND_RATE', 'EXCELLENT_REFUND_RATE', 'MAX_RENTAL_DAYS',
    'CONFLICT_RETRIES',
]
