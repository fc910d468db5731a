#!/usr/bin/env python3
"""
Environment-driven settings

Values are read once at import time from the process environment (and a .env
file in the working directory, if present).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent


def _env_flag(name, default=False):
    """Interpret an environment variable as a boolean flag."""
    value = os.getenv(name, '').strip().lower()
    if not value:
        return default
    return value in ('1', 'true', 'yes', 'on')


def _env_paths(name):
    raw = os.getenv(name, '').strip()
    return [Path(p) for p in raw.split(os.pathsep) if p.strip()]


# Fonts
FONT_DIRS = _env_paths('VELOCIVIEW_FONT_DIRS')
FONT_CACHE_DIR = Path(os.getenv('VELOCIVIEW_FONT_CACHE', '').strip() or PROJECT_ROOT / '.font_cache')
FONT_DOWNLOAD = _env_flag('VELOCIVIEW_FONT_DOWNLOAD')

# Watermark logos (optional, text watermark is used when unset)
WATERMARK_LIGHT = os.getenv('VELOCIVIEW_WATERMARK_LIGHT', '').strip() or None
WATERMARK_DARK = os.getenv('VELOCIVIEW_WATERMARK_DARK', '').strip() or None

DEFAULT_UNITS = os.getenv('VELOCIVIEW_UNITS', 'metric').strip().lower() or 'metric'

# Web application
MAX_UPLOAD_MB = int(os.getenv('VELOCIVIEW_MAX_UPLOAD_MB', '25').strip() or 25)
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
FLASK_DEBUG = _env_flag('FLASK_DEBUG')
PORT = int(os.getenv('PORT', '5555').strip() or 5555)
