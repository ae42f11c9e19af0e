"""
Application Configuration and Constants
=======================================

This module contains all global configuration values, constants, and defaults used
throughout the Youkoso application. It serves as a single source of truth for:

- Settings file location and on-disk schema version
- My Studio API endpoints and request constants
- Network and retry parameters used by the session manager
- Redaction placeholders used by logging and diagnostics

Note:
    All constants use UPPER_SNAKE_CASE naming convention. Modify these values to
    change application-wide behavior without touching business logic.

Author: Youkoso Project
"""

# ============================================================================
# APPLICATION SETTINGS
# ============================================================================

APP_NAME = "Youkoso"
APP_ID = "youkoso"  # Used as the window class / xdg app id
GEOMETRY = "560x360"

# ============================================================================
# SETTINGS FILE
# ============================================================================
# The settings document lives in a TOML file next to the executable unless the
# environment variable below points somewhere else.

CONFIG_FILENAME = "config.toml"
CONFIG_PATH_ENV = "YOUKOSO_CONFIG"

# Bumped whenever the on-disk layout changes in a way older builds should know about
SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

# TOML table holding the My Studio credential triple
MY_STUDIO_TABLE = "my_studio"

# ============================================================================
# MY STUDIO API
# ============================================================================

MY_STUDIO_BASE_URL = "https://cn.mystudio.io/Api/v2"
MY_STUDIO_LOGIN_ENDPOINT = "/login"
MY_STUDIO_TOKEN_ENDPOINT = "/generateStudioAttendanceToken"

# Every My Studio call is made on behalf of the attendance page
MY_STUDIO_FROM_PAGE = "attendance"

# Envelope values returned in the "status" field of every response
STATUS_SUCCESS = "Success"
STATUS_FAILED = "Failed"

# ============================================================================
# NETWORK AND RETRY CONFIGURATION
# ============================================================================

# Total number of authentication attempts when the service is unreachable
MAX_AUTH_ATTEMPTS = 3

# First backoff delay; each following delay is multiplied by the factor
AUTH_RETRY_BASE_DELAY_SECONDS = 0.5
AUTH_RETRY_BACKOFF_FACTOR = 2.0

NETWORK_TIMEOUT_SECONDS = 30

# HTTP status classes used to map responses onto the error taxonomy
UNAUTHORIZED_STATUS_CODES = (401,)
TRANSIENT_STATUS_CODES = (408, 429, 500, 502, 503, 504)

# ============================================================================
# REDACTION
# ============================================================================

REDACTED_PLACEHOLDER = "***"
