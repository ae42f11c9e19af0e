"""
Centralized Logging and Security Filtering
==========================================

This module provides the logging infrastructure for the Youkoso application,
with a heavy emphasis on keeping credentials out of every log sink.

Key Features:
-------------
- Sensitive Data Masking: Redaction of passwords, tokens and authorization
  headers using key matching and regex patterns.
- Handler Setup: One file handler (DEBUG) and one console handler (INFO), both
  carrying the masking filter.
- API Instrumentation: Helpers for logging REST requests/responses with
  timing and status.

Dependencies:
-------------
- logging: Standard library for output routing.
- re: Used for pattern-based masking of sensitive strings.

Author: Youkoso Project
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from youkoso.core.config import APP_NAME, REDACTED_PLACEHOLDER
from youkoso.core.credentials import Secret


# Default log directory: <project root>/logs
PROJECT_ROOT = Path(__file__).parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"
LOG_FILENAME = "youkoso.log"

# Dictionary keys whose values are always masked
SENSITIVE_FIELDS = {
    'password', 'passwd', 'pwd', 'secret', 'token', 'api_key',
    'apikey', 'auth', 'authorization', 'credentials', 'cookie'
}

# Regex patterns for sensitive data embedded in free text
SENSITIVE_PATTERNS = [
    (re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*'), r'\1' + REDACTED_PLACEHOLDER),
    (re.compile(r'((?:password|passwd|pwd)["\']?\s*[=:]\s*["\']?)[^\s"\',}]+', re.IGNORECASE),
     r'\1' + REDACTED_PLACEHOLDER),
    (re.compile(r'([a-zA-Z0-9]{32,})'), lambda m: f"{REDACTED_PLACEHOLDER}{m.group(1)[-4:]}"),
]


class SensitiveDataFilter(logging.Filter):
    """
    Filtering hook to intercept and redact sensitive information.

    Attached to both file and console handlers. It scans log records for
    credential-looking content and replaces it with the placeholder before
    the record is written anywhere.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_string(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = mask_sensitive_data(record.args)
            elif isinstance(record.args, tuple):
                record.args = tuple(mask_sensitive_data(arg) for arg in record.args)

        return True


def mask_string(text: str) -> str:
    """Apply the regex patterns to a free-form string."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_sensitive_data(
    data: Any,
    mask_value: str = REDACTED_PLACEHOLDER,
    extra_fields: Iterable[str] = (),
) -> Any:
    """
    Recursively redact sensitive fields from complex data structures.

    Dictionaries are scanned by key name; strings are scanned with regex
    patterns; Secret values are always replaced.

    Args:
        data: The input data structure (dict, list, str, etc.) to be scrubbed.
        mask_value: The string used to replace sensitive content.
        extra_fields: Additional key names to mask for this call only
            (e.g. an endpoint that returns a token in a generic field).

    Returns:
        A copy of the input data with sensitive values masked.
    """
    extra = {name.lower() for name in extra_fields}

    if isinstance(data, Secret):
        return mask_value

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if key_lower in extra or any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                masked[key] = mask_value
            else:
                masked[key] = mask_sensitive_data(value, mask_value, extra)
        return masked

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask_value, extra) for item in data)

    if isinstance(data, str):
        return mask_string(data)

    return data


def setup_logging(
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    log_format: Optional[str] = None
) -> Path:
    """
    Initialize application-wide logging.

    Configures:
    - Root Logger: Set to DEBUG to capture all events.
    - File Handler: Persists detailed logs to 'logs/youkoso.log' (overwritten each run).
    - Console Handler: Displays INFO and above on stdout.

    Args:
        log_level: Granularity for the persistent log file.
        console_level: Granularity for the terminal output.
        log_dir: Directory for the log file (defaults to <project>/logs).
        log_format: Optional custom formatting string.

    Returns:
        Path: The absolute path to the log file.
    """
    log_dir = Path(log_dir) if log_dir else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME

    if log_format is None:
        log_format = (
            '%(asctime)s - %(name)s - %(levelname)s - '
            '[%(filename)s:%(lineno)d] - %(message)s'
        )
    formatter = logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter by level

    # Remove existing handlers to avoid duplicates on re-initialization
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(console_handler)

    logging.info("=" * 80)
    logging.info(f"{APP_NAME} started - Log file: {log_file}")
    logging.info("=" * 80)

    return log_file


def shutdown_logging():
    """
    Flush and close all root handlers.
    Should be called before application exit.
    """
    logging.info("Shutting down logging system...")
    for handler in list(logging.root.handlers):
        handler.flush()
        handler.close()


def log_config(config_name: str, config_data: Dict[str, Any], logger: Optional[logging.Logger] = None):
    """
    Log configuration settings with automatic sensitive data masking.

    Args:
        config_name: Name of the configuration being logged
        config_data: Dictionary of configuration settings
        logger: Optional logger instance (uses this module's logger if not provided)
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    masked_config = mask_sensitive_data(config_data)

    logger.info(f"Configuration: {config_name}")
    logger.debug(f"{config_name} details: {json.dumps(masked_config, indent=2, default=str)}")


def log_api_request(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    headers: Optional[Dict] = None,
    data: Optional[Any] = None,
    params: Optional[Dict] = None
):
    """
    Log an outgoing API request with masked sensitive data.

    Args:
        logger: Logger instance to use
        method: HTTP method (GET, POST, etc.)
        endpoint: API endpoint URL
        headers: Request headers
        data: Request body data
        params: Query parameters
    """
    logger.info(f"API Request: {method} {endpoint}")

    if headers:
        logger.debug(f"Request headers: {mask_sensitive_data(headers)}")

    if params:
        logger.debug(f"Request params: {mask_sensitive_data(params)}")

    if data:
        masked_data = mask_sensitive_data(data)
        logger.debug(f"Request body: {json.dumps(masked_data, indent=2, default=str)}")


def log_api_response(
    logger: logging.Logger,
    status_code: int,
    response_data: Optional[Any] = None,
    elapsed_time: Optional[float] = None,
    sensitive_fields: Iterable[str] = ()
):
    """
    Log an API response with timing information.

    Args:
        logger: Logger instance to use
        status_code: HTTP status code
        response_data: Response body data
        elapsed_time: Request duration in seconds
        sensitive_fields: Extra response keys to mask (e.g. a token carried in 'msg')
    """
    timing_info = f" ({elapsed_time:.3f}s)" if elapsed_time else ""
    logger.info(f"API Response: {status_code}{timing_info}")

    if response_data:
        masked_response = mask_sensitive_data(response_data, extra_fields=sensitive_fields)

        # Truncate large responses for readability
        response_str = json.dumps(masked_response, indent=2, default=str)
        if len(response_str) > 1000:
            response_str = response_str[:1000] + "\n... (truncated)"

        logger.debug(f"Response body: {response_str}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
