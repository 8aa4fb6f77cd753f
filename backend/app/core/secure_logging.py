"""
Secure logging utilities for credential masking.

Prevents accidental exposure of API keys, JWT secrets and passwords in logs.

Usage:
    from app.core.secure_logging import mask_api_key

    logger.info("Using API key: %s", mask_api_key(api_key))
"""

import logging
from typing import Optional


SENSITIVE_PATTERNS = ["key", "secret", "password", "token", "credential", "auth"]


def mask_api_key(api_key: Optional[str], visible_chars: int = 4) -> str:
    """Mask API key showing only first N characters.

    Examples:
        >>> mask_api_key("abc123xyz789")
        'abc1********'
        >>> mask_api_key("short")
        '****'
        >>> mask_api_key(None)
        '****'
    """
    if not api_key or len(api_key) <= visible_chars:
        return "****"
    return api_key[:visible_chars] + "*" * 8


def safe_log_config(config: dict) -> dict:
    """Return config dict with sensitive values masked.

    Masks values for keys containing any of SENSITIVE_PATTERNS.

    Examples:
        >>> safe_log_config({"api_key": "secret123", "region": "us-west-2"})
        {'api_key': 'secr********', 'region': 'us-west-2'}
    """
    masked = {}
    for k, v in config.items():
        if any(pattern in k.lower() for pattern in SENSITIVE_PATTERNS):
            masked[k] = mask_api_key(str(v)) if v else None
        else:
            masked[k] = v
    return masked


def log_api_call(
    logger: logging.Logger,
    api_name: str,
    endpoint: str,
    success: bool,
    duration_ms: Optional[float] = None,
    error: Optional[Exception] = None,
) -> None:
    """Log an upstream API call without exposing credentials.

    Only the exception type is logged, never its message, since request
    errors from HTTP clients echo the full URL including query parameters.
    """
    status = "SUCCESS" if success else "FAILED"
    msg = f"API Call: {api_name} -> {endpoint} [{status}]"

    if duration_ms is not None:
        msg += f" ({duration_ms:.0f}ms)"

    if error:
        msg += f" Error: {type(error).__name__}"

    if success:
        logger.info(msg)
    else:
        logger.warning(msg)
