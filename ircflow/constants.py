"""
Configuration constants for ircflow

This module contains the protocol engine defaults. Each constant can be
overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Keepalive
IRC_PINGTIME = _get_env_float(
    "IRC_PINGTIME", 60.0
)  # Idle seconds after the last inbound line before a PING is sent
IRC_PONGTIME = _get_env_float(
    "IRC_PONGTIME", 10.0
)  # Seconds to wait for the PONG before the ping-timeout hook fires

# Transport adapter
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 30.0
)  # Per-attempt TCP/TLS connect timeout
IRC_CONNECT_ATTEMPTS = _get_env_int(
    "IRC_CONNECT_ATTEMPTS", 3
)  # Connect attempts before giving up with NetworkError
IRC_CONNECT_BACKOFF_MAX = _get_env_float(
    "IRC_CONNECT_BACKOFF_MAX", 30.0
)  # Upper bound for exponential backoff between connect attempts
IRC_READ_CHUNK_SIZE = _get_env_int("IRC_READ_CHUNK_SIZE", 4096)

# Identity defaults
IRC_DEFAULT_REALNAME = os.getenv("IRC_DEFAULT_REALNAME", "ircflow client")

# Wire codec: maps bytes 1:1 onto code points so undecoded text stays opaque.
WIRE_CODEC = "latin-1"

# Error aggregation
IRC_ERROR_HISTORY = _get_env_int(
    "IRC_ERROR_HISTORY", 1000
)  # Occurrences kept per error category
IRC_ERROR_ALERT_RATE = _get_env_float(
    "IRC_ERROR_ALERT_RATE", 10.0
)  # Occurrences per hour above which a category raises an alert
