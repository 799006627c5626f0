# Copyright 2025 Roger Cibrian
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

"""Logging interface for cmdpack.

This module provides a configurable logging interface that library modules
can use for output without depending on the CLI. The logger can be configured
globally or passed as a parameter for better isolation.

The logger supports these outputs:

- Step: Always printed (for progress indicators)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)
- Log: Printed according to a named severity (see LOG_LEVELS). Stage
  summary lines go through this method at the convention's log level.

Example:
    Configure global logger:
        ```python
        from cmdpack.logging import get_logger, set_global_logger

        logger = get_logger(verbose=True, debug=False)
        set_global_logger(logger)
        ```

    Use in library code:
        ```python
        from cmdpack.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 3, "Resolving configurations...")
        logger.verbose("ASSEMBLE", "Copying lib/ ...")
        logger.log("info", "Assembled package [build/package/svc-1.0]")
        ```

Note:
    The default logger is silent, so library functions won't print anything
    unless explicitly configured. The CLI configures the global logger when
    commands are executed.
"""

from __future__ import annotations

from typing import Protocol

from cmdpack.exceptions import ConfigError

# Severity names accepted for the 'log_level' option
LOG_LEVELS = ("debug", "info", "lifecycle", "warn", "quiet", "error")


def validate_log_level(level: str) -> str:
    """Normalize a severity name and reject unknown ones.

    Args:
        level: Severity name (case-insensitive).

    Returns:
        The lower-cased severity name.

    Raises:
        ConfigError: If the name is not one of LOG_LEVELS.
    """
    normalized = str(level).strip().lower()
    if normalized not in LOG_LEVELS:
        raise ConfigError(
            f"Unknown log level: {level!r}. Supported: {', '.join(LOG_LEVELS)}"
        )
    return normalized


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator for non-verbose mode.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "ASSEMBLE", "INSTALL").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "PLAN", "HTTP").
            message: Log message.
        """
        ...

    def log(self, level: str, message: str) -> None:
        """Print a message at a named severity.

        Args:
            level: One of LOG_LEVELS.
            message: Log message.
        """
        ...


class DefaultLogger:
    """Default logger implementation that prints to stdout.

    This logger respects verbose and debug flags and formats output
    consistently with the CLI output format.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator for non-verbose mode."""
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            print(f"[{prefix}] {message}")

    def log(self, level: str, message: str) -> None:
        """Print a message if its severity is enabled.

        'debug' needs debug mode, 'info' needs verbose mode, and every other
        severity is always printed.
        """
        level = validate_log_level(level)
        if level == "debug" and not self._debug:
            return
        if level == "info" and not self._verbose:
            return
        print(message)


class SilentLogger:
    """Logger that suppresses all output.

    Useful for programmatic usage when output is not desired.
    """

    def step(self, step: int, total: int, message: str) -> None:
        """Suppress step output."""
        pass

    def verbose(self, prefix: str, message: str) -> None:
        """Suppress verbose output."""
        pass

    def debug(self, prefix: str, message: str) -> None:
        """Suppress debug output."""
        pass

    def log(self, level: str, message: str) -> None:
        """Suppress severity output."""
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.

    Note:
        The default global logger is silent. Use set_global_logger() to
        configure it, or pass a logger instance directly to functions.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects all library functions that use get_global_logger()
        without passing a logger instance.
    """
    global _global_logger
    _global_logger = logger
