"""Minimal logging interface shared by lower layers of the package."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable


class Logger(ABC):
    """Logging interface used throughout the package."""

    @abstractmethod
    def debug(self, message: str) -> None:
        """Log at DEBUG level."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Log at ERROR level."""

    @abstractmethod
    def error_with_context(self, err, sub: str, *args: str) -> None:
        """Log an error with a summary and context lines."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Log at INFO level."""

    @abstractmethod
    def trace(self, message: str) -> None:
        """Log at TRACE level."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log at WARN level."""


class FmtLogger(Logger):
    """Logger that prints every message to standard output."""

    def debug(self, message: str) -> None:
        print(message)

    def error(self, message: str) -> None:
        print(message)

    def error_with_context(self, err, sub: str, *args: str) -> None:
        print(f"err: {err}")
        print(sub)
        for entry in args:
            print(entry)

    def info(self, message: str) -> None:
        print(message)

    def trace(self, message: str) -> None:
        print(message)

    def warning(self, message: str) -> None:
        print(message)


@dataclass
class CallbackLogger(Logger):
    """Logger that hands every line to a callback."""

    log: Callable[[str], object]

    def debug(self, message: str) -> None:
        self.log(message)

    def error(self, message: str) -> None:
        self.log(message)

    def error_with_context(self, err, sub: str, *args: str) -> None:
        self.log(f"err: {err}")
        self.log(sub)
        for entry in args:
            self.log(entry)

    def info(self, message: str) -> None:
        self.log(message)

    def trace(self, message: str) -> None:
        self.log(message)

    def warning(self, message: str) -> None:
        self.log(message)


def default() -> FmtLogger:
    """Return the default logger."""
    return FmtLogger()