"""Output abstraction layer."""

from .console import ConsoleProtocol, MockConsole, OutputRecord, RichConsole, Style
from .format import format_bytes

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
    "format_bytes",
]
