"""
File streaming with byte-range support.
"""

from .ranges import FileStream, RangeResponder, StreamDescriptor, parse_range, supports_ranges

__all__ = [
    "FileStream",
    "RangeResponder",
    "StreamDescriptor",
    "parse_range",
    "supports_ranges",
]
