"""
Input sources. Each one produces a lazy sequence of text lines.
"""

from .base import LineSource, StreamLineSource
from .file_source import FileLineSource, StdinLineSource, open_source

__all__ = ["LineSource", "StreamLineSource", "FileLineSource", "StdinLineSource", "open_source"]
