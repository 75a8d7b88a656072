"""Utility modules for mutineer."""

from .codec import encode_frame, read_frame, decode_result
from .ports import PortManager

__all__ = ["encode_frame", "read_frame", "decode_result", "PortManager"]
