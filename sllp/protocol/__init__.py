"""Protocol helper utilities for SLLP."""

from . import protocol, frame, structures
from .frame import Frame, decode, encode

__all__ = [
    "Frame",
    "decode",
    "encode",
    "protocol",
    "frame",
    "structures",
]
