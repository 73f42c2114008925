"""
Hardware drivers for the curve tracer board.
"""

from .base import BaseDriver
from .curve_tracer import CurveTracerDriver

__all__ = ["BaseDriver", "CurveTracerDriver"]
