"""
PV Curve Tracer Host Package

Drives the PV curve tracer board over serial and rebuilds test regimes
from live streams or log files.
"""

from .drivers import CurveTracerDriver

__all__ = ["CurveTracerDriver"]
