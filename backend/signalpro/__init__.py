"""
SignalPro

Market data aggregation, technical indicators and composite trade signals.
"""

__version__ = "0.1.0"
