"""
System-level infrastructure package.

Exports:
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from tradepnl.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "LoggerFactory",
    "LoggingConfig",
]
