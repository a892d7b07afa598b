"""
Listkeeper Core
===============

Core utilities and shared functionality for Listkeeper modules.
"""

from .config import Config
from .database import Database, db
from .logging_service import LoggingService, configure_logging, logger

__all__ = ['Config', 'Database', 'db', 'LoggingService', 'configure_logging', 'logger']
