"""
Security module for the application.

Provides logging of security relevant events (logins, unauthorized access)
so they can be monitored separately from regular request logs.
"""

from .security_logger import SecurityLogger

__all__ = [
    'SecurityLogger',
]
