"""
Backends de notificação: console (log) e email (Django).
"""

from .console import ConsoleBackend
from .email import EmailBackend

__all__ = [
    "ConsoleBackend",
    "EmailBackend",
]
