"""
Drive Adapters — Implementações de StorageBackend.

Backends disponíveis:
- MemoryDriveBackend: Para desenvolvimento e testes
- GoogleDriveBackend: Google Drive v3 (google-auth), em adapters/google.py

O adapter do Google não é importado aqui para não exigir credenciais
em ambientes que usam só o backend em memória.
"""

from .memory import MemoryDriveBackend

__all__ = [
    "MemoryDriveBackend",
]
