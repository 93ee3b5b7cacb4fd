"""
FotoFacil Drive Contrib — Armazenamento dos arquivos no Google Drive.

Uso:
    from fotofacil.contrib.drive import get_storage_backend
    from fotofacil.contrib.drive.folders import ensure_structured_folder

Para desenvolvimento/testes:
    from fotofacil.contrib.drive.adapters.memory import MemoryDriveBackend

Configuração via settings.py:
    FOTOFACIL = {
        "STORAGE_BACKEND": "fotofacil.contrib.drive.adapters.google.GoogleDriveBackend",
        "DRIVE_ROOT_FOLDER_ID": "1AbC...",
        "GOOGLE_SERVICE_ACCOUNT_FILE": "/run/secrets/drive.json",
    }
"""

from __future__ import annotations

from django.utils.module_loading import import_string

from fotofacil.conf import get_fotofacil_setting
from fotofacil.protocols import StorageBackend


_instance: StorageBackend | None = None


def get_storage_backend() -> StorageBackend:
    """Retorna a instância (única por processo) do backend configurado."""
    global _instance
    if _instance is None:
        backend_class = import_string(get_fotofacil_setting("STORAGE_BACKEND"))
        _instance = backend_class()
    return _instance


def reset_storage_backend() -> None:
    """Descarta a instância atual (testes ou troca de settings)."""
    global _instance
    _instance = None


__all__ = ["get_storage_backend", "reset_storage_backend"]
