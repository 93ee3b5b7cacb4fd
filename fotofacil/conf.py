from __future__ import annotations

from django.conf import settings
from django.utils.module_loading import import_string


FOTOFACIL_DEFAULTS = {
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "MANAGER_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
        "fotofacil.api.permissions.IsManager",
    ],
    "PARTICIPANT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
        "fotofacil.api.permissions.IsParticipant",
    ],
    "STORE_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
        "fotofacil.api.permissions.IsStoreUser",
    ],
    # Janela de datas aceitas para subida (hoje e N dias para trás)
    "MAX_DAYS_BACK": 7,
    "DEFAULT_DEADLINE": "10:30",
    # Protocolo de vídeo resumível
    "VIDEO_TOKEN_TTL_SECONDS": 60 * 30,
    "MAX_CHUNK_BYTES": 2 * 1024 * 1024,
    "MAX_VIDEO_BYTES": 1024 * 1024 * 1024,
    "MAX_PHOTO_BYTES": 20 * 1024 * 1024,
    # Armazenamento remoto
    "STORAGE_BACKEND": "fotofacil.contrib.drive.adapters.google.GoogleDriveBackend",
    "DRIVE_ROOT_FOLDER_ID": None,
    "GOOGLE_SERVICE_ACCOUNT_FILE": None,
    "GOOGLE_SERVICE_ACCOUNT_INFO": None,
    "GOOGLE_IMPERSONATE_USER": None,
    # Notificações
    "ADMIN_NOTIFICATION_EMAIL": None,
    "NOTIFICATION_BACKEND": "email",
}


def get_fotofacil_setting(key: str):
    """Retrieve a FotoFacil setting, falling back to FOTOFACIL_DEFAULTS."""
    user_settings = getattr(settings, "FOTOFACIL", {})
    value = user_settings.get(key, FOTOFACIL_DEFAULTS.get(key))
    if key.endswith("_CLASSES") and isinstance(value, list):
        return [import_string(cls) if isinstance(cls, str) else cls for cls in value]
    return value
