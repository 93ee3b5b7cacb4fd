"""
Estrutura de pastas no Drive.

    raiz / cluster / "{código} {nome}" / ano / "MM MES" / "SEMANA WW" / "DIA D" / Foto|Video
    raiz / cluster / "{código} {nome}" / INCIDENCIAS          (anexos do chat)

Cada nível é "procura ou cria" pelo nome sob o pai. A pasta do dia pode vir
em cache (UploadDay.drive_folder_id) e nesse caso não é consultada.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from fotofacil.choices import UploadKind
from fotofacil.conf import get_fotofacil_setting
from fotofacil.dates import drive_day_label, drive_month_label, drive_week_label, drive_year_label
from fotofacil.exceptions import StorageError
from fotofacil.protocols import StorageBackend

logger = logging.getLogger(__name__)


NO_CLUSTER_FOLDER = "Sin Cluster"
CHAT_FOLDER = "INCIDENCIAS"


@dataclass(frozen=True)
class StructuredFolder:
    folder_id: str
    day_folder_id: str
    # Só conhecido quando a árvore foi percorrida (sem pasta do dia em cache)
    store_folder_id: str | None = None


def normalize_folder_name(value: str | None) -> str:
    cleaned = re.sub(r"[\\/]", "-", str(value or "").strip())
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned or "SIN_NOMBRE"


def content_folder_label(kind: str) -> str:
    return "Video" if kind == UploadKind.VIDEO else "Foto"


def ensure_child_folder(
    backend: StorageBackend,
    parent_id: str,
    name: str,
    cached_id: str | None = None,
) -> str:
    if cached_id:
        return cached_id
    existing = backend.find_folder(parent_id, name)
    if existing:
        return existing
    return backend.create_folder(parent_id, name)


def _root_folder_id(root_folder_id: str | None = None) -> str:
    root_id = root_folder_id or get_fotofacil_setting("DRIVE_ROOT_FOLDER_ID")
    if not root_id:
        raise StorageError(
            code="drive_not_configured",
            message="La carpeta raíz de Drive no está configurada",
        )
    return root_id


def ensure_store_folder(
    backend: StorageBackend,
    *,
    cluster_name: str | None,
    store_label: str,
    cached_store_folder_id: str | None = None,
    root_folder_id: str | None = None,
) -> str:
    """
    Pasta raiz da loja (raiz / cluster / "{código} {nome}").

    Raises:
        StorageError: code="drive_not_configured" sem pasta raiz
    """
    if cached_store_folder_id:
        return cached_store_folder_id
    root_id = _root_folder_id(root_folder_id)
    cluster_folder_id = ensure_child_folder(
        backend, root_id, normalize_folder_name(cluster_name or NO_CLUSTER_FOLDER)
    )
    return ensure_child_folder(backend, cluster_folder_id, normalize_folder_name(store_label))


def ensure_structured_folder(
    backend: StorageBackend,
    *,
    cluster_name: str | None,
    store_label: str,
    day: date,
    kind: str,
    cached_day_folder_id: str | None = None,
    root_folder_id: str | None = None,
) -> StructuredFolder:
    """
    Garante a árvore de pastas do dia e retorna a pasta de conteúdo.

    Raises:
        StorageError: code="drive_not_configured" sem pasta raiz
    """
    root_id = _root_folder_id(root_folder_id)

    store_folder_id = None
    if cached_day_folder_id:
        day_folder_id = cached_day_folder_id
    else:
        store_folder_id = ensure_store_folder(
            backend,
            cluster_name=cluster_name,
            store_label=store_label,
            root_folder_id=root_id,
        )
        parent_id = store_folder_id
        for label in (drive_year_label(day), drive_month_label(day), drive_week_label(day)):
            parent_id = ensure_child_folder(backend, parent_id, label)
        day_folder_id = ensure_child_folder(backend, parent_id, drive_day_label(day))

    folder_id = ensure_child_folder(backend, day_folder_id, content_folder_label(kind))

    logger.debug(
        "drive.folder_resolved",
        extra={"day_folder_id": day_folder_id, "folder_id": folder_id, "kind": str(kind)},
    )
    return StructuredFolder(folder_id=folder_id, day_folder_id=day_folder_id, store_folder_id=store_folder_id)
