"""
Avaliação do dia — status (PENDING/PARTIAL/COMPLETE) e "enviado" a partir
dos arquivos correntes contra o requisito resolvido.

Regras:
- NONE: sempre enviado/COMPLETE.
- PHOTO: cada slot obrigatório precisa de ao menos uma foto corrente
  (comparação sem caixa e sem espaços nas pontas). Sem slots obrigatórios,
  basta uma foto qualquer.
- VIDEO: basta um vídeo corrente (vídeos não têm slot).
- BOTH: PHOTO e VIDEO.

Só contam arquivos com `is_current_version` diferente de False.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .choices import DayStatus, RequirementKind, UploadKind


@dataclass(frozen=True)
class FileSnapshot:
    """Visão mínima de um arquivo para avaliação."""

    kind: str
    slot_name: str = ""
    is_current_version: bool | None = True


@dataclass(frozen=True)
class DayEvaluation:
    is_sent: bool
    status: str
    missing_kinds: list[str] = field(default_factory=list)
    missing_slots: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "is_sent": self.is_sent,
            "status": str(self.status),
            "missing_kinds": [str(k) for k in self.missing_kinds],
            "missing_slots": list(self.missing_slots),
        }


def _slot_key(name: Any) -> str:
    return str(name or "").strip().casefold()


def current_files(files: Iterable[Any]) -> list[Any]:
    return [f for f in files if getattr(f, "is_current_version", True) is not False]


def evaluate_day(
    requirement: str,
    files: Iterable[Any],
    required_slot_names: Sequence[str] = (),
) -> DayEvaluation:
    """
    Avalia o dia. Função pura.

    Args:
        requirement: RequirementKind resolvido (congelado) do dia
        files: Objetos com `kind`, `slot_name` e `is_current_version`
            (UploadFile ou FileSnapshot)
        required_slot_names: Nomes dos slots obrigatórios da loja

    Returns:
        DayEvaluation
    """
    active = current_files(files)

    if requirement == RequirementKind.NONE:
        return DayEvaluation(is_sent=True, status=DayStatus.COMPLETE)

    photos = [f for f in active if f.kind == UploadKind.PHOTO]
    has_video = any(f.kind == UploadKind.VIDEO for f in active)
    covered_keys = {_slot_key(f.slot_name) for f in photos}

    # Ordem e grafia originais dos slots, sem duplicados
    required: list[str] = []
    seen: set[str] = set()
    for name in required_slot_names:
        key = _slot_key(name)
        if key and key not in seen:
            seen.add(key)
            required.append(name)

    needs_photo = requirement in (RequirementKind.PHOTO, RequirementKind.BOTH)
    needs_video = requirement in (RequirementKind.VIDEO, RequirementKind.BOTH)

    missing_slots: list[str] = []
    covered_count = 0
    if needs_photo:
        for name in required:
            if _slot_key(name) in covered_keys:
                covered_count += 1
            else:
                missing_slots.append(name)

    photo_ok = (not missing_slots) if required else bool(photos)

    missing_kinds: list[str] = []
    if needs_photo and not photo_ok:
        missing_kinds.append(UploadKind.PHOTO)
    if needs_video and not has_video:
        missing_kinds.append(UploadKind.VIDEO)

    is_sent = not missing_kinds
    if is_sent:
        status = DayStatus.COMPLETE
    elif active or covered_count:
        status = DayStatus.PARTIAL
    else:
        status = DayStatus.PENDING

    return DayEvaluation(
        is_sent=is_sent,
        status=status,
        missing_kinds=missing_kinds,
        missing_slots=missing_slots,
    )


def slot_coverage(files: Iterable[Any], slot_name: str) -> list[Any]:
    """Fotos correntes de um slot (mesma comparação da avaliação)."""
    key = _slot_key(slot_name)
    return [
        f for f in current_files(files)
        if f.kind == UploadKind.PHOTO and _slot_key(f.slot_name) == key
    ]
