"""
Resolução de requisito — qual envio (NONE/PHOTO/VIDEO/BOTH) vale para uma loja num dia.

Precedência (primeiro que casar ganha):
    1. regra da loja para o dia da semana
    2. regra do cluster da loja (se houver cluster)
    3. regra global (entre duplicadas, a de maior updated_at)
    4. NONE

Funções puras sobre tabelas de regras já carregadas. O dia já materializado
(UploadDay) congela o requisito: `existing_requirement` sempre vence.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from .choices import RequirementKind


@dataclass(frozen=True)
class StoreRuleRow:
    store_id: str | None
    weekday: int
    requirement: str


@dataclass(frozen=True)
class ClusterRuleRow:
    cluster_id: str | None
    weekday: int
    requirement: str


@dataclass(frozen=True)
class GlobalRuleRow:
    weekday: int
    requirement: str
    updated_at: datetime | None = None


# (store_id, cluster_id, weekday) -> requirement | None
LayerLookup = Callable[[str, "str | None", int], "str | None"]


@dataclass
class RequirementLookup:
    """
    Tabelas indexadas por (dono, dia da semana).

    `layers` é a lista ordenada de consultas usada pela resolução; uma nova
    camada (ex.: região) entra como mais um item da lista.
    """

    store_rules: dict[tuple[str, int], str] = field(default_factory=dict)
    cluster_rules: dict[tuple[str, int], str] = field(default_factory=dict)
    global_rules: dict[int, str] = field(default_factory=dict)

    @property
    def layers(self) -> list[LayerLookup]:
        return [
            lambda store_id, cluster_id, weekday: self.store_rules.get((str(store_id), weekday)),
            lambda store_id, cluster_id, weekday: (
                self.cluster_rules.get((str(cluster_id), weekday)) if cluster_id else None
            ),
            lambda store_id, cluster_id, weekday: self.global_rules.get(weekday),
        ]


def build_requirement_lookup(
    store_rules: Iterable[StoreRuleRow],
    cluster_rules: Iterable[ClusterRuleRow],
    global_rules: Iterable[GlobalRuleRow],
) -> RequirementLookup:
    """
    Monta o lookup a partir das três tabelas de regras.

    Regras globais podem ter linhas duplicadas por dia da semana (histórico);
    vale a de maior `updated_at`, independentemente da ordem de entrada.
    Em empate (ou sem timestamp) fica a primeira vista.
    """
    lookup = RequirementLookup()

    for rule in store_rules:
        if not rule.store_id:
            continue
        lookup.store_rules[(str(rule.store_id), rule.weekday)] = rule.requirement

    for rule in cluster_rules:
        if not rule.cluster_id:
            continue
        lookup.cluster_rules[(str(rule.cluster_id), rule.weekday)] = rule.requirement

    latest: dict[int, GlobalRuleRow] = {}
    for rule in global_rules:
        current = latest.get(rule.weekday)
        if current is None or _is_newer(rule.updated_at, current.updated_at):
            latest[rule.weekday] = rule
    lookup.global_rules = {weekday: rule.requirement for weekday, rule in latest.items()}

    return lookup


def _is_newer(candidate: datetime | None, current: datetime | None) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current


def resolve_requirement(
    store_id: str,
    cluster_id: str | None,
    weekday: int,
    lookup: RequirementLookup,
    existing_requirement: str | None = None,
) -> str:
    """
    Resolve o requisito do dia. Nunca levanta; sem dados → NONE.

    Args:
        store_id: ID da loja
        cluster_id: ID do cluster da loja (ou None)
        weekday: 0=Domingo ... 6=Sábado
        lookup: Tabelas de regras (build_requirement_lookup)
        existing_requirement: Requisito congelado no UploadDay, se existir

    Returns:
        Valor de RequirementKind
    """
    if existing_requirement:
        return existing_requirement

    for layer in lookup.layers:
        requirement = layer(str(store_id), str(cluster_id) if cluster_id else None, weekday)
        if requirement:
            return requirement

    return RequirementKind.NONE
