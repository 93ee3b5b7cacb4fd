"""
RuleService — Regras de envio por escopo (global, cluster, loja).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from django.db import transaction

from fotofacil.choices import RequirementKind, RuleScope
from fotofacil.dates import WEEKDAY_DISPLAY, weekday_index
from fotofacil.exceptions import AccessDenied, NotFound, ValidationError
from fotofacil.models import Cluster, Store, UploadRule
from fotofacil.resolution import (
    ClusterRuleRow,
    GlobalRuleRow,
    RequirementLookup,
    StoreRuleRow,
    build_requirement_lookup,
    resolve_requirement,
)

from .audit import AuditService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleTarget:
    """Dono de um conjunto de regras. Ambos nulos = global."""

    scope: str
    store: Store | None = None
    cluster: Cluster | None = None

    @property
    def filter_kwargs(self) -> dict:
        return {"store": self.store, "cluster": self.cluster}

    def as_dict(self) -> dict:
        return {
            "scope": str(self.scope),
            "store_id": self.store.pk if self.store else None,
            "cluster_id": self.cluster.pk if self.cluster else None,
        }


class RuleService:
    """
    Serviço para leitura, resolução e substituição de regras de envio.

    Regras de leitura/escrita por papel:
    - SUPERADMIN: qualquer escopo
    - CLUSTER: apenas o próprio cluster e as lojas dele
    - STORE: nenhum
    """

    @staticmethod
    def load_lookup(store_ids: Iterable | None = None) -> RequirementLookup:
        """
        Busca as três tabelas de regras e monta o lookup.

        Args:
            store_ids: Restringe as regras de loja (None = todas)
        """
        store_qs = UploadRule.objects.filter(store__isnull=False)
        if store_ids is not None:
            store_qs = store_qs.filter(store_id__in=list(store_ids))

        store_rules = [
            StoreRuleRow(store_id=str(r["store_id"]), weekday=r["weekday"], requirement=r["requirement"])
            for r in store_qs.values("store_id", "weekday", "requirement")
        ]
        cluster_rules = [
            ClusterRuleRow(cluster_id=str(r["cluster_id"]), weekday=r["weekday"], requirement=r["requirement"])
            for r in UploadRule.objects.filter(cluster__isnull=False).values("cluster_id", "weekday", "requirement")
        ]
        global_rules = [
            GlobalRuleRow(weekday=r["weekday"], requirement=r["requirement"], updated_at=r["updated_at"])
            for r in UploadRule.objects.filter(store__isnull=True, cluster__isnull=True)
            .order_by("id")
            .values("weekday", "requirement", "updated_at")
        ]

        return build_requirement_lookup(store_rules, cluster_rules, global_rules)

    @staticmethod
    def resolve_for(
        store: Store,
        day: date,
        existing: str | None = None,
        lookup: RequirementLookup | None = None,
    ) -> str:
        """Requisito da loja no dia (o congelado, se existir)."""
        if existing:
            return existing
        if lookup is None:
            lookup = RuleService.load_lookup(store_ids=[store.pk])
        return resolve_requirement(
            store_id=str(store.pk),
            cluster_id=str(store.cluster_id) if store.cluster_id else None,
            weekday=weekday_index(day),
            lookup=lookup,
        )

    # ------------------------------------------------------------------ scope

    @staticmethod
    def resolve_target(profile, scope: str | None, cluster_id=None, store_id=None) -> RuleTarget:
        """
        Resolve e autoriza o dono das regras pedido por um gestor.

        Sem `scope`, superadmin cai em global e gestor de cluster no próprio
        cluster. Escopo loja sem `store_id` usa a primeira loja visível.

        Raises:
            ValidationError: invalid_scope, cluster_required, store_required
            AccessDenied: global_forbidden, cluster_forbidden, store_forbidden
            NotFound: cluster_not_found, store_not_found
        """
        if not scope:
            scope = RuleScope.GLOBAL if profile.is_superadmin else RuleScope.CLUSTER
        if scope not in RuleScope.values:
            raise ValidationError(code="invalid_scope", message="Alcance inválido", context={"scope": scope})

        if scope == RuleScope.GLOBAL:
            if not profile.is_superadmin:
                raise AccessDenied(code="global_forbidden", message="Solo el superadmin edita reglas globales")
            return RuleTarget(scope=RuleScope.GLOBAL)

        if scope == RuleScope.CLUSTER:
            target_id = cluster_id if profile.is_superadmin else (cluster_id or profile.cluster_id)
            if not target_id:
                raise ValidationError(code="cluster_required", message="cluster_id requerido para alcance cluster")
            if not profile.is_superadmin and str(target_id) != str(profile.cluster_id):
                raise AccessDenied(code="cluster_forbidden", message="Cluster fuera de tu alcance")
            cluster = Cluster.objects.filter(pk=target_id).first()
            if cluster is None:
                raise NotFound(code="cluster_not_found", message="cluster_id no válido", context={"cluster_id": target_id})
            return RuleTarget(scope=RuleScope.CLUSTER, cluster=cluster)

        if not store_id:
            visible = Store.objects.order_by("store_code")
            if not profile.is_superadmin:
                if not profile.cluster_id:
                    raise ValidationError(code="store_required", message="store_id requerido para alcance tienda")
                visible = visible.filter(cluster_id=profile.cluster_id)
            store = visible.first()
        else:
            store = Store.objects.filter(pk=store_id).first()

        if store is None:
            raise NotFound(code="store_not_found", message="store_id no válido", context={"store_id": store_id})
        if not profile.can_manage_store(store):
            raise AccessDenied(code="store_forbidden", message="Tienda fuera de tu alcance")
        return RuleTarget(scope=RuleScope.STORE, store=store)

    # ------------------------------------------------------------------ read/write

    @staticmethod
    def read_rules(target: RuleTarget) -> list[dict]:
        """
        Sete linhas (segunda primeiro). Dia sem regra → NONE.
        Duplicadas globais: vale a de maior updated_at.
        """
        latest: dict[int, UploadRule] = {}
        for rule in UploadRule.objects.filter(**target.filter_kwargs).order_by("id"):
            current = latest.get(rule.weekday)
            if current is None or rule.updated_at > current.updated_at:
                latest[rule.weekday] = rule

        return [
            {
                "weekday": weekday,
                "label": label,
                "requirement": str(latest[weekday].requirement) if weekday in latest else str(RequirementKind.NONE),
            }
            for weekday, label in WEEKDAY_DISPLAY
        ]

    @staticmethod
    def validate_rules(rules: list[dict]) -> list[dict]:
        """
        Raises:
            ValidationError: empty_rules, invalid_weekday, invalid_requirement, duplicate_weekday
        """
        if not rules:
            raise ValidationError(code="empty_rules", message="Debe enviar al menos una regla")

        seen: set[int] = set()
        cleaned = []
        for raw in rules:
            try:
                weekday = int(raw.get("weekday"))
            except (TypeError, ValueError):
                weekday = -1
            if not 0 <= weekday <= 6:
                raise ValidationError(
                    code="invalid_weekday",
                    message="Día de la semana inválido (0-6)",
                    context={"weekday": raw.get("weekday")},
                )
            requirement = raw.get("requirement")
            if requirement not in RequirementKind.values:
                raise ValidationError(
                    code="invalid_requirement",
                    message="Requerimiento inválido",
                    context={"requirement": requirement},
                )
            if weekday in seen:
                raise ValidationError(
                    code="duplicate_weekday",
                    message="No puede haber días duplicados",
                    context={"weekday": weekday},
                )
            seen.add(weekday)
            cleaned.append({"weekday": weekday, "requirement": requirement})
        return cleaned

    @staticmethod
    def replace_rules(target: RuleTarget, rules: list[dict], actor=None) -> list[dict]:
        """
        Substitui atomicamente as regras do dono (apaga e recria).

        Nada é gravado se alguma linha for inválida.
        """
        cleaned = RuleService.validate_rules(rules)

        with transaction.atomic():
            UploadRule.objects.filter(**target.filter_kwargs).delete()
            UploadRule.objects.bulk_create([
                UploadRule(
                    store=target.store,
                    cluster=target.cluster,
                    weekday=rule["weekday"],
                    requirement=rule["requirement"],
                )
                for rule in cleaned
            ])

            AuditService.write(
                "UPLOAD_RULES_UPDATED",
                store=target.store,
                user=actor,
                payload={**target.as_dict(), "rules": cleaned},
            )

        logger.info(
            "rules.replaced",
            extra={**target.as_dict(), "count": len(cleaned)},
        )
        return RuleService.read_rules(target)
