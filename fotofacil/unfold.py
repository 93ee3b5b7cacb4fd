from __future__ import annotations

from django.utils import timezone


def _days_items_by_cluster():
    """Itens do grupo 'Dias de envio' (dinâmico por Cluster ativo)."""
    from fotofacil.models import Cluster

    today = timezone.localdate().isoformat()
    items = [
        # Default operacional: pendentes de hoje
        {
            "title": "Todos",
            "icon": "event",
            "link": f"/admin/fotofacil/uploadday/?date={today}&is_sent__exact=0",
        },
    ]

    for cluster in Cluster.objects.filter(is_active=True).order_by("name", "id"):
        items.append(
            {
                "title": cluster.name,
                "icon": "hub",
                "link": f"/admin/fotofacil/uploadday/?date={today}&store__cluster__id__exact={cluster.id}",
            }
        )

    return items


def get_sidebar_navigation(request):
    """
    Admin/Unfold: retorna `UNFOLD['SIDEBAR']['navigation']`.

    `SIDEBAR.navigation` pode ser callable, mas `group['items']` precisa ser lista.
    """
    return [
        {
            "title": "Envios",
            "icon": "photo_camera",
            "items": [
                {
                    "title": "Dias de envio",
                    "icon": "calendar_month",
                    "link": "/admin/fotofacil/uploadday/",
                    "items": _days_items_by_cluster(),
                },
                {
                    "title": "Alertas abertos",
                    "icon": "notifications_active",
                    "link": "/admin/fotofacil/alert/?resolved_at__isnull=True",
                },
                {
                    "title": "Mensagens",
                    "icon": "mail",
                    "link": "/admin/fotofacil/message/",
                },
                {
                    "title": "Conversas de arquivo",
                    "icon": "forum",
                    "link": "/admin/fotofacil/mediathread/?resolved_at__isempty=1",
                },
            ],
        },
        {
            "title": "Configuração",
            "icon": "settings",
            "items": [
                {"title": "Clusters", "icon": "hub", "link": "/admin/fotofacil/cluster/"},
                {"title": "Lojas", "icon": "storefront", "link": "/admin/fotofacil/store/"},
                {"title": "Perfis", "icon": "badge", "link": "/admin/fotofacil/userprofile/"},
                {"title": "Slots de foto", "icon": "grid_view", "link": "/admin/fotofacil/slottemplate/"},
                {"title": "Regras de envio", "icon": "rule", "link": "/admin/fotofacil/uploadrule/"},
                {"title": "Auditoria", "icon": "history", "link": "/admin/fotofacil/auditlog/"},
            ],
        },
    ]
