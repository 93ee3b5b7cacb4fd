"""
Management command para gerar alertas de envio pendente.

Uso:
    python manage.py check_missing_uploads
    python manage.py check_missing_uploads --dry-run

Recomendação: Agendar via cron a cada 15 minutos no horário comercial.
"""

import json

from django.core.management.base import BaseCommand

from fotofacil.services import AlertService


class Command(BaseCommand):
    help = "Cria alertas MISSING_UPLOAD para lojas sem envio após o horário limite"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Mostra as lojas que seriam alertadas sem gravar nem notificar",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Imprime o relatório em JSON",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        report = AlertService.check_missing_uploads(dry_run=dry_run)

        if options["json"]:
            self.stdout.write(json.dumps(report.as_dict(), ensure_ascii=False))
            return

        prefix = "[DRY RUN] " if dry_run else ""
        if not report.triggered:
            self.stdout.write(self.style.SUCCESS(f"{prefix}Nenhuma loja pendente em {report.as_dict()['date']}"))
            return

        self.stdout.write(
            self.style.WARNING(f"{prefix}{report.triggered_count} loja(s) pendente(s) em {report.as_dict()['date']}:")
        )
        for entry in report.triggered:
            cluster = f"[{entry['cluster_name']}] " if entry["cluster_name"] else ""
            self.stdout.write(f"  - {cluster}{entry['store_code']} {entry['name']} ({entry['requirement']})")
