import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


REQUIREMENT_CHOICES = [
    ("NONE", "Sin requerimiento"),
    ("PHOTO", "Foto"),
    ("VIDEO", "Video"),
    ("BOTH", "Foto + Video"),
]
ROLE_CHOICES = [("SUPERADMIN", "Superadmin"), ("CLUSTER", "Cluster"), ("STORE", "Tienda")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Cluster",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True, verbose_name="código")),
                ("name", models.CharField(max_length=128, verbose_name="nome")),
                ("is_active", models.BooleanField(default=True, verbose_name="ativo")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
            ],
            options={
                "verbose_name": "cluster",
                "verbose_name_plural": "clusters",
                "ordering": ("name", "id"),
            },
        ),
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("store_code", models.CharField(max_length=32, unique=True, verbose_name="código da loja")),
                ("name", models.CharField(max_length=128, verbose_name="nome")),
                ("is_active", models.BooleanField(default=True, verbose_name="ativo")),
                ("deadline_time", models.CharField(default="10:30", max_length=5, verbose_name="horário limite")),
                ("drive_folder_id", models.CharField(blank=True, max_length=128, null=True, verbose_name="pasta no Drive")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
                (
                    "cluster",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stores",
                        to="fotofacil.cluster",
                        verbose_name="cluster",
                    ),
                ),
            ],
            options={
                "verbose_name": "loja",
                "verbose_name_plural": "lojas",
                "ordering": ("store_code", "id"),
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=ROLE_CHOICES, default="STORE", max_length=16, verbose_name="papel")),
                (
                    "cluster",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profiles",
                        to="fotofacil.cluster",
                        verbose_name="cluster",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profiles",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="fotofacil_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="usuário",
                    ),
                ),
            ],
            options={
                "verbose_name": "perfil",
                "verbose_name_plural": "perfis",
            },
        ),
        migrations.CreateModel(
            name="SlotTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64, verbose_name="nome")),
                ("required", models.BooleanField(default=True, verbose_name="obrigatório")),
                ("order", models.PositiveIntegerField(default=0, verbose_name="ordem")),
                ("allow_multiple", models.BooleanField(default=False, verbose_name="permite várias fotos")),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        help_text="Vazio = slot global",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="slot_templates",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
            ],
            options={
                "verbose_name": "slot",
                "verbose_name_plural": "slots",
                "ordering": ("order", "name"),
            },
        ),
        migrations.CreateModel(
            name="UploadRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "weekday",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(6),
                        ],
                        verbose_name="dia da semana",
                    ),
                ),
                ("requirement", models.CharField(choices=REQUIREMENT_CHOICES, default="NONE", max_length=8, verbose_name="requisito")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
                (
                    "cluster",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="upload_rules",
                        to="fotofacil.cluster",
                        verbose_name="cluster",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="upload_rules",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
            ],
            options={
                "verbose_name": "regra de envio",
                "verbose_name_plural": "regras de envio",
                "ordering": ("weekday", "id"),
            },
        ),
        migrations.CreateModel(
            name="UploadDay",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(db_index=True, verbose_name="data")),
                ("requirement_kind", models.CharField(choices=REQUIREMENT_CHOICES, default="NONE", max_length=8, verbose_name="requisito")),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pendiente"), ("PARTIAL", "Parcial"), ("COMPLETE", "Completo")],
                        db_index=True,
                        default="PENDING",
                        max_length=16,
                        verbose_name="status",
                    ),
                ),
                ("is_sent", models.BooleanField(default=False, verbose_name="enviado")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="concluído em")),
                ("drive_folder_id", models.CharField(blank=True, max_length=128, null=True, verbose_name="pasta do dia no Drive")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="upload_days",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
            ],
            options={
                "verbose_name": "dia de envio",
                "verbose_name_plural": "dias de envio",
                "ordering": ("-date", "store_id"),
            },
        ),
        migrations.CreateModel(
            name="UploadFile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=[("PHOTO", "Foto"), ("VIDEO", "Video")], max_length=8, verbose_name="tipo")),
                ("slot_name", models.CharField(blank=True, default="", max_length=64, verbose_name="slot")),
                ("sequence", models.PositiveIntegerField(default=1, verbose_name="sequência")),
                ("original_filename", models.CharField(blank=True, default="", max_length=255, verbose_name="nome original")),
                ("final_filename", models.CharField(max_length=255, verbose_name="nome final")),
                ("drive_file_id", models.CharField(max_length=128, verbose_name="arquivo no Drive")),
                ("drive_web_view_link", models.URLField(blank=True, max_length=512, null=True, verbose_name="link do Drive")),
                ("mime_type", models.CharField(blank=True, default="", max_length=128, verbose_name="tipo MIME")),
                ("bytes", models.BigIntegerField(default=0, verbose_name="tamanho (bytes)")),
                ("version_group_id", models.CharField(db_index=True, max_length=32, verbose_name="grupo de versões")),
                ("version_number", models.PositiveIntegerField(default=1, verbose_name="versão")),
                ("is_current_version", models.BooleanField(default=True, verbose_name="versão atual")),
                (
                    "created_by_role",
                    models.CharField(blank=True, choices=ROLE_CHOICES, default="", max_length=16, verbose_name="papel de quem enviou"),
                ),
                ("validated_at", models.DateTimeField(blank=True, null=True, verbose_name="validado em")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="enviado por",
                    ),
                ),
                (
                    "supersedes",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="superseded_by",
                        to="fotofacil.uploadfile",
                        verbose_name="substitui",
                    ),
                ),
                (
                    "upload_day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="files",
                        to="fotofacil.uploadday",
                        verbose_name="dia de envio",
                    ),
                ),
                (
                    "validated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="validado por",
                    ),
                ),
            ],
            options={
                "verbose_name": "arquivo enviado",
                "verbose_name_plural": "arquivos enviados",
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.CreateModel(
            name="Alert",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(verbose_name="data")),
                (
                    "type",
                    models.CharField(
                        choices=[("MISSING_UPLOAD", "Subida pendiente")],
                        default="MISSING_UPLOAD",
                        max_length=32,
                        verbose_name="tipo",
                    ),
                ),
                ("resolved_at", models.DateTimeField(blank=True, null=True, verbose_name="resolvido em")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="alerts",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
            ],
            options={
                "verbose_name": "alerta",
                "verbose_name_plural": "alertas",
                "ordering": ("-date", "-created_at"),
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_role", models.CharField(choices=ROLE_CHOICES, max_length=16, verbose_name="papel do remetente")),
                ("text", models.TextField(verbose_name="texto")),
                ("is_automatic", models.BooleanField(default=False, verbose_name="automática")),
                ("read_at", models.DateTimeField(blank=True, null=True, verbose_name="lida em")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="autor",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
            ],
            options={
                "verbose_name": "mensagem",
                "verbose_name_plural": "mensagens",
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(db_index=True, max_length=64, verbose_name="ação")),
                (
                    "payload",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        verbose_name="payload",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="criado em")),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="usuário",
                    ),
                ),
            ],
            options={
                "verbose_name": "registro de auditoria",
                "verbose_name_plural": "registros de auditoria",
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.AddIndex(
            model_name="uploadrule",
            index=models.Index(fields=["store", "weekday"], name="fotofacil_rule_store_wd"),
        ),
        migrations.AddIndex(
            model_name="uploadrule",
            index=models.Index(fields=["cluster", "weekday"], name="fotofacil_rule_cluster_wd"),
        ),
        migrations.AddConstraint(
            model_name="uploadrule",
            constraint=models.CheckConstraint(
                condition=models.Q(("store__isnull", False), ("cluster__isnull", False), _negated=True),
                name="fotofacil_rule_single_owner",
            ),
        ),
        migrations.AddConstraint(
            model_name="uploadday",
            constraint=models.UniqueConstraint(fields=("store", "date"), name="fotofacil_uploadday_store_date"),
        ),
        migrations.AddConstraint(
            model_name="uploadfile",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_current_version", True)),
                fields=("version_group_id",),
                name="fotofacil_uploadfile_one_current_per_group",
            ),
        ),
        migrations.AddConstraint(
            model_name="uploadfile",
            constraint=models.UniqueConstraint(
                fields=("upload_day", "drive_file_id"),
                name="fotofacil_uploadfile_day_drive_file",
            ),
        ),
        migrations.AddConstraint(
            model_name="alert",
            constraint=models.UniqueConstraint(fields=("store", "date", "type"), name="fotofacil_alert_store_date_type"),
        ),
    ]
