import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


ROLE_CHOICES = [("SUPERADMIN", "Superadmin"), ("CLUSTER", "Cluster"), ("STORE", "Tienda")]


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("fotofacil", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="message",
            name="text",
            field=models.TextField(blank=True, default="", verbose_name="texto"),
        ),
        migrations.AddField(
            model_name="message",
            name="attachment_drive_file_id",
            field=models.CharField(blank=True, max_length=128, null=True, verbose_name="anexo no Drive"),
        ),
        migrations.AddField(
            model_name="message",
            name="attachment_web_view_link",
            field=models.URLField(blank=True, max_length=512, null=True, verbose_name="link do anexo"),
        ),
        migrations.CreateModel(
            name="MediaThread",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version_group_id", models.CharField(db_index=True, max_length=32, verbose_name="grupo de versões")),
                ("zone_x", models.FloatField(blank=True, null=True, verbose_name="zona x")),
                ("zone_y", models.FloatField(blank=True, null=True, verbose_name="zona y")),
                ("zone_w", models.FloatField(blank=True, null=True, verbose_name="zona largura")),
                ("zone_h", models.FloatField(blank=True, null=True, verbose_name="zona altura")),
                (
                    "created_by_role",
                    models.CharField(blank=True, choices=ROLE_CHOICES, default="", max_length=16, verbose_name="papel de quem criou"),
                ),
                ("resolved_at", models.DateTimeField(blank=True, null=True, verbose_name="resolvido em")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="criado por",
                    ),
                ),
                (
                    "current_file",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="threads",
                        to="fotofacil.uploadfile",
                        verbose_name="arquivo atual",
                    ),
                ),
                (
                    "root_file",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="fotofacil.uploadfile",
                        verbose_name="arquivo de origem",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="media_threads",
                        to="fotofacil.store",
                        verbose_name="loja",
                    ),
                ),
                (
                    "upload_day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="threads",
                        to="fotofacil.uploadday",
                        verbose_name="dia de envio",
                    ),
                ),
            ],
            options={
                "verbose_name": "conversa de arquivo",
                "verbose_name_plural": "conversas de arquivo",
                "ordering": ("-updated_at", "-id"),
            },
        ),
        migrations.CreateModel(
            name="ThreadMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("author_role", models.CharField(choices=ROLE_CHOICES, max_length=16, verbose_name="papel do autor")),
                ("text", models.TextField(verbose_name="texto")),
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
                    "file",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="fotofacil.uploadfile",
                        verbose_name="arquivo",
                    ),
                ),
                (
                    "thread",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="fotofacil.mediathread",
                        verbose_name="conversa",
                    ),
                ),
            ],
            options={
                "verbose_name": "mensagem da conversa",
                "verbose_name_plural": "mensagens da conversa",
                "ordering": ("created_at", "id"),
            },
        ),
        migrations.CreateModel(
            name="ThreadRead",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("last_read_at", models.DateTimeField(verbose_name="lido até")),
                (
                    "thread",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reads",
                        to="fotofacil.mediathread",
                        verbose_name="conversa",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="usuário",
                    ),
                ),
            ],
            options={
                "verbose_name": "leitura de conversa",
                "verbose_name_plural": "leituras de conversa",
            },
        ),
        migrations.AddIndex(
            model_name="mediathread",
            index=models.Index(fields=["store", "version_group_id"], name="fotofacil_thread_store_group"),
        ),
        migrations.AddConstraint(
            model_name="threadread",
            constraint=models.UniqueConstraint(fields=("thread", "user"), name="fotofacil_threadread_thread_user"),
        ),
    ]
