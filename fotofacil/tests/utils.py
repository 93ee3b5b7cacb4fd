"""
Helpers compartilhados pelos testes (criação de lojas, perfis e arquivos).
"""

from __future__ import annotations

import io
from datetime import date

from django.contrib.auth import get_user_model
from PIL import Image

from fotofacil.choices import RequirementKind, Role, UploadKind
from fotofacil.contrib.drive import get_storage_backend, reset_storage_backend
from fotofacil.dates import weekday_index
from fotofacil.ids import generate_version_group_id
from fotofacil.models import Cluster, SlotTemplate, Store, UploadDay, UploadFile, UploadRule, UserProfile


FOTOFACIL_TEST_SETTINGS = {
    "STORAGE_BACKEND": "fotofacil.contrib.drive.adapters.memory.MemoryDriveBackend",
    "DRIVE_ROOT_FOLDER_ID": "root",
    "ADMIN_NOTIFICATION_EMAIL": "admin@example.com",
    "NOTIFICATION_BACKEND": "console",
    "MAX_CHUNK_BYTES": 8,
}


class FotofacilTestMixin:
    """`_mk_*` helpers; usar com django.test.TestCase."""

    def setUp(self) -> None:
        super().setUp()
        reset_storage_backend()
        self.backend = get_storage_backend()

    def tearDown(self) -> None:
        reset_storage_backend()
        super().tearDown()

    def _mk_cluster(self, *, code: str = "NORTE", name: str = "Norte") -> Cluster:
        return Cluster.objects.create(code=code, name=name)

    def _mk_store(self, *, code: str = "T001", name: str = "Centro", cluster: Cluster | None = None, **kwargs) -> Store:
        return Store.objects.create(store_code=code, name=name, cluster=cluster, **kwargs)

    def _mk_user(self, username: str, *, role: str = Role.STORE, store=None, cluster=None, email: str = ""):
        user = get_user_model().objects.create_user(username, password="testpass", email=email)
        UserProfile.objects.create(user=user, role=role, store=store, cluster=cluster)
        return user

    def _mk_slots(self, *names: str, store=None, required: bool = True, allow_multiple: bool = False) -> list[SlotTemplate]:
        return [
            SlotTemplate.objects.create(
                name=name,
                store=store,
                required=required,
                order=index,
                allow_multiple=allow_multiple,
            )
            for index, name in enumerate(names)
        ]

    def _mk_rule(self, day: date, requirement: str, *, store=None, cluster=None) -> UploadRule:
        return UploadRule.objects.create(
            store=store,
            cluster=cluster,
            weekday=weekday_index(day),
            requirement=requirement,
        )

    def _mk_day(self, store: Store, day: date, requirement: str = RequirementKind.PHOTO) -> UploadDay:
        return UploadDay.objects.create(store=store, date=day, requirement_kind=requirement)

    def _mk_file(
        self,
        upload_day: UploadDay,
        *,
        kind: str = UploadKind.PHOTO,
        slot_name: str = "ESCAPARATE",
        version_group_id: str | None = None,
        version_number: int = 1,
        is_current_version: bool = True,
        drive_file_id: str | None = None,
    ) -> UploadFile:
        group = version_group_id or generate_version_group_id()
        return UploadFile.objects.create(
            upload_day=upload_day,
            kind=kind,
            slot_name=slot_name,
            final_filename=f"{slot_name}_{group}_{version_number}.jpg",
            drive_file_id=drive_file_id or f"drive-{group}-{version_number}",
            version_group_id=group,
            version_number=version_number,
            is_current_version=is_current_version,
        )


def make_image_bytes(width: int = 2000, height: int = 1000, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 40, 40)).save(buf, format=fmt)
    return buf.getvalue()
