from __future__ import annotations

from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from fotofacil.choices import DayStatus, RequirementKind, Role, UploadKind
from fotofacil.exceptions import NotFound
from fotofacil.models import AuditLog, UploadFile
from fotofacil.services import DayService, FileService

from .utils import FOTOFACIL_TEST_SETTINGS, FotofacilTestMixin


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class FileServiceTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.store = self._mk_store()
        self._mk_slots("ESCAPARATE", "FACHADA")
        self.upload_day = self._mk_day(self.store, self.today, RequirementKind.PHOTO)

    def _versions(self, slot_name: str, count: int) -> list[UploadFile]:
        group = f"VG-{slot_name}"
        return [
            self._mk_file(
                self.upload_day,
                slot_name=slot_name,
                version_group_id=group,
                version_number=n,
                is_current_version=(n == count),
            )
            for n in range(1, count + 1)
        ]

    def test_delete_current_promotes_previous(self) -> None:
        v1, v2, v3 = self._versions("ESCAPARATE", 3)

        result = FileService.delete(v3)

        self.assertEqual(result["promoted_file_id"], v2.pk)
        v1.refresh_from_db()
        v2.refresh_from_db()
        self.assertTrue(v2.is_current_version)
        self.assertFalse(v1.is_current_version)
        self.assertFalse(UploadFile.objects.filter(pk=v3.pk).exists())
        self.assertEqual(UploadFile.objects.filter(version_group_id="VG-ESCAPARATE", is_current_version=True).count(), 1)

    def test_delete_non_current_keeps_current(self) -> None:
        v1, v2 = self._versions("ESCAPARATE", 2)
        result = FileService.delete(v1)
        self.assertIsNone(result["promoted_file_id"])
        v2.refresh_from_db()
        self.assertTrue(v2.is_current_version)

    def test_delete_last_version_reevaluates_day(self) -> None:
        self._versions("ESCAPARATE", 1)
        (fachada,) = self._versions("FACHADA", 1)
        upload_day, _ = DayService.refresh_day(self.upload_day)
        self.assertTrue(upload_day.is_sent)

        result = FileService.delete(fachada)

        self.assertEqual(result["status"], DayStatus.PARTIAL)
        self.assertFalse(result["is_sent"])
        self.upload_day.refresh_from_db()
        self.assertIsNone(self.upload_day.completed_at)
        self.assertTrue(AuditLog.objects.filter(action="MEDIA_FILE_DELETED").exists())

    def test_failed_day_refresh_rolls_back_delete(self) -> None:
        v1, v2 = self._versions("ESCAPARATE", 2)

        with patch.object(DayService, "refresh_day", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                FileService.delete(v2)

        v1.refresh_from_db()
        v2.refresh_from_db()
        self.assertTrue(v2.is_current_version)
        self.assertFalse(v1.is_current_version)
        self.assertFalse(AuditLog.objects.filter(action="MEDIA_FILE_DELETED").exists())

    def test_delete_removes_drive_object(self) -> None:
        stored = self.backend.upload_bytes(parent_id="root", name="a.jpg", mime_type="image/jpeg", data=b"x")
        record = self._mk_file(self.upload_day, drive_file_id=stored.id)
        FileService.delete(record)
        self.assertNotIn(stored.id, self.backend.files)

    def test_drive_failure_does_not_block_delete(self) -> None:
        (record,) = self._versions("ESCAPARATE", 1)
        self.backend.fail_status = 500
        result = FileService.delete(record)
        self.assertEqual(result["file_id"], record.pk)
        self.assertFalse(UploadFile.objects.filter(pk=record.pk).exists())

    def test_get_file_not_found(self) -> None:
        with self.assertRaises(NotFound) as ctx:
            FileService.get_file(12345)
        self.assertEqual(ctx.exception.code, "file_not_found")

    def test_set_validated_summary(self) -> None:
        (photo,) = self._versions("ESCAPARATE", 1)
        self._versions("FACHADA", 1)
        self._mk_file(self.upload_day, kind=UploadKind.VIDEO, slot_name="VIDEO")

        result = FileService.set_validated(photo, True)

        self.assertIsNotNone(result["item"]["validated_at"])
        self.assertEqual(result["summary"], {"validated": 1, "total": 2, "all_total": 3})

        result = FileService.set_validated(photo, False)
        self.assertIsNone(result["item"]["validated_at"])
        self.assertEqual(result["summary"]["validated"], 0)


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class FileApiTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.north = self._mk_cluster(code="NORTE", name="Norte")
        self.south = self._mk_cluster(code="SUR", name="Sur")
        self.store = self._mk_store(cluster=self.north)
        upload_day = self._mk_day(self.store, self.today, RequirementKind.PHOTO)
        self.record = self._mk_file(upload_day)
        self.client = APIClient()

    def test_cluster_manager_of_store(self) -> None:
        self.client.force_authenticate(user=self._mk_user("norte", role=Role.CLUSTER, cluster=self.north))

        resp = self.client.get(f"/api/files/{self.record.pk}")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["id"], self.record.pk)
        self.assertEqual(resp.data["preview_url"], self.record.preview_url)

        resp = self.client.post(f"/api/files/{self.record.pk}/validate", {"validated": True}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["summary"]["validated"], 1)

        resp = self.client.delete(f"/api/files/{self.record.pk}")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["status"], DayStatus.PENDING)

    def test_other_cluster_forbidden(self) -> None:
        self.client.force_authenticate(user=self._mk_user("sur", role=Role.CLUSTER, cluster=self.south))
        resp = self.client.delete(f"/api/files/{self.record.pk}")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data["code"], "store_forbidden")
        self.assertTrue(UploadFile.objects.filter(pk=self.record.pk).exists())

    def test_store_account_forbidden(self) -> None:
        self.client.force_authenticate(user=self._mk_user("tienda", role=Role.STORE, store=self.store))
        resp = self.client.get(f"/api/files/{self.record.pk}")
        self.assertEqual(resp.status_code, 403)

    def test_missing_file(self) -> None:
        self.client.force_authenticate(user=self._mk_user("admin", role=Role.SUPERADMIN))
        resp = self.client.get("/api/files/999999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["code"], "file_not_found")
