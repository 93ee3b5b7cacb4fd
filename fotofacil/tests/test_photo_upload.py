from __future__ import annotations

import io
from datetime import timedelta
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient

from fotofacil.choices import DayStatus, RequirementKind, Role
from fotofacil.dates import format_date_key
from fotofacil.exceptions import ValidationError
from fotofacil.images import normalize_image
from fotofacil.models import Alert, AuditLog, Message, UploadFile
from fotofacil.services import DayService, PhotoUploadService

from .utils import FOTOFACIL_TEST_SETTINGS, FotofacilTestMixin, make_image_bytes


class NormalizeImageTests(SimpleTestCase):
    def test_wide_image_is_resized_to_jpeg(self) -> None:
        result = normalize_image(make_image_bytes(2000, 1000), "image/png")
        self.assertEqual(result.mime_type, "image/jpeg")
        self.assertEqual(result.extension, "jpg")
        self.assertEqual(Image.open(io.BytesIO(result.data)).size, (1600, 800))

    def test_small_image_is_not_upscaled(self) -> None:
        result = normalize_image(make_image_bytes(800, 600), "image/png")
        self.assertEqual(Image.open(io.BytesIO(result.data)).size, (800, 600))

    def test_non_image_passes_through(self) -> None:
        result = normalize_image(b"%PDF", "application/pdf")
        self.assertEqual(result.data, b"%PDF")
        self.assertEqual(result.mime_type, "application/pdf")

    def test_broken_image(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            normalize_image(b"not an image", "image/jpeg")
        self.assertEqual(ctx.exception.code, "invalid_image")


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class PhotoUploadServiceTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.cluster = self._mk_cluster()
        self.store = self._mk_store(cluster=self.cluster)
        self.user = self._mk_user("tienda", role=Role.STORE, store=self.store)
        self._mk_slots("ESCAPARATE", "FACHADA")
        self._mk_rule(self.today, RequirementKind.PHOTO, store=self.store)

    def _upload(self, slot_name: str = "ESCAPARATE", **kwargs) -> dict:
        params = {
            "store": self.store,
            "user": self.user,
            "day": self.today,
            "slot_name": slot_name,
            "data": make_image_bytes(),
            "mime_type": "image/png",
            "original_filename": "foto.png",
        }
        params.update(kwargs)
        return PhotoUploadService.upload(**params)

    def test_upload_stores_normalized_photo(self) -> None:
        result = self._upload()

        self.assertEqual(result["status"], DayStatus.PARTIAL)
        self.assertFalse(result["is_sent"])
        expected = f"T001_{format_date_key(self.today)}_ESCAPARATE_01.jpg"
        self.assertEqual(result["file"]["final_filename"], expected)

        record = UploadFile.objects.get(pk=result["file"]["id"])
        self.assertEqual(record.mime_type, "image/jpeg")
        self.assertEqual(record.created_by_role, Role.STORE)
        stored = self.backend.files[record.drive_file_id]
        self.assertEqual(stored.name, expected)
        self.assertEqual(self.backend.files[stored.parents[0]].name, "Foto")
        self.assertEqual(Image.open(io.BytesIO(self.backend.contents[record.drive_file_id])).size[0], 1600)

        self.store.refresh_from_db()
        self.assertIsNotNone(self.store.drive_folder_id)
        self.assertTrue(AuditLog.objects.filter(action="UPLOAD_FILE", store=self.store).exists())

    def test_all_slots_complete_the_day(self) -> None:
        Alert.objects.create(store=self.store, date=self.today)
        self._upload("escaparate")
        result = self._upload("FACHADA")

        self.assertEqual(result["status"], DayStatus.COMPLETE)
        self.assertTrue(result["is_sent"])
        self.assertFalse(Alert.objects.get(store=self.store, date=self.today).is_open)
        self.assertTrue(AuditLog.objects.filter(action="UPLOAD_DAY_SENT").exists())

    def test_slot_name_uses_configured_spelling(self) -> None:
        result = self._upload(" escaparate ")
        self.assertEqual(result["file"]["slot_name"], "ESCAPARATE")

    def test_unknown_slot(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._upload("TECHO")
        self.assertEqual(ctx.exception.code, "unknown_slot")
        self.assertFalse(UploadFile.objects.exists())

    def test_missing_slot_and_file(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._upload("")
        self.assertEqual(ctx.exception.code, "slot_required")

        with self.assertRaises(ValidationError) as ctx:
            self._upload(data=b"")
        self.assertEqual(ctx.exception.code, "file_required")

    def test_out_of_window(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._upload(day=self.today - timedelta(days=8))
        self.assertEqual(ctx.exception.code, "date_out_of_window")

    @override_settings(FOTOFACIL={**FOTOFACIL_TEST_SETTINGS, "MAX_PHOTO_BYTES": 10})
    def test_too_large(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._upload()
        self.assertEqual(ctx.exception.code, "file_too_large")

    def test_single_slot_keeps_sequence_one(self) -> None:
        first = self._upload()
        second = self._upload()
        self.assertEqual(first["file"]["sequence"], 1)
        self.assertEqual(second["file"]["sequence"], 1)
        self.assertNotEqual(first["file"]["version_group_id"], second["file"]["version_group_id"])

    def test_multiple_slot_increments_sequence(self) -> None:
        self._mk_slots("INTERIOR", store=self.store, allow_multiple=True)
        self._upload("INTERIOR")
        second = self._upload("INTERIOR")
        self.assertEqual(second["file"]["sequence"], 2)
        self.assertTrue(second["file"]["final_filename"].endswith("_INTERIOR_02.jpg"))

    def test_replace_creates_new_version(self) -> None:
        first = self._upload()["file"]
        second = self._upload(replace_file_id=first["id"])["file"]

        self.assertEqual(second["version_group_id"], first["version_group_id"])
        self.assertEqual(second["version_number"], 2)
        self.assertTrue(second["is_current_version"])
        self.assertFalse(UploadFile.objects.get(pk=first["id"]).is_current_version)

    def test_replacing_old_version_takes_next_number(self) -> None:
        first = self._upload()["file"]
        self._upload(replace_file_id=first["id"])
        third = self._upload(replace_file_id=first["id"])["file"]

        versions = list(
            UploadFile.objects.filter(version_group_id=first["version_group_id"])
            .order_by("version_number")
            .values_list("version_number", "is_current_version")
        )
        self.assertEqual(versions, [(1, False), (2, False), (3, True)])
        self.assertEqual(third["version_number"], 3)

    def test_failed_day_refresh_rolls_back_upload(self) -> None:
        with patch.object(DayService, "refresh_day", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                self._upload()

        self.assertFalse(UploadFile.objects.exists())
        self.assertFalse(AuditLog.objects.filter(action="UPLOAD_FILE").exists())
        self.assertFalse(any(f.name.endswith("_ESCAPARATE_01.jpg") for f in self.backend.files.values()))

    def test_failed_day_refresh_keeps_previous_version_current(self) -> None:
        first = self._upload()["file"]

        with patch.object(DayService, "refresh_day", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                self._upload(replace_file_id=first["id"])

        self.assertEqual(UploadFile.objects.count(), 1)
        self.assertTrue(UploadFile.objects.get(pk=first["id"]).is_current_version)

    def test_replace_must_match_day(self) -> None:
        first = self._upload()["file"]
        with self.assertRaises(ValidationError) as ctx:
            self._upload(day=self.today - timedelta(days=1), replace_file_id=first["id"])
        self.assertEqual(ctx.exception.code, "invalid_replace_file")

    def test_offdate_upload_posts_notice_once(self) -> None:
        yesterday = self.today - timedelta(days=1)
        self._upload(day=yesterday)
        self._upload("FACHADA", day=yesterday)

        notices = Message.objects.filter(store=self.store, is_automatic=True, from_role=Role.STORE)
        self.assertEqual(notices.count(), 1)
        self.assertIn(format_date_key(yesterday), notices.get().text)


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class PhotoUploadApiTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.store = self._mk_store()
        self._mk_slots("ESCAPARATE")
        self.client = APIClient()
        self.client.force_authenticate(user=self._mk_user("tienda", role=Role.STORE, store=self.store))

    def test_multipart_upload(self) -> None:
        resp = self.client.post(
            "/api/upload/photo",
            {
                "date": format_date_key(self.today),
                "slot_name": "ESCAPARATE",
                "file": SimpleUploadedFile("foto.png", make_image_bytes(), content_type="image/png"),
            },
            format="multipart",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["file"]["slot_name"], "ESCAPARATE")

    def test_missing_file(self) -> None:
        resp = self.client.post(
            "/api/upload/photo",
            {"date": format_date_key(self.today), "slot_name": "ESCAPARATE"},
            format="multipart",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "file_required")
