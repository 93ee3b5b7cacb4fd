from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from fotofacil.api.views import ChunkRateThrottle
from fotofacil.choices import DayStatus, RequirementKind, Role
from fotofacil.dates import format_date_key
from fotofacil.exceptions import AccessDenied, DestinationMismatch, StorageError, UploadTokenError, ValidationError
from fotofacil.models import UploadFile
from fotofacil.services import DayService, VideoUploadService
from fotofacil.tokens import read_video_ticket

from .utils import FOTOFACIL_TEST_SETTINGS, FotofacilTestMixin


VIDEO = b"0123456789"


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class VideoUploadServiceTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.store = self._mk_store(cluster=self._mk_cluster())
        self.user = self._mk_user("tienda", role=Role.STORE, store=self.store)
        self._mk_rule(self.today, RequirementKind.VIDEO, store=self.store)

    def _init(self, **kwargs) -> dict:
        params = {
            "store": self.store,
            "user": self.user,
            "day": self.today,
            "mime_type": "video/mp4",
            "total_bytes": len(VIDEO),
            "original_filename": "clip.MOV",
        }
        params.update(kwargs)
        return VideoUploadService.init(**params)

    def _chunk(self, token: str, start: int, end: int, data: bytes = VIDEO, total: int | None = None, user=None) -> dict:
        return VideoUploadService.relay_chunk(
            store=self.store,
            user=user or self.user,
            token=token,
            start=start,
            end_exclusive=end,
            total_bytes=len(data) if total is None else total,
            chunk=data[start:end],
        )

    def _upload_all(self, token: str) -> str:
        first = self._chunk(token, 0, 8)
        self.assertEqual(first, {"done": False, "uploaded_bytes": 8})
        last = self._chunk(token, 8, 10)
        self.assertTrue(last["done"])
        return last["drive_file_id"]

    def _finalize(self, token: str, drive_file_id: str, user=None) -> dict:
        return VideoUploadService.finalize(store=self.store, user=user or self.user, token=token, drive_file_id=drive_file_id)

    def test_init_returns_signed_ticket(self) -> None:
        init = self._init()
        expected = f"T001_{format_date_key(self.today)}_VIDEO_01.mov"
        self.assertEqual(init["final_filename"], expected)
        self.assertEqual(init["chunk_size"], 8)

        ticket = read_video_ticket(init["finalize_token"])
        self.assertEqual(ticket.uid, str(self.user.pk))
        self.assertEqual(ticket.store_id, str(self.store.pk))
        self.assertEqual(ticket.bytes, len(VIDEO))
        self.assertEqual(ticket.version_number, 1)
        self.assertIn(ticket.upload_url, self.backend.sessions)
        self.assertEqual(self.backend.files[ticket.folder_id].name, "Video")

    def test_full_flow_and_idempotent_finalize(self) -> None:
        init = self._init()
        token = init["finalize_token"]
        drive_file_id = self._upload_all(token)

        first = self._finalize(token, drive_file_id)
        self.assertTrue(first["created"])
        self.assertEqual(first["status"], DayStatus.COMPLETE)
        self.assertTrue(first["is_sent"])
        self.assertEqual(first["file"]["final_filename"], init["final_filename"])
        self.assertEqual(self.backend.contents[drive_file_id], VIDEO)

        again = self._finalize(token, drive_file_id)
        self.assertFalse(again["created"])
        self.assertEqual(again["file"]["id"], first["file"]["id"])
        self.assertEqual(UploadFile.objects.filter(drive_file_id=drive_file_id).count(), 1)

        record = UploadFile.objects.get(pk=first["file"]["id"])
        self.assertEqual(record.original_filename, "clip.MOV")
        self.assertEqual(record.bytes, len(VIDEO))
        self.assertEqual(record.created_by, self.user)

    def test_gap_reports_real_offset(self) -> None:
        token = self._init()["finalize_token"]
        self.assertEqual(self._chunk(token, 0, 4), {"done": False, "uploaded_bytes": 4})
        self.assertEqual(self._chunk(token, 8, 10), {"done": False, "uploaded_bytes": 4})

    def test_chunk_validation_codes(self) -> None:
        token = self._init()["finalize_token"]
        cases = [
            ({"start": 0, "end": 4, "total": 11}, "total_mismatch"),
            ({"start": 4, "end": 4}, "invalid_range"),
            ({"start": 8, "end": 12}, "invalid_range"),
            ({"start": -1, "end": 2}, "invalid_range"),
            ({"start": 0, "end": 10}, "chunk_too_large"),
        ]
        for kwargs, code in cases:
            with self.subTest(code=code, **kwargs):
                with self.assertRaises(ValidationError) as ctx:
                    self._chunk(token, kwargs["start"], kwargs["end"], total=kwargs.get("total"))
                self.assertEqual(ctx.exception.code, code)

        with self.assertRaises(ValidationError) as ctx:
            VideoUploadService.relay_chunk(
                store=self.store, user=self.user, token=token,
                start=0, end_exclusive=4, total_bytes=10, chunk=b"012",
            )
        self.assertEqual(ctx.exception.code, "chunk_size_mismatch")

    def test_token_from_other_account(self) -> None:
        token = self._init()["finalize_token"]
        other = self._mk_user("otra", role=Role.STORE, store=self.store)
        with self.assertRaises(AccessDenied) as ctx:
            self._chunk(token, 0, 4, user=other)
        self.assertEqual(ctx.exception.code, "account_mismatch")

        other_store = self._mk_store(code="T002", name="Playa")
        with self.assertRaises(AccessDenied):
            VideoUploadService.finalize(store=other_store, user=self.user, token=token, drive_file_id="x")

    def test_invalid_token(self) -> None:
        with self.assertRaises(UploadTokenError) as ctx:
            self._chunk("not-a-token", 0, 4)
        self.assertEqual(ctx.exception.code, "invalid_token")

    def test_finalize_unknown_file(self) -> None:
        token = self._init()["finalize_token"]
        with self.assertRaises(DestinationMismatch) as ctx:
            self._finalize(token, "mem_missing")
        self.assertEqual(ctx.exception.code, "unverifiable_file")

    def test_finalize_filename_mismatch(self) -> None:
        init = self._init()
        ticket = read_video_ticket(init["finalize_token"])
        stored = self.backend.upload_bytes(parent_id=ticket.folder_id, name="otro.mp4", mime_type="video/mp4", data=VIDEO)
        with self.assertRaises(DestinationMismatch) as ctx:
            self._finalize(init["finalize_token"], stored.id)
        self.assertEqual(ctx.exception.code, "filename_mismatch")
        self.assertFalse(UploadFile.objects.exists())

    def test_finalize_folder_mismatch(self) -> None:
        init = self._init()
        stored = self.backend.upload_bytes(
            parent_id="elsewhere", name=init["final_filename"], mime_type="video/mp4", data=VIDEO
        )
        with self.assertRaises(DestinationMismatch) as ctx:
            self._finalize(init["finalize_token"], stored.id)
        self.assertEqual(ctx.exception.code, "folder_mismatch")

    def test_finalize_upstream_failure_is_storage_error(self) -> None:
        token = self._init()["finalize_token"]
        drive_file_id = self._upload_all(token)
        self.backend.fail_status = 500
        with self.assertRaises(StorageError):
            self._finalize(token, drive_file_id)

    def test_replace_bumps_version(self) -> None:
        token = self._init()["finalize_token"]
        first = self._finalize(token, self._upload_all(token))["file"]

        token = self._init(replace_file_id=first["id"])["finalize_token"]
        second = self._finalize(token, self._upload_all(token))["file"]

        self.assertEqual(second["version_group_id"], first["version_group_id"])
        self.assertEqual(second["version_number"], 2)
        self.assertEqual(second["sequence"], first["sequence"])
        old = UploadFile.objects.get(pk=first["id"])
        new = UploadFile.objects.get(pk=second["id"])
        self.assertFalse(old.is_current_version)
        self.assertTrue(new.is_current_version)
        self.assertEqual(new.supersedes_id, old.pk)

    def test_stale_replace_ticket_takes_next_number(self) -> None:
        token = self._init()["finalize_token"]
        first = self._finalize(token, self._upload_all(token))["file"]

        # Dois inits substituindo a mesma versão antes de qualquer finalize
        token_a = self._init(replace_file_id=first["id"])["finalize_token"]
        token_b = self._init(replace_file_id=first["id"])["finalize_token"]
        second = self._finalize(token_a, self._upload_all(token_a))["file"]
        third = self._finalize(token_b, self._upload_all(token_b))["file"]

        self.assertEqual(second["version_number"], 2)
        self.assertEqual(third["version_number"], 3)
        current = UploadFile.objects.filter(version_group_id=first["version_group_id"], is_current_version=True)
        self.assertEqual(list(current.values_list("pk", flat=True)), [third["id"]])

    def test_failed_day_refresh_rolls_back_finalize(self) -> None:
        token = self._init()["finalize_token"]
        drive_file_id = self._upload_all(token)

        with patch.object(DayService, "refresh_day", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                self._finalize(token, drive_file_id)
        self.assertFalse(UploadFile.objects.exists())

        retry = self._finalize(token, drive_file_id)
        self.assertTrue(retry["created"])
        self.assertEqual(retry["status"], DayStatus.COMPLETE)

    def test_second_video_gets_next_sequence(self) -> None:
        token = self._init()["finalize_token"]
        self._finalize(token, self._upload_all(token))
        init = self._init()
        self.assertTrue(init["final_filename"].endswith("_VIDEO_02.mov"))

    def test_init_validation(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._init(mime_type="")
        self.assertEqual(ctx.exception.code, "mime_type_required")

        with self.assertRaises(ValidationError) as ctx:
            self._init(total_bytes=0)
        self.assertEqual(ctx.exception.code, "invalid_size")

        with self.assertRaises(ValidationError) as ctx:
            self._init(day=self.today - timedelta(days=30))
        self.assertEqual(ctx.exception.code, "date_out_of_window")

        with self.assertRaises(ValidationError) as ctx:
            self._init(day=self.today + timedelta(days=1))
        self.assertEqual(ctx.exception.code, "date_out_of_window")

        with self.assertRaises(ValidationError) as ctx:
            self._init(replace_file_id=9999)
        self.assertEqual(ctx.exception.code, "invalid_replace_file")

    @override_settings(FOTOFACIL={**FOTOFACIL_TEST_SETTINGS, "MAX_VIDEO_BYTES": 5})
    def test_init_rejects_large_video(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._init()
        self.assertEqual(ctx.exception.code, "file_too_large")


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class VideoUploadApiTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.today = timezone.localdate()
        self.store = self._mk_store()
        self.user = self._mk_user("tienda", role=Role.STORE, store=self.store)
        self._mk_rule(self.today, RequirementKind.VIDEO, store=self.store)
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def _post_chunk(self, token: str, start: int, end: int):
        return self.client.post(
            "/api/upload/video/chunk",
            {
                "finalize_token": token,
                "start": start,
                "end_exclusive": end,
                "total_bytes": len(VIDEO),
                "chunk": SimpleUploadedFile("chunk.bin", VIDEO[start:end], content_type="application/octet-stream"),
            },
            format="multipart",
        )

    def test_three_phase_flow(self) -> None:
        resp = self.client.post(
            "/api/upload/video/init",
            {
                "date": format_date_key(self.today),
                "mime_type": "video/mp4",
                "total_bytes": len(VIDEO),
                "original_filename": "clip.mp4",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        token = resp.data["finalize_token"]

        resp = self._post_chunk(token, 0, 8)
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data, {"done": False, "uploaded_bytes": 8})

        resp = self._post_chunk(token, 8, 10)
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertTrue(resp.data["done"])
        drive_file_id = resp.data["drive_file_id"]

        payload = {"finalize_token": token, "drive_file_id": drive_file_id}
        resp = self.client.post("/api/upload/video/finalize", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertTrue(resp.data["is_sent"])

        resp = self.client.post("/api/upload/video/finalize", payload, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertFalse(resp.data["created"])

    def test_chunk_errors_are_mapped(self) -> None:
        resp = self._post_chunk("bogus", 0, 4)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid_token")
        self.assertIn("message", resp.data)

    def test_storage_failure_is_502(self) -> None:
        self.backend.fail_status = 403
        resp = self.client.post(
            "/api/upload/video/init",
            {"date": format_date_key(self.today), "mime_type": "video/mp4", "total_bytes": 10, "original_filename": "a.mp4"},
            format="json",
        )
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.data["code"], "upstream_error")

    def test_serializer_errors(self) -> None:
        resp = self.client.post("/api/upload/video/init", {"date": format_date_key(self.today)}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("total_bytes", resp.data)


class ChunkThrottleTests(SimpleTestCase):
    def test_chunk_scope_has_configured_rate(self) -> None:
        throttle = ChunkRateThrottle()
        self.assertEqual(throttle.scope, "fotofacil_chunk")
        self.assertEqual(throttle.rate, "600/minute")
        self.assertEqual((throttle.num_requests, throttle.duration), (600, 60))
