from __future__ import annotations

from dataclasses import asdict
from unittest.mock import patch

from django.core import signing
from django.test import SimpleTestCase

from fotofacil.exceptions import UploadTokenError
from fotofacil.tokens import VideoUploadTicket, read_video_ticket, sign_video_ticket


def _ticket(**overrides) -> VideoUploadTicket:
    data = {
        "uid": "10",
        "store_id": "3",
        "upload_day_id": "99",
        "folder_id": "folder-video",
        "slot_name": "VIDEO",
        "sequence": 1,
        "final_filename": "T001_2026-02-26_VIDEO_01.mp4",
        "version_group_id": "VG-ABC",
        "version_number": 1,
        "supersedes_file_id": None,
        "mime_type": "video/mp4",
        "bytes": 1234,
        "upload_url": "https://upload.example/session",
        "original_filename": "clip.mp4",
    }
    data.update(overrides)
    return VideoUploadTicket(**data)


class VideoTicketTests(SimpleTestCase):
    def test_round_trip_preserves_fields(self) -> None:
        ticket = _ticket()
        self.assertEqual(read_video_ticket(sign_video_ticket(ticket)), ticket)

    def test_tampered_token_is_invalid(self) -> None:
        token = sign_video_ticket(_ticket())
        with self.assertRaises(UploadTokenError) as ctx:
            read_video_ticket(token[:-2] + "xx")
        self.assertEqual(ctx.exception.code, "invalid_token")

    def test_empty_token_is_invalid(self) -> None:
        with self.assertRaises(UploadTokenError) as ctx:
            read_video_ticket("")
        self.assertEqual(ctx.exception.code, "invalid_token")

    def test_expired_token(self) -> None:
        token = sign_video_ticket(_ticket())
        with patch("django.core.signing.time.time", return_value=10**12):
            with self.assertRaises(UploadTokenError) as ctx:
                read_video_ticket(token, max_age=60)
        self.assertEqual(ctx.exception.code, "expired_token")

    def test_wrong_token_type(self) -> None:
        payload = asdict(_ticket())
        payload["t"] = "session"
        token = signing.dumps(payload, salt="fotofacil.upload.video", compress=True)
        with self.assertRaises(UploadTokenError) as ctx:
            read_video_ticket(token)
        self.assertEqual(ctx.exception.code, "wrong_token_type")

    def test_other_salt_is_rejected(self) -> None:
        token = signing.dumps(asdict(_ticket()), salt="another.purpose")
        with self.assertRaises(UploadTokenError):
            read_video_ticket(token)
