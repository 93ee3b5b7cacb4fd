"""
Tests for contrib/notifications module.

Covers:
- NotificationService (register_backend, get_backend, notify, notify_many, notify_admin)
- ConsoleBackend
- EmailBackend
- render_message
"""

from __future__ import annotations

from unittest.mock import Mock, patch

from django.core import mail
from django.test import SimpleTestCase, TestCase, override_settings

from fotofacil.contrib.notifications import service
from fotofacil.contrib.notifications.backends.console import ConsoleBackend
from fotofacil.contrib.notifications.backends.email import EmailBackend
from fotofacil.contrib.notifications.messages import render_message
from fotofacil.contrib.notifications.protocols import NotificationBackend, NotificationResult


class NotificationServiceTests(TestCase):
    """Tests for notification service functions."""

    def setUp(self) -> None:
        self._saved = dict(service._backends)
        service._backends.clear()

    def tearDown(self) -> None:
        service._backends.clear()
        service._backends.update(self._saved)

    def test_register_backend(self) -> None:
        mock_backend = Mock()
        service.register_backend("test", mock_backend)

        self.assertIs(service.get_backend("test"), mock_backend)

    def test_get_backend_returns_none_for_unknown(self) -> None:
        self.assertIsNone(service.get_backend("nonexistent"))

    @override_settings(FOTOFACIL={"NOTIFICATION_BACKEND": "console"})
    def test_get_backend_uses_setting(self) -> None:
        console_backend = Mock()
        service.register_backend("console", console_backend)

        self.assertIs(service.get_backend(None), console_backend)

    @override_settings(FOTOFACIL={})
    def test_get_backend_defaults_to_email(self) -> None:
        email_backend = Mock()
        service.register_backend("email", email_backend)

        self.assertIs(service.get_backend(None), email_backend)

    def test_notify_returns_error_when_backend_not_found(self) -> None:
        result = service.notify(event="upload.missing", recipient="a@example.com", context={}, backend="missing")

        self.assertFalse(result.success)
        self.assertIn("missing", result.error)

    def test_notify_swallows_backend_exceptions(self) -> None:
        broken = Mock()
        broken.send.side_effect = RuntimeError("smtp down")
        service.register_backend("broken", broken)

        result = service.notify(event="upload.missing", recipient="a@example.com", context={}, backend="broken")

        self.assertFalse(result.success)
        self.assertEqual(result.error, "smtp down")

    def test_notify_many_deduplicates(self) -> None:
        backend = ConsoleBackend()
        service.register_backend("console", backend)

        results = service.notify_many(
            event="upload.offdate",
            recipients=["A@example.com", " a@example.com ", None, "", "b@example.com"],
            context={},
            backend="console",
        )

        self.assertEqual(len(results), 2)
        self.assertEqual([s["recipient"] for s in backend.sent], ["a@example.com", "b@example.com"])

    def test_unique_recipients(self) -> None:
        self.assertEqual(service.unique_recipients(["X@Y.es", "x@y.es", None]), ["x@y.es"])

    @override_settings(FOTOFACIL={"ADMIN_NOTIFICATION_EMAIL": None})
    def test_notify_admin_without_address(self) -> None:
        self.assertIsNone(service.notify_admin(event="upload.missing", context={}))

    @override_settings(FOTOFACIL={"ADMIN_NOTIFICATION_EMAIL": "admin@example.com", "NOTIFICATION_BACKEND": "console"})
    def test_notify_admin(self) -> None:
        backend = ConsoleBackend()
        service.register_backend("console", backend)

        result = service.notify_admin(event="upload.missing", context={"date": "2026-02-26"})

        self.assertTrue(result.success)
        self.assertEqual(backend.sent[0]["recipient"], "admin@example.com")


class ConsoleBackendTests(TestCase):
    def test_implements_protocol(self) -> None:
        self.assertIsInstance(ConsoleBackend(), NotificationBackend)

    def test_send_records_and_logs(self) -> None:
        backend = ConsoleBackend()

        with self.assertLogs("fotofacil.contrib.notifications.backends.console", level="INFO") as logs:
            result = backend.send(event="upload.missing", recipient="a@example.com", context={"count": 1})

        self.assertIsInstance(result, NotificationResult)
        self.assertTrue(result.success)
        self.assertEqual(result.message_id, "console_1")
        self.assertIn("upload.missing", logs.output[0])


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class EmailBackendTests(TestCase):
    def test_missing_upload_email(self) -> None:
        backend = EmailBackend(from_email="noreply@example.com", subject_prefix="[FotoFacil]")

        result = backend.send(
            event="upload.missing",
            recipient="norte@example.com",
            context={"date": "2026-02-26", "stores_summary": "[Norte] T001 Centro", "count": 1},
        )

        self.assertTrue(result.success)
        self.assertEqual(len(mail.outbox), 1)
        sent = mail.outbox[0]
        self.assertEqual(sent.subject, "[FotoFacil] Alertas FotoFacil: tiendas No enviadas")
        self.assertEqual(sent.to, ["norte@example.com"])
        self.assertIn("[Norte] T001 Centro", sent.body)

    def test_offdate_subject_uses_context(self) -> None:
        backend = EmailBackend()
        backend.send(
            event="upload.offdate",
            recipient="norte@example.com",
            context={"store_code": "T001", "store_name": "Centro", "target_date": "2026-02-25", "today": "2026-02-26"},
        )
        self.assertEqual(mail.outbox[0].subject, "Subida fuera de fecha: T001")
        self.assertIn("2026-02-25", mail.outbox[0].body)

    def test_unknown_event_uses_fallback(self) -> None:
        EmailBackend().send(event="custom", recipient="a@example.com", context={"store_code": "T009"})
        self.assertEqual(mail.outbox[0].subject, "Notificación: custom")
        self.assertIn("T009", mail.outbox[0].body)

    def test_failure_returns_result(self) -> None:
        with patch("fotofacil.contrib.notifications.backends.email.send_mail", side_effect=OSError("refused")):
            result = EmailBackend().send(event="upload.missing", recipient="a@example.com", context={})
        self.assertFalse(result.success)
        self.assertEqual(result.error, "refused")


class RenderMessageTests(SimpleTestCase):
    def test_missing_upload_lists_stores(self) -> None:
        message = render_message(
            "upload.missing",
            {"date": "2026-02-26", "count": 2, "stores_summary": "[Norte] T001 Centro, [Norte] T002 Playa"},
        )

        self.assertEqual(message.subject, "Alertas FotoFacil: tiendas No enviadas")
        self.assertIn("Fecha 2026-02-26.", message.body)
        self.assertIn("Pendientes (2): [Norte] T001 Centro, [Norte] T002 Playa", message.body)

    def test_missing_keys_render_as_dash(self) -> None:
        message = render_message("upload.offdate", {"store_code": "T001"})

        self.assertEqual(message.subject, "Subida fuera de fecha: T001")
        self.assertIn("- (T001)", message.body)

    def test_prefix_applies_to_fallback(self) -> None:
        message = render_message("custom", {}, subject_prefix="[FF]")

        self.assertEqual(message.subject, "[FF] Notificación: custom")
        self.assertIn("Tienda: N/A", message.body)

    def test_console_records_rendered_subject(self) -> None:
        backend = ConsoleBackend()
        backend.send(event="upload.offdate", recipient="a@example.com", context={"store_code": "T003"})

        self.assertEqual(backend.sent[0]["subject"], "Subida fuera de fecha: T003")
