"""
Tests for fotofacil.exceptions and their HTTP mapping.
"""

from __future__ import annotations

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from fotofacil.api.views import error_status
from fotofacil.exceptions import (
    AccessDenied,
    DestinationMismatch,
    FotofacilError,
    NotFound,
    StorageError,
    UploadTokenError,
    ValidationError,
)

from .utils import FOTOFACIL_TEST_SETTINGS, FotofacilTestMixin


class FotofacilErrorTests(SimpleTestCase):
    def test_attributes(self) -> None:
        error = ValidationError(code="invalid_range", message="Rango inválido", context={"start": 4})
        self.assertIsInstance(error, FotofacilError)
        self.assertEqual(error.code, "invalid_range")
        self.assertEqual(error.message, "Rango inválido")
        self.assertEqual(error.context, {"start": 4})
        self.assertEqual(str(error), "Rango inválido")

    def test_default_context(self) -> None:
        self.assertEqual(AccessDenied(code="account_mismatch").context, {})

    def test_storage_error_upstream_status(self) -> None:
        error = StorageError(message="boom", upstream_status=403)
        self.assertEqual(error.code, "upstream_error")
        self.assertEqual(error.upstream_status, 403)
        self.assertIsNone(StorageError().upstream_status)

    def test_http_status_mapping(self) -> None:
        cases = [
            (ValidationError(), 400),
            (UploadTokenError(), 400),
            (DestinationMismatch(), 400),
            (AccessDenied(), 403),
            (NotFound(), 404),
            (StorageError(), 502),
            (FotofacilError(), 400),
        ]
        for error, expected in cases:
            with self.subTest(error=type(error).__name__):
                self.assertEqual(error_status(error), expected)


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class HealthCheckTests(FotofacilTestMixin, TestCase):
    def test_health(self) -> None:
        from fotofacil import __version__

        resp = APIClient().get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "healthy", "version": __version__})
