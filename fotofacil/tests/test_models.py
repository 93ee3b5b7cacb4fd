from __future__ import annotations

from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone

from fotofacil.choices import RequirementKind, Role, RuleScope
from fotofacil.models import SlotTemplate, UploadRule

from .utils import FOTOFACIL_TEST_SETTINGS, FotofacilTestMixin


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class ModelConstraintTests(FotofacilTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.cluster = self._mk_cluster()
        self.store = self._mk_store(cluster=self.cluster)
        self.upload_day = self._mk_day(self.store, timezone.localdate())

    def test_one_current_version_per_group(self) -> None:
        self._mk_file(self.upload_day, version_group_id="VG-A")
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self._mk_file(self.upload_day, version_group_id="VG-A", version_number=2)

    def test_superseded_versions_may_coexist(self) -> None:
        self._mk_file(self.upload_day, version_group_id="VG-A", is_current_version=False)
        self._mk_file(self.upload_day, version_group_id="VG-A", version_number=2, is_current_version=False)
        self._mk_file(self.upload_day, version_group_id="VG-A", version_number=3)
        self.assertEqual(self.upload_day.files.current().count(), 1)

    def test_drive_file_unique_per_day(self) -> None:
        self._mk_file(self.upload_day, drive_file_id="drive-1")
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self._mk_file(self.upload_day, drive_file_id="drive-1")

    def test_one_day_per_store_and_date(self) -> None:
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self._mk_day(self.store, self.upload_day.date)

    def test_rule_has_single_owner(self) -> None:
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                UploadRule.objects.create(store=self.store, cluster=self.cluster, weekday=1, requirement=RequirementKind.PHOTO)

    def test_rule_scope(self) -> None:
        self.assertEqual(UploadRule(store=self.store, weekday=1).scope, RuleScope.STORE)
        self.assertEqual(UploadRule(cluster=self.cluster, weekday=1).scope, RuleScope.CLUSTER)
        self.assertEqual(UploadRule(weekday=1).scope, RuleScope.GLOBAL)

    def test_preview_url(self) -> None:
        record = self._mk_file(self.upload_day, drive_file_id="abc")
        self.assertEqual(record.preview_url, "https://drive.google.com/thumbnail?id=abc")

    def test_store_folder_label(self) -> None:
        self.assertEqual(self.store.folder_label, "T001 Centro")


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class SlotTemplateTests(FotofacilTestMixin, TestCase):
    def test_store_slots_replace_globals(self) -> None:
        store = self._mk_store()
        other = self._mk_store(code="T002", name="Playa")
        self._mk_slots("FACHADA", "ESCAPARATE")
        self._mk_slots("INTERIOR", store=store)

        self.assertEqual([s.name for s in SlotTemplate.objects.effective_for(store)], ["INTERIOR"])
        self.assertEqual([s.name for s in SlotTemplate.objects.effective_for(other)], ["FACHADA", "ESCAPARATE"])


@override_settings(FOTOFACIL=FOTOFACIL_TEST_SETTINGS)
class UserProfileTests(FotofacilTestMixin, TestCase):
    def test_can_manage_store(self) -> None:
        north = self._mk_cluster(code="NORTE", name="Norte")
        south = self._mk_cluster(code="SUR", name="Sur")
        store = self._mk_store(cluster=north)

        admin = self._mk_user("admin", role=Role.SUPERADMIN).fotofacil_profile
        manager = self._mk_user("norte", role=Role.CLUSTER, cluster=north).fotofacil_profile
        outsider = self._mk_user("sur", role=Role.CLUSTER, cluster=south).fotofacil_profile
        shop = self._mk_user("tienda", role=Role.STORE, store=store).fotofacil_profile

        self.assertTrue(admin.can_manage_store(store))
        self.assertTrue(manager.can_manage_store(store))
        self.assertFalse(outsider.can_manage_store(store))
        self.assertFalse(shop.can_manage_store(store))
