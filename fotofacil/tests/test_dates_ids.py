from __future__ import annotations

from datetime import date

from django.test import SimpleTestCase

from fotofacil.dates import (
    drive_day_label,
    drive_month_label,
    drive_week_label,
    ensure_within_window,
    is_within_window,
    parse_date_key,
    parse_deadline_to_minutes,
    weekday_index,
)
from fotofacil.exceptions import ValidationError
from fotofacil.ids import (
    build_final_filename,
    extension_from_filename,
    generate_version_group_id,
    normalize_slot_name,
)


class DatesTests(SimpleTestCase):
    def test_parse_date_key(self) -> None:
        self.assertEqual(parse_date_key("2026-02-26"), date(2026, 2, 26))

    def test_parse_date_key_invalid(self) -> None:
        for raw in ("26/02/2026", "", None, "2026-02-30"):
            with self.assertRaises(ValidationError) as ctx:
                parse_date_key(raw)
            self.assertEqual(ctx.exception.code, "invalid_date")

    def test_weekday_index_sunday_is_zero(self) -> None:
        self.assertEqual(weekday_index(date(2026, 3, 1)), 0)  # domingo
        self.assertEqual(weekday_index(date(2026, 2, 26)), 4)  # jueves

    def test_window(self) -> None:
        ref = date(2026, 2, 26)
        self.assertTrue(is_within_window(ref, ref, 7))
        self.assertTrue(is_within_window(date(2026, 2, 19), ref, 7))
        self.assertFalse(is_within_window(date(2026, 2, 18), ref, 7))
        self.assertFalse(is_within_window(date(2026, 2, 27), ref, 7))

    def test_ensure_within_window_raises(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            ensure_within_window(date(2026, 3, 1), 7, reference=date(2026, 2, 26))
        self.assertEqual(ctx.exception.code, "date_out_of_window")

    def test_deadline_minutes(self) -> None:
        self.assertEqual(parse_deadline_to_minutes("10:30"), 630)
        for raw in ("25:00", "ab", "10:60"):
            with self.assertRaises(ValueError):
                parse_deadline_to_minutes(raw)

    def test_drive_labels(self) -> None:
        day = date(2026, 2, 26)
        self.assertEqual(drive_month_label(day), "02 FEBRERO")
        self.assertEqual(drive_week_label(day), "SEMANA 09")
        self.assertEqual(drive_day_label(day), "JUEVES 26")


class IdsTests(SimpleTestCase):
    def test_final_filename(self) -> None:
        self.assertEqual(
            build_final_filename("T001", "2026-02-26", "ESCAPARATE", 3, "jpg"),
            "T001_2026-02-26_ESCAPARATE_03.jpg",
        )

    def test_normalize_slot_name(self) -> None:
        self.assertEqual(normalize_slot_name(" video  tienda "), "VIDEO_TIENDA")
        self.assertEqual(normalize_slot_name(""), "VIDEO")
        self.assertEqual(normalize_slot_name(None), "VIDEO")

    def test_extension(self) -> None:
        self.assertEqual(extension_from_filename("Clip.MOV"), "mov")
        self.assertEqual(extension_from_filename("sin_extension"), "")

    def test_version_group_ids_are_unique(self) -> None:
        ids = {generate_version_group_id() for _ in range(50)}
        self.assertEqual(len(ids), 50)
        self.assertTrue(all(i.startswith("VG-") for i in ids))
