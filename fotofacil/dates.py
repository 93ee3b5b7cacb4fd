"""
FotoFacil Dates — Chaves de data, janela de subida e rótulos de pasta.

Convenção de dia da semana: 0=Domingo ... 6=Sábado (mesma das regras).
"""

from __future__ import annotations

from datetime import date, datetime

from django.utils import timezone

from .exceptions import ValidationError


MONTHS_ES = [
    "ENERO",
    "FEBRERO",
    "MARZO",
    "ABRIL",
    "MAYO",
    "JUNIO",
    "JULIO",
    "AGOSTO",
    "SEPTIEMBRE",
    "OCTUBRE",
    "NOVIEMBRE",
    "DICIEMBRE",
]

WEEKDAYS_ES = ["DOMINGO", "LUNES", "MARTES", "MIERCOLES", "JUEVES", "VIERNES", "SABADO"]

# Ordem de exibição (segunda primeiro), com rótulos para a tela de regras
WEEKDAY_DISPLAY = [
    (1, "Lunes"),
    (2, "Martes"),
    (3, "Miércoles"),
    (4, "Jueves"),
    (5, "Viernes"),
    (6, "Sábado"),
    (0, "Domingo"),
]


def format_date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_date_key(value: str | None) -> date:
    """
    Converte "YYYY-MM-DD" em date.

    Raises:
        ValidationError: code="invalid_date"
    """
    try:
        return datetime.strptime(str(value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(
            code="invalid_date",
            message="Fecha inválida, formato esperado YYYY-MM-DD",
            context={"value": value},
        )


def today() -> date:
    return timezone.localdate()


def weekday_index(day: date) -> int:
    """Domingo=0 ... Sábado=6."""
    return (day.weekday() + 1) % 7


def is_within_window(day: date, reference: date, max_days_back: int) -> bool:
    """Aceita de `reference - max_days_back` até `reference` (nunca futuro)."""
    diff = (reference - day).days
    return 0 <= diff <= max_days_back


def ensure_within_window(day: date, max_days_back: int, reference: date | None = None) -> None:
    reference = reference or today()
    if not is_within_window(day, reference, max_days_back):
        raise ValidationError(
            code="date_out_of_window",
            message=f"La fecha debe estar dentro de los últimos {max_days_back} días",
            context={"date": format_date_key(day), "max_days_back": max_days_back},
        )


def parse_deadline_to_minutes(deadline: str) -> int:
    """
    "HH:MM" → minutos desde meia-noite.

    Raises:
        ValueError: se o formato for inválido
    """
    h_raw, _, m_raw = str(deadline).partition(":")
    try:
        h, m = int(h_raw), int(m_raw)
    except ValueError:
        raise ValueError("Deadline must be HH:MM")
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError("Deadline must be HH:MM")
    return h * 60 + m


# ---------------------------------------------------------------- drive labels


def drive_year_label(day: date) -> str:
    return f"{day.year:04d}"


def drive_month_label(day: date) -> str:
    return f"{day.month:02d} {MONTHS_ES[day.month - 1]}"


def drive_week_label(day: date) -> str:
    return f"SEMANA {day.isocalendar()[1]:02d}"


def drive_day_label(day: date) -> str:
    return f"{WEEKDAYS_ES[weekday_index(day)]} {day.day}"
