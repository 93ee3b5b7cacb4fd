"""
Textos das notificações por evento.

    upload.missing  contexto: date, count, stores_summary
    upload.offdate  contexto: store_code, store_name, target_date, today
    message.new     contexto: store_code, store_name, author, text
    thread.message  contexto: store_code, store_name, final_filename, author, text

Chaves ausentes no contexto aparecem como "-" em vez de quebrar o envio.
"""

from __future__ import annotations

from typing import Any

from .protocols import RenderedMessage


EVENT_TEMPLATES = {
    "upload.missing": (
        "Alertas FotoFacil: tiendas No enviadas",
        "Fecha {date}.\n\nPendientes ({count}): {stores_summary}\n",
    ),
    "upload.offdate": (
        "Subida fuera de fecha: {store_code}",
        "{store_name} ({store_code}) subió contenido para {target_date} en fecha real {today}.\n",
    ),
    "message.new": (
        "Nuevo mensaje FotoFacil: {store_code}",
        "{author} escribió en el chat de {store_name} ({store_code}):\n\n{text}\n",
    ),
    "thread.message": (
        "Comentario sobre {final_filename}",
        "{author} comentó sobre {final_filename} de {store_name} ({store_code}):\n\n{text}\n",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "-"


def render_message(event: str, context: dict[str, Any], subject_prefix: str = "") -> RenderedMessage:
    values = _Defaults(context)
    if event in EVENT_TEMPLATES:
        subject_tpl, body_tpl = EVENT_TEMPLATES[event]
        subject = subject_tpl.format_map(values)
        body = body_tpl.format_map(values)
    else:
        subject = f"Notificación: {event}"
        body = f"Evento: {event}\nTienda: {context.get('store_code') or 'N/A'}\n"

    if subject_prefix:
        subject = f"{subject_prefix} {subject}"
    return RenderedMessage(subject=subject, body=body)
