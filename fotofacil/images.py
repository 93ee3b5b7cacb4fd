"""
Normalização de fotos antes do envio ao Drive (Pillow).

Imagens: rotação pela EXIF, largura máxima 1600 (sem ampliar), JPEG q82.
Outros tipos passam intactos.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import ValidationError


MAX_WIDTH = 1600
JPEG_QUALITY = 82


@dataclass(frozen=True)
class NormalizedFile:
    data: bytes
    mime_type: str
    extension: str


def normalize_image(data: bytes, mime_type: str, max_w: int = MAX_WIDTH, quality: int = JPEG_QUALITY) -> NormalizedFile:
    if not (mime_type or "").startswith("image/"):
        return NormalizedFile(data=data, mime_type=mime_type or "application/octet-stream", extension="bin")

    try:
        im = Image.open(io.BytesIO(data))
        im = ImageOps.exif_transpose(im).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError(code="invalid_image", message="El archivo no es una imagen válida")

    w, h = im.size
    if w > max_w:
        nh = int(h * (max_w / float(w)))
        im = im.resize((max_w, nh), Image.LANCZOS)

    buf = io.BytesIO()
    im.save(buf, format="JPEG", quality=quality, optimize=True)
    return NormalizedFile(data=buf.getvalue(), mime_type="image/jpeg", extension="jpg")
