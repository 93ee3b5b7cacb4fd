"""
Django FotoFacil — Subida diária de fotos/vídeos das lojas para o Google Drive.

Uso básico:
    from fotofacil.models import Store, UploadDay, UploadFile
    from fotofacil.services import DayService, VideoUploadService, RuleService

Núcleo puro (sem banco):
    from fotofacil.resolution import build_requirement_lookup, resolve_requirement
    from fotofacil.evaluation import evaluate_day
"""

__title__ = "Django FotoFacil"
__version__ = "0.1.0a1"
__author__ = "Pablo Valentini"
