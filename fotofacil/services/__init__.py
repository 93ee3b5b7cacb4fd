"""
FotoFacil Services.

Re-exports de todos os serviços:
    from fotofacil.services import DayService, VideoUploadService, ...
"""

from .alerts import AlertService  # noqa: F401
from .audit import AuditService  # noqa: F401
from .chat import ChatService  # noqa: F401
from .days import DayService  # noqa: F401
from .files import FileService  # noqa: F401
from .rules import RuleService, RuleTarget  # noqa: F401
from .threads import ThreadService  # noqa: F401
from .uploads import PhotoUploadService  # noqa: F401
from .video import VideoUploadService  # noqa: F401
