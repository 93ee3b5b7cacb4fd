"""
FotoFacil Models.

Re-exports de todos os modelos:
    from fotofacil.models import Store, UploadDay, UploadFile, ...
"""

from .alert import Alert, Message  # noqa: F401
from .audit import AuditLog  # noqa: F401
from .rule import UploadRule  # noqa: F401
from .slot import SlotTemplate, required_slot_names  # noqa: F401
from .store import Cluster, Store, UserProfile  # noqa: F401
from .thread import MediaThread, ThreadMessage, ThreadRead  # noqa: F401
from .upload import UploadDay, UploadFile  # noqa: F401
