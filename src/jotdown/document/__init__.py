"""Line-unit document model, history, and error taxonomy."""

from .document import LINE_SEPARATOR, POSITIONS, Document, Position
from .field import EditField
from .errors import DocumentError, LastUnitGuard, NotFound, PersistenceFailure
from .history import DEFAULT_CAPACITY, HistoryStack
from .units import LineUnit, new_unit_id

__all__ = [
    "Document",
    "EditField",
    "Position",
    "POSITIONS",
    "LINE_SEPARATOR",
    "LineUnit",
    "new_unit_id",
    "HistoryStack",
    "DEFAULT_CAPACITY",
    "DocumentError",
    "NotFound",
    "LastUnitGuard",
    "PersistenceFailure",
]
