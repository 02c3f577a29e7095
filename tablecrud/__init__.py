from .config import DbConfig
from .db.table import TableClient
from .db.models import OperationKind, TableTarget

__all__ = ["DbConfig", "TableClient", "TableTarget", "OperationKind"]
