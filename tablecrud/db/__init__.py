from .builder import build_delete, build_insert, build_select, build_statement, build_update
from .executor import execute
from .guard import check_operation
from .identifier import qualify_table, quote_identifier
from .models import GeneratedStatement, OperationKind, ScalarKind, TableTarget
from .normalizer import normalize
from .session import DbSession
from .table import TableClient

__all__ = [
    "DbSession",
    "TableClient",
    "TableTarget",
    "GeneratedStatement",
    "OperationKind",
    "ScalarKind",
    "quote_identifier",
    "qualify_table",
    "build_select",
    "build_insert",
    "build_update",
    "build_delete",
    "build_statement",
    "check_operation",
    "execute",
    "normalize",
]
