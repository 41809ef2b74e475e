"""Operations sent through the store's operation executors."""

from ravenlite.documents.operations.databases import (
    CreateDatabaseOperation,
    DeleteDatabaseOperation,
    GetDatabaseNamesOperation,
)
from ravenlite.documents.operations.executor import (
    MaintenanceOperationExecutor,
    OperationExecutor,
    ServerOperationExecutor,
)
from ravenlite.documents.operations.indexes import (
    DeleteIndexOperation,
    GetIndexNamesOperation,
    GetIndexOperation,
    PutIndexesOperation,
)
from ravenlite.documents.operations.queries import DeleteByQueryOperation
from ravenlite.documents.operations.statistics import (
    CollectionStatistics,
    DatabaseStatistics,
    GetCollectionStatisticsOperation,
    GetStatisticsOperation,
)

__all__ = [
    # Executors
    "OperationExecutor",
    "MaintenanceOperationExecutor",
    "ServerOperationExecutor",
    # Indexes
    "PutIndexesOperation",
    "GetIndexNamesOperation",
    "GetIndexOperation",
    "DeleteIndexOperation",
    # Statistics
    "GetStatisticsOperation",
    "GetCollectionStatisticsOperation",
    "DatabaseStatistics",
    "CollectionStatistics",
    # Queries
    "DeleteByQueryOperation",
    # Databases
    "CreateDatabaseOperation",
    "DeleteDatabaseOperation",
    "GetDatabaseNamesOperation",
]
