"""Operation history."""

from linestage.history.oplog import OperationLog, OperationLogEntry

__all__ = ["OperationLog", "OperationLogEntry"]
