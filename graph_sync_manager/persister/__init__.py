"""Diffing persister and operation models."""

from .base import DiffingPersister, diff_records, summarize_persister_operations_results
from .memory import InMemoryGraphPersister, YAMLGraphPersister
from .models import OperationAction, OperationBatch, OperationSummary, PersisterOperation, PublishResult

__all__ = [
    "DiffingPersister",
    "InMemoryGraphPersister",
    "OperationAction",
    "OperationBatch",
    "OperationSummary",
    "PersisterOperation",
    "PublishResult",
    "YAMLGraphPersister",
    "diff_records",
    "summarize_persister_operations_results",
]
