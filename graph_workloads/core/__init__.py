"""
Core module for graph_workloads.

This module contains the generic resource-access layer: an authenticated
client with transparent pagination, a CRUD facade parameterized by workload
configuration, and the closed error taxonomy both of them raise.
"""

from .client import ResourceClient
from .exceptions import ClassifiedError, ErrorKind, QueryException, handle_exception
from .facade import CrudFacade
from .models import CollectionPage, QueryOptions, Record, WorkloadConfig

__all__ = [
    "ResourceClient",
    "CrudFacade",
    "QueryOptions",
    "CollectionPage",
    "Record",
    "WorkloadConfig",
    "ClassifiedError",
    "ErrorKind",
    "QueryException",
    "handle_exception",
]
