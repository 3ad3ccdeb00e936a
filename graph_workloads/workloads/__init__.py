"""
Workload definitions: endpoint, required fields and display mapping of every
resource collection the bot exposes.
"""

from graph_workloads.core.models import WorkloadConfig

from .calendar import EVENTS
from .planner import BUCKETS, PLANS, TASKS

REGISTRY: dict[str, WorkloadConfig] = {
    workload.name: workload for workload in (EVENTS, PLANS, BUCKETS, TASKS)
}

__all__ = ["REGISTRY", "EVENTS", "PLANS", "BUCKETS", "TASKS"]
