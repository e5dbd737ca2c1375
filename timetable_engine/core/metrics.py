# timetable_engine/core/metrics.py

"""
Search statistics for one enumeration run.
Collected by the generator and serialized for logging and error details.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class SearchStatistics:
    """Counters gathered while exploring the search tree."""

    catalog_size: int = 0
    nodes_visited: int = 0
    max_depth: int = 0
    # branches abandoned because the selected count passed max_courses
    branches_pruned: int = 0
    sections_rejected: int = 0
    tutorials_rejected: int = 0
    complete_assignments: int = 0
    rejected_global_bounds: int = 0
    rejected_required: int = 0
    rejected_group_bounds: int = 0
    configurations_emitted: int = 0
    duration_seconds: float = 0.0
    cpu_seconds: float = 0.0

    @property
    def acceptance_rate(self) -> float:
        if self.complete_assignments == 0:
            return 0.0
        return self.configurations_emitted / self.complete_assignments

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["acceptance_rate"] = round(self.acceptance_rate, 4)
        return data
