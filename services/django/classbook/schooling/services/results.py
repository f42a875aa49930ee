"""
Result-or-error values for batch operations where every item is processed
independently. Callers map items to results, then partition them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List


@dataclass(frozen=True)
class RowFailure:
    message: str
    student: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "student": self.student}


def partition_results(results: Iterable[Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Split results into ``{"success": [...], "errors": [...]}`` keeping input order."""
    summary: Dict[str, List[Dict[str, Any]]] = {"success": [], "errors": []}
    for result in results:
        if isinstance(result, RowFailure):
            summary["errors"].append(result.to_dict())
        else:
            summary["success"].append(result.to_dict())
    return summary
