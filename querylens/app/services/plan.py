from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from querylens.app.services.models import ExecutionPlan
from querylens.app.validators.safety import ensure_valid


class PlanAcquisitionError(Exception):
    pass


class PlanUnavailableError(PlanAcquisitionError):
    """Not even a structure-only EXPLAIN could be produced."""


@dataclass(frozen=True)
class PlanNode:
    startup_cost: Optional[float] = None
    total_cost: Optional[float] = None
    children: Tuple["PlanNode", ...] = ()

    @classmethod
    def from_json(cls, node: Dict[str, Any]) -> "PlanNode":
        return cls(
            startup_cost=node.get("Startup Cost"),
            total_cost=node.get("Total Cost"),
            children=tuple(cls.from_json(c) for c in node.get("Plans") or []),
        )


def extract_total_cost(node: Optional[PlanNode]) -> float:
    if node is None:
        return 0
    if node.total_cost is not None:
        return node.total_cost

    cost = node.startup_cost or 0
    for child in node.children:
        cost += extract_total_cost(child)
    return cost


def _unwrap(raw: Any) -> Dict[str, Any]:
    # EXPLAIN JSON may arrive as text, as a one-element array, or already parsed
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise PlanAcquisitionError("Invalid execution plan returned") from e
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if not isinstance(raw, dict) or not isinstance(raw.get("Plan"), dict):
        raise PlanAcquisitionError("Invalid execution plan returned")
    return raw


def get_execution_plan(sql: str, db=None) -> ExecutionPlan:
    """
    Validate, EXPLAIN in the sandbox and summarize. Raises QueryValidationError
    for policy violations and PlanAcquisitionError when no plan is available.
    """
    ensure_valid(sql)
    if db is None:
        from querylens.app.agents.sdk import DBAgent

        db = DBAgent()

    raw, analyzed = db.explain(sql)
    doc = _unwrap(raw)
    root = doc["Plan"]

    return ExecutionPlan(
        total_cost=extract_total_cost(PlanNode.from_json(root)),
        execution_time=doc.get("Execution Time"),
        rows=root.get("Plan Rows"),
        actual_rows=root.get("Actual Rows"),
        analyzed=analyzed,
        plan=root,
    )
