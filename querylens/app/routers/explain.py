from fastapi import APIRouter
from pydantic import BaseModel
from loguru import logger

from querylens.app.services.plan import PlanAcquisitionError, get_execution_plan

router = APIRouter()


class ExplainRequest(BaseModel):
    query: str


@router.post("/explain")
def explain(req: ExplainRequest):
    try:
        plan = get_execution_plan(req.query)
    except PlanAcquisitionError as e:
        logger.warning("plan_unavailable", error=str(e)[:200])
        return {"ok": False, "error": str(e)}
    return {"ok": True, "plan": plan.model_dump(by_alias=True)}
