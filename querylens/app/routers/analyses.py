from fastapi import APIRouter
from pydantic import BaseModel
from loguru import logger

from querylens.app.services.models import Analysis
from querylens.app.services.pipeline import analyze_query
from querylens.app.store.history import STORE

router = APIRouter()


class AnalyzeRequest(BaseModel):
    query: str


@router.post("/query-analyses", response_model=Analysis)
def analyze(req: AnalyzeRequest):
    # QueryValidationError is mapped to 400 in main
    analysis = analyze_query(req.query)
    try:
        STORE.add(req.query)
    except Exception:
        logger.exception("history_add_failed")
    return analysis
