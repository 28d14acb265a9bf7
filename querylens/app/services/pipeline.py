from typing import Optional

from loguru import logger

from querylens.app.agents.explainer import AnalysisExplainer
from querylens.app.services.models import Analysis
from querylens.app.validators.safety import QueryValidationError, validate

_default_explainer = AnalysisExplainer()


def analyze_query(query: str, explainer: Optional[AnalysisExplainer] = None) -> Analysis:
    """
    Gate: validate the raw text, then hand it to the explainer.
    Only QueryValidationError escapes; the explainer itself never fails.
    """
    outcome = validate(query)
    if not outcome.ok:
        logger.info("query_rejected", reason=outcome.reason.value)
        raise QueryValidationError(outcome)

    analysis = (explainer or _default_explainer).generate(query)
    logger.info("query_analyzed", verdict=analysis.verdict.value)
    return analysis
