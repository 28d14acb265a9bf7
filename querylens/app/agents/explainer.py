import json
import re
from typing import Any, Dict, Optional

from loguru import logger

from querylens.app.agents.llm import InferenceResult, LLMClient
from querylens.app.services.models import (
    Analysis,
    Confidence,
    ConfidenceLevel,
    PrimaryRisk,
    RecommendedFix,
    Verdict,
)

SYSTEM_PROMPT = """You are a senior database engineer analyzing SQL query performance.
Analyze the query structure and predict performance at various scales.
Be specific, actionable, and reference the actual table and column names from the user's query."""

OUTPUT_SCHEMA = """{
  "verdict": "SAFE_FOR_NOW|RISKY|CRITICAL|OPTIMAL",
  "headline": "One sentence summary of the query's performance status",
  "primaryRisk": {
    "issue": "e.g., 'Sequential scan on orders table', 'No index on user_id column', 'Cartesian product in JOIN'",
    "whyItMatters": "Why this is a problem and what happens if not addressed",
    "estimatedRiskAt": "e.g., '500k+ rows', '100k+ rows', 'Current scale'"
  },
  "recommendedFix": {
    "action": "Specific actionable fix (e.g., 'Add index on orders.user_id')",
    "impact": "What will improve after implementing this fix"
  },
  "confidence": {
    "level": "HIGH|MEDIUM|LOW",
    "reason": "Why you're confident or not confident in this analysis"
  },
  "nextStep": "Specific next action for the user (e.g., 'Re-run EXPLAIN ANALYZE after adding the index', 'Monitor query performance as table grows')"
}"""

GUIDELINES = """Analysis Guidelines:
- Verdict: SAFE_FOR_NOW = works fine now but may degrade, RISKY = performance issues likely, CRITICAL = immediate problems, OPTIMAL = well-optimized
- Headline: One clear sentence that captures the essence
- Primary Risk: Focus on the single most important issue
- Recommended Fix: One specific, actionable fix (include SQL if creating an index)
- Confidence: Based on how clear the query structure is
- Next Step: What the user should do next

IMPORTANT: Reference the actual table and column names from the user's query. Be specific about THEIR tables and columns."""

# placeholders for fields a model reply leaves out
DEFAULT_HEADLINE = "Query analysis completed"
DEFAULT_ISSUE = "Unknown issue"
DEFAULT_WHY_IT_MATTERS = "Unable to determine"
DEFAULT_ESTIMATED_RISK_AT = "Unknown"
DEFAULT_ACTION = "Review query structure"
DEFAULT_IMPACT = "Improve query performance"
DEFAULT_CONFIDENCE_REASON = "Analysis based on query structure"
DEFAULT_NEXT_STEP = "Review the query and consider optimizations"

HEURISTIC_CONFIDENCE_REASON = (
    "Analysis based on query structure only - actual performance depends on "
    "indexes and data distribution"
)

_SELECT_STAR = re.compile(r"SELECT\s+\*")
_FROM_TABLE = re.compile(r"FROM\s+(\w+)", re.IGNORECASE)


def build_prompt(query: str) -> str:
    return "\n".join(
        [
            "You are a senior database engineer analyzing a SQL query.",
            "",
            "Analyze this SQL query and provide a JSON response with the following EXACT structure:",
            "",
            OUTPUT_SCHEMA,
            "",
            "SQL Query to Analyze:",
            "```sql",
            query,
            "```",
            "",
            GUIDELINES,
            "",
            "Provide the JSON response now.",
        ]
    )


def parse_reply(content: Optional[str]) -> Optional[Dict[str, Any]]:
    if not content:
        return None
    try:
        data = json.loads(content)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _enum(enum_cls, value: Any, default):
    for member in enum_cls:
        if value == member.value:
            return member
    return default


def coerce_analysis(raw: Dict[str, Any]) -> Analysis:
    """
    Force an unchecked model reply into the Analysis contract. Unknown
    verdicts become RISKY, unknown confidence levels MEDIUM, and every
    missing or blank string gets its placeholder.
    """
    risk = _obj(raw.get("primaryRisk"))
    fix = _obj(raw.get("recommendedFix"))
    confidence = _obj(raw.get("confidence"))

    return Analysis(
        verdict=_enum(Verdict, raw.get("verdict"), Verdict.RISKY),
        headline=_text(raw.get("headline"), DEFAULT_HEADLINE),
        primary_risk=PrimaryRisk(
            issue=_text(risk.get("issue"), DEFAULT_ISSUE),
            why_it_matters=_text(risk.get("whyItMatters"), DEFAULT_WHY_IT_MATTERS),
            estimated_risk_at=_text(
                risk.get("estimatedRiskAt"), DEFAULT_ESTIMATED_RISK_AT
            ),
        ),
        recommended_fix=RecommendedFix(
            action=_text(fix.get("action"), DEFAULT_ACTION),
            impact=_text(fix.get("impact"), DEFAULT_IMPACT),
        ),
        confidence=Confidence(
            level=_enum(ConfidenceLevel, confidence.get("level"), ConfidenceLevel.MEDIUM),
            reason=_text(confidence.get("reason"), DEFAULT_CONFIDENCE_REASON),
        ),
        next_step=_text(raw.get("nextStep"), DEFAULT_NEXT_STEP),
    )


def generate_basic_analysis(query: str) -> Analysis:
    """Deterministic structural analysis used when the model path is unavailable."""
    upper = query.upper()
    has_where = "WHERE" in upper
    has_join = "JOIN" in upper
    has_select_star = bool(_SELECT_STAR.search(upper))

    m = _FROM_TABLE.search(query)
    table = m.group(1) if m else "table"

    if not has_where:
        verdict = Verdict.RISKY
        headline = f"Risky query - will scan entire {table} table without filtering"
        risk = PrimaryRisk(
            issue=f"Sequential scan on {table} (no WHERE clause)",
            why_it_matters="Execution time grows linearly with table size - will scan all rows",
            estimated_risk_at="50k+ rows",
        )
        fix = RecommendedFix(
            action="Add WHERE clause to filter rows",
            impact="Eliminates full table scan and reduces rows examined",
        )
        next_step = "Add WHERE clause to filter rows, then re-analyze"
    elif has_select_star:
        verdict = Verdict.SAFE_FOR_NOW
        headline = "Safe for now, but SELECT * may cause issues as data grows"
        risk = PrimaryRisk(
            issue=f"SELECT * retrieves all columns from {table}",
            why_it_matters="Retrieves unnecessary data, increasing memory and network overhead",
            estimated_risk_at="100k+ rows",
        )
        fix = RecommendedFix(
            action="Replace SELECT * with specific column names",
            impact="Reduces data transfer and improves query efficiency",
        )
        next_step = "Review query performance and add indexes if needed"
    else:
        verdict = Verdict.SAFE_FOR_NOW
        headline = (
            "Query structure looks reasonable - check indexes on join columns"
            if has_join
            else "Query structure looks reasonable"
        )
        risk = PrimaryRisk(
            issue="Query structure looks reasonable but may need indexes",
            why_it_matters="Performance depends on whether indexes exist on filtered/joined columns",
            estimated_risk_at="500k+ rows",
        )
        fix = RecommendedFix(
            action="Ensure indexes exist on WHERE and JOIN clause columns",
            impact="Enables index scans instead of sequential scans",
        )
        next_step = "Review query performance and add indexes if needed"

    return Analysis(
        verdict=verdict,
        headline=headline,
        primary_risk=risk,
        recommended_fix=fix,
        confidence=Confidence(
            level=ConfidenceLevel.MEDIUM, reason=HEURISTIC_CONFIDENCE_REASON
        ),
        next_step=next_step,
    )


class AnalysisExplainer:
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    def _invoke_model(self, query: str) -> InferenceResult:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(query)},
        ]
        try:
            return self.llm.chat_json(messages)
        except Exception as e:
            return InferenceResult(error=f"llm_error:{type(e).__name__}")

    def generate(self, query: str) -> Analysis:
        """
        Model analysis when the model answers with a usable JSON object,
        otherwise the structural heuristic. Never raises.
        """
        result = self._invoke_model(query)
        raw = parse_reply(result.content) if result.ok else None

        if raw is None:
            reason = result.error or "unparseable_reply"
            logger.warning("analysis_model_fallback", reason=reason)
            return generate_basic_analysis(query)

        try:
            analysis = coerce_analysis(raw)
        except Exception:
            logger.exception("analysis_coercion_failed")
            return generate_basic_analysis(query)

        logger.info("analysis_model_ok", verdict=analysis.verdict.value)
        return analysis
