import json

import pytest

from querylens.app.agents.explainer import (
    DEFAULT_HEADLINE,
    DEFAULT_NEXT_STEP,
    HEURISTIC_CONFIDENCE_REASON,
    AnalysisExplainer,
    build_prompt,
    coerce_analysis,
    generate_basic_analysis,
    parse_reply,
)
from querylens.app.agents.llm import InferenceResult
from querylens.app.services.models import ConfidenceLevel, Verdict

GOOD_REPLY = {
    "verdict": "CRITICAL",
    "headline": "Cartesian product between users and orders",
    "primaryRisk": {
        "issue": "Missing join condition between users and orders",
        "whyItMatters": "Row count multiplies",
        "estimatedRiskAt": "Current scale",
    },
    "recommendedFix": {
        "action": "Add ON users.id = orders.user_id",
        "impact": "Removes the cross product",
    },
    "confidence": {"level": "HIGH", "reason": "Join condition is clearly absent"},
    "nextStep": "Re-run EXPLAIN ANALYZE after fixing the join",
}


class FakeLLM:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.messages = None

    def chat_json(self, messages):
        self.messages = messages
        if self.exc:
            raise self.exc
        return self.result


def test_prompt_is_deterministic_and_embeds_query():
    q = "SELECT id FROM orders WHERE user_id = 7"
    p = build_prompt(q)
    assert p == build_prompt(q)
    assert "```sql\n" + q + "\n```" in p
    assert '"verdict": "SAFE_FOR_NOW|RISKY|CRITICAL|OPTIMAL"' in p


def test_parse_reply():
    assert parse_reply('{"verdict": "RISKY"}') == {"verdict": "RISKY"}
    assert parse_reply("[1, 2]") is None
    assert parse_reply("not json") is None
    assert parse_reply("") is None
    assert parse_reply(None) is None


def test_coerce_keeps_valid_reply():
    a = coerce_analysis(GOOD_REPLY)
    assert a.verdict is Verdict.CRITICAL
    assert a.confidence.level is ConfidenceLevel.HIGH
    assert a.primary_risk.estimated_risk_at == "Current scale"
    assert a.model_dump(by_alias=True)["recommendedFix"]["action"].startswith("Add ON")


def test_coerce_bogus_verdict_and_level():
    a = coerce_analysis({"verdict": "BOGUS", "confidence": {"level": "VERY_HIGH"}})
    assert a.verdict is Verdict.RISKY
    assert a.confidence.level is ConfidenceLevel.MEDIUM


def test_coerce_fills_placeholders():
    a = coerce_analysis(
        {
            "headline": "   ",
            "primaryRisk": "not an object",
            "recommendedFix": {"action": 42},
            "confidence": None,
        }
    )
    assert a.headline == DEFAULT_HEADLINE
    assert a.primary_risk.issue == "Unknown issue"
    assert a.primary_risk.why_it_matters == "Unable to determine"
    assert a.primary_risk.estimated_risk_at == "Unknown"
    assert a.recommended_fix.action == "Review query structure"
    assert a.recommended_fix.impact == "Improve query performance"
    assert a.confidence.reason == "Analysis based on query structure"
    assert a.next_step == DEFAULT_NEXT_STEP


def test_basic_no_where_is_risky():
    a = generate_basic_analysis("SELECT id FROM orders")
    assert a.verdict is Verdict.RISKY
    assert "orders" in a.primary_risk.issue
    assert a.primary_risk.estimated_risk_at == "50k+ rows"
    assert "WHERE" in a.recommended_fix.action
    assert a.next_step == "Add WHERE clause to filter rows, then re-analyze"


def test_basic_select_star_with_where():
    a = generate_basic_analysis("select * from users where email = 'a@b.c'")
    assert a.verdict is Verdict.SAFE_FOR_NOW
    assert a.primary_risk.issue == "SELECT * retrieves all columns from users"
    assert a.primary_risk.estimated_risk_at == "100k+ rows"
    assert "SELECT *" in a.recommended_fix.action


def test_basic_reasonable_query():
    a = generate_basic_analysis(
        "SELECT u.name FROM users u JOIN orders o ON u.id = o.user_id WHERE o.status = 'x'"
    )
    assert a.verdict is Verdict.SAFE_FOR_NOW
    assert a.primary_risk.estimated_risk_at == "500k+ rows"
    assert "indexes" in a.recommended_fix.action
    assert a.next_step == "Review query performance and add indexes if needed"


def test_basic_defaults_table_name_and_fixed_confidence():
    a = generate_basic_analysis("WITH x AS (SELECT 1) SELECT 1")
    assert "table" in a.primary_risk.issue
    assert a.confidence.level is ConfidenceLevel.MEDIUM
    assert a.confidence.reason == HEURISTIC_CONFIDENCE_REASON


def test_generate_uses_model_reply():
    llm = FakeLLM(InferenceResult(content=json.dumps(GOOD_REPLY)))
    a = AnalysisExplainer(llm=llm).generate("SELECT * FROM users, orders")
    assert a.verdict is Verdict.CRITICAL
    assert llm.messages[0]["role"] == "system"
    assert "SELECT * FROM users, orders" in llm.messages[1]["content"]


def test_generate_coerces_bogus_reply():
    llm = FakeLLM(InferenceResult(content='{"verdict": "BOGUS"}'))
    a = AnalysisExplainer(llm=llm).generate("SELECT id FROM orders")
    assert a.verdict is Verdict.RISKY
    assert a.headline == DEFAULT_HEADLINE


@pytest.mark.parametrize(
    "llm",
    [
        FakeLLM(InferenceResult(error="missing_credential")),
        FakeLLM(InferenceResult(error="llm_error:APITimeoutError")),
        FakeLLM(InferenceResult(error="empty_reply")),
        FakeLLM(InferenceResult(content="Sure! Here is your analysis")),
        FakeLLM(InferenceResult(content="[]")),
        FakeLLM(exc=RuntimeError("boom")),
    ],
)
def test_generate_falls_back_to_heuristic(llm):
    q = "SELECT id FROM orders"
    assert AnalysisExplainer(llm=llm).generate(q) == generate_basic_analysis(q)
