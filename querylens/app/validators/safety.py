import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

MIN_LENGTH = 10
MAX_LENGTH = 100_000

DDL_KEYWORDS = [
    "CREATE", "ALTER", "DROP", "TRUNCATE", "RENAME",
    "GRANT", "REVOKE", "COMMENT",
]
DML_KEYWORDS = ["INSERT", "UPDATE", "DELETE", "MERGE", "CALL"]
TRANSACTION_KEYWORDS = ["BEGIN", "COMMIT", "ROLLBACK", "SAVEPOINT"]
DANGEROUS_FUNCTIONS = ["PG_READ_FILE", "PG_LS_DIR", "COPY", "\\COPY"]


class ViolationReason(str, Enum):
    EMPTY = "empty"
    TOO_SHORT = "too-short"
    TOO_LONG = "too-long"
    UNBALANCED_PARENS = "unbalanced-parens"
    UNCLOSED_SINGLE_QUOTE = "unclosed-single-quote"
    UNCLOSED_DOUBLE_QUOTE = "unclosed-double-quote"
    NOT_SELECT_OR_CTE = "not-select-or-cte"
    MISSING_FROM = "missing-from"
    FORBIDDEN_DDL = "forbidden-ddl"
    FORBIDDEN_DML = "forbidden-dml"
    FORBIDDEN_TRANSACTION_CONTROL = "forbidden-transaction-control"
    FORBIDDEN_FUNCTION = "forbidden-function"
    MULTIPLE_STATEMENTS = "multiple-statements"


_MESSAGES: Dict[ViolationReason, str] = {
    ViolationReason.EMPTY: "Query cannot be empty",
    ViolationReason.TOO_SHORT: "Query is too short to be valid",
    ViolationReason.TOO_LONG: "Query is too long (max 100,000 characters)",
    ViolationReason.UNBALANCED_PARENS: "Unbalanced parentheses in query",
    ViolationReason.UNCLOSED_SINGLE_QUOTE: "Unclosed single quotes in query",
    ViolationReason.UNCLOSED_DOUBLE_QUOTE: "Unclosed double quotes in query",
    ViolationReason.NOT_SELECT_OR_CTE: (
        "Only SELECT queries are allowed. Query must start with SELECT or WITH"
    ),
    ViolationReason.MISSING_FROM: "SELECT query must include a FROM clause",
    ViolationReason.FORBIDDEN_DDL: (
        "DDL statement '{keyword}' is not allowed. Only SELECT queries are permitted"
    ),
    ViolationReason.FORBIDDEN_DML: (
        "DML statement '{keyword}' is not allowed. Only SELECT queries are permitted"
    ),
    ViolationReason.FORBIDDEN_TRANSACTION_CONTROL: (
        "Transaction control '{keyword}' is not allowed"
    ),
    ViolationReason.FORBIDDEN_FUNCTION: (
        "Dangerous function is not allowed for security reasons"
    ),
    ViolationReason.MULTIPLE_STATEMENTS: (
        "Multiple statements detected. Please submit only one query at a time"
    ),
}


@dataclass(frozen=True)
class ValidationOutcome:
    reason: Optional[ViolationReason] = None
    keyword: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> Optional[str]:
        if self.reason is None:
            return None
        return _MESSAGES[self.reason].format(keyword=self.keyword)


VALID = ValidationOutcome()


class QueryValidationError(Exception):
    def __init__(self, outcome: ValidationOutcome):
        super().__init__(outcome.message)
        self.outcome = outcome

    @property
    def reason(self) -> ViolationReason:
        return self.outcome.reason  # type: ignore[return-value]


def _keyword_pattern(keyword: str) -> "re.Pattern[str]":
    # start-of-text or whitespace before, whitespace or end-of-text after
    return re.compile(r"(?:^|\s)" + re.escape(keyword) + r"(?=\s|$)")


_KEYWORD_SCANS: List[Tuple[ViolationReason, List[Tuple[str, "re.Pattern[str]"]]]] = [
    (reason, [(kw, _keyword_pattern(kw)) for kw in keywords])
    for reason, keywords in (
        (ViolationReason.FORBIDDEN_DDL, DDL_KEYWORDS),
        (ViolationReason.FORBIDDEN_DML, DML_KEYWORDS),
        (ViolationReason.FORBIDDEN_TRANSACTION_CONTROL, TRANSACTION_KEYWORDS),
    )
]


def validate(query: str) -> ValidationOutcome:
    """
    Lexical read-only policy check. Rules run in a fixed order and the first
    violation is reported, so a query breaking several rules always gets the
    same reason.
    """
    trimmed = query.strip()
    if not trimmed:
        return ValidationOutcome(ViolationReason.EMPTY)

    if len(trimmed) < MIN_LENGTH:
        return ValidationOutcome(ViolationReason.TOO_SHORT)
    if len(trimmed) > MAX_LENGTH:
        return ValidationOutcome(ViolationReason.TOO_LONG)

    if trimmed.count("(") != trimmed.count(")"):
        return ValidationOutcome(ViolationReason.UNBALANCED_PARENS)

    if trimmed.count("'") % 2 != 0:
        return ValidationOutcome(ViolationReason.UNCLOSED_SINGLE_QUOTE)
    if trimmed.count('"') % 2 != 0:
        return ValidationOutcome(ViolationReason.UNCLOSED_DOUBLE_QUOTE)

    upper = trimmed.upper()
    if not (upper.startswith("SELECT") or upper.startswith("WITH")):
        return ValidationOutcome(ViolationReason.NOT_SELECT_OR_CTE)

    if upper.startswith("SELECT") and "FROM" not in upper:
        return ValidationOutcome(ViolationReason.MISSING_FROM)

    for reason, patterns in _KEYWORD_SCANS:
        for keyword, pattern in patterns:
            if pattern.search(upper):
                return ValidationOutcome(reason, keyword)

    # plain substring match, e.g. "PG_READ_FILE(" or "\COPY"
    for func in DANGEROUS_FUNCTIONS:
        if func in upper:
            return ValidationOutcome(ViolationReason.FORBIDDEN_FUNCTION, func)

    if trimmed.count(";") > 1:
        return ValidationOutcome(ViolationReason.MULTIPLE_STATEMENTS)

    return VALID


def ensure_valid(query: str) -> str:
    """Raise QueryValidationError unless the query passes; returns it unchanged."""
    outcome = validate(query)
    if not outcome.ok:
        raise QueryValidationError(outcome)
    return query
