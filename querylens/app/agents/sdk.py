from typing import Any, Tuple

import psycopg
from loguru import logger

from querylens.app.core.settings import settings
from querylens.app.services.plan import PlanAcquisitionError, PlanUnavailableError

UNAVAILABLE_MESSAGE = (
    "Query could not be parsed. This may be because the tables referenced in "
    "your query do not exist in the analysis sandbox. The tool analyzes query "
    "patterns generically - ensure your query uses valid SQL syntax."
)
SANDBOX_DOWN_MESSAGE = (
    "The analysis sandbox is unavailable right now, so no execution plan could "
    "be produced. Try again later."
)
TRAILING_STATEMENT_MESSAGE = (
    "Only a single statement can be explained. Remove anything after the ';'."
)


def _normalize(sql: str) -> str:
    """
    Strip the trailing semicolon so the EXPLAIN prefix stays valid, and refuse
    a second statement hiding behind the one ';' the validator allows.
    """
    sql = sql.rstrip().rstrip(";").rstrip()
    idx = sql.find(";")
    if idx != -1:
        head = sql[:idx]
        # an even quote count before the ';' means it is not inside a literal
        if head.count("'") % 2 == 0 and head.count('"') % 2 == 0:
            raise PlanAcquisitionError(TRAILING_STATEMENT_MESSAGE)
    return sql


def _first_value(cur) -> Any:
    row = cur.fetchone()
    if not row:
        raise PlanAcquisitionError("Invalid execution plan returned")
    return row[0]


class DBAgent:
    """Sandbox Postgres used only to EXPLAIN already validated queries."""

    def __init__(self, dsn: str | None = None):
        self.dsn = dsn or settings.SANDBOX_DATABASE_URL
        self.timeout_ms = settings.STATEMENT_TIMEOUT_MS

    def _connect(self) -> psycopg.Connection:
        options = (
            f"-c statement_timeout={self.timeout_ms} "
            "-c default_transaction_read_only=on"
        )
        if self.dsn:
            return psycopg.connect(self.dsn, autocommit=True, options=options)
        return psycopg.connect(
            host=settings.PG_HOST,
            port=settings.PG_PORT,
            dbname=settings.PG_DB,
            user=settings.PG_USER,
            password=settings.PG_PASSWORD,
            autocommit=True,
            options=options,
        )

    def explain(self, sql: str, analyze: bool = True) -> Tuple[Any, bool]:
        """
        Returns (raw EXPLAIN JSON, analyzed). ANALYZE is attempted first; when
        the query cannot execute the plan is requested once more structure-only.
        Every failure surfaces as a PlanAcquisitionError.
        """
        sql = _normalize(sql)
        try:
            conn = self._connect()
        except psycopg.Error as e:
            logger.warning("sandbox_connect_failed", error=str(e)[:200])
            raise PlanAcquisitionError(SANDBOX_DOWN_MESSAGE) from e

        with conn, conn.cursor() as cur:
            if analyze:
                try:
                    cur.execute("EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) " + sql)
                    return _first_value(cur), True
                except psycopg.Error as e:
                    logger.warning("explain_analyze_failed", error=str(e)[:200])
            try:
                cur.execute("EXPLAIN (FORMAT JSON) " + sql)
                return _first_value(cur), False
            except psycopg.Error as e:
                logger.warning("explain_failed", error=str(e)[:200])
                raise PlanUnavailableError(UNAVAILABLE_MESSAGE) from e
