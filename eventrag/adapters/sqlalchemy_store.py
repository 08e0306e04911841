"""SQLAlchemy adapters for a PostgreSQL + pgvector event store and query log."""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings
from ..models import CorpusStats, QueryLogEntry, ScoredRecord, SearchFilters

logger = logging.getLogger(__name__)


def create_session_factory(settings: Settings) -> sessionmaker:
    """Bind a session factory to ``settings.database_url``."""
    engine = create_engine(settings.database_url, pool_pre_ping=True)
    return sessionmaker(bind=engine)


class SQLAlchemyEventStore:
    """Runs filtered cosine-distance queries against the embedded events table."""

    def __init__(self, db: Session, table: str = "purchase_embeddings"):
        self.db = db
        self.table = table

    @classmethod
    def from_settings(cls, db: Session, settings: Settings) -> "SQLAlchemyEventStore":
        return cls(db, table=settings.events_table)

    def similarity_search(
        self,
        vector: Sequence[float],
        filters: SearchFilters,
        limit: int,
    ) -> Sequence[ScoredRecord]:
        sql, params = build_similarity_query(self.table, vector, filters, limit)
        rows = self.db.execute(text(sql), params).fetchall()

        return [
            ScoredRecord(
                id=str(row.id),
                metadata=_parse_metadata(row.metadata),
                distance=float(row.distance or 0),
            )
            for row in rows
        ]

    def fetch_stats(self) -> CorpusStats:
        summary = self.db.execute(
            text(
                f"""
                SELECT COUNT(*) AS total_records,
                       COUNT(DISTINCT email) AS unique_emails,
                       MIN(event_date) AS earliest_date,
                       MAX(event_date) AS latest_date
                FROM {self.table}
                """
            )
        ).fetchone()
        type_rows = self.db.execute(
            text(f"SELECT event_type, COUNT(*) AS count FROM {self.table} GROUP BY event_type")
        ).fetchall()

        return CorpusStats(
            total_records=int(summary.total_records or 0),
            event_type_counts={row.event_type or "unknown": int(row.count) for row in type_rows},
            unique_emails=int(summary.unique_emails or 0),
            earliest_date=summary.earliest_date,
            latest_date=summary.latest_date,
        )


class SQLAlchemyQueryLog:
    """Writes and reads the ``query_logs`` analytics table."""

    def __init__(self, db: Session, table: str = "query_logs"):
        self.db = db
        self.table = table

    @classmethod
    def from_settings(cls, db: Session, settings: Settings) -> "SQLAlchemyQueryLog":
        return cls(db, table=settings.query_log_table)

    def record(self, entry: QueryLogEntry) -> None:
        """Insert one entry; on failure the shared session is rolled back before re-raising."""
        try:
            self.db.execute(
                text(
                    f"""
                    INSERT INTO {self.table} (query, result_count, latency_ms, method, timestamp)
                    VALUES (:query, :result_count, :latency_ms, :method, NOW())
                    """
                ),
                {
                    "query": entry.query,
                    "result_count": entry.result_count,
                    "latency_ms": entry.latency_ms,
                    "method": entry.method,
                },
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def fetch_query_logs(
        self,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[QueryLogEntry]:
        rows = self.db.execute(
            text(
                f"""
                SELECT query, result_count, latency_ms, method, timestamp
                FROM {self.table}
                WHERE timestamp >= :start_date AND timestamp <= :end_date
                """
            ),
            {"start_date": start_date, "end_date": end_date},
        ).fetchall()

        return [
            QueryLogEntry(
                query=row.query or "",
                result_count=int(row.result_count or 0),
                latency_ms=int(row.latency_ms or 0),
                method=row.method or "unknown",
                created_at=row.timestamp,
            )
            for row in rows
        ]


def build_similarity_query(
    table: str,
    vector: Sequence[float],
    filters: SearchFilters,
    limit: int,
) -> tuple[str, Dict[str, Any]]:
    """Return SQL and bind parameters for a filtered nearest-neighbour query."""
    conditions: List[str] = []
    params: Dict[str, Any] = {"query_vector": format_vector(vector), "limit": limit}

    if filters.event_types:
        conditions.append("event_type = ANY(:event_types)")
        params["event_types"] = list(filters.event_types)

    if filters.dates:
        conditions.append("event_date = ANY(CAST(:event_dates AS date[]))")
        params["event_dates"] = list(filters.dates)

    if filters.emails:
        conditions.append("email = ANY(:emails)")
        params["emails"] = list(filters.emails)

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    sql = f"""
        SELECT id, metadata, vector <=> CAST(:query_vector AS vector) AS distance
        FROM {table}
        {where_clause}
        ORDER BY distance
        LIMIT :limit
    """
    logger.debug(f"Similarity query filters: {sorted(k for k in params if k != 'query_vector')}")
    return sql, params


def format_vector(vector: Sequence[float]) -> str:
    """Render a vector as a pgvector literal, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(str(float(value)) for value in vector) + "]"


def _parse_metadata(raw_metadata) -> Dict[str, Any]:
    if raw_metadata is None:
        return {}
    if isinstance(raw_metadata, str):
        try:
            raw_metadata = json.loads(raw_metadata)
        except json.JSONDecodeError:
            return {}
    if isinstance(raw_metadata, dict):
        return raw_metadata
    return {}
