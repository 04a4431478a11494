"""
Search log persistence.

Records are append-only: there is no update path.
"""

import json
from typing import List

from propfinder.db import Database
from propfinder.models import SearchLogRecord


def _row_to_record(row) -> SearchLogRecord:
    extracted = row['extracted_filters']
    applied = row['applied_predicate']
    return SearchLogRecord(
        id=row['id'],
        query=row['query'],
        extracted_filters=json.loads(extracted) if isinstance(extracted, str) else extracted,
        applied_predicate=json.loads(applied) if isinstance(applied, str) else applied,
        results_count=row['results_count'],
        filter_source=row['filter_source'],
        timestamp=row['timestamp'],
    )


class PostgresSearchLogStore:
    """search_logs table access"""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, record: SearchLogRecord) -> SearchLogRecord:
        async with self.database.pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO search_logs (
                    query, extracted_filters, applied_predicate,
                    results_count, filter_source, timestamp
                )
                VALUES ($1, $2::jsonb, $3::jsonb, $4, $5, $6)
                RETURNING *
            """,
                record.query,
                json.dumps(record.extracted_filters, default=str, allow_nan=False),
                json.dumps(record.applied_predicate, default=str, allow_nan=False),
                record.results_count,
                record.filter_source.value,
                record.timestamp
            )
        return _row_to_record(row)

    async def recent(self, limit: int = 50) -> List[SearchLogRecord]:
        async with self.database.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM search_logs
                ORDER BY timestamp DESC
                LIMIT $1
            """, limit)
        return [_row_to_record(row) for row in rows]


class MemorySearchLogStore:
    """In-process search log"""

    def __init__(self):
        self._records: List[SearchLogRecord] = []

    async def create(self, record: SearchLogRecord) -> SearchLogRecord:
        stored = record.model_copy(update={"id": len(self._records) + 1})
        self._records.append(stored)
        return stored

    async def recent(self, limit: int = 50) -> List[SearchLogRecord]:
        ordered = sorted(self._records, key=lambda r: (r.timestamp, r.id), reverse=True)
        return ordered[:limit]
