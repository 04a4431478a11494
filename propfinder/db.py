"""
Database connection and initialization.
"""

import asyncpg
from typing import Optional
import logging

from propfinder.config import DatabaseConfig

logger = logging.getLogger(__name__)


class Database:
    """Owns the asyncpg connection pool for one application instance"""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create the connection pool and make sure the tables exist"""
        try:
            self._pool = await asyncpg.create_pool(
                self.config.url,
                min_size=self.config.min_pool_size,
                max_size=self.config.max_pool_size,
            )
            logger.info("PostgreSQL connection pool created")

            await self.create_tables()
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

    async def close(self):
        """Close database connections"""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL connection pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Get PostgreSQL connection pool"""
        if self._pool is None:
            raise RuntimeError("Database not initialized")
        return self._pool

    async def create_tables(self):
        """Create database tables if they don't exist"""
        async with self.pool.acquire() as conn:
            # Listings table
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS listings (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    property_type TEXT NOT NULL,
                    bedrooms INTEGER NOT NULL,
                    bathrooms INTEGER NOT NULL,
                    price DOUBLE PRECISION NOT NULL,
                    location TEXT NOT NULL,
                    area DOUBLE PRECISION NOT NULL,
                    features TEXT[] NOT NULL DEFAULT '{}',
                    company_name TEXT NOT NULL,
                    agent_name TEXT NOT NULL,
                    agent_phone TEXT NOT NULL,
                    images TEXT[] NOT NULL DEFAULT '{}',
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_listings_created_at ON listings(created_at DESC);
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_listings_price ON listings(price);
            """)

            # Search log table
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS search_logs (
                    id SERIAL PRIMARY KEY,
                    query TEXT NOT NULL,
                    extracted_filters JSONB NOT NULL DEFAULT '{}',
                    applied_predicate JSONB NOT NULL DEFAULT '{}',
                    results_count INTEGER NOT NULL,
                    filter_source TEXT NOT NULL,
                    timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_search_logs_timestamp ON search_logs(timestamp DESC);
            """)

            logger.info("Database tables created/verified")
