"""
Table definitions, applied idempotently at startup
"""

PANELS_TABLE = """
    CREATE TABLE IF NOT EXISTS panels (
        panel_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        owner UUID NOT NULL,
        title TEXT NOT NULL,
        url TEXT NOT NULL,
        api_url TEXT NOT NULL,
        api_key TEXT NOT NULL,
        level INTEGER NOT NULL DEFAULT 0,
        likes JSONB NOT NULL DEFAULT '[]'::jsonb,
        comments JSONB NOT NULL DEFAULT '[]'::jsonb,
        created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC')
    )
"""

PANELS_SORT_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_panels_level_created_at
    ON panels (level ASC, created_at DESC)
"""

# Owned by the account system; only read here for comment author names
USERS_TABLE = """
    CREATE TABLE IF NOT EXISTS users (
        user_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        email TEXT UNIQUE,
        created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC')
    )
"""

SCHEMA_STATEMENTS = [USERS_TABLE, PANELS_TABLE, PANELS_SORT_INDEX]
