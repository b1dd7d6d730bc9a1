"""Initial schema: profiles, catalog, per-user records and add_user_points.

Creates users, user_stats, user_activities, games, study_materials,
achievement_definitions, game_scores, user_progress, user_achievements and
bookmarks, plus the add_user_points() function used for atomic point
increments.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-03-02
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            email VARCHAR(320) UNIQUE,
            full_name VARCHAR(128) NOT NULL,
            avatar_url VARCHAR(512),
            points INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_points
        ON users(points DESC)
    """)

    # --- User Stats ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_stats (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            total_points INTEGER NOT NULL DEFAULT 0,
            games_played INTEGER NOT NULL DEFAULT 0,
            study_sessions INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- User Activities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_activities (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            activity_type VARCHAR(32) NOT NULL,
            activity_title VARCHAR(256) NOT NULL,
            points_earned INTEGER NOT NULL DEFAULT 0,
            timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_activities_user_ts
        ON user_activities(user_id, timestamp)
    """)

    # --- Catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS games (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            title VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR(64) NOT NULL,
            difficulty VARCHAR(16) NOT NULL,
            points_reward INTEGER NOT NULL,
            thumbnail_url VARCHAR(256),
            instructions TEXT
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS study_materials (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            title VARCHAR(128) UNIQUE NOT NULL,
            description TEXT,
            subject VARCHAR(64) NOT NULL,
            difficulty VARCHAR(16) NOT NULL,
            content TEXT,
            points_reward INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievement_definitions (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category VARCHAR(32) NOT NULL,
            badge_icon VARCHAR(64),
            points_required INTEGER NOT NULL DEFAULT 0
        )
    """)

    # --- Game Scores (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS game_scores (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            game_id VARCHAR(36) NOT NULL REFERENCES games(id) ON DELETE CASCADE,
            score INTEGER NOT NULL,
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_game_scores_game_score
        ON game_scores(game_id, score)
    """)

    # --- User Progress ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_progress (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            item_type VARCHAR(32) NOT NULL,
            item_id VARCHAR(36) NOT NULL,
            progress_percentage INTEGER NOT NULL DEFAULT 0,
            completed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            last_accessed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_progress_user_item_key UNIQUE (user_id, item_type, item_id)
        )
    """)

    # --- User Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id VARCHAR(36) NOT NULL REFERENCES achievement_definitions(id) ON DELETE CASCADE,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_achievement_key UNIQUE (user_id, achievement_id)
        )
    """)

    # --- Bookmarks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS bookmarks (
            id VARCHAR(36) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            study_material_id VARCHAR(36) NOT NULL REFERENCES study_materials(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT bookmarks_user_material_key UNIQUE (user_id, study_material_id)
        )
    """)

    # --- Atomic point increment ---
    op.execute("""
        CREATE OR REPLACE FUNCTION add_user_points(user_id VARCHAR, points_to_add INTEGER)
        RETURNS INTEGER
        LANGUAGE sql
        AS $$
            UPDATE users SET points = points + points_to_add
            WHERE id = user_id
            RETURNING points
        $$
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS add_user_points(VARCHAR, INTEGER)")
    for table in [
        "bookmarks",
        "user_achievements",
        "user_progress",
        "game_scores",
        "achievement_definitions",
        "study_materials",
        "games",
        "user_activities",
        "user_stats",
        "users",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")  # noqa: S608
