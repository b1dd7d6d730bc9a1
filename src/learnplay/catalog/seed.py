"""Catalog seed data: games, study materials and achievement thresholds."""

from __future__ import annotations

import logging

from learnplay.store import TableStore

logger = logging.getLogger(__name__)

GAME_SEED_DATA: list[dict] = [
    {
        "title": "Math Quiz Challenge",
        "description": "Test your mathematical skills with rapid-fire questions",
        "difficulty": "Medium",
        "points_reward": 150,
        "category": "Mathematics",
        "thumbnail_url": "/assets/math-game.png",
        "instructions": "Answer as many questions correctly as possible within the time limit",
    },
    {
        "title": "Science Trivia Master",
        "description": "Answer questions about physics, chemistry, and biology",
        "difficulty": "Hard",
        "points_reward": 200,
        "category": "Science",
        "thumbnail_url": "/assets/science-game.png",
        "instructions": "Choose the correct answer for each science question",
    },
    {
        "title": "Geography Quest",
        "description": "Explore the world with geography questions",
        "difficulty": "Easy",
        "points_reward": 100,
        "category": "Geography",
        "thumbnail_url": "/assets/geography-game.png",
        "instructions": "Test your knowledge of world geography",
    },
]

STUDY_MATERIAL_SEED_DATA: list[dict] = [
    {
        "title": "Algebra Fundamentals",
        "description": "Master the basics of algebraic equations",
        "subject": "Mathematics",
        "difficulty": "Easy",
        "content": "Learn about variables, equations, and algebraic principles",
        "points_reward": 100,
    },
    {
        "title": "Newton's Laws of Motion",
        "description": "Understanding classical mechanics",
        "subject": "Physics",
        "difficulty": "Medium",
        "content": "Explore the three fundamental laws of motion",
        "points_reward": 150,
    },
]

ACHIEVEMENT_SEED_DATA: list[dict] = [
    {
        "name": "Welcome Aboard",
        "description": "Join the community",
        "category": "milestone",
        "badge_icon": "Sparkles",
        "points_required": 0,
    },
    {
        "name": "Century Club",
        "description": "Earn 100 points",
        "category": "points",
        "badge_icon": "Award",
        "points_required": 100,
    },
    {
        "name": "Rising Scholar",
        "description": "Earn 1,000 points",
        "category": "points",
        "badge_icon": "Star",
        "points_required": 1000,
    },
    {
        "name": "Master Scholar",
        "description": "Earn 5,000 points",
        "category": "points",
        "badge_icon": "Trophy",
        "points_required": 5000,
    },
    {
        "name": "Legendary Scholar",
        "description": "Earn 10,000 points",
        "category": "points",
        "badge_icon": "Crown",
        "points_required": 10000,
    },
]


async def seed_catalog(store: TableStore) -> int:
    """Upsert every catalog row by its natural key. Returns rows seeded."""
    seeded = 0
    for game in GAME_SEED_DATA:
        await store.upsert("games", game, on_conflict=("title",))
        seeded += 1
    for material in STUDY_MATERIAL_SEED_DATA:
        await store.upsert("study_materials", material, on_conflict=("title",))
        seeded += 1
    for achievement in ACHIEVEMENT_SEED_DATA:
        await store.upsert("achievement_definitions", achievement, on_conflict=("name",))
        seeded += 1

    logger.info("Seeded %d catalog rows", seeded)
    return seeded
