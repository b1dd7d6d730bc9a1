"""End-to-end HTTP tests over an on-disk SQLite store."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from learnplay.store import SqlTableStore, StoreError

pytestmark = pytest.mark.asyncio


async def _register(client: AsyncClient, headers: dict[str, str], name: str = "Ada Lovelace") -> dict:
    response = await client.put("/api/v1/users/me", json={"full_name": name}, headers=headers)
    assert response.status_code == 200
    return response.json()


async def _game_id(client: AsyncClient, title: str) -> str:
    response = await client.get("/api/v1/games", params={"search": title})
    return response.json()["games"][0]["id"]


class TestAuth:
    async def test_missing_token(self, client):
        response = await client.get("/api/v1/users/me")
        assert response.status_code in (401, 403)

    async def test_invalid_token(self, client):
        response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestGames:
    async def test_catalog(self, client):
        response = await client.get("/api/v1/games")
        assert response.status_code == 200
        titles = [g["title"] for g in response.json()["games"]]
        assert titles == ["Geography Quest", "Math Quiz Challenge", "Science Trivia Master"]

        categories = await client.get("/api/v1/games/categories")
        assert categories.json() == {"categories": ["Geography", "Mathematics", "Science"]}

        filtered = await client.get("/api/v1/games", params={"difficulty": "Hard"})
        assert [g["title"] for g in filtered.json()["games"]] == ["Science Trivia Master"]

    async def test_unknown_game(self, client):
        response = await client.get("/api/v1/games/does-not-exist")
        assert response.status_code == 404

    async def test_complete_game_flow(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        game_id = await _game_id(client, "Math Quiz")

        response = await client.post(
            f"/api/v1/games/{game_id}/complete",
            json={"score": 80, "time_elapsed": 95},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["points_earned"] == 120
        descriptions = [t["description"] for t in data["achievements"]]
        assert descriptions == ["Welcome Aboard - Join the community", "Century Club - Earn 100 points"]
        assert all(t["title"] == "Achievement Unlocked!" for t in data["achievements"])

        me = (await client.get("/api/v1/users/me", headers=headers)).json()
        assert me["points"] == 120
        stats = (await client.get("/api/v1/users/me/stats", headers=headers)).json()
        assert stats["total_points"] == 120
        assert stats["games_played"] == 1

        best = (await client.get(f"/api/v1/games/{game_id}/scores/me", headers=headers)).json()
        assert best["score"] == 80
        scores = (await client.get(f"/api/v1/games/{game_id}/scores")).json()["scores"]
        assert scores[0]["user"]["full_name"] == "Ada Lovelace"

        game_stats = (await client.get("/api/v1/games/stats/me", headers=headers)).json()
        assert game_stats == {"total_games_played": 1, "average_score": 80, "highest_score": 80}

        activities = (await client.get("/api/v1/users/me/activities", headers=headers)).json()["activities"]
        assert activities[0]["activity_type"] == "game_completed"

    async def test_never_played_score_is_null(self, client, auth_headers):
        game_id = await _game_id(client, "Geography")
        response = await client.get(f"/api/v1/games/{game_id}/scores/me", headers=auth_headers())
        assert response.status_code == 200
        assert response.json() is None

    async def test_partial_failure_reports_step(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        game_id = await _game_id(client, "Geography")

        with patch.object(SqlTableStore, "rpc", AsyncMock(side_effect=StoreError("timeout", operation="rpc"))):
            response = await client.post(f"/api/v1/games/{game_id}/complete", json={"score": 100}, headers=headers)

        assert response.status_code == 502
        assert response.json()["step"] == "add_user_points"
        assert response.json()["points_earned"] == 100

    async def test_store_outage_is_502(self, client):
        with patch.object(SqlTableStore, "select", AsyncMock(side_effect=StoreError("down", table="games"))):
            response = await client.get("/api/v1/games")

        assert response.status_code == 502
        assert response.json() == {"detail": "Upstream store error"}

    async def test_invalid_body(self, client, auth_headers):
        game_id = await _game_id(client, "Geography")
        response = await client.post(
            f"/api/v1/games/{game_id}/complete",
            json={"score": "lots"},
            headers=auth_headers(),
        )
        assert response.status_code == 422


class TestStudy:
    async def test_complete_material(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        materials = (await client.get("/api/v1/study", params={"subject": "Mathematics"})).json()["materials"]
        material_id = materials[0]["id"]

        response = await client.post(f"/api/v1/study/{material_id}/complete", headers=headers)

        assert response.status_code == 200
        assert response.json()["points_earned"] == 100
        recommended = (await client.get("/api/v1/study/recommended", headers=headers)).json()["materials"]
        assert [m["title"] for m in recommended] == ["Newton's Laws of Motion"]

    async def test_subjects_and_lookup(self, client):
        assert (await client.get("/api/v1/study/subjects")).json() == {"subjects": ["Mathematics", "Physics"]}
        assert (await client.get("/api/v1/study/nope")).status_code == 404

    async def test_bookmarks(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        material_id = (await client.get("/api/v1/study", params={"subject": "Physics"})).json()["materials"][0]["id"]
        url = f"/api/v1/study/{material_id}/bookmark"

        assert (await client.get(url, headers=headers)).json() == {"material_id": material_id, "bookmarked": False}

        created = await client.post(url, headers=headers)
        assert created.status_code == 201
        assert created.json()["study_material_id"] == material_id
        assert (await client.post(url, headers=headers)).status_code == 409

        listing = (await client.get("/api/v1/study/bookmarks", headers=headers)).json()["bookmarks"]
        assert [b["material"]["title"] for b in listing] == ["Newton's Laws of Motion"]
        assert (await client.get(url, headers=headers)).json()["bookmarked"] is True

        assert (await client.delete(url, headers=headers)).status_code == 204
        assert (await client.delete(url, headers=headers)).status_code == 404
        assert (await client.get("/api/v1/study/bookmarks", headers=headers)).json() == {"bookmarks": []}

    async def test_bookmark_unknown_material(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        assert (await client.post("/api/v1/study/nope/bookmark", headers=headers)).status_code == 404

    async def test_reading_progress(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        material_id = (await client.get("/api/v1/study", params={"subject": "Physics"})).json()["materials"][0]["id"]
        url = f"/api/v1/study/{material_id}/progress"

        assert (await client.get(url, headers=headers)).json() is None

        response = await client.put(url, json={"progress_percentage": 60}, headers=headers)
        assert response.status_code == 200
        assert response.json()["completed"] is False

        progress = (await client.get(url, headers=headers)).json()
        assert progress["progress_percentage"] == 60
        assert (await client.put(url, json={"progress_percentage": 120}, headers=headers)).status_code == 422
        stats = (await client.get("/api/v1/users/me/stats", headers=headers)).json()
        assert stats["total_points"] == 0


class TestAchievements:
    async def test_catalog_and_progress(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)

        catalog = (await client.get("/api/v1/achievements")).json()["achievements"]
        assert [a["points_required"] for a in catalog] == [0, 100, 1000, 5000, 10000]

        progress = (await client.get("/api/v1/users/me/achievements/progress", headers=headers)).json()["progress"]
        assert progress[0]["progress_percentage"] == 100
        assert progress[1]["progress_percentage"] == 0

    async def test_check_unlocks_once(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)

        first = await client.post("/api/v1/users/me/achievements/check", headers=headers)
        second = await client.post("/api/v1/users/me/achievements/check", headers=headers)

        assert [t["description"] for t in first.json()["toasts"]] == ["Welcome Aboard - Join the community"]
        assert second.json() == {"toasts": []}

        earned = (await client.get("/api/v1/users/me/achievements", headers=headers)).json()["achievements"]
        assert [e["achievement"]["name"] for e in earned] == ["Welcome Aboard"]
        stats = (await client.get("/api/v1/users/me/achievements/stats", headers=headers)).json()
        assert stats == {"total": 5, "earned": 1, "percentage": 20}

    async def test_check_swallows_store_errors(self, client, auth_headers):
        with patch.object(SqlTableStore, "select", AsyncMock(side_effect=StoreError("down"))):
            response = await client.post("/api/v1/users/me/achievements/check", headers=auth_headers())

        assert response.status_code == 200
        assert response.json() == {"toasts": []}


class TestUsers:
    async def test_leaderboard(self, client, auth_headers):
        for user_id, name in [("u-a", "Ada"), ("u-b", "Grace")]:
            await _register(client, auth_headers(user_id), name)
        game_id = await _game_id(client, "Science")
        await client.post(f"/api/v1/games/{game_id}/complete", json={"score": 50}, headers=auth_headers("u-b"))

        board = (await client.get("/api/v1/users/leaderboard")).json()["entries"]

        assert [(e["rank"], e["full_name"], e["points"]) for e in board] == [(1, "Grace", 100), (2, "Ada", 0)]

    async def test_stats_missing(self, client, auth_headers):
        response = await client.get("/api/v1/users/me/stats", headers=auth_headers("unregistered"))
        assert response.status_code == 404

    async def test_reconcile(self, client, auth_headers):
        headers = auth_headers()
        await _register(client, headers)
        response = await client.post("/api/v1/users/me/reconcile", headers=headers)
        assert response.status_code == 200
        assert response.json()["in_sync"] is True
