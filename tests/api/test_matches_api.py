"""Tests for match API endpoints."""

import pytest
from httpx import AsyncClient


async def create_doubles(client: AsyncClient, headers: dict, ids: list[int], court: str = "Court 1"):
    return await client.post(
        "/api/matches",
        json={"court": court, "team1": ids[:2], "team2": ids[2:4]},
        headers=headers,
    )


class TestCreateMatch:
    """Tests for POST /api/matches"""

    @pytest.mark.asyncio
    async def test_organizer_creates_match(
        self,
        test_client: AsyncClient,
        four_players: list,
        organizer: object,
        organizer_headers: dict,
    ):
        ids = [p.id for p in four_players]

        response = await create_doubles(test_client, organizer_headers, ids)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "active"
        assert data["result"] == "pending"
        assert data["team1"] == ids[:2]
        assert data["team2"] == ids[2:]
        assert [p["name"] for p in data["team1_players"]] == ["Alice", "Bob"]
        assert data["created_by"] == organizer.id
        assert data["ended_at"] is None

    @pytest.mark.asyncio
    async def test_player_forbidden(
        self, test_client: AsyncClient, four_players: list, player_headers: list
    ):
        ids = [p.id for p in four_players]

        response = await create_doubles(test_client, player_headers[0], ids)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_overlapping_teams(
        self, test_client: AsyncClient, four_players: list, organizer_headers: dict
    ):
        a, b, c, _ = [p.id for p in four_players]

        response = await test_client.post(
            "/api/matches",
            json={"court": "Court 1", "team1": [a, b], "team2": [b, c]},
            headers=organizer_headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_TEAMS"
        assert error["details"]["overlap"] == [b]

    @pytest.mark.asyncio
    async def test_player_in_active_match(
        self, test_client: AsyncClient, four_players: list, organizer_headers: dict
    ):
        ids = [p.id for p in four_players]
        await create_doubles(test_client, organizer_headers, ids)

        response = await test_client.post(
            "/api/matches",
            json={"court": "Court 2", "team1": [ids[0]], "team2": [ids[2]]},
            headers=organizer_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TEAMS"

    @pytest.mark.asyncio
    async def test_consumes_queue_entries(
        self,
        test_client: AsyncClient,
        four_players: list,
        player_headers: list,
        organizer_headers: dict,
    ):
        ids = [p.id for p in four_players]
        for headers in player_headers:
            await test_client.post("/api/queue/join", headers=headers)
        await test_client.post("/api/queue/call", headers=organizer_headers)

        await create_doubles(test_client, organizer_headers, ids)

        info = (await test_client.get("/api/queue", headers=player_headers[0])).json()["data"]
        assert info["total_in_queue"] == 0
        assert info["your_status"] is None
        assert info["next_court"] == "Court 2"
        assert sorted(e["player_id"] for e in info["currently_playing"]) == sorted(ids)


class TestRecordResult:
    """Tests for PUT /api/matches/result"""

    @pytest.mark.asyncio
    async def test_full_match_flow(
        self,
        test_client: AsyncClient,
        four_players: list,
        player_headers: list,
        organizer_headers: dict,
    ):
        ids = [p.id for p in four_players]
        match_id = (await create_doubles(test_client, organizer_headers, ids)).json()["data"]["id"]

        response = await test_client.put(
            "/api/matches/result",
            json={"match_id": match_id, "scores": [[21, 15], [18, 21], [21, 19]]},
            headers=organizer_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["result"] == "team1"
        assert data["ended_at"] is not None
        assert [s["game"] for s in data["scores"]] == [1, 2, 3]

        winner = (await test_client.get("/api/profile", headers=player_headers[0])).json()["data"]
        assert winner["stats"]["wins"] == 1
        assert winner["stats"]["win_rate"] == 100.0
        assert winner["stats"]["current_streak"] == 1

        loser = (await test_client.get("/api/profile", headers=player_headers[2])).json()["data"]
        assert loser["stats"]["losses"] == 1
        assert loser["stats"]["current_streak"] == -1

    @pytest.mark.asyncio
    async def test_second_submission_rejected(
        self,
        test_client: AsyncClient,
        four_players: list,
        player_headers: list,
        organizer_headers: dict,
    ):
        ids = [p.id for p in four_players]
        match_id = (await create_doubles(test_client, organizer_headers, ids)).json()["data"]["id"]
        scores = [{"team1_score": 21, "team2_score": 10}]
        await test_client.put(
            "/api/matches/result",
            json={"match_id": match_id, "scores": scores},
            headers=organizer_headers,
        )

        response = await test_client.put(
            "/api/matches/result",
            json={"match_id": match_id, "scores": scores},
            headers=organizer_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "MATCH_ALREADY_COMPLETED"
        profile = (await test_client.get("/api/profile", headers=player_headers[0])).json()["data"]
        assert profile["stats"]["total_matches"] == 1

    @pytest.mark.asyncio
    async def test_too_many_games(
        self, test_client: AsyncClient, four_players: list, organizer_headers: dict
    ):
        ids = [p.id for p in four_players]
        match_id = (await create_doubles(test_client, organizer_headers, ids)).json()["data"]["id"]

        response = await test_client.put(
            "/api/matches/result",
            json={"match_id": match_id, "scores": [[21, 1]] * 4},
            headers=organizer_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SCORES"

    @pytest.mark.asyncio
    async def test_unknown_match(self, test_client: AsyncClient, organizer_headers: dict):
        response = await test_client.put(
            "/api/matches/result",
            json={"match_id": 999, "scores": [[21, 1]]},
            headers=organizer_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "MATCH_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_body(self, test_client: AsyncClient, organizer_headers: dict):
        response = await test_client.put(
            "/api/matches/result",
            json={"scores": [[21, 1]]},
            headers=organizer_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["errors"]


class TestMatchLists:
    """Tests for GET /api/matches/active and GET /api/matches"""

    @pytest.mark.asyncio
    async def test_active_matches_are_public(
        self, test_client: AsyncClient, four_players: list, organizer_headers: dict
    ):
        ids = [p.id for p in four_players]
        await create_doubles(test_client, organizer_headers, ids, court="Court 3")

        response = await test_client.get("/api/matches/active")

        assert response.status_code == 200
        active = response.json()["data"]
        assert len(active) == 1
        assert active[0]["court"] == "Court 3"

    @pytest.mark.asyncio
    async def test_own_history(
        self,
        test_client: AsyncClient,
        four_players: list,
        player_headers: list,
        organizer_headers: dict,
    ):
        ids = [p.id for p in four_players]
        match_id = (await create_doubles(test_client, organizer_headers, ids)).json()["data"]["id"]
        await test_client.put(
            "/api/matches/result",
            json={"match_id": match_id, "scores": [[10, 21], [12, 21]]},
            headers=organizer_headers,
        )

        response = await test_client.get("/api/matches", headers=player_headers[0])

        assert response.status_code == 200
        history = response.json()["data"]
        assert len(history) == 1
        assert history[0]["outcome"] == "loss"
        assert history[0]["won"] is False

        history = (await test_client.get("/api/matches", headers=player_headers[3])).json()["data"]
        assert history[0]["outcome"] == "win"
        assert history[0]["won"] is True
