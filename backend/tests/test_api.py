import pytest
from fastapi.testclient import TestClient

from quizzer.application import app
from quizzer.runtime import runtime
from quizzer.runtime_constants import MAX_PLAYERS, SERVICE_NAME
from quizzer.runtime_types import User


@pytest.fixture
def client():
    runtime.registry.close()
    runtime.channels.clear()
    with TestClient(app) as test_client:
        yield test_client
    runtime.registry.close()
    runtime.channels.clear()


def create_room(client, player_id="host", username="Host"):
    response = client.post("/room/create", json={"playerId": player_id, "username": username})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": SERVICE_NAME, "activeRooms": 0}


def test_games_lists_bundled_quizzes(client):
    response = client.get("/games")
    assert response.status_code == 200
    games = {game["id"]: game for game in response.json()}
    assert set(games) == {"europe-flags", "europe-capitals"}
    assert games["europe-flags"] == {
        "id": "europe-flags",
        "title": "Flags of Europe",
        "image": "/images/games/europe-flags.png",
        "questionsCount": 10,
    }


def test_create_room_returns_snapshot(client):
    room = create_room(client)
    assert len(room["code"]) == 6
    assert room["status"] == "waiting"
    assert room["creatorId"] == "host"
    assert room["timerDuration"] == 15
    assert room["game"] is None
    assert room["currentQuestion"] is None
    assert [p["id"] for p in room["players"]] == ["host"]
    assert room["players"][0]["mode"] == "pro"
    assert client.get("/health").json()["activeRooms"] == 1


def test_create_room_validates_payload(client):
    response = client.post("/room/create", json={"playerId": "host"})
    assert response.status_code == 422


def test_get_room(client):
    code = create_room(client)["code"]

    response = client.get(f"/room/{code.lower()}")
    assert response.status_code == 200
    assert response.json()["code"] == code

    missing = client.get("/room/ZZZZZZ")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Room not found"


def test_room_exists(client):
    assert client.get("/room/ZZZZZZ/exists").json() == {
        "exists": False,
        "canJoin": False,
        "error": "Room not found",
    }

    code = create_room(client)["code"]
    assert client.get(f"/room/{code}/exists").json() == {"exists": True, "canJoin": True, "playerCount": 1}

    for i in range(MAX_PLAYERS - 1):
        runtime.registry.join_room(code, User(player_id=f"p{i}", username=f"P{i}"))
    assert client.get(f"/room/{code}/exists").json() == {
        "exists": True,
        "canJoin": False,
        "error": "Room is full",
    }


def test_room_exists_after_start(client):
    code = create_room(client)["code"]
    runtime.registry.start_game(code, "europe-capitals", 15)

    assert client.get(f"/room/{code}/exists").json() == {
        "exists": True,
        "canJoin": False,
        "error": "Game has already started",
    }


def test_websocket_rejects_garbage(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("garbage")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "join", "roomCode": "ZZZZZZ", "playerId": "p1", "username": "P1"})
        assert ws.receive_json() == {"type": "error", "message": "Room not found"}


def test_websocket_single_player_round(client):
    code = create_room(client)["code"]

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join", "roomCode": code, "playerId": "host", "username": "Host"})
        state = ws.receive_json()
        assert state["type"] == "roomState"
        assert state["room"]["code"] == code

        ws.send_json({"type": "start", "roomCode": code, "gameId": "europe-flags", "timerDuration": 20})
        started = ws.receive_json()
        assert started["type"] == "gameStarted"
        assert started["room"]["currentQuestion"]["totalQuestions"] == 10
        assert len(started["room"]["currentQuestion"]["options"]) == 4
        assert ws.receive_json() == {"type": "timerTick", "timeLeft": 20}

        room = runtime.registry.get_room(code)
        answer = room.find_question(room.current_question.id).answer
        ws.send_json({"type": "answer", "roomCode": code, "playerId": "host", "answer": answer})
        assert ws.receive_json() == {"type": "playerAnswered", "playerId": "host"}
        assert ws.receive_json() == {
            "type": "questionResult",
            "correctAnswer": answer,
            "scores": {"host": 100},
        }
