from __future__ import annotations

from fastapi.testclient import TestClient

from src.engine.state import STARTPOS_FEN
from src.protocol.http.app import create_app
from src.protocol.http.session import InMemorySessionStore


def _client() -> TestClient:
    return TestClient(create_app())


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    game_id = body["game_id"]
    assert body["fen"] == STARTPOS_FEN
    assert body["state"]["ply"] == 0

    # Fetch state
    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["turn"] == "White"
    assert len(state["legal_moves"]) == 20
    assert state["in_check"] is False
    assert state["draw"] is False


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_set_position_validation_and_success() -> None:
    client = _client()
    # Create
    r = client.post("/api/games")
    game_id = r.json()["game_id"]

    # Invalid FEN
    r_bad = client.post(f"/api/games/{game_id}/position", json={"fen": ""})
    assert r_bad.status_code == 400
    assert r_bad.json()["error"]["code"] == "bad_request"

    # Valid FEN
    fen = "7k/6Q1/6K1/8/8/8/8/8 b - - 0 1"
    r_ok = client.post(f"/api/games/{game_id}/position", json={"fen": fen})
    assert r_ok.status_code == 200
    state = r_ok.json()
    assert state["fen"] == fen
    assert state["checkmate"] is True
    assert state["legal_moves"] == []


def test_move_endpoint_plays_and_rejects() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]

    r_move = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r_move.status_code == 200
    body = r_move.json()
    assert body["last_move"] == "e2e4"
    assert body["turn"] == "Black"
    assert body["state"]["board"]["en_passant"]["ply"] == 0

    r_bad = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r_bad.status_code == 400
    assert "illegal move" in r_bad.json()["error"]["message"]

    r_garbage = client.post(f"/api/games/{game_id}/move", json={"move": "zz"})
    assert r_garbage.status_code == 400


def test_piece_moves_endpoint() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]

    r = client.get(f"/api/games/{game_id}/pieces/g1/moves")
    assert r.status_code == 200
    body = r.json()
    assert body["square"] == "g1"
    assert sorted(m["move"] for m in body["moves"]) == ["g1f3", "g1h3"]
    assert all(m["state"]["ply"] == 1 for m in body["moves"])

    # Empty square and opponent's piece are caller errors
    assert client.get(f"/api/games/{game_id}/pieces/e4/moves").status_code == 400
    assert client.get(f"/api/games/{game_id}/pieces/e7/moves").status_code == 400
    assert client.get(f"/api/games/{game_id}/pieces/x9/moves").status_code == 400


def test_store_delete_and_ids() -> None:
    store = InMemorySessionStore()
    gid = store.create()
    assert store.ids() == [gid]
    assert store.delete(gid) is True
    assert store.delete(gid) is False
    assert store.get(gid) is None


def test_store_locked_yields_game_or_none() -> None:
    store = InMemorySessionStore()
    gid = store.create()
    with store.locked(gid) as game:
        assert game is store.get(gid)
    with store.locked("missing") as game:
        assert game is None
