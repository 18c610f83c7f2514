from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from src.engine.codec import encode_state
from src.engine.state import GameState
from src.protocol.http.app import create_app


def test_error_envelope_for_http_exception() -> None:
    app: FastAPI = create_app()

    @app.get("/boom")
    def boom():  # type: ignore[no-redef]
        raise HTTPException(status_code=400, detail="oops")

    client = TestClient(app)
    r = client.get("/boom")
    assert r.status_code == 400
    body = r.json()
    assert "error" in body
    err = body["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "oops"
    assert err["type"] == "client_error"
    assert err["request_id"]


def test_error_envelope_carries_client_request_id() -> None:
    client = TestClient(create_app())
    r = client.get("/api/games/missing/state", headers={"x-request-id": "req-42"})
    assert r.status_code == 404
    assert r.json()["error"]["request_id"] == "req-42"


def test_validation_error_lists_fields() -> None:
    client = TestClient(create_app())
    game_id = client.post("/api/games").json()["game_id"]
    r = client.post(f"/api/games/{game_id}/engine-move", json={"depth": 0})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(f["field"].endswith("depth") for f in err["field_errors"])


def test_missing_king_is_an_invariant_violation() -> None:
    client = TestClient(create_app())
    payload = encode_state(GameState.initial())
    payload["board"]["squares"][4] = None  # no white king
    r = client.post("/api/state/piece-moves", json={"state": payload, "square": 1})
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "invariant_violation"
    assert err["type"] == "server_error"
