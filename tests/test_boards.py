"""Board API tests."""

import json
import uuid

import pytest
from httpx import AsyncClient


async def _create_board(client: AsyncClient, title: str = "Sketch") -> str:
    resp = await client.post("/api/v1/boards/", json={"title": title, "user_id": str(uuid.uuid4())})
    assert resp.status_code == 201
    return resp.json()["uuid"]


# ── /api/v1/boards ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_and_list_boards(client: AsyncClient):
    board_id = await _create_board(client, "Roadmap")

    resp = await client.get("/api/v1/boards/")
    assert resp.status_code == 200
    boards = {b["uuid"]: b for b in resp.json()}
    assert boards[board_id]["title"] == "Roadmap"


@pytest.mark.asyncio
async def test_create_board_rejects_bad_user_id(client: AsyncClient):
    resp = await client.post("/api/v1/boards/", json={"title": "x", "user_id": "not-a-uuid"})
    assert resp.status_code == 422


# ── /api/v1/boards/{id}/save ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_save_shapes_upserts_and_filters_attributes(client: AsyncClient, images_dir):
    board_id = await _create_board(client)
    shape_id = str(uuid.uuid4())
    shapes = [
        {"id": shape_id, "type": "rect", "x": 1, "y": 2, "w": 3, "h": 4, "r": 99, "fill": "#fff"},
        {"id": str(uuid.uuid4()), "type": "pencil", "points": [0, 0, 5, 5], "stroke": "#000"},
    ]
    resp = await client.post(
        f"/api/v1/boards/{board_id}/save",
        data={"boardData": json.dumps(shapes)},
        files={"image": ("board.png", b"\x89PNG fake", "image/png")},
    )
    assert resp.status_code == 200
    assert resp.json() == {"message": "Data saved successfully"}
    assert (images_dir / f"{board_id}.png").read_bytes() == b"\x89PNG fake"

    # Same id again updates in place
    shapes[0]["x"] = 50
    resp = await client.post(f"/api/v1/boards/{board_id}/save", data={"boardData": json.dumps(shapes[:1])})
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/boards/{board_id}")
    rows = {row["uuid"]: row for row in resp.json()}
    assert len(rows) == 2
    assert rows[shape_id]["data"] == {"x": 50, "y": 2, "w": 3, "h": 4, "fill": "#fff"}


@pytest.mark.asyncio
async def test_save_rejects_invalid_payloads(client: AsyncClient):
    board_id = await _create_board(client)
    url = f"/api/v1/boards/{board_id}/save"

    resp = await client.post(url, data={"boardData": "{not json"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid board data JSON"

    resp = await client.post(url, data={"boardData": "[]"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No shapes provided"

    bad_type = [{"id": str(uuid.uuid4()), "type": "hexagon"}]
    resp = await client.post(url, data={"boardData": json.dumps(bad_type)})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_invalid_board_id(client: AsyncClient):
    resp = await client.get("/api/v1/boards/not-a-uuid")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_clear_board(client: AsyncClient):
    board_id = await _create_board(client)
    shapes = [{"id": str(uuid.uuid4()), "type": "circle", "x": 1, "y": 1, "r": 4}]
    await client.post(f"/api/v1/boards/{board_id}/save", data={"boardData": json.dumps(shapes)})

    resp = await client.delete(f"/api/v1/boards/{board_id}/clear")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Board cleared successfully"}

    resp = await client.get(f"/api/v1/boards/{board_id}")
    assert resp.json() == []


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "boardmate", "clients": 0}
