"""Board tool handler tests."""

import base64
import json
import uuid

import pytest

from app.orchestration.errors import ToolInputError
from app.orchestration.executor import IMAGE_MARKER, ToolExecutor
from app.orchestration.formatting import tool_error_message
from app.orchestration.registry import ToolRegistry
from app.orchestration.streaming import StreamingContext
from app.orchestration.types import ToolCall, ToolContext
from app.realtime.hub import ConnectionHub
from app.tools.board_tools import add_shape, build_shape, get_board_data, register_board_tools


@pytest.fixture
def streaming() -> StreamingContext:
    hub = ConnectionHub()
    return StreamingContext(hub=hub, client=hub.new_client(), board_id="b1")


def test_build_rect_maps_dimensions():
    shape = build_shape({"shapeType": "rect", "x": 10, "y": 20.5, "width": 30, "height": 40, "fill": "#f00"})
    assert shape["type"] == "rect"
    assert (shape["x"], shape["y"], shape["w"], shape["h"]) == (10, 20.5, 30, 40)
    assert shape["fill"] == "#f00"
    uuid.UUID(shape["id"])


def test_build_circle_and_points():
    assert build_shape({"shapeType": "circle", "x": 0, "y": 0, "radius": 5})["r"] == 5
    line = build_shape({"shapeType": "line", "x": 0, "y": 0, "points": [0, 0, "bad", 10, 10]})
    assert line["points"] == [0, 0, 10, 10]


def test_build_text_shape():
    shape = build_shape({"shapeType": "text", "x": 1, "y": 2, "text": "Hi", "fontSize": 18, "fontFamily": "Arial"})
    assert shape["text"] == "Hi"
    assert shape["fontSize"] == 18
    assert "w" not in shape


@pytest.mark.parametrize(
    "data, message",
    [
        ({"x": 1, "y": 1}, "shapeType is required"),
        ({"shapeType": "star", "x": 1, "y": 1}, "invalid shapeType: star"),
        ({"shapeType": "rect", "y": 1}, "x coordinate is required"),
        ({"shapeType": "rect", "x": 1, "y": "2"}, "y coordinate is required"),
        ({"shapeType": "rect", "x": True, "y": 2}, "x coordinate is required"),
    ],
)
def test_build_shape_rejects_bad_input(data, message):
    with pytest.raises(ToolInputError, match=message):
        build_shape(data)


@pytest.mark.asyncio
async def test_add_shape_pushes_shape_created(streaming):
    ctx = ToolContext(call_id="c1", streaming=streaming)
    result = await add_shape(ctx, {"boardId": "b1", "shapeType": "ellipse", "x": 1.234, "y": 5})

    assert result["success"] is True
    assert result["message"] == "Successfully created ellipse shape at (1.23, 5.00)"
    frame = json.loads(streaming.client.queue.get_nowait())
    assert frame["type"] == "shape_created"
    assert frame["data"]["board_id"] == "b1"
    assert frame["data"]["shape"]["id"] == result["shapeId"]


@pytest.mark.asyncio
async def test_add_shape_needs_realtime_connection():
    with pytest.raises(ToolInputError, match="realtime connection not available"):
        await add_shape(ToolContext(call_id="c1"), {"boardId": "b1", "shapeType": "rect", "x": 1, "y": 1})


def test_get_board_data_reads_snapshot(tmp_path):
    board_id = str(uuid.uuid4())
    (tmp_path / f"{board_id}.png").write_bytes(b"png-bytes")

    result = get_board_data(ToolContext(call_id="c"), {"boardId": board_id}, tmp_path)

    assert result[IMAGE_MARKER] is True
    assert result["format"] == "png"
    assert base64.b64decode(result["image"]) == b"png-bytes"


def test_get_board_data_errors(tmp_path):
    with pytest.raises(ToolInputError, match="boardId must be a valid UUID"):
        get_board_data(ToolContext(call_id="c"), {"boardId": "../etc/passwd"}, tmp_path)
    with pytest.raises(ToolInputError, match="no image saved"):
        get_board_data(ToolContext(call_id="c"), {"boardId": str(uuid.uuid4())}, tmp_path)


@pytest.mark.asyncio
async def test_registered_tools_run_through_executor(tmp_path, streaming):
    registry = ToolRegistry()
    register_board_tools(registry, tmp_path)
    assert [d.name for d in registry.definitions()] == ["getBoardData", "addShape"]

    board_id = str(uuid.uuid4())
    (tmp_path / f"{board_id}.png").write_bytes(b"img")
    results = await ToolExecutor(registry).execute(
        [
            ToolCall(name="getBoardData", input={"boardId": board_id}, id="1"),
            ToolCall(name="addShape", input={"boardId": board_id, "shapeType": "rect"}, id="2"),
        ],
        streaming,
    )
    assert results[0].has_image
    assert results[1].error == "x coordinate is required and must be a number"


def test_error_message_hints():
    message = tool_error_message("addShape", "invalid shapeType: star")
    assert message.startswith("Tool execution failed: invalid shapeType: star.")
    assert "Make sure shapeType is one of: rect, circle" in message
    assert "boardId is provided" not in message

    message = tool_error_message("getBoardData", "boardId is required and must be a non-empty string")
    assert "Make sure boardId is provided and is a valid UUID string." in message
