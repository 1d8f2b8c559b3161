from typing import Any

import pytest
from aiohttp.test_utils import TestClient

from tests.server.conftest import create_dir


def move_body(src: str, dest: str, action: str | None = None, **overrides: Any) -> dict:
    body: dict[str, Any] = {
        "srcRootPath": "app",
        "srcPath": src,
        "destRootPath": "app",
        "destPath": dest,
    }
    if action is not None:
        body["action"] = action
    body.update(overrides)
    return body


async def list_names(client: TestClient, headers: dict[str, str], path: str) -> list[str]:
    resp = await client.get(f"/nfs/directory/{path}", headers=headers)
    assert resp.status == 200, await resp.text()
    data = await resp.json()
    return [d["name"] for d in data["subDirectories"]]


async def test_move_directory(client: TestClient, auth_headers: dict[str, str]) -> None:
    await create_dir(client, auth_headers, "x/inner")
    await create_dir(client, auth_headers, "y")

    resp = await client.post(
        "/nfs/movedir", json=move_body("x", "y", "MOVE"), headers=auth_headers
    )
    assert resp.status == 200

    assert await list_names(client, auth_headers, "app/y") == ["x"]
    assert await list_names(client, auth_headers, "app/y/x") == ["inner"]
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 404


async def test_move_is_default_action(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")
    await create_dir(client, auth_headers, "y")

    resp = await client.post("/nfs/movedir", json=move_body("x", "y"), headers=auth_headers)
    assert resp.status == 200

    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 404
    assert await list_names(client, auth_headers, "app/y") == ["x"]


async def test_copy_directory(client: TestClient, auth_headers: dict[str, str]) -> None:
    await create_dir(client, auth_headers, "x/inner", metadata="original")
    await create_dir(client, auth_headers, "y")

    resp = await client.post(
        "/nfs/movedir", json=move_body("x", "y", "COPY"), headers=auth_headers
    )
    assert resp.status == 200

    assert await list_names(client, auth_headers, "app/y") == ["x"]
    assert await list_names(client, auth_headers, "app/x") == ["inner"]
    assert await list_names(client, auth_headers, "app/y/x") == ["inner"]

    # The copies change independently.
    resp = await client.put(
        "/nfs/directory/app/y/x/inner", json={"metadata": "changed"}, headers=auth_headers
    )
    assert resp.status == 200
    resp = await client.get("/nfs/directory/app/x/inner", headers=auth_headers)
    data = await resp.json()
    assert data["info"]["metadata"] == "original"

    resp = await client.delete("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200
    resp = await client.get("/nfs/directory/app/y/x/inner", headers=auth_headers)
    assert resp.status == 200


async def test_action_is_case_insensitive(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")
    await create_dir(client, auth_headers, "y")

    resp = await client.post(
        "/nfs/movedir", json=move_body("x", "y", "copy"), headers=auth_headers
    )
    assert resp.status == 200
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200


async def test_move_to_root(client: TestClient, auth_headers: dict[str, str]) -> None:
    await create_dir(client, auth_headers, "a/x")

    resp = await client.post("/nfs/movedir", json=move_body("a/x", "/"), headers=auth_headers)
    assert resp.status == 200
    assert await list_names(client, auth_headers, "app") == ["a", "x"]


@pytest.mark.parametrize("action", ["RENAME", "", 5])
async def test_invalid_action(
    client: TestClient, auth_headers: dict[str, str], action: Any
) -> None:
    await create_dir(client, auth_headers, "x")
    await create_dir(client, auth_headers, "y")

    resp = await client.post(
        "/nfs/movedir", json=move_body("x", "y", action), headers=auth_headers
    )
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == 400
    assert "action" in data["description"]


@pytest.mark.parametrize(
    "missing", ["srcRootPath", "srcPath", "destRootPath", "destPath"]
)
async def test_missing_parameters(
    client: TestClient, auth_headers: dict[str, str], missing: str
) -> None:
    body = move_body("x", "y")
    del body[missing]

    resp = await client.post("/nfs/movedir", json=body, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": 400, "description": "Required parameters missing"}


@pytest.mark.parametrize("field", ["srcRootPath", "destRootPath"])
async def test_invalid_root_path(
    client: TestClient, auth_headers: dict[str, str], field: str
) -> None:
    body = move_body("x", "y", **{field: "bogus"})

    resp = await client.post("/nfs/movedir", json=body, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert field in data["description"]


async def test_move_root_is_invalid(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "y")

    resp = await client.post("/nfs/movedir", json=move_body("/", "y"), headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["description"] == "Invalid directory path"


async def test_source_not_found_before_destination(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.post(
        "/nfs/movedir", json=move_body("nope", "missing"), headers=auth_headers
    )
    assert resp.status == 404

    await create_dir(client, auth_headers, "x")
    resp = await client.post(
        "/nfs/movedir", json=move_body("x", "missing"), headers=auth_headers
    )
    assert resp.status == 404
    # The failed move left the source in place.
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200


async def test_move_into_own_subtree(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x/y")

    for dest in ("x", "x/y"):
        resp = await client.post(
            "/nfs/movedir", json=move_body("x", dest), headers=auth_headers
        )
        assert resp.status == 400
        data = await resp.json()
        assert data["errorCode"] == 400
        assert data["description"] == "NfsError::DestinationAndSourceAreSame"


async def test_move_name_collision(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")
    await create_dir(client, auth_headers, "y/x")

    resp = await client.post("/nfs/movedir", json=move_body("x", "y"), headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == -2001


async def test_move_between_roots(
    client: TestClient, drive_headers: dict[str, str]
) -> None:
    await create_dir(client, drive_headers, "x")

    body = move_body("x", "/", "COPY", destRootPath="drive")
    resp = await client.post("/nfs/movedir", json=body, headers=drive_headers)
    assert resp.status == 200
    assert await list_names(client, drive_headers, "drive") == ["x"]
    assert await list_names(client, drive_headers, "app") == ["x"]


async def test_move_to_drive_without_grant(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")

    body = move_body("x", "/", destRootPath="drive")
    resp = await client.post("/nfs/movedir", json=body, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == -1504

    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200
