import asyncio
import re

import pytest
from aiohttp.test_utils import TestClient

from tests.server.conftest import bearer, create_dir, make_token

ISO_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


async def test_create_get_delete_round_trip(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.post(
        "/nfs/directory/app/x", json={}, headers=auth_headers
    )
    assert resp.status == 200
    assert await resp.read() == b""

    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200
    data = await resp.json()
    assert data["info"]["name"] == "x"
    assert data["info"]["metadata"] == ""
    assert data["info"]["isPrivate"] is False
    assert data["info"]["isVersioned"] is False
    assert ISO_TIMESTAMP.match(data["info"]["createdOn"])
    assert ISO_TIMESTAMP.match(data["info"]["modifiedOn"])
    assert data["subDirectories"] == []
    assert data["files"] == []

    resp = await client.delete("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200

    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 404
    data = await resp.json()
    assert data["errorCode"] == 404
    assert data["description"] == "NfsError::DirectoryNotFound"


async def test_get_root_directory(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "b")
    await create_dir(client, auth_headers, "a")

    for url in ("/nfs/directory/app", "/nfs/directory/app/"):
        resp = await client.get(url, headers=auth_headers)
        assert resp.status == 200
        data = await resp.json()
        assert "root-dir" in data["info"]["name"].lower()
        assert data["info"]["name"] == "TestApp-Root-Dir"
        assert [d["name"] for d in data["subDirectories"]] == ["a", "b"]


async def test_create_with_metadata_and_private_flag(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(
        client, auth_headers, "secret", metadata="some notes", isPrivate=True
    )

    resp = await client.get("/nfs/directory/app/secret", headers=auth_headers)
    data = await resp.json()
    assert data["info"]["metadata"] == "some notes"
    assert data["info"]["isPrivate"] is True


async def test_create_intermediate_directories(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "a/b/c")

    resp = await client.get("/nfs/directory/app/a", headers=auth_headers)
    assert resp.status == 200
    data = await resp.json()
    assert [d["name"] for d in data["subDirectories"]] == ["b"]

    resp = await client.get("/nfs/directory/app/a/b/c", headers=auth_headers)
    assert resp.status == 200


async def test_create_existing_directory(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")

    resp = await client.post("/nfs/directory/app/x", json={}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == -2001


async def test_delete_removes_descendants(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x/y/z")

    resp = await client.delete("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200

    resp = await client.get("/nfs/directory/app/x/y", headers=auth_headers)
    assert resp.status == 404


async def test_delete_missing_directory(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.delete("/nfs/directory/app/missing", headers=auth_headers)
    assert resp.status == 404


@pytest.mark.parametrize(
    ("method", "url", "body"),
    [
        ("POST", "/nfs/directory/app/x", {}),
        ("GET", "/nfs/directory/app/x", None),
        ("DELETE", "/nfs/directory/app/x", None),
        ("PUT", "/nfs/directory/app/x", {"name": "y"}),
        ("POST", "/nfs/movedir", {"srcRootPath": "app", "srcPath": "x", "destRootPath": "app", "destPath": "y"}),
        ("GET", "/clientStats", None),
    ],
)
async def test_unauthorised_without_token(
    client: TestClient, method: str, url: str, body: dict | None
) -> None:
    resp = await client.request(method, url, json=body)
    assert resp.status == 401
    data = await resp.json()
    assert data == {"errorCode": 401, "description": "Unauthorised"}


async def test_unauthorised_checked_before_validation(client: TestClient) -> None:
    # Every field is invalid, the missing caller still wins.
    resp = await client.post(
        "/nfs/directory/bogus/", json={"metadata": 5, "isPrivate": "yes"}
    )
    assert resp.status == 401
    data = await resp.json()
    assert data["description"] == "Unauthorised"


async def test_unauthorised_with_bad_token(client: TestClient) -> None:
    headers = bearer(make_token(secret="some-other-secret"))
    resp = await client.get("/nfs/directory/app", headers=headers)
    assert resp.status == 401

    resp = await client.get(
        "/nfs/directory/app", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status == 401


async def test_unauthorised_without_network_session(
    anonymous_client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await anonymous_client.get("/nfs/directory/app", headers=auth_headers)
    assert resp.status == 401


async def test_unauthorised_after_logout(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.get("/nfs/directory/app", headers=auth_headers)
    assert resp.status == 200

    resp = await client.delete("/auth/login")
    assert resp.status == 200

    resp = await client.get("/nfs/directory/app", headers=auth_headers)
    assert resp.status == 401


@pytest.mark.parametrize("method", ["POST", "GET", "DELETE", "PUT"])
async def test_invalid_root_path(
    client: TestClient, auth_headers: dict[str, str], method: str
) -> None:
    resp = await client.request(
        method, "/nfs/directory/bogus/x", json={"name": "y"}, headers=auth_headers
    )
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == 400
    assert "rootPath" in data["description"]


@pytest.mark.parametrize("url", ["/nfs/directory/app", "/nfs/directory/app/"])
async def test_create_on_root_is_invalid(
    client: TestClient, auth_headers: dict[str, str], url: str
) -> None:
    resp = await client.post(url, json={}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": 400, "description": "Invalid directory path"}


@pytest.mark.parametrize("url", ["/nfs/directory/app", "/nfs/directory/app/"])
async def test_modify_on_root_is_invalid(
    client: TestClient, auth_headers: dict[str, str], url: str
) -> None:
    resp = await client.put(url, json={"name": "y"}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["description"] == "Invalid directory path"


@pytest.mark.parametrize("root", ["app", "drive"])
async def test_delete_root(
    client: TestClient, drive_headers: dict[str, str], root: str
) -> None:
    resp = await client.delete(f"/nfs/directory/{root}/", headers=drive_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": 400, "description": "Cannot delete root directory"}


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"metadata": 5}, "metadata"),
        ({"metadata": ["a"]}, "metadata"),
        ({"isPrivate": "true"}, "isPrivate"),
        ({"isPrivate": 1}, "isPrivate"),
    ],
)
async def test_create_type_checks(
    client: TestClient, auth_headers: dict[str, str], body: dict, field: str
) -> None:
    resp = await client.post("/nfs/directory/app/x", json=body, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == 400
    assert field in data["description"]


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"name": 5}, "name"),
        ({"name": ""}, "name"),
        ({"name": "a/b"}, "name"),
        ({"metadata": 5}, "metadata"),
        ({"name": "y", "metadata": False}, "metadata"),
    ],
)
async def test_modify_type_checks(
    client: TestClient, auth_headers: dict[str, str], body: dict, field: str
) -> None:
    await create_dir(client, auth_headers, "x")

    resp = await client.put("/nfs/directory/app/x", json=body, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == 400
    assert field in data["description"]


async def test_modify_without_fields(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")

    resp = await client.put("/nfs/directory/app/x", json={}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": 400, "description": "Required parameters missing"}


async def test_malformed_body(client: TestClient, auth_headers: dict[str, str]) -> None:
    resp = await client.post(
        "/nfs/directory/app/x",
        data=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert resp.status == 400
    data = await resp.json()
    assert "body" in data["description"]


async def test_body_not_utf8(client: TestClient, auth_headers: dict[str, str]) -> None:
    body = b"\xff\xfe{"
    headers = {"Content-Type": "application/json"}

    resp = await client.put("/nfs/directory/app/x", data=body, headers=headers)
    assert resp.status == 401

    resp = await client.put(
        "/nfs/directory/app/x", data=body, headers={**headers, **auth_headers}
    )
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": 400, "description": "Invalid request. body is not valid"}


async def test_modify_rename_round_trip(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")

    resp = await client.put("/nfs/directory/app/x", json={"name": "z"}, headers=auth_headers)
    assert resp.status == 200
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 404
    resp = await client.get("/nfs/directory/app/z", headers=auth_headers)
    assert resp.status == 200

    resp = await client.put("/nfs/directory/app/z", json={"name": "x"}, headers=auth_headers)
    assert resp.status == 200
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    assert resp.status == 200
    data = await resp.json()
    assert data["info"]["name"] == "x"


async def test_modify_metadata(client: TestClient, auth_headers: dict[str, str]) -> None:
    await create_dir(client, auth_headers, "x", metadata="before")
    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    before = await resp.json()

    resp = await client.put(
        "/nfs/directory/app/x", json={"metadata": "after"}, headers=auth_headers
    )
    assert resp.status == 200

    resp = await client.get("/nfs/directory/app/x", headers=auth_headers)
    data = await resp.json()
    assert data["info"]["name"] == "x"
    assert data["info"]["metadata"] == "after"
    assert data["info"]["createdOn"] == before["info"]["createdOn"]
    assert data["info"]["modifiedOn"] >= before["info"]["modifiedOn"]


async def test_modify_name_collision(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "x")
    await create_dir(client, auth_headers, "y")

    resp = await client.put("/nfs/directory/app/x", json={"name": "y"}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == -2001


async def test_modify_missing_directory(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.put(
        "/nfs/directory/app/missing", json={"name": "y"}, headers=auth_headers
    )
    assert resp.status == 404


async def test_drive_without_grant(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    resp = await client.post("/nfs/directory/drive/x", json={}, headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data == {"errorCode": -1504, "description": "FfiError::PermissionDenied"}

    resp = await client.get("/nfs/directory/drive", headers=auth_headers)
    assert resp.status == 400
    data = await resp.json()
    assert data["errorCode"] == -1504


async def test_drive_with_grant(
    client: TestClient, drive_headers: dict[str, str]
) -> None:
    await create_dir(client, drive_headers, "shared", root="drive")

    resp = await client.get("/nfs/directory/drive", headers=drive_headers)
    assert resp.status == 200
    data = await resp.json()
    assert data["info"]["name"] == "SAFEDrive-Root-Dir"
    assert [d["name"] for d in data["subDirectories"]] == ["shared"]

    # The app root is a separate namespace.
    resp = await client.get("/nfs/directory/app/shared", headers=drive_headers)
    assert resp.status == 404


async def test_drive_is_shared_between_apps(
    client: TestClient, drive_headers: dict[str, str]
) -> None:
    await create_dir(client, drive_headers, "shared", root="drive")

    other_app = {"name": "OtherApp", "id": "com.example.other", "vendor": "Example"}
    other_headers = bearer(make_token(app=other_app, permissions=["SAFE_DRIVE_ACCESS"]))
    resp = await client.get("/nfs/directory/drive/shared", headers=other_headers)
    assert resp.status == 200


async def test_app_roots_are_isolated(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    await create_dir(client, auth_headers, "mine")

    other_app = {"name": "OtherApp", "id": "com.example.other", "vendor": "Example"}
    other_headers = bearer(make_token(app=other_app))
    resp = await client.get("/nfs/directory/app", headers=other_headers)
    assert resp.status == 200
    data = await resp.json()
    assert data["info"]["name"] == "OtherApp-Root-Dir"
    assert data["subDirectories"] == []

    resp = await client.get("/nfs/directory/app/mine", headers=other_headers)
    assert resp.status == 404


async def test_request_id_header(client: TestClient, auth_headers: dict[str, str]) -> None:
    resp = await client.get(
        "/nfs/directory/app", headers={**auth_headers, "X-Request-Id": "abc123"}
    )
    assert resp.headers["X-Request-Id"] == "abc123"

    resp = await client.get("/nfs/directory/app", headers=auth_headers)
    assert resp.headers["X-Request-Id"]


async def test_concurrent_first_requests(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    """The first requests of an app share a single app root."""
    responses = await asyncio.gather(
        *(
            client.post(f"/nfs/directory/app/d{i}", json={}, headers=auth_headers)
            for i in range(5)
        )
    )
    assert [resp.status for resp in responses] == [200] * 5

    resp = await client.get("/nfs/directory/app", headers=auth_headers)
    assert resp.status == 200
    data = await resp.json()
    assert [d["name"] for d in data["subDirectories"]] == [f"d{i}" for i in range(5)]


async def test_concurrent_create_same_name(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    responses = await asyncio.gather(
        *(
            client.post("/nfs/directory/app/same", json={}, headers=auth_headers)
            for _ in range(5)
        )
    )
    statuses = sorted(resp.status for resp in responses)
    assert statuses == [200, 400, 400, 400, 400]

    resp = await client.get("/nfs/directory/app", headers=auth_headers)
    data = await resp.json()
    assert [d["name"] for d in data["subDirectories"]] == ["same"]
