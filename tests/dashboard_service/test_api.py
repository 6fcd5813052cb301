"""HTTP tests for the dashboard API."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from actionboard.dashboard_service.app import app
from actionboard.dashboard_service.errors import UpstreamForbiddenError, UpstreamUnavailableError
from actionboard.dashboard_service.models.status import WorkflowRun
from actionboard.dashboard_service.settings import BoardSettings

CI = {"repo": "octo/hello", "workflow": "ci.yml", "label": "CI"}


async def _config(client: AsyncClient) -> dict:
    resp = await client.get("/api/config")
    assert resp.status_code == 200
    return resp.json()


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_get_config_default(client: AsyncClient) -> None:
    data = await _config(client)
    assert [d["name"] for d in data["dashboards"]] == ["Main Dashboard"]
    assert set(data["dashboards"][0]) == {"id", "name"}
    assert data["activeDashboardId"] == data["dashboards"][0]["id"]
    assert data["workflows"] == []


# -- Workflows -------------------------------------------------------------------


async def test_add_workflow(client: AsyncClient, provider) -> None:
    resp = await client.post("/api/workflows/add", json=CI)

    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Workflow added successfully"
    assert data["workflow"] == {"owner": "octo", "repo": "hello", "workflow": "ci.yml", "label": "CI"}
    assert data["dashboard"]["name"] == "Main Dashboard"
    assert provider.workflow_calls == [("octo", "hello", "ci.yml")]

    config = await _config(client)
    assert [w["workflow"] for w in config["workflows"]] == ["ci.yml"]


async def test_add_duplicate_workflow(client: AsyncClient) -> None:
    assert (await client.post("/api/workflows/add", json=CI)).status_code == 201

    resp = await client.post("/api/workflows/add", json={**CI, "label": "Again"})

    assert resp.status_code == 409
    assert resp.json()["error"] == "duplicate_workflow"
    assert len((await _config(client))["workflows"]) == 1


@pytest.mark.parametrize(
    ("payload", "fragment"),
    [
        ({**CI, "repo": "octo"}, "owner/repo"),
        ({**CI, "repo": "octo/hello/extra"}, "owner/repo"),
        ({**CI, "workflow": "ci.json"}, ".yml or .yaml"),
        ({**CI, "label": "   "}, "label"),
        ({"repo": "octo/hello", "workflow": "ci.yml"}, "Missing required fields: label"),
    ],
)
async def test_add_workflow_validation(client: AsyncClient, provider, payload: dict, fragment: str) -> None:
    resp = await client.post("/api/workflows/add", json=payload)

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert fragment in body["message"]
    assert provider.workflow_calls == []


async def test_add_without_body(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/add")
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


async def test_add_reports_first_invalid_field(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/add", json={"repo": "octo", "workflow": "ci.yml"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"
    assert "owner/repo" in resp.json()["message"]


async def test_add_reports_all_missing_fields(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/add", json={"workflow": "ci.yml"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields: repo, label"


async def test_openapi_documents_error_body(client: AsyncClient) -> None:
    schema = (await client.get("/openapi.json")).json()

    assert set(schema["components"]["schemas"]["ErrorResponse"]["properties"]) == {"error", "message"}
    responses = schema["paths"]["/api/workflows/add"]["post"]["responses"]
    assert responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")


async def test_add_numeric_workflow_id(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/add", json={**CI, "workflow": 4242})
    assert resp.status_code == 201
    assert resp.json()["workflow"]["workflow"] == "4242"


async def test_add_unknown_upstream_workflow(client: AsyncClient, provider) -> None:
    provider.unknown_workflows.add(("octo", "hello", "ci.yml"))

    resp = await client.post("/api/workflows/add", json=CI)

    assert resp.status_code == 404
    assert resp.json()["error"] == "upstream_not_found"
    assert (await _config(client))["workflows"] == []


async def test_add_app_not_installed(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/add", json={**CI, "repo": "stranger/hello"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "app_not_installed"


async def test_add_forbidden_upstream(client: AsyncClient, provider) -> None:
    provider.workflow_errors[("octo", "hello", "ci.yml")] = UpstreamForbiddenError("Resource not accessible")
    resp = await client.post("/api/workflows/add", json=CI)
    assert resp.status_code == 403
    assert resp.json() == {"error": "forbidden", "message": "Resource not accessible"}


async def test_add_upstream_unavailable(client: AsyncClient, provider) -> None:
    provider.list_error = UpstreamUnavailableError("GitHub returned 502")
    resp = await client.post("/api/workflows/add", json=CI)
    assert resp.status_code == 503
    assert resp.json()["error"] == "upstream_unavailable"


async def test_add_without_verification(client: AsyncClient, provider) -> None:
    app.state.settings = BoardSettings(_env_file=None, verify_workflows=False)
    provider.unknown_workflows.add(("octo", "hello", "ci.yml"))

    resp = await client.post("/api/workflows/add", json=CI)

    assert resp.status_code == 201
    assert provider.workflow_calls == []


async def test_add_without_provider_skips_verification(client: AsyncClient) -> None:
    app.state.status_provider = None
    resp = await client.post("/api/workflows/add", json=CI)
    assert resp.status_code == 201


@pytest.mark.parametrize("method", ["POST", "DELETE"])
async def test_remove_workflow(client: AsyncClient, method: str) -> None:
    await client.post("/api/workflows/add", json=CI)

    resp = await client.request(method, "/api/workflows/remove", json={"repo": "octo/hello", "workflow": "ci.yml"})

    assert resp.status_code == 200
    assert resp.json()["workflow"]["label"] == "CI"
    assert (await _config(client))["workflows"] == []


async def test_remove_missing_workflow(client: AsyncClient) -> None:
    resp = await client.post("/api/workflows/remove", json={"repo": "octo/hello", "workflow": "ci.yml"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "workflow_not_found"


async def test_update_workflow(client: AsyncClient) -> None:
    await client.post("/api/workflows/add", json=CI)

    resp = await client.post("/api/workflows/update", json={**CI, "label": "Build"})

    assert resp.status_code == 200
    assert resp.json()["workflow"]["label"] == "Build"
    assert (await _config(client))["workflows"][0]["label"] == "Build"


async def test_reorder_workflows(client: AsyncClient) -> None:
    for name in ("a.yml", "b.yml"):
        await client.post("/api/workflows/add", json={**CI, "workflow": name})

    order = [{"owner": "octo", "repo": "hello", "workflow": w} for w in ("b.yml", "a.yml")]
    resp = await client.post("/api/workflows/reorder", json={"workflows": order})

    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == 2
    assert data["message"] == "Reordered 2 workflows"
    config = await _config(client)
    assert data["dashboardId"] == config["activeDashboardId"]
    assert [w["workflow"] for w in config["workflows"]] == ["b.yml", "a.yml"]


async def test_reorder_count_mismatch(client: AsyncClient) -> None:
    for name in ("a.yml", "b.yml"):
        await client.post("/api/workflows/add", json={**CI, "workflow": name})

    order = [{"owner": "octo", "repo": "hello", "workflow": "b.yml"}]
    resp = await client.post("/api/workflows/reorder", json={"workflows": order})

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_reorder"
    assert [w["workflow"] for w in (await _config(client))["workflows"]] == ["a.yml", "b.yml"]


# -- Dashboards ------------------------------------------------------------------


async def test_dashboard_lifecycle(client: AsyncClient) -> None:
    main_id = (await _config(client))["activeDashboardId"]

    resp = await client.post("/api/dashboards/create", json={"name": "Team", "setAsActive": True})
    assert resp.status_code == 201
    created = resp.json()
    assert created["isActive"] is True
    team_id = created["dashboard"]["id"]

    resp = await client.post("/api/dashboards/rename", json={"dashboardId": team_id, "name": "Platform"})
    assert resp.status_code == 200
    assert resp.json()["dashboard"] == {"id": team_id, "name": "Platform"}

    resp = await client.post("/api/dashboards/set-active", json={"dashboardId": main_id})
    assert resp.status_code == 200
    assert resp.json()["activeDashboardId"] == main_id
    assert resp.json()["dashboardName"] == "Main Dashboard"

    resp = await client.request("DELETE", "/api/dashboards/delete", json={"dashboardId": main_id})
    assert resp.status_code == 200
    data = resp.json()
    assert data["deletedDashboard"]["id"] == main_id
    assert data["newActiveDashboardId"] == team_id

    config = await _config(client)
    assert [d["name"] for d in config["dashboards"]] == ["Platform"]
    assert config["activeDashboardId"] == team_id


async def test_create_dashboard_errors(client: AsyncClient) -> None:
    resp = await client.post("/api/dashboards/create", json={"name": "  "})
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"

    resp = await client.post("/api/dashboards/create", json={"name": "Main Dashboard"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "duplicate_dashboard"


async def test_delete_last_dashboard(client: AsyncClient) -> None:
    main_id = (await _config(client))["activeDashboardId"]

    resp = await client.post("/api/dashboards/delete", json={"dashboardId": main_id})

    assert resp.status_code == 400
    assert resp.json()["error"] == "last_dashboard"
    assert (await _config(client))["activeDashboardId"] == main_id


@pytest.mark.parametrize(
    ("path", "payload"),
    [
        ("/api/dashboards/rename", {"dashboardId": "nope", "name": "X"}),
        ("/api/dashboards/delete", {"dashboardId": "nope"}),
        ("/api/dashboards/set-active", {"dashboardId": "nope"}),
    ],
)
async def test_unknown_dashboard(client: AsyncClient, path: str, payload: dict) -> None:
    resp = await client.post(path, json=payload)
    assert resp.status_code == 404
    assert resp.json()["error"] == "dashboard_not_found"


# -- Statuses --------------------------------------------------------------------


@pytest.mark.parametrize("method", ["GET", "POST"])
async def test_list_statuses(client: AsyncClient, provider, method: str) -> None:
    await client.post("/api/workflows/add", json=CI)
    provider.runs[("octo", "hello", "ci.yml")] = WorkflowRun(
        status="completed", conclusion="success", url="https://github.com/octo/hello/actions/runs/1"
    )

    resp = await client.request(method, "/api/statuses/list")

    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "public, max-age=60"
    data = resp.json()
    assert data["count"] == 1
    assert data["activeDashboardId"] == data["dashboards"][0]["id"]
    assert "timestamp" in data
    status = data["workflows"][0]
    assert status["label"] == "CI"
    assert status["display"] == "passing"
    assert status["url"] == "https://github.com/octo/hello/actions/runs/1"


async def test_list_statuses_empty(client: AsyncClient) -> None:
    resp = await client.get("/api/statuses/list")
    assert resp.status_code == 200
    assert resp.json()["message"] == "No workflows configured"
    assert resp.json()["workflows"] == []


async def test_list_statuses_installations_unavailable(client: AsyncClient, provider) -> None:
    await client.post("/api/workflows/add", json=CI)
    provider.list_error = UpstreamUnavailableError("GitHub returned 502")

    resp = await client.get("/api/statuses/list")

    assert resp.status_code == 503
    assert resp.json()["error"] == "upstream_unavailable"


# -- Infrastructure errors -------------------------------------------------------


async def test_corrupted_document(client: AsyncClient, blob_store) -> None:
    await blob_store.put("workflows.json", b"[not json")

    for resp in (
        await client.get("/api/config"),
        await client.post("/api/workflows/add", json=CI),
        await client.get("/api/statuses/list"),
    ):
        assert resp.status_code == 500
        assert resp.json()["error"] == "document_corrupted"

    assert (await blob_store.get("workflows.json")).data == b"[not json"


async def test_missing_store_is_unavailable(client: AsyncClient) -> None:
    app.state.documents = None
    resp = await client.get("/api/config")
    assert resp.status_code == 503
    assert resp.json()["error"] == "service_unavailable"
