"""Case / inventory / profile API tests

TestClient + in-memory SQLite + fixed draws.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lootcase.api.cases import router as cases_router
from lootcase.api.inventory import router as inventory_router
from lootcase.api.profile import router as profile_router
from lootcase.api.schemas import ErrorResponse
from lootcase.config import settings

USER = {settings.USER_ID_HEADER: "player-1"}


@pytest.fixture()
def api(make_service, catalog, bronze_case):
    """App with the ledger routers and services on app.state"""
    app = FastAPI()
    app.include_router(cases_router)
    app.include_router(inventory_router)
    app.include_router(profile_router)
    app.state.catalog_service = catalog
    # pistol, sticker, knife, ...
    app.state.case_service = make_service([0.499, 0.0, 0.9], starting_balance=1000)

    case, items = bronze_case
    return TestClient(app), case, items


class TestCatalogEndpoints:
    def test_list_cases(self, api) -> None:
        client, case, _ = api
        response = client.get("/api/cases")
        assert response.status_code == 200
        data = response.json()
        assert data[0]["id"] == case.id
        assert [i["chance"] for i in data[0]["items"]] == [1, 1, 2]

    def test_get_case(self, api) -> None:
        client, case, _ = api
        response = client.get(f"/api/cases/{case.id}")
        assert response.status_code == 200
        assert response.json()["description"] == "Cheap and reliable"

    def test_get_case_missing(self, api) -> None:
        client, _, _ = api
        response = client.get("/api/cases/999")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "case_not_found"


class TestOpenEndpoint:
    def test_open(self, api) -> None:
        client, case, (_, pistol, _) = api
        response = client.post(f"/api/cases/{case.id}/open", headers=USER)
        assert response.status_code == 200
        data = response.json()
        assert data["item"]["id"] == pistol.id
        assert data["item"]["rarity"] == "rare"
        assert data["user_item"]["is_sold"] is False
        assert data["balance"] == 900
        assert data["profile"]["total_opened"] == 1
        assert data["profile"]["best_drop"] == 300

    def test_requires_identity(self, api) -> None:
        client, case, _ = api
        response = client.post(f"/api/cases/{case.id}/open")
        assert response.status_code == 401

    def test_unknown_case(self, api) -> None:
        client, _, _ = api
        response = client.post("/api/cases/999/open", headers=USER)
        assert response.status_code == 404

    def test_insufficient_funds(self, api) -> None:
        client, case, _ = api
        for _ in range(10):
            assert client.post(f"/api/cases/{case.id}/open", headers=USER).status_code == 200
        response = client.post(f"/api/cases/{case.id}/open", headers=USER)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "insufficient_funds"
        assert client.get("/api/profile", headers=USER).json()["balance"] == 0

    def test_misconfigured_case(self, api, catalog) -> None:
        client, _, _ = api
        empty = catalog.create_case("Empty Case", 10)
        response = client.post(f"/api/cases/{empty.id}/open", headers=USER)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "invalid_drop_table"


class TestInventoryEndpoints:
    def test_inventory_lists_unsold(self, api) -> None:
        client, case, _ = api
        client.post(f"/api/cases/{case.id}/open", headers=USER)
        response = client.get("/api/inventory", headers=USER)
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["item"]["price"] == 300

    def test_sell(self, api) -> None:
        client, case, _ = api
        opened = client.post(f"/api/cases/{case.id}/open", headers=USER).json()
        record_id = opened["user_item"]["id"]

        response = client.post(f"/api/inventory/{record_id}/sell", headers=USER)
        assert response.status_code == 200
        assert response.json() == {"balance": 1200, "sold_amount": 300}

        again = client.post(f"/api/inventory/{record_id}/sell", headers=USER)
        assert again.status_code == 404
        assert again.json()["detail"]["error"] == "item_not_found"

    def test_sell_other_users_item(self, api) -> None:
        client, case, _ = api
        opened = client.post(f"/api/cases/{case.id}/open", headers=USER).json()
        response = client.post(
            f"/api/inventory/{opened['user_item']['id']}/sell",
            headers={settings.USER_ID_HEADER: "player-2"},
        )
        assert response.status_code == 404

    def test_sell_all(self, api) -> None:
        client, case, _ = api
        for _ in range(3):
            client.post(f"/api/cases/{case.id}/open", headers=USER)

        response = client.post("/api/inventory/sell-all", headers=USER)
        assert response.status_code == 200
        assert response.json() == {
            "balance": 700 + 300 + 10 + 50000,
            "sold_count": 3,
            "total_amount": 50310,
        }

        again = client.post("/api/inventory/sell-all", headers=USER).json()
        assert again["sold_count"] == 0
        assert again["total_amount"] == 0
        assert client.get("/api/inventory", headers=USER).json() == []


class TestProfileEndpoint:
    def test_created_on_first_access(self, api) -> None:
        client, _, _ = api
        response = client.get("/api/profile", headers=USER)
        assert response.status_code == 200
        assert response.json() == {
            "user_id": "player-1",
            "balance": 1000,
            "total_opened": 0,
            "best_drop": 0,
        }

    def test_requires_identity(self, api) -> None:
        client, _, _ = api
        assert client.get("/api/profile").status_code == 401


class TestErrorPayloads:
    def test_errors_match_documented_model(self, api, catalog) -> None:
        client, case, _ = api
        empty = catalog.create_case("Empty Case", 10)
        failures = {
            401: client.post(f"/api/cases/{case.id}/open"),
            404: client.post("/api/cases/999/open", headers=USER),
            409: client.post(f"/api/cases/{empty.id}/open", headers=USER),
        }
        for status, response in failures.items():
            assert response.status_code == status
            body = ErrorResponse.model_validate(response.json())
            assert body.detail.error
            assert body.detail.message

    def test_openapi_describes_error_envelope(self, api) -> None:
        client, _, _ = api
        schema = client.app.openapi()
        open_op = schema["paths"]["/api/cases/{case_id}/open"]["post"]
        open_responses = open_op["responses"]
        assert (
            open_responses["404"]["content"]["application/json"]["schema"]["$ref"]
            == "#/components/schemas/ErrorResponse"
        )
        error_schema = schema["components"]["schemas"]["ErrorResponse"]
        assert list(error_schema["properties"]) == ["detail"]
        assert set(schema["components"]["schemas"]["ErrorDetail"]["properties"]) == {
            "error",
            "message",
        }
