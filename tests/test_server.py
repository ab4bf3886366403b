"""Tests for the FastAPI service."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from dbt_dispatch.catalog import Catalog, entry
from dbt_dispatch.config import Settings
from dbt_dispatch.dispatch import DispatchResult, GitHubDispatchError
from dbt_dispatch.plan import BuildPlan
from dbt_dispatch.server import create_app


class FakeDispatcher:
    """Records plans instead of calling GitHub."""

    def __init__(self, error: Exception | None = None) -> None:
        self.plans: list[BuildPlan] = []
        self.error = error

    def dispatch(self, plan: BuildPlan, dry_run: bool = False) -> DispatchResult:
        if self.error is not None:
            raise self.error
        self.plans.append(plan)
        return DispatchResult(
            dataset_id=plan.dataset_id,
            file_count=len(plan.files),
            status_code=204,
            message=f"Dispatched {len(plan.files)} files",
        )


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def client(dispatcher: FakeDispatcher) -> TestClient:
    return TestClient(create_app(Settings(), dispatcher=dispatcher))


class TestHealth:
    """Tests for the health check."""

    def test_healthz(self, client: TestClient) -> None:
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.text == "ok"


class TestPushEndpoint:
    """Tests for POST / (Pub/Sub push)."""

    def test_dispatches_plan(
        self, client: TestClient, dispatcher: FakeDispatcher, push_body: Any
    ) -> None:
        body = push_body(
            "projects/orcaanalytics/datasets/facebook_ads__clientone",
            authenticationInfo={"principalEmail": "loader@example.com"},
        )
        response = client.post("/", json=body)

        assert response.status_code == 204
        assert len(dispatcher.plans) == 1
        plan = dispatcher.plans[0]
        assert plan.dataset_id == "facebook_ads__clientone"
        assert plan.vars.project == "orcaanalytics"
        assert len(plan.files) == 2

    def test_unknown_namespace_is_noop(
        self, client: TestClient, dispatcher: FakeDispatcher, push_body: Any
    ) -> None:
        response = client.post(
            "/", json=push_body("projects/p/datasets/unknown_source__clientX")
        )

        assert response.status_code == 204
        assert dispatcher.plans == []

    def test_unrecognised_id_is_noop(
        self, client: TestClient, dispatcher: FakeDispatcher, push_body: Any
    ) -> None:
        response = client.post("/", json=push_body("projects/p/datasets/missingSeparator"))

        assert response.status_code == 204
        assert dispatcher.plans == []

    def test_empty_body_is_noop(self, client: TestClient, dispatcher: FakeDispatcher) -> None:
        response = client.post("/", json={})

        assert response.status_code == 204
        assert dispatcher.plans == []

    def test_missing_resource_name_is_noop(
        self, client: TestClient, dispatcher: FakeDispatcher, push_body: Any
    ) -> None:
        response = client.post("/", json=push_body(None))

        assert response.status_code == 204
        assert dispatcher.plans == []

    def test_undecodable_data(self, client: TestClient, dispatcher: FakeDispatcher) -> None:
        response = client.post("/", json={"message": {"data": "%%%"}})

        assert response.status_code == 400
        assert dispatcher.plans == []

    def test_dispatch_failure_is_500(self, push_body: Any) -> None:
        failing = FakeDispatcher(error=GitHubDispatchError("boom", status_code=502))
        client = TestClient(create_app(Settings(), dispatcher=failing))

        response = client.post("/", json=push_body("projects/p/datasets/pacing__acme"))

        assert response.status_code == 500

    def test_project_from_settings(self, dispatcher: FakeDispatcher, push_body: Any) -> None:
        client = TestClient(create_app(Settings(project="acme-prod"), dispatcher=dispatcher))

        client.post("/", json=push_body("projects/p/datasets/pacing__acme"))

        assert dispatcher.plans[0].vars.project == "acme-prod"


class TestPlanRoutes:
    """Tests for the read-only inspection routes."""

    def test_preview_plan(self, client: TestClient, dispatcher: FakeDispatcher) -> None:
        response = client.get("/plans/google_analytics_4__storeA")

        assert response.status_code == 200
        data = response.json()
        assert data["datasetId"] == "google_analytics_4__storeA"
        assert data["files"][0]["path"] == (
            "models/google_analytics_4/sessionscvr/google_analytics_4__storeA_sessionscvr.sql"
        )
        assert data["vars"]["project"] == "orcaanalytics"
        assert dispatcher.plans == []

    def test_preview_plan_project_override(self, client: TestClient) -> None:
        response = client.get("/plans/pacing__acme", params={"project": "other"})

        assert response.json()["vars"]["project"] == "other"

    def test_preview_no_plan(self, client: TestClient) -> None:
        response = client.get("/plans/unknown_source__clientX")

        assert response.status_code == 404

    def test_catalog_listing(self, client: TestClient) -> None:
        response = client.get("/catalog")

        assert response.status_code == 200
        listing = {item["namespace"]: item["entries"] for item in response.json()}
        assert listing["shopify"] == 16
        assert listing["pacing"] == 1

    def test_custom_catalog(self, dispatcher: FakeDispatcher) -> None:
        catalog = Catalog({"custom": [entry("", "tpl")]})
        client = TestClient(create_app(Settings(), dispatcher=dispatcher, catalog=catalog))

        assert client.get("/catalog").json() == [{"namespace": "custom", "entries": 1}]
        assert client.get("/plans/pacing__acme").status_code == 404
