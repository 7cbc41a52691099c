"""Integration tests for the planning endpoints."""

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.app.api.routes.plans import get_client
from backend.app.llm.client import DeterministicStubClient
from backend.app.main import app


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client wired to the deterministic stub LLM."""
    app.dependency_overrides[get_client] = lambda: DeterministicStubClient()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def llm() -> Iterator[MagicMock]:
    """Mock LLM client whose complete_json is an AsyncMock."""
    mock = MagicMock()
    mock.complete_json = AsyncMock(return_value={})
    app.dependency_overrides[get_client] = lambda: mock
    yield mock
    app.dependency_overrides.clear()


def _day(day: int, price: str) -> dict[str, Any]:
    return {
        "day": day,
        "date": f"2025-04-0{day}",
        "area": "Kyoto",
        "theme": "temples",
        "schedule": [{"time": "10:00", "activity_name": f"Stop {day}", "price": price}],
    }


class TestParsePrice:
    """POST /api/parse-price."""

    def test_default_mode_is_mid(self, client: TestClient) -> None:
        response = client.post("/api/parse-price", json={"price": "1,500円〜3,000円"})

        assert response.status_code == 200
        assert response.json() == {"price": "1,500円〜3,000円", "mode": "mid", "amount": 2250}

    def test_upper_mode(self, client: TestClient) -> None:
        response = client.post("/api/parse-price", json={"price": "1,500円〜", "mode": "upper"})

        assert response.json()["amount"] == 1950

    def test_oversized_number_is_zero(self, client: TestClient) -> None:
        response = client.post("/api/parse-price", json={"price": "〜" + "9" * 400 + "円"})

        assert response.status_code == 200
        assert response.json()["amount"] == 0

    def test_unknown_mode_rejected(self, client: TestClient) -> None:
        response = client.post("/api/parse-price", json={"price": "100円", "mode": "max"})

        assert response.status_code == 422


class TestNormalizeDayPlan:
    """POST /api/normalize-day-plan."""

    def test_amounts_and_total(self, client: TestClient) -> None:
        body = _day(1, "〜3,000円")
        body["schedule"].append({"activity_name": "Garden", "price": "無料"})

        response = client.post("/api/normalize-day-plan", json=body)

        assert response.status_code == 200
        data = response.json()
        assert [item["price_amount"] for item in data["schedule"]] == [2100, 0]
        assert data["total_cost"] == 2100
        assert data["area"] == "Kyoto"


class TestRebudgetDay:
    """POST /api/rebudget-day."""

    def test_under_cap_does_not_call_llm(self, llm: MagicMock) -> None:
        response = TestClient(app).post(
            "/api/rebudget-day", json={"day_plan": _day(1, "2,000円"), "per_day_budget": 3000}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "satisfied"
        assert data["total"] == 2000
        llm.complete_json.assert_not_awaited()

    def test_over_cap_is_revised(self, llm: MagicMock) -> None:
        llm.complete_json.return_value = {"day_plan": _day(1, "2,500円")}

        response = TestClient(app).post(
            "/api/rebudget-day", json={"day_plan": _day(1, "5,000円"), "per_day_budget": 3000}
        )

        data = response.json()
        assert data["status"] == "converged"
        assert data["total"] == 2500
        assert data["attempts"] == 1
        assert llm.complete_json.await_args.kwargs["agent"] == "day-budget"

    def test_max_attempts_validated(self, client: TestClient) -> None:
        response = client.post(
            "/api/rebudget-day", json={"day_plan": _day(1, "100円"), "max_attempts": 9}
        )

        assert response.status_code == 422


class TestFinalizeBudget:
    """POST /api/finalize-budget."""

    def test_in_window_returns_unchanged(self, llm: MagicMock) -> None:
        response = TestClient(app).post(
            "/api/finalize-budget",
            json={"itinerary": [_day(1, "9,000円"), _day(2, "9,000円")], "per_day_budget": 10000},
        )

        data = response.json()
        assert data["status"] == "satisfied"
        assert data["trip_total"] == 18000
        assert data["window"]["min_target"] == 16000
        llm.complete_json.assert_not_awaited()

    def test_over_budget_single_revision(self, llm: MagicMock) -> None:
        llm.complete_json.return_value = {"itinerary": [_day(1, "9,000円"), _day(2, "9,500円")]}

        response = TestClient(app).post(
            "/api/finalize-budget",
            json={
                "itinerary": [_day(1, "9,000円"), _day(2, "14,000円")],
                "per_day_budget": 10000,
            },
        )

        data = response.json()
        assert data["status"] == "converged"
        assert data["trip_total"] == 18500
        assert llm.complete_json.await_count == 1

    def test_custom_ratios(self, llm: MagicMock) -> None:
        response = TestClient(app).post(
            "/api/finalize-budget",
            json={
                "itinerary": [_day(1, "5,000円")],
                "per_day_budget": 10000,
                "target_min_ratio": 0.5,
            },
        )

        data = response.json()
        assert data["status"] == "satisfied"
        assert data["window"]["min_target"] == 5000

    def test_no_budget_skipped(self, llm: MagicMock) -> None:
        response = TestClient(app).post(
            "/api/finalize-budget", json={"itinerary": [_day(1, "50,000円")]}
        )

        data = response.json()
        assert data["status"] == "skipped"
        assert data["window"] is None


class TestCreateDayPlans:
    """POST /api/create-day-plans."""

    def test_stub_plans_every_day(self, client: TestClient) -> None:
        response = client.post(
            "/api/create-day-plans",
            json={
                "days": [{"day": 1, "area": "Gion"}, {"day": 2, "area": "Arashiyama"}],
                "per_day_budget": 5000,
                "destination": "Kyoto",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["destination"] == "Kyoto"
        assert [r["ok"] for r in data["results"]] == [True, True]
        assert data["trip_total"] == 9000
        assert data["trip"]["status"] == "satisfied"
        assert data["itinerary"][0]["schedule"][0]["url"].startswith("https://")

    def test_empty_days_rejected(self, client: TestClient) -> None:
        response = client.post("/api/create-day-plans", json={"days": []})

        assert response.status_code == 400

    def test_batch_input_accepted_for_days(self, client: TestClient) -> None:
        response = client.post(
            "/api/create-day-plans",
            json={"batchInput": [{"day": 1, "area": "Gion"}], "finalize": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["day"] for r in data["results"]] == [1]
        assert data["trip"] is None
