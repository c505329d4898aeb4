"""Unit tests for delivery log and status endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.factories import EventFactory


@pytest.fixture
def delivery_id(loaded_client: TestClient) -> str:
    response = loaded_client.post("/v1/events", json=EventFactory.payload())
    return response.json()["outcomes"][0]["deliveryId"]


class TestListDeliveries:
    """Tests for GET /v1/deliveries."""

    def test_lists_newest_first_with_pagination(self, loaded_client: TestClient) -> None:
        for recipient in ("user-1", "user-2", "user-3"):
            loaded_client.post("/v1/events", json=EventFactory.payload(recipient_id=recipient))

        response = loaded_client.get("/v1/deliveries", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["limit"] == 2
        assert data["has_more"] is True
        assert len(data["items"]) == 2

    def test_filters_by_recipient_and_status(
        self, loaded_client: TestClient, delivery_id: str
    ) -> None:
        response = loaded_client.get(
            "/v1/deliveries", params={"recipient_id": "user-1", "status": "SENT"}
        )

        items = response.json()["items"]
        assert [i["id"] for i in items] == [delivery_id]
        assert items[0]["providerMessageId"] == "fcm-1"

        response = loaded_client.get("/v1/deliveries", params={"status": "FAILED"})
        assert response.json()["total"] == 0

    def test_default_page_size_from_settings(self, loaded_client: TestClient) -> None:
        assert loaded_client.get("/v1/deliveries").json()["limit"] == 20

    def test_naive_date_bounds_are_accepted(
        self, loaded_client: TestClient, delivery_id: str
    ) -> None:
        response = loaded_client.get(
            "/v1/deliveries", params={"created_from": "2000-01-01T00:00:00"}
        )

        assert response.status_code == 200
        assert [i["id"] for i in response.json()["items"]] == [delivery_id]

        response = loaded_client.get("/v1/deliveries", params={"created_to": "2000-01-01T00:00:00"})
        assert response.json()["total"] == 0


class TestGetDelivery:
    """Tests for GET /v1/deliveries/{id}."""

    def test_get_existing(self, loaded_client: TestClient, delivery_id: str) -> None:
        response = loaded_client.get(f"/v1/deliveries/{delivery_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "SENT"
        assert data["title"] == "Hello Ada"
        assert data["ruleId"] == "rule_retention_7day"

    def test_get_missing_is_404(self, client: TestClient) -> None:
        response = client.get(f"/v1/deliveries/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "DELIVERY_NOT_FOUND"


class TestUpdateStatus:
    """Tests for POST /v1/deliveries/{id}/status."""

    def test_forward_transition_applies(
        self, loaded_client: TestClient, delivery_id: str
    ) -> None:
        response = loaded_client.post(
            f"/v1/deliveries/{delivery_id}/status", json={"status": "DELIVERED"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "applied"
        assert data["delivery"]["status"] == "DELIVERED"
        assert data["delivery"]["deliveredAt"] is not None

    def test_backward_transition_is_acknowledged_unchanged(
        self, loaded_client: TestClient, delivery_id: str
    ) -> None:
        loaded_client.post(f"/v1/deliveries/{delivery_id}/status", json={"status": "OPENED"})

        response = loaded_client.post(
            f"/v1/deliveries/{delivery_id}/status", json={"status": "DELIVERED"}
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "rejected"
        assert response.json()["delivery"]["status"] == "OPENED"

    def test_duplicate(self, loaded_client: TestClient, delivery_id: str) -> None:
        response = loaded_client.post(
            f"/v1/deliveries/{delivery_id}/status", json={"status": "SENT"}
        )
        assert response.json()["outcome"] == "duplicate"

    def test_unknown_record_is_404(self, client: TestClient) -> None:
        response = client.post(f"/v1/deliveries/{uuid4()}/status", json={"status": "SENT"})
        assert response.status_code == 404

    def test_unknown_status_is_400(self, loaded_client: TestClient, delivery_id: str) -> None:
        response = loaded_client.post(
            f"/v1/deliveries/{delivery_id}/status", json={"status": "DISMISSED"}
        )
        assert response.status_code == 400


class TestProviderCallback:
    """Tests for POST /v1/deliveries/callbacks/{channel}."""

    def test_callback_by_provider_message_id(
        self, loaded_client: TestClient, delivery_id: str
    ) -> None:
        response = loaded_client.post(
            "/v1/deliveries/callbacks/PUSH",
            json={"providerMessageId": "fcm-1", "status": "BOUNCED", "error": "token expired"},
        )

        assert response.status_code == 200
        delivery = response.json()["delivery"]
        assert delivery["id"] == delivery_id
        assert delivery["status"] == "BOUNCED"
        assert delivery["error"] == "token expired"

    def test_unknown_message_id_is_404(self, loaded_client: TestClient) -> None:
        response = loaded_client.post(
            "/v1/deliveries/callbacks/EMAIL",
            json={"providerMessageId": "nope", "status": "DELIVERED"},
        )
        assert response.status_code == 404

    def test_early_callback_succeeds_on_retry(self, loaded_client: TestClient) -> None:
        early = loaded_client.post(
            "/v1/deliveries/callbacks/PUSH",
            json={"providerMessageId": "fcm-1", "status": "DELIVERED"},
        )
        assert early.status_code == 404
        assert early.json()["error"]["code"] == "DELIVERY_NOT_FOUND"

        loaded_client.post("/v1/events", json=EventFactory.payload())
        retry = loaded_client.post(
            "/v1/deliveries/callbacks/PUSH",
            json={"providerMessageId": "fcm-1", "status": "DELIVERED"},
        )

        assert retry.status_code == 200
        assert retry.json()["outcome"] == "applied"

    def test_retryable_404_is_documented(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()

        responses = schema["paths"]["/v1/deliveries/callbacks/{channel}"]["post"]["responses"]
        assert "retry" in responses["404"]["description"]
