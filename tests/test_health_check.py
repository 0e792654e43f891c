from modules.core.models import OutboxEvent


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_health_check_reports_notification_backlog(self, client):
        OutboxEvent.objects.create(
            event_type="OrderCreated",
            payload={},
            aggregate_id="order-1",
            topic="orders",
        )
        data = client.get("/health").json()
        assert data["services"]["outbox"] == {"status": "up", "pending_events": 1}

    def test_backlog_never_fails_the_check(self, client, monkeypatch):
        backlog = 3
        monkeypatch.setattr("modules.core.views.OUTBOX_BACKLOG_WARNING", backlog)
        for i in range(backlog):
            OutboxEvent.objects.create(
                event_type="OrderCreated",
                payload={},
                aggregate_id=f"order-{i}",
                topic="orders",
            )
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["outbox"]["status"] == "lagging"
