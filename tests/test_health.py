def test_health_check(client):
    resp = client.get("/health/check")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["database"] == "ok"


def test_health_check_reports_provider_config(client):
    data = client.get("/health/check").json()

    assert data["stripe_env"] == "test"
    assert data["stripe_configured"] is True
    assert data["wise_webhook_configured"] is True
    assert data["wise_checkout_configured"] is False
    assert data["smtp_configured"] is False
