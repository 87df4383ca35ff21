"""Tests for the portfolio HTTP API."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from stockwatch.core.exceptions import AccountingError

VALID_BODY = {
    "symbol": "AAPL",
    "shares": 10,
    "purchasePrice": 150.0,
    "stopLoss": 130.0,
    "notes": "Long term",
    "companyName": "Apple Inc.",
    "sector": "Technology",
}


class TestStatus:
    """Test the status endpoint."""

    def test_status(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["api"] == "Stock Portfolio API"
        assert body["data"]["status"] == "healthy"
        assert "X-Request-ID" in response.headers


class TestGetPortfolio:
    """Test listing the portfolio."""

    def test_empty_portfolio(self, client):
        response = client.get("/api/portfolio")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["positions"] == []
        assert data["summary"]["total_positions"] == 0
        assert "lastUpdated" in data

    def test_lists_added_positions(self, client):
        client.post("/api/portfolio", json=VALID_BODY)

        data = client.get("/api/portfolio").json()["data"]

        assert [p["symbol"] for p in data["positions"]] == ["AAPL"]
        assert data["summary"]["total_invested"] == 1500.0


class TestAddPosition:
    """Test POST /portfolio."""

    def test_add_returns_201(self, client):
        response = client.post("/api/portfolio", json=VALID_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Position added successfully"
        assert body["data"]["symbol"] == "AAPL"
        assert body["data"]["stop_loss_price"] == 130.0

    def test_minimal_body(self, client):
        response = client.post(
            "/api/portfolio", json={"symbol": "BRK", "shares": 1, "purchasePrice": 400}
        )

        assert response.status_code == 201

    def test_invalid_fields_return_400(self, client):
        response = client.post(
            "/api/portfolio",
            json={"symbol": "msft", "shares": 0, "purchasePrice": 1_000_000, "positionWeight": 150},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Request validation failed"
        assert set(body["details"]["field_errors"]) == {
            "symbol",
            "shares",
            "purchasePrice",
            "positionWeight",
        }

    def test_missing_fields_return_400(self, client):
        response = client.post("/api/portfolio", json={"symbol": "AAPL"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_text_fields_are_sanitized(self, client):
        body = dict(VALID_BODY, notes="<script>alert('x')</script>")

        data = client.post("/api/portfolio", json=body).json()["data"]

        assert data["notes"] == "scriptalert(x)/script"

    def test_database_failure_returns_generic_500(self, client):
        error = OperationalError("INSERT", {}, Exception("disk I/O error at /var/db"))
        with patch(
            "stockwatch.ormdb.repositories.portfolio.PortfolioRepository._record_transaction",
            side_effect=error,
        ):
            response = client.post("/api/portfolio", json=VALID_BODY)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Failed to add position"
        assert "disk" not in response.text

        # Nothing from the failed add was kept
        assert client.get("/api/portfolio").json()["data"]["positions"] == []


class TestRemovePosition:
    """Test DELETE /portfolio/{id}."""

    def test_remove_existing(self, client):
        position_id = client.post("/api/portfolio", json=VALID_BODY).json()["data"]["id"]

        response = client.delete(f"/api/portfolio/{position_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Position removed successfully"
        assert client.get("/api/portfolio").json()["data"]["positions"] == []

    def test_remove_missing_returns_404(self, client):
        response = client.delete("/api/portfolio/12345")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Position not found"


class TestAlertsAndReport:
    """Test alert evaluation and report download."""

    def test_alerts_over_stored_positions(self, client):
        client.post("/api/portfolio", json=VALID_BODY)

        data = client.get("/api/portfolio/alerts").json()["data"]

        kinds = [a["kind"] for a in data["alerts"]]
        # A single holding is the whole portfolio
        assert kinds == ["over-weight", "informational"]
        assert data["evaluatedCount"] == 1
        assert data["skippedCount"] == 0

    def test_report_download(self, client):
        client.post("/api/portfolio", json=VALID_BODY)

        response = client.get("/api/portfolio/report", params={"benchmark": 2.5})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="raport-tygodniowy-')
        assert "Benchmark return: +2.50%" in response.text
        assert "Rebalance needed: YES" in response.text

    def test_report_uses_default_benchmark(self, client):
        response = client.get("/api/portfolio/report")

        assert response.status_code == 200
        assert "Benchmark return: +0.00%" in response.text

    def test_domain_error_in_route_returns_generic_500(self, client):
        error = AccountingError("Cannot compute percent gain for BBB: got 0.0")
        with patch("stockwatch.webapi.routers.portfolio.risk.evaluate", side_effect=error):
            response = client.get("/api/portfolio/alerts")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "An unexpected error occurred"
        assert "BBB" not in response.text
