"""
Tests for usage reporting and the admin cost ledger.
"""


class TestUsage:
    def test_usage_stats(self, client, pro_headers, use):
        use("pro-user", ai_tokens=1_234, tts_chars=56)

        response = client.get("/api/usage", headers=pro_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "pro"
        assert data["aiTokens"] == {"used": 1_234, "limit": 50_000}
        assert data["ttsChars"] == {"used": 56, "limit": 15_000}
        assert data["degradationLevel"] == "none"
        assert len(data["date"]) == 10

    def test_anonymous_usage_is_shared(self, client, use):
        use("anonymous", ai_tokens=10)
        assert client.get("/api/usage").json()["aiTokens"]["used"] == 10


class TestAdminCost:
    def test_admin_sees_status(self, client, admin_headers, spend):
        spend(42)

        response = client.get("/api/admin/cost", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["budget"] == 100.0
        assert data["totalCost"] == 42.0
        assert data["percentUsed"] == 42.0
        assert data["degradationLevel"] == "none"
        assert data["breakdown"] == {"ai": 42.0, "tts": 0.0, "stt": 0.0}

    def test_non_admin_refused(self, client, premium_headers):
        response = client.get("/api/admin/cost", headers=premium_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Access denied"}

    def test_anonymous_refused(self, client):
        response = client.get("/api/admin/cost")
        assert response.status_code == 401
