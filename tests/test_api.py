"""
Tests for Counter API endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from web3.exceptions import ContractPanicError

from counter_api.config import Settings
from counter_api.intent import AMOUNT_ERROR
from counter_api.main import create_app


class TestHealthCheck:
    """Tests for /health endpoint."""

    def test_health_check_returns_ok(self, client):
        """Health check should return status ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_independent_of_chain(self, client, ledger):
        """Health does not touch the ledger."""
        ledger.read_error = ConnectionError("node down")
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestValue:
    """Tests for GET /value."""

    def test_value_is_decimal_string(self, client, ledger):
        ledger.value = 42
        response = client.get("/value")
        assert response.status_code == 200
        assert response.json() == {"success": True, "value": "42"}

    def test_value_beyond_double_precision(self, client, ledger):
        """Values above 2**53 must not lose precision."""
        ledger.value = 2**80 + 1
        response = client.get("/value")
        assert response.json()["value"] == str(2**80 + 1)

    def test_repeated_reads_identical(self, client, ledger):
        ledger.value = 7
        values = [client.get("/value").json()["value"] for _ in range(3)]
        assert values == ["7", "7", "7"]

    def test_read_failure_is_500(self, client, ledger):
        ledger.read_error = ConnectionError("connection refused to 10.0.0.1:8545")
        response = client.get("/value")
        assert response.status_code == 500
        data = response.json()
        assert data == {"success": False, "error": "Failed to read counter value"}


class TestIncrement:
    """Tests for POST /increment and /increment-by."""

    def test_increment(self, client, ledger):
        before = ledger.block
        response = client.post("/increment")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["transactionHash"].startswith("0x")
        assert int(data["blockNumber"]) >= before
        assert data["status"] == "success"
        assert "amount" not in data
        assert ledger.value == 1

    def test_increment_by(self, client, ledger):
        response = client.post("/increment-by", json={"amount": 5})
        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == "5"
        assert data["status"] == "success"
        assert ledger.value == 5

    def test_integral_float_accepted(self, client, ledger):
        response = client.post("/increment-by", json={"amount": 3.0})
        assert response.status_code == 200
        assert response.json()["amount"] == "3"
        assert ledger.value == 3

    def test_large_amount(self, client, ledger):
        amount = 2**64 + 3
        response = client.post("/increment-by", json={"amount": amount})
        assert response.status_code == 200
        assert response.json()["amount"] == str(amount)
        assert ledger.value == amount

    @pytest.mark.parametrize(
        "body",
        [
            {"amount": -1},
            {"amount": 0},
            {"amount": "3"},
            {"amount": 2.5},
            {"amount": True},
            {"amount": None},
            {"amount": 2**256},
            {},
        ],
    )
    def test_invalid_amount_rejected(self, client, ledger, body):
        """Bad amounts are 400 and never reach the chain."""
        response = client.post("/increment-by", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": AMOUNT_ERROR}
        assert ledger.submitted == []

    def test_missing_body_rejected(self, client, ledger):
        response = client.post("/increment-by")
        assert response.status_code == 400
        assert response.json()["error"] == AMOUNT_ERROR
        assert ledger.submitted == []

    def test_submit_failure_hides_transport_text(self, client, ledger):
        ledger.submit_error = ConnectionError("connection refused to 10.0.0.1:8545")
        response = client.post("/increment")
        assert response.status_code == 500
        data = response.json()
        assert data == {"success": False, "error": "Failed to increment counter"}

    def test_overflowing_increment_is_500(self, client, ledger):
        """Arithmetic panic on an increment is a write failure, not an underflow."""
        ledger.value = 1
        ledger.submit_error = ContractPanicError(
            "Panic error 0x11: Arithmetic operation results in underflow or overflow.",
            data="0x4e487b71" + f"{0x11:064x}",
        )
        response = client.post("/increment-by", json={"amount": 2**256 - 1})
        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"].startswith("Failed to increment counter by amount: ")
        assert ledger.value == 1

    def test_confirmation_failure_is_500(self, client, ledger):
        ledger.confirm_error = TimeoutError("receipt wait timed out")
        response = client.post("/increment-by", json={"amount": 2})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to increment counter by amount"


class TestDecrement:
    """Tests for POST /decrement and /decrement-by."""

    def test_decrement(self, client, ledger):
        ledger.value = 2
        response = client.post("/decrement")
        assert response.status_code == 200
        assert response.json()["status"] == "success"
        assert ledger.value == 1

    def test_decrement_at_zero_is_underflow(self, client, ledger):
        response = client.post("/decrement")
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Cannot decrement: counter is already at zero",
        }
        assert ledger.value == 0

    def test_decrement_by_below_zero(self, client, ledger):
        ledger.value = 3
        response = client.post("/decrement-by", json={"amount": 5})
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot decrement by 5: counter would go below zero"
        assert ledger.value == 3

    def test_decrement_by_invalid_amount(self, client, ledger):
        ledger.value = 10
        response = client.post("/decrement-by", json={"amount": "3"})
        assert response.status_code == 400
        assert response.json()["error"] == AMOUNT_ERROR
        assert ledger.submitted == []

    def test_included_revert_is_underflow(self, ledger):
        """A mined-but-reverted decrement maps to 400, not 500."""
        from counter_api.bridge import CounterBridge

        ledger.simulate = False
        app = create_app(settings=Settings(_env_file=None), bridge=CounterBridge(ledger, ledger))
        response = TestClient(app).post("/decrement")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot decrement: counter is already at zero"
        assert len(ledger.submitted) == 1


class TestConservation:
    """Counter value equals the signed sum of applied amounts."""

    def test_sequence_of_writes(self, client, ledger):
        for amount in range(1, 6):
            assert client.post("/increment-by", json={"amount": amount}).status_code == 200
        for amount in range(1, 4):
            assert client.post("/decrement-by", json={"amount": amount}).status_code == 200
        assert client.post("/increment").status_code == 200
        assert client.post("/decrement").status_code == 200

        expected = sum(range(1, 6)) - sum(range(1, 4))
        assert client.get("/value").json()["value"] == str(expected)
        assert sum(ledger.increments) - sum(ledger.decrements) == expected

    def test_block_numbers_increase(self, client, ledger):
        blocks = []
        for _ in range(3):
            before = ledger.block
            block = int(client.post("/increment").json()["blockNumber"])
            assert block >= before
            blocks.append(block)
        assert blocks == sorted(blocks)


class TestStartup:
    """Tests for app wiring."""

    def test_no_bridge_is_503(self):
        """Without lifespan startup there is no chain client."""
        app = create_app(settings=Settings(_env_file=None))
        response = TestClient(app).get("/value")
        assert response.status_code == 503
        assert response.json()["success"] is False

    def test_unknown_path_uses_error_envelope(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found"}

    def test_wrong_method_uses_error_envelope(self, client, ledger):
        response = client.get("/increment")
        assert response.status_code == 405
        assert response.json() == {"success": False, "error": "Method Not Allowed"}
        assert ledger.submitted == []

    def test_health_without_bridge(self):
        app = create_app(settings=Settings(_env_file=None))
        response = TestClient(app).get("/health")
        assert response.status_code == 200


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
