import pytest
from datetime import timedelta

from dutrel.core.clock import utcnow


@pytest.fixture
def autopay_bucket(client, test_household, member_headers):
    response = client.post(
        "/api/v1/buckets",
        json={
            "householdId": test_household.id,
            "name": "Phone",
            "type": "INDIVIDUAL",
            "autopayEnabledAt": utcnow().isoformat(),
        },
        headers=member_headers,
    )
    assert response.status_code == 201, response.json()
    return response.json()["bucket"]


def _verify_identity(client, headers):
    response = client.post(
        "/api/v1/identity",
        json={"legalFullName": "Morgan Member", "forceVerify": True},
        headers=headers,
    )
    assert response.status_code == 200, response.json()
    return response.json()["identity"]


def _paid_obligation(client, bucket_id, headers, due_in_days=5):
    obligation = client.post(
        "/api/v1/obligations",
        json={
            "bucketId": bucket_id,
            "amountCents": 3900,
            "dueDate": (utcnow() + timedelta(days=due_in_days)).isoformat(),
        },
        headers=headers,
    ).json()["obligation"]
    receipt = client.post(
        "/api/v1/receipts",
        json={"obligationId": obligation["id"], "fileUrl": "https://x/phone.pdf"},
        headers=headers,
    ).json()["receipt"]
    client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=headers)
    return obligation


@pytest.mark.integration
class TestIdentityEndpoints:
    """Integration tests for /api/v1/identity"""

    def test_no_identity_yet(self, client, member_headers):
        response = client.get("/api/v1/identity", headers=member_headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "identity": None}

    def test_upsert_pending(self, client, member_user, member_headers):
        response = client.post(
            "/api/v1/identity",
            json={"legalFullName": "Morgan Member", "ssnLast4": "123-4", "method": "KBA"},
            headers=member_headers,
        )

        assert response.status_code == 200
        identity = response.json()["identity"]
        assert identity["userId"] == member_user.id
        assert identity["status"] == "PENDING"
        assert identity["ssnLast4"] == "1234"
        assert identity["method"] == "KBA"
        assert identity["country"] == "US"

        fetched = client.get("/api/v1/identity", headers=member_headers).json()["identity"]
        assert fetched["id"] == identity["id"]

    def test_unusable_dob_timestamp_is_dropped(self, client, member_headers):
        response = client.post(
            "/api/v1/identity",
            json={"legalFullName": "Morgan Member", "dob": 1e20},
            headers=member_headers,
        )

        assert response.status_code == 200
        assert response.json()["identity"]["dob"] is None

    def test_force_verify(self, client, member_headers):
        identity = _verify_identity(client, member_headers)

        assert identity["status"] == "VERIFIED"
        assert identity["verifiedAt"] is not None


@pytest.mark.integration
class TestCreditEndpoints:
    """Integration tests for /api/v1/credit"""

    def test_enable_requires_verified_identity(self, client, autopay_bucket, member_headers):
        response = client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_enable(self, client, autopay_bucket, member_headers):
        _verify_identity(client, member_headers)

        response = client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)

        assert response.status_code == 200
        bucket = response.json()["bucket"]
        assert bucket["creditReportingEnabled"] is True
        assert bucket["creditReportingStatus"] == "ACTIVE"
        me = client.get("/api/v1/users/me", headers=member_headers).json()["user"]
        assert me["creditReportingEnabled"] is True

    def test_enable_forbidden_for_plain_member_on_others_bucket(
        self, client, test_household, payer_headers, member_headers
    ):
        bucket = client.post(
            "/api/v1/buckets",
            json={"householdId": test_household.id, "name": "Car", "type": "INDIVIDUAL", "autopayEnabledAt": utcnow().isoformat()},
            headers=payer_headers,
        ).json()["bucket"]

        response = client.post("/api/v1/credit/enable", json={"bucketId": bucket["id"]}, headers=member_headers)

        assert response.status_code == 403

    def test_prepare_with_nothing_eligible_is_draft(self, client, autopay_bucket, member_headers):
        _verify_identity(client, member_headers)
        client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)

        response = client.post(
            "/api/v1/credit/batch/prepare", json={"bucketId": autopay_bucket["id"]}, headers=member_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["itemsCreated"] == 0
        assert data["batch"]["status"] == "DRAFT"
        assert data["batch"]["items"] == []

        submit = client.post(
            "/api/v1/credit/batch/submit", json={"batchId": data["batch"]["id"]}, headers=member_headers
        )
        assert submit.status_code == 400
        assert submit.json()["error"] == "VALIDATION_ERROR"

    def test_prepare_and_submit(self, client, autopay_bucket, member_headers):
        _verify_identity(client, member_headers)
        client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)
        on_time = _paid_obligation(client, autopay_bucket["id"], member_headers)
        _paid_obligation(client, autopay_bucket["id"], member_headers, due_in_days=-2)

        prepared = client.post(
            "/api/v1/credit/batch/prepare", json={"bucketId": autopay_bucket["id"]}, headers=member_headers
        ).json()

        assert prepared["itemsCreated"] == 1
        assert prepared["batch"]["status"] == "READY"
        assert [i["obligationId"] for i in prepared["batch"]["items"]] == [on_time["id"]]
        queued = client.get(f"/api/v1/obligations/{on_time['id']}", headers=member_headers).json()["obligation"]
        assert queued["reportingState"] == "QUEUED"

        submitted = client.post(
            "/api/v1/credit/batch/submit", json={"batchId": prepared["batch"]["id"]}, headers=member_headers
        )

        assert submitted.status_code == 200
        data = submitted.json()
        assert data["batch"]["status"] == "SUBMITTED"
        assert data["itemsUpdated"] == 1
        assert data["obligationsUpdated"] == 1
        reported = client.get(f"/api/v1/obligations/{on_time['id']}", headers=member_headers).json()["obligation"]
        assert reported["reportingState"] == "REPORTED"
        assert reported["reportingProviderRef"] == f"mock:{prepared['batch']['id']}"

        again = client.post(
            "/api/v1/credit/batch/submit", json={"batchId": prepared["batch"]["id"]}, headers=member_headers
        )
        assert again.status_code == 400
        fetched = client.get(f"/api/v1/credit/batches/{prepared['batch']['id']}", headers=member_headers).json()
        assert all(item["status"] == "SUBMITTED" for item in fetched["batch"]["items"])

    def test_reported_obligation_is_not_queued_twice(self, client, autopay_bucket, member_headers):
        _verify_identity(client, member_headers)
        client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)
        _paid_obligation(client, autopay_bucket["id"], member_headers)
        first = client.post(
            "/api/v1/credit/batch/prepare", json={"bucketId": autopay_bucket["id"]}, headers=member_headers
        ).json()
        client.post("/api/v1/credit/batch/submit", json={"batchId": first["batch"]["id"]}, headers=member_headers)

        second = client.post(
            "/api/v1/credit/batch/prepare", json={"bucketId": autopay_bucket["id"]}, headers=member_headers
        ).json()

        assert second["itemsCreated"] == 0
        assert second["batch"]["status"] == "DRAFT"

    def test_reopen_pulls_queued_obligation_from_batch(self, client, autopay_bucket, member_headers):
        _verify_identity(client, member_headers)
        client.post("/api/v1/credit/enable", json={"bucketId": autopay_bucket["id"]}, headers=member_headers)
        obligation = _paid_obligation(client, autopay_bucket["id"], member_headers)
        prepared = client.post(
            "/api/v1/credit/batch/prepare", json={"bucketId": autopay_bucket["id"]}, headers=member_headers
        ).json()

        reopened = client.post(
            f"/api/v1/obligations/{obligation['id']}/reopen",
            json={"reason": "Autopay reversed"},
            headers=member_headers,
        ).json()["obligation"]

        assert reopened["reportingState"] == "NONE"
        batch = client.get(f"/api/v1/credit/batches/{prepared['batch']['id']}", headers=member_headers).json()["batch"]
        assert batch["items"] == []
        assert batch["status"] == "DRAFT"

    def test_missing_batch(self, client, member_headers):
        response = client.post("/api/v1/credit/batch/submit", json={"batchId": 999}, headers=member_headers)

        assert response.status_code == 404
