import pytest

from dutrel.repositories.action_log_repository import ActionLogRepository


@pytest.fixture
def individual_bucket(client, test_household, payer_headers):
    response = client.post(
        "/api/v1/buckets",
        json={"householdId": test_household.id, "name": "Car insurance", "type": "INDIVIDUAL"},
        headers=payer_headers,
    )
    return response.json()["bucket"]


@pytest.fixture
def obligation(client, individual_bucket, payer_headers):
    response = client.post(
        "/api/v1/obligations",
        json={
            "bucketId": individual_bucket["id"],
            "amountCents": 5000,
            "periodStart": "2026-03-01T00:00:00Z",
            "periodEnd": "2026-03-31T00:00:00Z",
            "dueDate": "2026-04-05T00:00:00Z",
        },
        headers=payer_headers,
    )
    assert response.status_code == 201, response.json()
    return response.json()["obligation"]


def _submit_receipt(client, obligation_id, headers, file_url="https://x/1.pdf"):
    response = client.post(
        "/api/v1/receipts",
        json={"obligationId": obligation_id, "fileUrl": file_url},
        headers=headers,
    )
    assert response.status_code == 201, response.json()
    return response.json()["receipt"]


@pytest.mark.integration
class TestPaymentLifecycle:
    """Receipt upload, review and obligation closure end to end."""

    def test_member_receipt_then_payer_verifies(
        self, client, payer_user, individual_bucket, obligation, payer_headers, member_headers, member_user
    ):
        assert individual_bucket["ownerUserId"] == payer_user.id
        assert obligation["status"] == "OPEN"

        receipt = _submit_receipt(client, obligation["id"], member_headers)
        assert receipt["status"] == "PENDING_PAYER_REVIEW"
        assert receipt["uploadedByUserId"] == member_user.id
        still_open = client.get(f"/api/v1/obligations/{obligation['id']}", headers=payer_headers).json()
        assert still_open["obligation"]["status"] == "OPEN"

        review = client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=payer_headers)

        assert review.status_code == 200
        assert review.json()["receipt"]["status"] == "VERIFIED"
        assert review.json()["receipt"]["reviewedByUserId"] == payer_user.id
        closed = client.get(f"/api/v1/obligations/{obligation['id']}", headers=payer_headers).json()["obligation"]
        assert closed["status"] == "CLOSED"
        assert closed["closedByUserId"] == payer_user.id
        assert closed["closedAt"] is not None
        assert closed["bucket"]["id"] == individual_bucket["id"]

    def test_member_cannot_verify(self, client, obligation, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)

        response = client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=member_headers)

        assert response.status_code == 403

    def test_dispute_leaves_obligation_open(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)

        response = client.patch(
            f"/api/v1/receipts/{receipt['id']}",
            json={"action": "DISPUTE", "reason": "Wrong month"},
            headers=payer_headers,
        )

        assert response.status_code == 200
        assert response.json()["receipt"]["status"] == "DISPUTED"
        assert response.json()["receipt"]["disputeReason"] == "Wrong month"
        current = client.get(f"/api/v1/obligations/{obligation['id']}", headers=payer_headers).json()
        assert current["obligation"]["status"] == "OPEN"

    def test_disputed_receipt_can_still_be_verified(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)
        client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "DISPUTE"}, headers=payer_headers)

        response = client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=payer_headers)

        assert response.status_code == 200
        assert response.json()["receipt"]["disputeReason"] is None

    def test_verified_receipt_cannot_be_reviewed_again(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)
        client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=payer_headers)

        response = client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "DISPUTE"}, headers=payer_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_unknown_review_action(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)

        response = client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "APPROVE"}, headers=payer_headers)

        assert response.status_code == 400

    def test_receipt_on_closed_obligation_rejected(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)
        client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=payer_headers)

        response = client.post(
            "/api/v1/receipts",
            json={"obligationId": obligation["id"], "fileUrl": "https://x/2.pdf"},
            headers=member_headers,
        )

        assert response.status_code == 400

    def test_receipt_requires_location(self, client, obligation, member_headers):
        response = client.post("/api/v1/receipts", json={"obligationId": obligation["id"]}, headers=member_headers)

        assert response.status_code == 400

    def test_list_receipts_newest_first(self, client, obligation, member_headers):
        first = _submit_receipt(client, obligation["id"], member_headers, "https://x/1.pdf")
        second = _submit_receipt(client, obligation["id"], member_headers, "https://x/2.pdf")

        response = client.get("/api/v1/receipts", params={"obligationId": obligation["id"]}, headers=member_headers)

        assert [r["id"] for r in response.json()["receipts"]] == [second["id"], first["id"]]

    def test_outsider_cannot_read_receipt(self, client, obligation, member_headers, outsider_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)

        response = client.get(f"/api/v1/receipts/{receipt['id']}", headers=outsider_headers)

        assert response.status_code == 403

    def test_receipt_upload_url_and_object_key(
        self, client, storage, test_household, individual_bucket, obligation, payer_headers, member_headers
    ):
        upload = client.post(
            "/api/v1/receipts/upload-url",
            json={"obligationId": obligation["id"], "filename": "march receipt.jpg", "contentType": "image/jpeg"},
            headers=member_headers,
        )

        assert upload.status_code == 200
        data = upload.json()
        prefix = (
            f"households/{test_household.id}/buckets/{individual_bucket['id']}"
            f"/obligations/{obligation['id']}/receipts/"
        )
        assert data["objectKey"].startswith(prefix)
        assert data["objectKey"].endswith("/march_receipt.jpg")
        assert data["storageProvider"] == "R2"
        assert data["expiresInSeconds"] == 600
        storage.put_object(data["objectKey"], b"jpeg bytes", content_type="image/jpeg")

        response = client.post(
            "/api/v1/receipts",
            json={"obligationId": obligation["id"], "objectKey": data["objectKey"]},
            headers=member_headers,
        )
        assert response.status_code == 201
        assert response.json()["receipt"]["objectKey"] == data["objectKey"]
        assert response.json()["receipt"]["storageProvider"] == "R2"

        receipt_id = response.json()["receipt"]["id"]
        download = client.get(f"/api/v1/receipts/{receipt_id}/download-url", headers=payer_headers)
        assert download.status_code == 200
        assert data["objectKey"] in download.json()["url"]
        assert download.json()["expiresInSeconds"] == 600

    def test_receipt_object_key_never_uploaded(self, client, test_household, individual_bucket, obligation, member_headers):
        object_key = (
            f"households/{test_household.id}/buckets/{individual_bucket['id']}"
            f"/obligations/{obligation['id']}/receipts/abc/missing.jpg"
        )

        response = client.post(
            "/api/v1/receipts",
            json={"obligationId": obligation["id"], "objectKey": object_key},
            headers=member_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_legacy_receipt_download_url(self, client, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers, "https://x/legacy.pdf")

        response = client.get(f"/api/v1/receipts/{receipt['id']}/download-url", headers=payer_headers)

        assert response.status_code == 200
        assert response.json()["url"] == "https://x/legacy.pdf"
        assert response.json()["expiresInSeconds"] is None

    def test_outsider_cannot_download_receipt(self, client, obligation, member_headers, outsider_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)

        response = client.get(f"/api/v1/receipts/{receipt['id']}/download-url", headers=outsider_headers)

        assert response.status_code == 403

    def test_receipt_object_key_from_another_obligation(self, client, obligation, member_headers):
        response = client.post(
            "/api/v1/receipts",
            json={"obligationId": obligation["id"], "objectKey": "households/1/buckets/1/obligations/999/receipts/x/a.pdf"},
            headers=member_headers,
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestObligationEndpoints:
    """Integration tests for /api/v1/obligations"""

    def test_create_requires_manage(self, client, individual_bucket, member_headers):
        response = client.post(
            "/api/v1/obligations",
            json={"bucketId": individual_bucket["id"], "amountCents": 100},
            headers=member_headers,
        )

        assert response.status_code == 403

    def test_create_rejects_non_positive_amount(self, client, individual_bucket, payer_headers):
        response = client.post(
            "/api/v1/obligations",
            json={"bucketId": individual_bucket["id"], "amountCents": 0},
            headers=payer_headers,
        )

        assert response.status_code == 400

    def test_create_rejects_inverted_period(self, client, individual_bucket, payer_headers):
        response = client.post(
            "/api/v1/obligations",
            json={
                "bucketId": individual_bucket["id"],
                "amountCents": 100,
                "periodStart": "2026-04-01T00:00:00Z",
                "periodEnd": "2026-03-01T00:00:00Z",
            },
            headers=payer_headers,
        )

        assert response.status_code == 400

    def test_list_obligations_visible_to_members(self, client, individual_bucket, obligation, member_headers):
        response = client.get(
            "/api/v1/obligations", params={"bucketId": individual_bucket["id"]}, headers=member_headers
        )

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["obligations"]] == [obligation["id"]]

    def test_get_missing_obligation(self, client, test_household, payer_headers):
        response = client.get("/api/v1/obligations/999", headers=payer_headers)

        assert response.status_code == 404

    def test_reopen_open_obligation_fails_and_changes_nothing(
        self, client, db_session, obligation, payer_headers
    ):
        response = client.post(
            f"/api/v1/obligations/{obligation['id']}/reopen",
            json={"reason": "Double charge"},
            headers=payer_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        current = client.get(f"/api/v1/obligations/{obligation['id']}", headers=payer_headers).json()["obligation"]
        assert current["status"] == "OPEN"
        assert current["reopenedAt"] is None
        actions = [e.action for e in ActionLogRepository(db_session).list_for_entity("OBLIGATION", obligation["id"])]
        assert actions == ["OBLIGATION_CREATE"]

    def test_reopen_requires_reason(self, client, obligation, payer_headers):
        response = client.post(
            f"/api/v1/obligations/{obligation['id']}/reopen", json={"reason": "  "}, headers=payer_headers
        )

        assert response.status_code == 400

    def test_reopen_closed_obligation(self, client, payer_user, obligation, payer_headers, member_headers):
        receipt = _submit_receipt(client, obligation["id"], member_headers)
        client.patch(f"/api/v1/receipts/{receipt['id']}", json={"action": "VERIFY"}, headers=payer_headers)

        response = client.post(
            f"/api/v1/obligations/{obligation['id']}/reopen",
            json={"reason": "Payment bounced"},
            headers=payer_headers,
        )

        assert response.status_code == 200
        reopened = response.json()["obligation"]
        assert reopened["status"] == "OPEN"
        assert reopened["reopenReason"] == "Payment bounced"
        assert reopened["reopenedByUserId"] == payer_user.id
        assert reopened["reportingState"] == "NONE"

        # A fresh receipt can be submitted once reopened
        _submit_receipt(client, obligation["id"], member_headers, "https://x/retry.pdf")
