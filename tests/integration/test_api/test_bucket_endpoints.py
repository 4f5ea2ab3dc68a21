import pytest

from dutrel.repositories.action_log_repository import ActionLogRepository


def _create_group_bucket(client, household_id, headers, **extra):
    payload = {"householdId": household_id, "name": "Internet", "type": "GROUP"}
    payload.update(extra)
    response = client.post("/api/v1/buckets", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["bucket"]


@pytest.mark.integration
class TestBucketEndpoints:
    """Integration tests for /api/v1/buckets"""

    def test_create_group_bucket(self, client, test_household, payer_headers, payer_member, member_member):
        bucket = _create_group_bucket(
            client,
            test_household.id,
            payer_headers,
            cadence="QUARTERLY",
            variability="FIXED",
            bufferTargetCents=2500,
            memberHouseholdMemberIds=[payer_member.id],
            responsibleHouseholdMemberIds=[member_member.id],
        )

        assert bucket["type"] == "GROUP"
        assert bucket["ownerUserId"] is None
        assert bucket["cadence"] == "QUARTERLY"
        assert bucket["bufferTargetCents"] == 2500
        assert bucket["creditReportingStatus"] == "NONE"
        assert sorted(m["householdMemberId"] for m in bucket["members"]) == sorted(
            [payer_member.id, member_member.id]
        )
        assert bucket["responsibleMembers"] == [
            {"id": bucket["responsibleMembers"][0]["id"], "householdMemberId": member_member.id, "role": "PRIMARY"}
        ]
        assert bucket["obligations"] == []

    def test_create_individual_bucket_as_member(self, client, test_household, member_user, member_headers):
        response = client.post(
            "/api/v1/buckets",
            json={"householdId": test_household.id, "name": "Phone", "type": "INDIVIDUAL"},
            headers=member_headers,
        )

        assert response.status_code == 201
        assert response.json()["bucket"]["ownerUserId"] == member_user.id

    def test_create_group_bucket_as_member_forbidden(self, client, test_household, member_headers):
        response = client.post(
            "/api/v1/buckets",
            json={"householdId": test_household.id, "name": "Water", "type": "GROUP"},
            headers=member_headers,
        )

        assert response.status_code == 403

    def test_create_bucket_unknown_type(self, client, test_household, payer_headers):
        response = client.post(
            "/api/v1/buckets",
            json={"householdId": test_household.id, "name": "Water", "type": "SHARED"},
            headers=payer_headers,
        )

        assert response.status_code == 400

    def test_patch_by_plain_member_is_forbidden_and_changes_nothing(
        self, client, db_session, test_household, payer_headers, member_headers
    ):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)

        response = client.patch(
            f"/api/v1/buckets/{bucket['id']}",
            json={"name": "Hijacked"},
            headers=member_headers,
        )

        assert response.status_code == 403
        assert response.json()["ok"] is False
        after = client.get(f"/api/v1/buckets/{bucket['id']}", headers=payer_headers).json()["bucket"]
        assert after["name"] == "Internet"
        actions = [e.action for e in ActionLogRepository(db_session).list_for_entity("BUCKET", bucket["id"])]
        assert actions == ["BUCKET_CREATE"]

    def test_patch_by_responsible_member(self, client, test_household, payer_headers, member_headers, member_member):
        bucket = _create_group_bucket(
            client, test_household.id, payer_headers, responsibleHouseholdMemberIds=[member_member.id]
        )

        response = client.patch(
            f"/api/v1/buckets/{bucket['id']}",
            json={"name": "Fiber", "bufferTargetCents": 100},
            headers=member_headers,
        )

        assert response.status_code == 200
        assert response.json()["bucket"]["name"] == "Fiber"
        assert response.json()["bucket"]["bufferTargetCents"] == 100

    def test_patch_rejects_null_name(self, client, test_household, payer_headers):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)

        response = client.patch(f"/api/v1/buckets/{bucket['id']}", json={"name": None}, headers=payer_headers)

        assert response.status_code == 400

    def test_patch_replaces_members(self, client, test_household, payer_headers, payer_member, member_member):
        bucket = _create_group_bucket(
            client, test_household.id, payer_headers, memberHouseholdMemberIds=[payer_member.id]
        )

        response = client.patch(
            f"/api/v1/buckets/{bucket['id']}",
            json={"memberHouseholdMemberIds": [member_member.id]},
            headers=payer_headers,
        )

        assert response.status_code == 200
        assert [m["householdMemberId"] for m in response.json()["bucket"]["members"]] == [member_member.id]

    def test_list_scoped_for_member(
        self, client, test_household, payer_headers, member_headers, member_member
    ):
        hidden = _create_group_bucket(client, test_household.id, payer_headers, name="Hidden")
        shared = _create_group_bucket(
            client, test_household.id, payer_headers, name="Shared", memberHouseholdMemberIds=[member_member.id]
        )

        as_member = client.get(
            "/api/v1/buckets", params={"householdId": test_household.id}, headers=member_headers
        ).json()["buckets"]
        as_payer = client.get(
            "/api/v1/buckets", params={"householdId": test_household.id}, headers=payer_headers
        ).json()["buckets"]

        assert [b["id"] for b in as_member] == [shared["id"]]
        assert [b["id"] for b in as_payer] == [hidden["id"], shared["id"]]

    def test_list_requires_household_id(self, client, test_household, payer_headers):
        response = client.get("/api/v1/buckets", headers=payer_headers)

        assert response.status_code == 400

    def test_get_bucket_outsider(self, client, test_household, payer_headers, outsider_headers):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)

        response = client.get(f"/api/v1/buckets/{bucket['id']}", headers=outsider_headers)

        assert response.status_code == 403

    def test_delete_bucket(self, client, test_household, payer_headers):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)
        client.post(
            "/api/v1/obligations",
            json={"bucketId": bucket["id"], "amountCents": 1200},
            headers=payer_headers,
        )

        response = client.delete(f"/api/v1/buckets/{bucket['id']}", headers=payer_headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "deletedBucketId": bucket["id"]}
        assert client.get(f"/api/v1/buckets/{bucket['id']}", headers=payer_headers).status_code == 404

    def test_delete_bucket_removes_stored_files(self, client, storage, test_household, payer_headers, member_headers):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)
        attachment_key = client.post(
            f"/api/v1/buckets/{bucket['id']}/attachments/upload-url",
            json={"filename": "contract.pdf"},
            headers=payer_headers,
        ).json()["objectKey"]
        storage.put_object(attachment_key, b"contract")
        client.post(
            f"/api/v1/buckets/{bucket['id']}/attachments",
            json={"kind": "FILE", "title": "Contract", "objectKey": attachment_key},
            headers=payer_headers,
        )
        obligation = client.post(
            "/api/v1/obligations",
            json={"bucketId": bucket["id"], "amountCents": 1200},
            headers=payer_headers,
        ).json()["obligation"]
        receipt_key = client.post(
            "/api/v1/receipts/upload-url",
            json={"obligationId": obligation["id"], "filename": "paid.png"},
            headers=member_headers,
        ).json()["objectKey"]
        storage.put_object(receipt_key, b"png")
        client.post(
            "/api/v1/receipts",
            json={"obligationId": obligation["id"], "objectKey": receipt_key},
            headers=member_headers,
        )

        response = client.delete(f"/api/v1/buckets/{bucket['id']}", headers=payer_headers)

        assert response.status_code == 200
        assert not storage.head_object(attachment_key).exists
        assert not storage.head_object(receipt_key).exists

    def test_household_detail_lists_buckets(self, client, test_household, payer_headers):
        bucket = _create_group_bucket(client, test_household.id, payer_headers)

        response = client.get(f"/api/v1/households/{test_household.id}", headers=payer_headers)

        assert [b["id"] for b in response.json()["household"]["buckets"]] == [bucket["id"]]
