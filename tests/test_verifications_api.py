def _found_item(client, headers, title="Black backpack"):
    response = client.post("/items/found", data={"title": title, "location": "Cafeteria"}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _claim(client, headers, item, **extra):
    payload = {"item_id": item["id"], "item_type": item["kind"], "proof": "Initials stitched inside", **extra}
    return client.post("/verifications", json=payload, headers=headers)


def test_claim_and_approve(client, register):
    finder, _ = register("finder")
    claimant, claimant_id = register("claimant")
    item = _found_item(client, finder)

    created = _claim(client, claimant, item, question="What is in the front pocket?", answer="A blue pen")
    assert created.status_code == 201
    challenge = created.json()
    assert challenge["status"] == "pending"
    assert challenge["claimant_id"] == claimant_id

    approved = client.put(f"/verifications/{challenge['id']}/approve", headers=finder)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    item = client.get(f"/items/found/{item['id']}").json()
    assert item["status"] == "matched"
    assert item["verification_id"] == challenge["id"]

    assert client.get(f"/verifications/{challenge['id']}", headers=claimant).json()["status"] == "approved"


def test_second_pending_claim_conflicts(client, register):
    finder, _ = register("finder")
    first, _ = register("first")
    second, _ = register("second")
    item = _found_item(client, finder)

    assert _claim(client, first, item).status_code == 201
    assert _claim(client, second, item).status_code == 409


def test_reject_then_claim_again(client, register):
    finder, _ = register("finder")
    first, _ = register("first")
    second, _ = register("second")
    item = _found_item(client, finder)
    challenge = _claim(client, first, item).json()

    rejected = client.put(
        f"/verifications/{challenge['id']}/reject",
        json={"rejection_reason": "The backpack has no stitching"},
        headers=finder,
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"

    assert client.put(f"/verifications/{challenge['id']}/approve", headers=finder).status_code == 409
    assert _claim(client, second, item).status_code == 201


def test_only_owner_or_admin_decides(client, register):
    finder, _ = register("finder")
    claimant, _ = register("claimant")
    admin, _ = register("admin", role="admin")
    item = _found_item(client, finder)
    challenge = _claim(client, claimant, item).json()

    assert client.put(f"/verifications/{challenge['id']}/approve", headers=claimant).status_code == 403
    assert client.put(f"/verifications/{challenge['id']}/reject", headers=admin).status_code == 200


def test_self_claim_is_rejected(client, register):
    finder, _ = register("finder")
    item = _found_item(client, finder)

    assert _claim(client, finder, item).status_code == 400


def test_claim_on_missing_item(client, register):
    claimant, _ = register("claimant")
    item = {"id": "8b0c7a8e-8d4f-4c3e-9d55-0f4b1c2f9a11", "kind": "lost"}

    assert _claim(client, claimant, item).status_code == 404


def test_item_claims_and_moderation_listing(client, register):
    finder, _ = register("finder")
    claimant, _ = register("claimant")
    admin, _ = register("admin", role="admin")
    item = _found_item(client, finder)
    _claim(client, claimant, item)

    for_item = client.get(f"/verifications/item/found/{item['id']}", headers=finder)
    assert for_item.status_code == 200
    assert len(for_item.json()) == 1

    assert client.get(f"/verifications/item/found/{item['id']}", headers=claimant).status_code == 403

    pending = client.get("/verifications", params={"status": "pending"}, headers=admin)
    assert pending.status_code == 200
    assert [c["item_id"] for c in pending.json()] == [item["id"]]

    assert client.get("/verifications", headers=finder).status_code == 403
