import uuid


def test_goals_are_account_only(client, device_headers):
    response = client.get("/goals", headers=device_headers())
    assert response.status_code == 401
    response = client.post("/goals", json={"year": 2024, "targetBooks": 12}, headers=device_headers())
    assert response.status_code == 401


def test_goal_upsert_by_year(client, register_user):
    headers, _ = register_user()
    created = client.post("/goals", json={"year": 2024, "targetBooks": 12}, headers=headers)
    assert created.status_code == 201
    goal_id = created.json()["id"]

    updated = client.post(
        "/goals", json={"year": 2024, "targetBooks": 20, "targetPages": 6000}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["id"] == goal_id
    assert updated.json()["targetBooks"] == 20

    client.post("/goals", json={"year": 2025, "targetBooks": 5}, headers=headers)
    years = [g["year"] for g in client.get("/goals", headers=headers).json()]
    assert years == [2025, 2024]

    assert client.get("/goals/2024", headers=headers).json()["targetPages"] == 6000
    missing = client.get("/goals/2030", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "Goal not found for this year"


def test_goal_bounds(client, register_user):
    headers, _ = register_user()
    assert client.post("/goals", json={"year": 1999, "targetBooks": 1}, headers=headers).status_code == 400
    assert client.post("/goals", json={"year": 2024, "targetBooks": 0}, headers=headers).status_code == 400


def test_goal_delete_is_owner_scoped(client, register_user):
    owner, _ = register_user()
    other, _ = register_user()
    goal_id = client.post("/goals", json={"year": 2024, "targetBooks": 3}, headers=owner).json()["id"]

    assert client.delete(f"/goals/{goal_id}", headers=other).status_code == 404
    assert client.delete(f"/goals/{goal_id}", headers=owner).status_code == 200
    assert client.get("/goals", headers=owner).json() == []


def test_collection_lifecycle(client, register_user, add_book):
    headers, _ = register_user()
    created = client.post("/collections", json={"name": "Sci-fi"}, headers=headers)
    assert created.status_code == 201
    collection = created.json()
    assert (collection["icon"], collection["color"], collection["bookCount"]) == (
        "folder.fill", "#007AFF", 0,
    )

    book_id = add_book(headers, title="Solaris").json()["id"]
    cid = collection["id"]
    assert client.post(f"/collections/{cid}/books", json={"bookId": book_id}, headers=headers).status_code == 200
    # Adding twice is a no-op.
    client.post(f"/collections/{cid}/books", json={"bookId": book_id}, headers=headers)

    listed = client.get("/collections", headers=headers).json()
    assert listed[0]["bookCount"] == 1
    assert listed[0]["books"][0]["title"] == "Solaris"

    renamed = client.put(f"/collections/{cid}", json={"name": "SF", "sortOrder": 2}, headers=headers)
    assert renamed.json()["name"] == "SF"
    assert renamed.json()["sortOrder"] == 2

    client.delete(f"/collections/{cid}/books/{book_id}", headers=headers)
    assert client.get("/collections", headers=headers).json()[0]["books"] == []

    assert client.delete(f"/collections/{cid}", headers=headers).status_code == 200
    assert client.get("/collections", headers=headers).json() == []


def test_collection_rejects_books_the_user_does_not_own(client, register_user, device_headers, add_book):
    headers, _ = register_user()
    cid = client.post("/collections", json={"name": "Mine"}, headers=headers).json()["id"]
    device_book = add_book(device_headers()).json()["id"]

    response = client.post(f"/collections/{cid}/books", json={"bookId": device_book}, headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Book not found"


def test_collections_are_private(client, register_user):
    owner, _ = register_user()
    other, _ = register_user()
    cid = client.post("/collections", json={"name": "Private"}, headers=owner).json()["id"]

    assert client.put(f"/collections/{cid}", json={"name": "x"}, headers=other).status_code == 404
    assert client.delete(f"/collections/{cid}", headers=other).status_code == 404
    assert client.delete(f"/collections/{uuid.uuid4()}", headers=owner).status_code == 404


def test_deleting_book_removes_it_from_collections(client, register_user, add_book):
    headers, _ = register_user()
    cid = client.post("/collections", json={"name": "Shelf"}, headers=headers).json()["id"]
    book_id = add_book(headers).json()["id"]
    client.post(f"/collections/{cid}/books", json={"bookId": book_id}, headers=headers)

    client.delete(f"/books/{book_id}", headers=headers)
    assert client.get("/collections", headers=headers).json()[0]["bookCount"] == 0
