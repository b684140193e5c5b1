def test_register_returns_token_and_user(client, register_user):
    headers, body = register_user(username="ursula")
    assert body["user"]["username"] == "ursula"
    assert body["user"]["email"] == "ursula@example.com"
    assert "hashedPassword" not in body["user"]

    profile = client.get("/auth/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["id"] == body["user"]["id"]


def test_duplicate_email_and_username(client, register_user):
    register_user(username="octavia")
    response = client.post(
        "/auth/register",
        json={"email": "octavia@example.com", "username": "another", "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "EMAIL_TAKEN"

    response = client.post(
        "/auth/register",
        json={"email": "new@example.com", "username": "octavia", "password": "secret123"},
    )
    assert response.json()["code"] == "USERNAME_TAKEN"


def test_register_validation(client):
    response = client.post(
        "/auth/register",
        json={"email": "not-an-email", "username": "ab", "password": "123"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_login(client, register_user):
    register_user(username="ngugi", password="secret123")
    ok = client.post("/auth/login", json={"email": "ngugi@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["token"]
    assert ok.json()["user"]["lastLoginAt"] is not None

    bad = client.post("/auth/login", json={"email": "ngugi@example.com", "password": "wrong!!"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "Invalid credentials"


def test_invalid_token_with_device_is_401(client, device_headers, add_book):
    headers = {**device_headers("device-x"), "Authorization": "Bearer garbage"}
    assert client.get("/books", headers=headers).status_code == 401
    response = add_book(headers)
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_profile_requires_account(client, device_headers):
    assert client.get("/auth/profile").status_code == 401
    assert client.get("/auth/profile", headers=device_headers()).status_code == 401


def test_update_profile(client, register_user):
    headers, _ = register_user()
    response = client.put(
        "/auth/profile", json={"firstName": "Le Guin", "bio": "Anarres"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["firstName"] == "Le Guin"
    assert response.json()["bio"] == "Anarres"


def test_signout_revokes_token(client, register_user):
    headers, _ = register_user()
    signed_out = client.post("/auth/signout", headers=headers)
    assert signed_out.status_code == 200
    assert signed_out.json() == {"message": "Signed out"}
    response = client.get("/auth/profile", headers=headers)
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_register_claims_device_books(client, device_headers, register_user, add_book):
    device = device_headers("device-claim")
    for _ in range(3):
        add_book(device)

    headers, _ = register_user(headers=device)

    assert client.get("/books", headers=headers).json()["pagination"]["total"] == 3
    assert client.get("/books", headers=device).json()["pagination"]["total"] == 0
    quota = client.get("/books/quota", headers=device).json()
    assert quota["used"] == 0
    assert quota["remaining"] == 3


def test_login_claim_skips_works_already_held(client, device_headers, register_user, add_book):
    headers, _ = register_user(username="kazuo")
    add_book(headers, open_library_id="OL42W")

    device = device_headers("device-dup")
    add_book(device, open_library_id="OL42W")
    add_book(device, open_library_id="OL43W")

    client.post(
        "/auth/login",
        json={"email": "kazuo@example.com", "password": "secret123"},
        headers=device,
    )
    books = client.get("/books", headers=headers).json()["books"]
    assert sorted(b["openLibraryId"] for b in books) == ["OL42W", "OL43W"]
    remaining = client.get("/books", headers=device).json()["books"]
    assert [b["openLibraryId"] for b in remaining] == ["OL42W"]


def test_identity_probe(client, device_headers, register_user):
    assert client.get("/identity").json()["kind"] == "none"

    device = client.get("/identity", headers=device_headers("device-probe")).json()
    assert device["kind"] == "device"
    assert device["deviceId"] == "device-probe"
    assert device["quota"]["remaining"] == 3

    stale = client.get("/identity", headers={"Authorization": "Bearer stale"}).json()
    assert stale["kind"] == "none"

    headers, body = register_user()
    me = client.get("/identity", headers=headers).json()
    assert me == {"kind": "user", "userId": body["user"]["id"], "deviceId": None, "quota": None}


def test_device_can_re_add_work_after_account_claimed_it(client, device_headers, register_user, add_book):
    device = device_headers("device-readd")
    assert add_book(device, open_library_id="OL1W").status_code == 201
    account, _ = register_user(headers=device)
    assert client.get("/books", headers=device).json()["pagination"]["total"] == 0

    response = add_book(device, open_library_id="OL1W")
    assert response.status_code == 201, response.text
    assert client.get("/books", headers=device).json()["pagination"]["total"] == 1
    assert client.get("/books", headers=account).json()["pagination"]["total"] == 1
