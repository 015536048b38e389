from conftest import FailingMailer, PASSWORD


def login(client, email="test@example.com", password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_returns_token(client):
    res = client.post("/api/auth/register", json={
        "name": "New User",
        "email": "NewUser@Example.com",
        "password": "Str0ng!Pass",
    })
    assert res.status_code == 201
    body = res.get_json()
    assert body["token"]
    assert body["user"]["email"] == "newuser@example.com"
    assert body["user"]["id"]


def test_register_duplicate_email(client, create_user):
    create_user()
    res = client.post("/api/auth/register", json={
        "name": "Test User",
        "email": "test@example.com",
        "password": "Another!Pass1",
    })
    assert res.status_code == 409
    assert res.get_json()["code"] == "conflict"


def test_register_validation_error(client):
    res = client.post("/api/auth/register", json={"name": "", "email": "invalid-email", "password": "123"})
    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_register_weak_password(client):
    res = client.post("/api/auth/register", json={
        "name": "New User",
        "email": "new@example.com",
        "password": "weakpass",
    })
    assert res.status_code == 400
    assert "uppercase" in res.get_json()["message"]


def test_login_requires_otp(client, create_user, mailer):
    create_user()
    res = login(client)

    assert res.status_code == 200
    body = res.get_json()
    assert body["otpRequired"] is True
    assert "token" not in body
    assert len(body["testOtp"]) == 6
    assert mailer.sent[0]["to"] == "test@example.com"
    assert body["testOtp"] in mailer.sent[0]["text"]


def test_login_then_verify_otp(client, create_user):
    create_user()
    code = login(client).get_json()["testOtp"]

    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": code})
    assert res.status_code == 200
    token = res.get_json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "test@example.com"


def test_verify_otp_is_single_use(client, create_user):
    create_user()
    code = login(client).get_json()["testOtp"]
    payload = {"email": "test@example.com", "otp": code}

    assert client.post("/api/auth/verify-otp", json=payload).status_code == 200
    res = client.post("/api/auth/verify-otp", json=payload)
    assert res.status_code == 400
    assert res.get_json()["code"] == "NOT_FOUND"


def test_verify_otp_wrong_code(client, create_user):
    create_user()
    code = login(client).get_json()["testOtp"]
    wrong = "000000" if code != "000000" else "111111"

    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": wrong})
    assert res.status_code == 400
    assert res.get_json()["code"] == "MISMATCH"


def test_verify_otp_invalid_format(client):
    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": "12ab"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "INVALID_FORMAT"


def test_login_wrong_password(client, create_user):
    create_user()
    res = login(client, password="Wrong!Pass1")
    assert res.status_code == 401


def test_login_unknown_email_suggests_domain(client):
    res = login(client, email="someone@gmial.com")
    assert res.status_code == 401
    assert res.get_json()["suggestion"] == "someone@gmail.com"


def test_login_inactive_user(client, create_user):
    create_user(is_active=False)
    assert login(client).status_code == 403


def test_login_delivery_failure_strict(app, client, create_user):
    create_user()
    app.extensions["otp_manager"].mailer = FailingMailer()

    res = login(client)
    assert res.status_code == 503
    assert res.get_json()["code"] == "delivery_failed"


def test_login_delivery_failure_fallback(app, client, create_user):
    create_user()
    manager = app.extensions["otp_manager"]
    manager.mailer = FailingMailer()
    manager.fallback_enabled = True

    res = login(client)
    assert res.status_code == 200
    body = res.get_json()
    assert body["otpBypassed"] is True
    assert body["token"]


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_email_otp_then_register_with_verification_token(client):
    sent = client.post("/api/auth/send-otp", json={"email": "verify@example.com"})
    assert sent.status_code == 200
    code = sent.get_json()["code"]

    verified = client.post("/api/auth/verify-email-otp", json={"email": "verify@example.com", "otp": code})
    assert verified.status_code == 200
    token = verified.get_json()["verificationToken"]

    res = client.post("/api/auth/register", json={
        "name": "Verified User",
        "email": "verify@example.com",
        "password": "Str0ng!Pass",
        "verificationToken": token,
    })
    assert res.status_code == 201


def test_register_rejects_foreign_verification_token(client):
    code = client.post("/api/auth/send-otp", json={"email": "a@example.com"}).get_json()["code"]
    token = client.post(
        "/api/auth/verify-email-otp", json={"email": "a@example.com", "otp": code}
    ).get_json()["verificationToken"]

    res = client.post("/api/auth/register", json={
        "name": "Other User",
        "email": "b@example.com",
        "password": "Str0ng!Pass",
        "verificationToken": token,
    })
    assert res.status_code == 400


def test_send_otp_code_not_accepted_for_login(client, create_user):
    create_user()
    code = client.post("/api/auth/send-otp", json={"email": "test@example.com"}).get_json()["code"]

    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": code})
    assert res.status_code == 400
    assert res.get_json()["code"] == "NOT_FOUND"
    assert "token" not in res.get_json()


def test_send_otp_fallback_code_not_accepted_for_login(app, client, create_user):
    create_user()
    manager = app.extensions["email_otp_manager"]
    manager.mailer = FailingMailer()
    manager.fallback_enabled = True

    sent = client.post("/api/auth/send-otp", json={"email": "test@example.com"})
    assert sent.status_code == 200
    assert sent.get_json()["fallback"] is True

    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": sent.get_json()["code"]})
    assert res.status_code == 400
    assert "token" not in res.get_json()


def test_send_otp_keeps_pending_login_code(client, create_user):
    create_user()
    code = login(client).get_json()["testOtp"]

    assert client.post("/api/auth/send-otp", json={"email": "test@example.com"}).status_code == 200

    res = client.post("/api/auth/verify-otp", json={"email": "test@example.com", "otp": code})
    assert res.status_code == 200
    assert res.get_json()["token"]


def test_login_code_not_accepted_for_email_verification(client, create_user):
    create_user()
    code = login(client).get_json()["testOtp"]

    res = client.post("/api/auth/verify-email-otp", json={"email": "test@example.com", "otp": code})
    assert res.status_code == 400
    assert "verificationToken" not in res.get_json()


def test_send_otp_resend_cooldown(client, mailer):
    assert client.post("/api/auth/send-otp", json={"email": "spam@example.com"}).status_code == 200

    res = client.post("/api/auth/send-otp", json={"email": "spam@example.com"})
    assert res.status_code == 429
    body = res.get_json()
    assert body["code"] == "rate_limited"
    assert 0 < body["details"]["retryAfterSeconds"] <= 30
    assert len(mailer.sent) == 1


def test_login_resend_cooldown(client, create_user):
    create_user()
    assert login(client).status_code == 200

    res = login(client)
    assert res.status_code == 429
    assert res.get_json()["code"] == "rate_limited"


def test_send_otp_hourly_cap(app, client):
    app.extensions["email_otp_manager"].resend_cooldown_seconds = 0

    for _ in range(5):
        assert client.post("/api/auth/send-otp", json={"email": "cap@example.com"}).status_code == 200

    res = client.post("/api/auth/send-otp", json={"email": "cap@example.com"})
    assert res.status_code == 429
