"""Public form submission endpoint."""


def test_submit_form(client, make_user):
    make_user("ref1", referral_count=9)

    response = client.post(
        "/api/v1/submit-form",
        json={
            "type": "pet-survey",
            "email": "owner@example.com",
            "name": "Pat Owner",
            "referredBy": "ref1",
            "smartAlerts": 4,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Form submitted successfully"
    assert body["id"]


def test_submit_form_missing_fields(client):
    response = client.post("/api/v1/submit-form", json={"type": "pet-survey", "name": "Pat"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields"


def test_submit_form_duplicate(client):
    data = {"type": "referral", "email": "friend@example.com", "name": "Friend"}
    client.post("/api/v1/submit-form", json=data)

    response = client.post("/api/v1/submit-form", json=data)

    assert response.status_code == 400
    assert response.json()["detail"] == "You have already submitted a form with this email address"


def test_referral_shows_up_for_referrer(client, login):
    login(client, "ref1")
    client.post(
        "/api/v1/submit-form",
        json={"type": "referral", "email": "friend@example.com", "name": "Friend", "referredBy": "ref1"},
    )

    body = client.get("/api/v1/user/referrals").json()

    assert body["referralCount"] == 1
    assert body["referralLink"] == "http://localhost:3000/survey/pet/ref1"
    assert [r["email"] for r in body["referrals"]] == ["friend@example.com"]
    assert body["referrals"][0]["referredBy"] == "ref1"
