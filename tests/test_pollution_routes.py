GUEST = {"User-Type": "guest"}


def reading_body(city_id, **overrides):
    body = {
        "cityId": city_id,
        "aqi": 180,
        "pm25": 90,
        "pm10": 120,
        "co": 1.5,
        "no2": 40,
        "so2": 10,
        "o3": 35,
        "temperature": 30,
        "humidity": 60,
        "windSpeed": 4,
    }
    body.update(overrides)
    return body


def test_cities_list_and_count(client, create_city):
    create_city("Delhi")
    create_city("Agra")

    res = client.get("/api/pollution/cities")
    assert [city["name"] for city in res.get_json()["data"]] == ["Agra", "Delhi"]
    assert client.get("/api/pollution/cities/count").get_json()["count"] == 2


def test_list_requires_user_or_guest(client):
    assert client.get("/api/pollution").status_code == 401
    assert client.get("/api/pollution", headers={"User-Type": "robot"}).status_code == 401


def test_guest_list_is_capped_and_reduced(client, create_city, add_reading):
    city_id = create_city()
    for hours in range(1, 9):
        add_reading(city_id, hours_ago=hours)

    res = client.get("/api/pollution?limit=50", headers=GUEST)
    assert res.status_code == 200
    body = res.get_json()
    assert len(body["data"]) == 5
    assert body["pagination"]["limit"] == 5
    assert body["pagination"]["total"] == 8
    first = body["data"][0]
    assert set(first["pollutants"]) == {"pm25", "pm10"}
    assert "user" not in first
    assert "aqiCategory" not in first


def test_user_list_full_fields(client, create_user, auth_header, create_city, add_reading):
    user_id = create_user()
    city_id = create_city()
    for hours in range(1, 9):
        add_reading(city_id, hours_ago=hours)

    res = client.get("/api/pollution?limit=50", headers=auth_header(user_id))
    body = res.get_json()
    assert len(body["data"]) == 8
    assert set(body["data"][0]["pollutants"]) == {"pm25", "pm10", "co", "no2", "so2", "o3"}


def test_latest_for_city(client, create_city, add_reading):
    city_id = create_city()
    add_reading(city_id, hours_ago=5, aqi=90)
    add_reading(city_id, hours_ago=1, aqi=140)

    res = client.get("/api/pollution/latest?city=testville", headers=GUEST)
    assert res.status_code == 200
    assert res.get_json()["data"]["aqi"] == 140


def test_latest_unknown_city(client):
    res = client.get("/api/pollution/latest?city=atlantis", headers=GUEST)
    assert res.status_code == 404
    assert res.get_json()["code"] == "city_not_found"


def test_create_reading_derives_fields(client, create_user, auth_header, create_city):
    user_id = create_user()
    city_id = create_city()

    res = client.post("/api/pollution", json=reading_body(city_id, isAdmin=True, id=999), headers=auth_header(user_id))
    assert res.status_code == 201
    data = res.get_json()["data"]
    assert data["id"] != 999
    assert data["aqiCategory"] == "unhealthy"
    assert data["dominantPollutant"] == "pm10"


def test_create_reading_guest_rejected(client, create_city):
    city_id = create_city()
    res = client.post("/api/pollution", json=reading_body(city_id), headers=GUEST)
    assert res.status_code == 401


def test_create_reading_validation(client, create_user, auth_header, create_city):
    user_id = create_user()
    city_id = create_city()

    res = client.post("/api/pollution", json=reading_body(city_id, aqi=-4), headers=auth_header(user_id))
    assert res.status_code == 400
    assert "AQI must be between 0 and 500" in res.get_json()["details"]


def test_create_reading_rejects_fractional_and_boolean_aqi(client, create_user, auth_header, create_city):
    user_id = create_user()
    city_id = create_city()

    for aqi in (12.7, True):
        res = client.post("/api/pollution", json=reading_body(city_id, aqi=aqi), headers=auth_header(user_id))
        assert res.status_code == 400
        assert "AQI must be between 0 and 500" in res.get_json()["details"]


def test_create_reading_unknown_city(client, create_user, auth_header):
    user_id = create_user()
    res = client.post("/api/pollution", json=reading_body(404), headers=auth_header(user_id))
    assert res.status_code == 404


def test_update_by_owner_recomputes_category(client, create_user, auth_header, create_city, add_reading):
    user_id = create_user()
    city_id = create_city()
    reading_id = add_reading(city_id, user_id=user_id, aqi=120)

    res = client.put(f"/api/pollution/{reading_id}", json={"aqi": 40, "o3": 500, "userId": 77}, headers=auth_header(user_id))
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["aqi"] == 40
    assert data["aqiCategory"] == "good"
    assert data["dominantPollutant"] == "o3"
    assert data["user"]["id"] == user_id


def test_update_by_other_user_forbidden(client, create_user, auth_header, create_city, add_reading):
    owner_id = create_user()
    other_id = create_user(email="other@example.com")
    reading_id = add_reading(create_city(), user_id=owner_id)

    res = client.put(f"/api/pollution/{reading_id}", json={"aqi": 10}, headers=auth_header(other_id))
    assert res.status_code == 403


def test_update_by_admin(client, create_user, auth_header, create_city, add_reading):
    owner_id = create_user()
    admin_id = create_user(email="admin@example.com", is_admin=True)
    reading_id = add_reading(create_city(), user_id=owner_id)

    res = client.put(f"/api/pollution/{reading_id}", json={"aqi": 10}, headers=auth_header(admin_id))
    assert res.status_code == 200


def test_delete_requires_admin(client, create_user, auth_header, create_city, add_reading):
    user_id = create_user()
    admin_id = create_user(email="admin@example.com", is_admin=True)
    reading_id = add_reading(create_city(), user_id=user_id)

    assert client.delete(f"/api/pollution/{reading_id}", headers=auth_header(user_id)).status_code == 403
    assert client.delete(f"/api/pollution/{reading_id}", headers=auth_header(admin_id)).status_code == 200
    assert client.get(f"/api/pollution/{reading_id}", headers=auth_header(admin_id)).status_code == 404
