def test_recommendations_require_profile(client, seeded, user_token):
    headers, _ = user_token
    resp = client.get("/api/recommendations", headers=headers)
    assert resp.status_code == 404


def test_profile_based_recommendations(client, seeded, user_token):
    headers, _ = user_token
    resp = client.post(
        "/api/recommendations/profile-based",
        json={"profile_type": "Aggressive", "available_amount": 500},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [p["name"] for p in body["recommended_products"]] == ["FII Caixa Shopping Centers"]
    assert body["allocation"]["aggressive_percentage"] == 50
    assert body["allocation"]["suggested_amount"] == 500


def test_profile_based_requires_a_source(client, seeded, user_token):
    headers, _ = user_token
    resp = client.post("/api/recommendations/profile-based", json={}, headers=headers)
    assert resp.status_code == 400

    negative = client.post(
        "/api/recommendations/profile-based",
        json={"profile_type": "Moderate", "available_amount": -1},
        headers=headers,
    )
    assert negative.status_code == 422


def test_products_by_profile_route(client, seeded):
    resp = client.get("/api/recommendations/products/Conservative")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 5
    assert all("Conservative" in p["target_profiles"] for p in body)

    assert client.get("/api/recommendations/products/Nenhum").json() == []
