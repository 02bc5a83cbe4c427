from datetime import datetime, timezone

from painel.db.models import InvestorProfile


def _simulate(client, headers, amount=10000, months=12):
    resp = client.post(
        "/api/simulations",
        json={"invested_amount": amount, "investment_months": months},
        headers=headers,
    )
    assert resp.status_code == 200
    return resp.json()


def test_daily_and_top_stats_after_simulations(client, seeded, user_token):
    headers, user = user_token
    seeded.add(InvestorProfile(user_id=user.id, profile_type="Conservative", score=10))
    seeded.commit()

    first = _simulate(client, headers)
    _simulate(client, headers, amount=5000)

    daily = client.get("/api/stats/products/daily")
    assert daily.status_code == 200
    body = daily.json()
    assert body["total_simulations"] == 2 * len(first["product_simulations"])
    assert body["unique_products"] == len(first["product_simulations"])

    top = client.get("/api/stats/products/top", params={"top_count": 2})
    assert top.status_code == 200
    assert len(top.json()) == 2
    assert all(s["simulation_count"] == 2 for s in top.json())

    assert client.get("/api/stats/products/top", params={"top_count": 0}).json() == []

    product_id = first["product_simulations"][0]["product_id"]
    single = client.get(f"/api/stats/products/{product_id}/daily")
    assert single.json()["unique_products"] == 1


def test_stats_invalid_range(client, seeded):
    resp = client.get(
        "/api/stats/products/daily",
        params={"start_date": "2024-02-01T00:00:00", "end_date": "2024-01-01T00:00:00"},
    )
    assert resp.status_code == 400


def test_stats_empty_window(client, seeded):
    resp = client.get(
        "/api/stats/products/daily",
        params={"start_date": "2020-01-01T00:00:00", "end_date": "2020-01-31T00:00:00"},
    )
    assert resp.status_code == 200
    assert resp.json()["daily_stats"] == []


def test_same_day_range_includes_todays_simulations(client, seeded, user_token):
    headers, user = user_token
    seeded.add(InvestorProfile(user_id=user.id, profile_type="Conservative", score=10))
    seeded.commit()
    created = _simulate(client, headers)

    today = datetime.now(timezone.utc).date().isoformat()
    resp = client.get(
        "/api/stats/products/daily",
        params={"start_date": today, "end_date": today},
    )
    assert resp.status_code == 200
    assert resp.json()["total_simulations"] == len(created["product_simulations"])
