from datetime import datetime, timedelta, timezone


def _move(client, headers, product_id, kind, quantity):
    r = client.post("/stock/movements", json={"product_id": product_id, "type": kind, "quantity": quantity},
                    headers=headers)
    assert r.status_code == 201, r.text


def test_summary_cards(client, admin_headers, viewer_headers, make_product):
    a = make_product(stock="10", minimum="5", price="2.50")
    make_product(stock="3", minimum="5", price="4")
    make_product(minimum="0")
    _move(client, admin_headers, a.id, "exit", 2)

    r = client.get("/stats/summary", headers=viewer_headers)
    assert r.status_code == 200
    assert r.json() == {
        "total_products": 3,
        "low_stock_products": 2,
        "inventory_value": 32.0,
        "movements_today": 3,
    }


def test_summary_on_empty_catalog(client, viewer_headers):
    r = client.get("/stats/summary", headers=viewer_headers)
    assert r.json() == {"total_products": 0, "low_stock_products": 0, "inventory_value": 0.0, "movements_today": 0}


def test_recent_movements_newest_first(client, admin_headers, make_product):
    product = make_product(stock="10")
    for qty in (1, 2, 3, 4, 5, 6):
        _move(client, admin_headers, product.id, "entry", qty)

    r = client.get("/stats/recent-movements", headers=admin_headers)
    items = r.json()["items"]
    assert [m["quantity"] for m in items] == [6, 5, 4, 3, 2]
    assert items[0]["product_name"] == product.name

    r = client.get("/stats/recent-movements", params={"limit": 2}, headers=admin_headers)
    assert len(r.json()["items"]) == 2


def test_low_stock_report(client, viewer_headers, make_product):
    make_product(code="A", stock="1", minimum="5")
    make_product(code="B", stock="5", minimum="5")
    make_product(code="C", stock="6", minimum="5")

    r = client.get("/reports/low-stock", headers=viewer_headers)
    body = r.json()
    assert body["total"] == 2
    assert [i["code"] for i in body["items"]] == ["A", "B"]


def test_movements_by_type(client, admin_headers, make_product):
    product = make_product(stock="10")
    _move(client, admin_headers, product.id, "entry", 1)
    _move(client, admin_headers, product.id, "entry", 1)
    _move(client, admin_headers, product.id, "exit", 1)

    r = client.get("/reports/movements-by-type", headers=admin_headers)
    assert r.json() == {"entry": 2, "exit": 1, "adjustment": 1, "window_days": 30}

    r = client.get("/reports/movements-by-type", params={"days": 0}, headers=admin_headers)
    assert r.status_code == 422


def test_daily_movements_covers_last_week(client, admin_headers, make_product):
    product = make_product(stock="10")
    _move(client, admin_headers, product.id, "entry", 4)
    _move(client, admin_headers, product.id, "exit", 1)

    rows = client.get("/reports/daily-movements", headers=admin_headers).json()["data"]
    today = datetime.now(timezone.utc).date()
    assert [r["date"] for r in rows] == [(today - timedelta(days=6 - i)).isoformat() for i in range(7)]
    assert rows[-1] == {"date": today.isoformat(), "entries": 1, "exits": 1, "adjustments": 1}
    assert all(r["entries"] == 0 for r in rows[:-1])


def test_stock_by_category_and_top_stock(client, admin_headers, make_product):
    cat_id = client.post("/categories", json={"name": "Office"}, headers=admin_headers).json()["id"]
    client.post("/categories", json={"name": "Cleaning"}, headers=admin_headers)
    make_product(name="Paper", stock="30", category_id=cat_id)
    make_product(name="Pens", stock="80", category_id=cat_id)
    make_product(name="Loose", stock="5")

    r = client.get("/reports/stock-by-category", headers=admin_headers)
    assert [(c["name"], c["product_count"]) for c in r.json()["data"]] == [("Cleaning", 0), ("Office", 2)]

    r = client.get("/reports/top-stock", params={"limit": 2}, headers=admin_headers)
    assert [(t["name"], t["current_stock"]) for t in r.json()["data"]] == [("Pens", 80), ("Paper", 30)]


def test_reports_need_authentication(client):
    assert client.get("/reports/low-stock").status_code in (401, 403)
    assert client.get("/stats/summary").status_code in (401, 403)
