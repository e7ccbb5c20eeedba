"""
Tests for order history and CSV export.
"""


ORDERS = [
    {
        "order_id": "ORD-1",
        "user_email": "jane@example.com",
        "client": "Direct",
        "report_category": "Suburb",
        "location": "Bondi, NSW",
        "pdf_report": "http://backend.test/pdf_suburb_report?order_id=ORD-1",
        "url": "/suburb-reports/Bondi",
        "date": "10-01-2024",
    },
]


def test_orders_require_login(client):
    assert client.get("/api/orders").status_code == 401


def test_orders_come_from_backend(client, upstream, login):
    upstream.add("/user-orders", body={"orders": ORDERS})
    login()

    response = client.get("/api/orders", params={"report_category": "Suburb"})

    assert response.json() == {"success": True, "orders": ORDERS}
    request = upstream.requested("/user-orders")[0]
    assert request.url.params["report_category"] == "Suburb"
    assert request.headers["Authorization"] == "Bearer test-key"


def test_all_category_is_not_forwarded(client, upstream, login):
    upstream.add("/user-orders", body=[])
    login()

    client.get("/api/orders", params={"report_category": "All"})

    assert "report_category" not in upstream.requested("/user-orders")[0].url.params


def test_sample_orders_when_backend_is_down(client, login):
    login(email="sam@example.com")

    body = client.get("/api/orders", params={"report_category": "Property"}).json()

    assert body["_fallback"] is True
    assert [order["order_id"] for order in body["orders"]] == ["ORD-2024-002", "ORD-2024-004"]
    assert all(order["user_email"] == "sam@example.com" for order in body["orders"])
    assert body["orders"][0]["pdf_report"] == "http://backend.test/pdf_property_report?order_id=ORD-2024-002"


def test_csv_export_requires_advanced_plan(client, login):
    login(plans=["pln_essentials-vb1k04zy"])

    response = client.get("/api/orders/export")

    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "FEATURE_NOT_AVAILABLE"
    assert body["feature"] == "csv_export"
    assert body["upgrade_required"] is True


def test_csv_export(client, upstream, login):
    upstream.add("/user-orders", body=ORDERS)
    login(plans=["pln_advanced-ni690fz3"])

    response = client.get("/api/orders/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "order_id,date,report_category,location,client,pdf_report,url"
    assert lines[1].startswith('ORD-1,10-01-2024,Suburb,"Bondi, NSW",Direct,')
