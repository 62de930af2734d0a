from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook


def _sale_body(*lines, payment_method="cash", **extra) -> dict:
    return {
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
        "payment_method": payment_method,
        **extra,
    }


def _product_body(**overrides) -> dict:
    body = {
        "name": "Cetirizine 10mg",
        "buy_price": 2.5,
        "sell_price": 4.0,
        "stock": 20,
        "category": "Antihistamines",
        "barcode": "7501000000011",
    }
    body.update(overrides)
    return body


# --- 1. System ---

def test_health(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_api_index_lists_endpoints(client) -> None:
    response = client.get("/api")

    assert response.status_code == 200
    assert response.json()["endpoints"]["sales"] == "/api/sales"


# --- 2. Recording sales ---

def test_create_sale_returns_201_with_sale(client, make_product, stock_of) -> None:
    pid = make_product(stock=5, sell_price=Decimal("100.00"))

    response = client.post("/api/sales", json=_sale_body((pid, 3)))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    sale = body["data"]
    assert sale["id"].startswith("sale_")
    assert Decimal(sale["final_total"]) == Decimal("300")
    assert sale["items"][0]["product_id"] == pid
    assert sale["items"][0]["product_name"] == "Paracetamol 500mg"
    assert Decimal(sale["items"][0]["unit_price"]) == Decimal("100")
    assert stock_of(pid) == 2


def test_insufficient_stock_returns_400(client, make_product, stock_of, ledger_counts) -> None:
    pid = make_product(stock=2)

    response = client.post("/api/sales", json=_sale_body((pid, 5)))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "InsufficientStock"
    assert body["product_id"] == pid
    assert body["available"] == 2
    assert stock_of(pid) == 2
    assert ledger_counts() == (0, 0)


def test_unknown_product_returns_404_without_writes(client, make_product, stock_of, ledger_counts) -> None:
    pid = make_product(stock=5)

    response = client.post("/api/sales", json=_sale_body((pid, 1), ("zzz", 1)))

    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"
    assert stock_of(pid) == 5
    assert ledger_counts() == (0, 0)


def test_invalid_payment_method_returns_400(client, make_product) -> None:
    pid = make_product()

    response = client.post("/api/sales", json=_sale_body((pid, 1), payment_method="bitcoin"))

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidRequest"


def test_invalid_quantities_return_400(client, make_product, ledger_counts) -> None:
    pid = make_product()

    for quantity in (0, -1, 1.5, "2"):
        response = client.post("/api/sales", json=_sale_body((pid, quantity)))
        assert response.status_code == 400, quantity
        assert response.json()["error"] == "InvalidRequest"

    assert ledger_counts() == (0, 0)


def test_empty_cart_returns_400(client) -> None:
    response = client.post("/api/sales", json={"items": [], "payment_method": "cash"})

    assert response.status_code == 400


def test_discount_larger_than_subtotal_returns_400(client, make_product, stock_of) -> None:
    pid = make_product(stock=5, sell_price=Decimal("100.00"))

    response = client.post("/api/sales", json=_sale_body((pid, 1), discount=101))

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidRequest"
    assert stock_of(pid) == 5


def test_out_of_range_tax_and_discount_return_400(client, make_product, stock_of, ledger_counts) -> None:
    """Amounts too large or too precise for cents are rejected as structured errors."""
    pid = make_product(stock=5)

    for extra in ({"tax": "1e30"}, {"discount": "1e30"}, {"tax": "0.001"}):
        response = client.post("/api/sales", json=_sale_body((pid, 1), **extra))
        assert response.status_code == 400, extra
        assert response.json()["error"] == "InvalidRequest"

    assert stock_of(pid) == 5
    assert ledger_counts() == (0, 0)


# --- 3. Reading the ledger ---

def test_get_sale_by_id(client, make_product) -> None:
    pid = make_product()
    sale_id = client.post("/api/sales", json=_sale_body((pid, 1))).json()["data"]["id"]

    response = client.get(f"/api/sales/{sale_id}")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == sale_id


def test_get_missing_sale_returns_404(client) -> None:
    response = client.get("/api/sales/sale_does_not_exist")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_list_sales_pagination_metadata(client, make_product) -> None:
    pid = make_product(stock=10)
    for _ in range(3):
        assert client.post("/api/sales", json=_sale_body((pid, 1))).status_code == 201

    response = client.get("/api/sales", params={"page": 1, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}


def test_list_sales_rejects_oversized_limit(client) -> None:
    response = client.get("/api/sales", params={"limit": 1000})

    assert response.status_code == 400


def test_today_sales_summary(client, make_product) -> None:
    pid = make_product(stock=10, sell_price=Decimal("100.00"))
    client.post("/api/sales", json=_sale_body((pid, 2)))
    client.post("/api/sales", json=_sale_body((pid, 1), tax=5))

    response = client.get("/api/sales/today")

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["sales"]) == 2
    assert data["summary"]["count"] == 2
    assert data["summary"]["item_count"] == 3
    assert Decimal(data["summary"]["revenue"]) == Decimal("305")


def test_date_range_with_no_sales(client) -> None:
    response = client.get(
        "/api/sales/date-range",
        params={"start_date": "2020-01-01", "end_date": "2020-01-31"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sales"] == []
    assert data["summary"]["count"] == 0


def test_date_range_rejects_reversed_dates(client) -> None:
    response = client.get(
        "/api/sales/date-range",
        params={"start_date": "2026-02-02", "end_date": "2026-02-01"},
    )

    assert response.status_code == 400


def test_export_returns_workbook(client, make_product) -> None:
    pid = make_product(stock=10)
    client.post("/api/sales", json=_sale_body((pid, 2)))
    today = client.get("/api/sales/today").json()["data"]["sales"][0]["created_at"][:10]

    response = client.get("/api/sales/export", params={"start_date": today, "end_date": today})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    workbook = load_workbook(BytesIO(response.content))
    assert workbook.sheetnames == ["Sales Data", "Summary"]
    rows = list(workbook["Sales Data"].iter_rows(values_only=True))
    assert rows[0][0] == "Date"
    assert rows[1][2] == "Paracetamol 500mg"
    assert rows[1][3] == 2


# --- 4. Catalog ---

def test_create_and_fetch_product(client) -> None:
    response = client.post("/api/products", json=_product_body())

    assert response.status_code == 201
    product = response.json()["data"]
    assert product["id"].startswith("prod_")

    fetched = client.get(f"/api/products/{product['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["name"] == "Cetirizine 10mg"

    by_barcode = client.get("/api/products/barcode/7501000000011")
    assert by_barcode.json()["data"]["id"] == product["id"]


def test_product_list_pages_by_default_limit(client, make_product) -> None:
    for name in ("Aspirin", "Betadine", "Cetirizine"):
        make_product(name=name)

    first = client.get("/api/products", params={"page": 1, "limit": 2}).json()
    second = client.get("/api/products", params={"page": 2, "limit": 2}).json()
    beyond = client.get("/api/products", params={"page": 2}).json()

    assert [p["name"] for p in first["data"]] == ["Aspirin", "Betadine"]
    assert [p["name"] for p in second["data"]] == ["Cetirizine"]
    assert second["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
    assert beyond["data"] == []
    assert beyond["pagination"]["limit"] == 50
    assert beyond["pagination"]["totalPages"] == 1


def test_sell_price_below_buy_price_is_rejected(client) -> None:
    response = client.post("/api/products", json=_product_body(buy_price=5, sell_price=4))

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidRequest"


def test_update_cannot_push_sell_price_below_buy_price(client, make_product) -> None:
    pid = make_product(buy_price=Decimal("60.00"), sell_price=Decimal("100.00"))

    response = client.put(f"/api/products/{pid}", json={"sell_price": 50})

    assert response.status_code == 400


def test_duplicate_barcode_is_a_conflict(client) -> None:
    assert client.post("/api/products", json=_product_body()).status_code == 201

    response = client.post("/api/products", json=_product_body(name="Other"))

    assert response.status_code == 409


def test_update_stock(client, make_product, stock_of) -> None:
    pid = make_product(stock=5)

    response = client.patch(f"/api/products/{pid}/stock", json={"stock": 42})

    assert response.status_code == 200
    assert stock_of(pid) == 42
    assert client.patch(f"/api/products/{pid}/stock", json={"stock": -1}).status_code == 400


def test_search_low_stock_and_categories(client, make_product) -> None:
    make_product(name="Vitamin C", category="Supplements", stock=50)
    make_product(name="Aspirin", category="Analgesics", stock=3)

    search = client.get("/api/products/search", params={"q": "vita"}).json()["data"]
    low = client.get("/api/products/low-stock", params={"threshold": 5}).json()["data"]
    categories = client.get("/api/products/categories").json()["data"]

    assert [p["name"] for p in search] == ["Vitamin C"]
    assert [p["name"] for p in low] == ["Aspirin"]
    assert categories == ["Analgesics", "Supplements"]


def test_products_with_margin(client, make_product) -> None:
    make_product(buy_price=Decimal("60.00"), sell_price=Decimal("100.00"))

    data = client.get("/api/products/with-margin").json()["data"]

    assert data[0]["margin"] == "40.00"
    assert data[0]["margin_percentage"] == "40.00"


def test_delete_sold_product_is_rejected(client, make_product) -> None:
    pid = make_product()
    client.post("/api/sales", json=_sale_body((pid, 1)))

    response = client.delete(f"/api/products/{pid}")

    assert response.status_code == 409
    assert client.get(f"/api/products/{pid}").status_code == 200


def test_delete_unsold_product(client, make_product) -> None:
    pid = make_product()

    assert client.delete(f"/api/products/{pid}").status_code == 200
    assert client.get(f"/api/products/{pid}").status_code == 404


# --- 5. Customers ---

def test_customers_crud(client) -> None:
    created = client.post(
        "/api/customers",
        json={"name": "Ana Ruiz", "phone": "555-0101", "email": "ana@example.com"},
    )
    assert created.status_code == 201
    customer_id = created.json()["data"]["id"]

    duplicate = client.post("/api/customers", json={"name": "Other", "phone": "555-0101"})
    assert duplicate.status_code == 409

    assert client.get(f"/api/customers/{customer_id}").json()["data"]["name"] == "Ana Ruiz"
    assert len(client.get("/api/customers").json()["data"]) == 1
    assert client.get("/api/customers/cust_missing").status_code == 404
