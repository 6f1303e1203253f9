"""End-to-end tests through the HTTP routes."""


def _product(client, **overrides):
    body = {"name": "Café 500g", "price_sale": 18.90, "price_wholesale": 15.00, "cost": 11.0, "quantity": 10}
    body.update(overrides)
    response = client.post("/api/products", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _sale_body(product, quantity=2, discount=0.0, sale_type="retail"):
    price = product["price_sale"] if sale_type == "retail" else product["price_wholesale"]
    return {
        "total_price": round(price * quantity - discount, 2),
        "discount": discount,
        "payment_method": "debit",
        "sale_type": sale_type,
        "items": [{"product_id": product["id"], "quantity": quantity, "price_sale": price}],
    }


class TestSalesAPI:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_sale_lifecycle(self, client):
        product = _product(client)

        created = client.post("/api/sales", json=_sale_body(product, discount=2.0))
        assert created.status_code == 201, created.text
        sale = created.json()
        assert sale["total_price"] == 35.8
        assert len(sale["items"]) == 1

        assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 8

        fetched = client.get(f"/api/sales/{sale['id']}").json()
        assert fetched["items"][0]["product_id"] == product["id"]

        patched = client.patch(f"/api/sales/{sale['id']}", json={"notes": "cliente fiel"})
        assert patched.status_code == 200
        assert patched.json()["notes"] == "cliente fiel"

        deleted = client.delete(f"/api/sales/{sale['id']}")
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True
        assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 10
        assert client.get(f"/api/sales/{sale['id']}").status_code == 404

    def test_wrong_tier_price_returns_validation_error(self, client):
        product = _product(client, price_sale=9.99, price_wholesale=7.99)
        body = _sale_body(product, quantity=1, sale_type="wholesale")
        body["items"][0]["price_sale"] = 9.99
        body["total_price"] = 9.99

        response = client.post("/api/sales", json=body)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "ValidationError"
        assert error["details"]["expected_price"] == 7.99
        assert error["path"] == "/api/sales"
        assert client.get("/api/sales").json()["data"] == []

    def test_list_uses_next_cursor(self, client):
        product = _product(client, quantity=100)
        for _ in range(3):
            assert client.post("/api/sales", json=_sale_body(product, quantity=1)).status_code == 201

        first = client.get("/api/sales", params={"limit": 2}).json()
        assert len(first["data"]) == 2
        assert first["nextCursor"]

        second = client.get("/api/sales", params={"limit": 2, "cursor": first["nextCursor"]}).json()
        assert len(second["data"]) == 1
        assert second["nextCursor"] is None
        assert not {s["id"] for s in first["data"]} & {s["id"] for s in second["data"]}

    def test_unknown_sale(self, client):
        response = client.delete("/api/sales/unknown")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NotFoundError"

    def test_sale_items_listing(self, client):
        product = _product(client)
        sale = client.post("/api/sales", json=_sale_body(product)).json()

        page = client.get("/api/sale-items", params={"sale_id": sale["id"]}).json()

        assert [item["sale_id"] for item in page["data"]] == [sale["id"]]
        item = client.get(f"/api/sale-items/{page['data'][0]['id']}").json()
        assert item["quantity"] == 2


class TestProductsAPI:

    def test_stats(self, client):
        product = _product(client, price_sale=10.0, price_wholesale=8.0, cost=4.0)
        purchase = client.post("/api/purchases", json={"product_id": product["id"], "quantity": 4, "unit_cost": 5.0})
        assert purchase.status_code == 201
        client.post("/api/sales", json=_sale_body(product, quantity=2))

        stats = client.get(f"/api/products/{product['id']}/stats").json()

        assert stats["average_cost"] == 5.0
        assert stats["total_revenue"] == 20.0
        assert stats["profit_margin"] == 50.0

    def test_stock_adjustment_endpoint(self, client):
        product = _product(client, quantity=3)
        response = client.post(f"/api/products/{product['id']}/stock", json={"delta": 2})
        assert response.json()["quantity"] == 5

    def test_purchase_for_unknown_product(self, client):
        response = client.post("/api/purchases", json={"product_id": "ghost", "quantity": 1, "unit_cost": 1})
        assert response.status_code == 404
