from utils import constants as c

from tests.conftest import auth_headers, fetch


def _product_body(**overrides):
    return {
        "name": "Daal Moth",
        "description": "Crunchy lentil mix",
        "category": "Snacks",
        "price": 120,
        "imageURL": "https://img.example.com/daal.jpg",
        **overrides,
    }


def test_create_product_defaults(client, db, make_user):
    admin = make_user(c.ROLE_ADMIN)

    response = client.post("/api/products", json=_product_body(), headers=auth_headers(admin))

    assert response.status_code == 201
    product = response.json()["product"]
    assert product["stock"] == 100
    assert product["imageURL"] == "https://img.example.com/daal.jpg"


def test_products_are_public(client, make_product):
    make_product(name="Chips")

    response = client.get("/api/products")

    assert response.status_code == 200


def test_stock_update_is_conditional(client, db, make_user, make_product):
    salesman = make_user(c.ROLE_SALESMAN)
    product = make_product(stock=5)
    url = f"/api/products/{product['_id']}/stock"

    ok = client.put(url, json={"quantitySold": 3}, headers=auth_headers(salesman))
    assert ok.status_code == 200
    assert ok.json()["product"]["stock"] == 2

    too_many = client.put(url, json={"quantitySold": 3}, headers=auth_headers(salesman))
    assert too_many.status_code == 400
    assert too_many.json()["error"] == "Insufficient stock. Available: 2, Requested: 3"

    missing = client.put(url, json={}, headers=auth_headers(salesman))
    assert missing.json()["error"] == "Valid quantity sold is required"


def test_bulk_delete_requires_ids(client, make_user):
    admin = make_user(c.ROLE_ADMIN)

    response = client.request("DELETE", "/api/products", json={"productIds": []}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["error"] == "Product IDs array is required"


def test_unknown_product_is_404(client):
    assert client.get("/api/products/not-an-id").status_code == 404


def test_category_name_unique_case_insensitive(client, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)

    first = client.post("/api/categories", json={"name": "Snacks"}, headers=auth_headers(boss))
    second = client.post("/api/categories", json={"name": "snacks"}, headers=auth_headers(boss))

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["error"] == "Category with this name already exists"


def test_category_in_use_cannot_be_deleted_or_deactivated(client, make_user, make_product):
    boss = make_user(c.ROLE_SUPERADMIN)
    category = client.post("/api/categories", json={"name": "Snacks"}, headers=auth_headers(boss)).json()["category"]
    make_product(category="Snacks")

    delete = client.delete(f"/api/categories/{category['_id']}", headers=auth_headers(boss))
    toggle = client.put(f"/api/categories/{category['_id']}/toggle", headers=auth_headers(boss))

    assert delete.status_code == 400
    assert toggle.status_code == 400


def test_public_categories_sorted(client, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)
    for name, order in (("Sweets", 2), ("Snacks", 1), ("Biscuits", 1)):
        client.post("/api/categories", json={"name": name, "sortOrder": order}, headers=auth_headers(boss))

    names = [cat["name"] for cat in client.get("/api/categories").json()["categories"]]

    assert names == ["Biscuits", "Snacks", "Sweets"]


def test_city_validation(client, db, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)

    blank = client.post("/api/cities", json={"name": "   "}, headers=auth_headers(boss))
    created = client.post("/api/cities", json={"name": " Lahore "}, headers=auth_headers(boss))
    duplicate = client.post("/api/cities", json={"name": "LAHORE"}, headers=auth_headers(boss))

    assert blank.status_code == 400
    assert blank.json()["error"] == "City name is required"
    assert created.status_code == 201
    assert fetch(db, c.CITIES, {"name": "Lahore"}) is not None
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "City already exists"


def test_cities_need_auth(client):
    assert client.get("/api/cities").status_code == 401
