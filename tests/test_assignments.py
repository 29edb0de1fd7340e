from utils import constants as c

from tests.conftest import auth_headers, fetch


def test_create_assignment_links_shopkeeper(client, db, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    body = {"salesmanId": str(salesman["_id"]), "shopkeeperId": str(shopkeeper["_id"])}

    response = client.post("/api/assignments", json=body, headers=auth_headers(boss))

    assert response.status_code == 201
    assignment = response.json()["assignment"]
    assert assignment["salesmanId"]["name"] == salesman["name"]
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["assignedSalesman"] == salesman["_id"]

    duplicate = client.post("/api/assignments", json=body, headers=auth_headers(boss))
    assert duplicate.status_code == 400


def test_roles_are_checked(client, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    another = make_user(c.ROLE_SHOPKEEPER)

    response = client.post(
        "/api/assignments",
        json={"salesmanId": str(another["_id"]), "shopkeeperId": str(shopkeeper["_id"])},
        headers=auth_headers(boss),
    )

    assert response.status_code == 400


def test_deactivate_clears_link(client, db, make_user, assign):
    boss = make_user(c.ROLE_SUPERADMIN)
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    assignment = assign(salesman, shopkeeper)

    response = client.delete(f"/api/assignments/{assignment['_id']}", headers=auth_headers(boss))

    assert response.status_code == 200
    assert fetch(db, c.ASSIGNMENTS, {"_id": assignment["_id"]})["isActive"] is False
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["assignedSalesman"] is None


def test_superadmin_only(client, make_user):
    admin = make_user(c.ROLE_ADMIN)

    assert client.get("/api/assignments", headers=auth_headers(admin)).status_code == 403


def test_search_filters_after_population(client, make_user, assign):
    boss = make_user(c.ROLE_SUPERADMIN)
    salesman = make_user(c.ROLE_SALESMAN, name="Bilal Khan")
    assign(salesman, make_user(c.ROLE_SHOPKEEPER, name="Corner Store"))
    assign(salesman, make_user(c.ROLE_SHOPKEEPER, name="Mega Mart"))

    response = client.get("/api/assignments", params={"search": "mega"}, headers=auth_headers(boss))

    data = response.json()
    assert data["pagination"]["total"] == 1
    assert data["assignments"][0]["shopkeeperId"]["name"] == "Mega Mart"


def test_salesman_sees_only_own_shopkeepers(client, make_user, assign):
    salesman = make_user(c.ROLE_SALESMAN)
    other = make_user(c.ROLE_SALESMAN)
    mine = make_user(c.ROLE_SHOPKEEPER, name="Mine")
    assign(salesman, mine)
    assign(other, make_user(c.ROLE_SHOPKEEPER, name="Theirs"))

    own = client.get(f"/api/assignments/salesman/{salesman['_id']}/shopkeepers", headers=auth_headers(salesman))
    assert [s["name"] for s in own.json()["shopkeepers"]] == ["Mine"]

    listed = client.get("/api/shopkeepers", headers=auth_headers(salesman))
    assert [s["name"] for s in listed.json()["shopkeepers"]] == ["Mine"]

    peek = client.get(f"/api/assignments/salesman/{other['_id']}", headers=auth_headers(salesman))
    assert peek.status_code == 403
