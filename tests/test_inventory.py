from models.inventory import InventoryItem
from models.log import Log
from models.repair import RepairType

from conftest import make_user, auth_headers


def _product(client, headers, name, quantity=0, min_level=5):
    return client.post("/inventory", json={
        "name": name, "price": 10, "points": 1, "quantity": quantity, "min_stock_level": min_level,
    }, headers=headers)


def test_inventory_needs_permission(client, db, mechanic_headers):
    assert client.get("/inventory", headers=mechanic_headers).status_code == 403
    keeper = make_user(db, "magazijn@bikeshop.nl", permissions=["inventory"])
    assert client.get("/inventory", headers=auth_headers(keeper)).status_code == 200


def test_new_product_is_on_the_price_list(client, admin_headers, mechanic_headers):
    res = _product(client, admin_headers, "Remkabel", quantity=3)
    assert res.status_code == 201
    assert res.json()["stock_status"] == "low"
    names = [r["name"] for r in client.get("/repair-types", headers=mechanic_headers).json()]
    assert names == ["Remkabel"]


def test_price_list_entries_get_a_stock_row(client, db, admin_headers):
    client.post("/repair-types", json={"name": "Spaak", "price": 5, "points": 1}, headers=admin_headers)
    # Added behind the API's back
    db.add(RepairType(name="Velg", price=40, points=3))
    db.commit()

    items = client.get("/inventory", headers=admin_headers).json()["items"]
    assert [(i["name"], i["quantity"], i["min_stock_level"]) for i in items] == [("Spaak", 0, 5), ("Velg", 0, 5)]
    assert db.query(InventoryItem).count() == 2


def test_adjust_never_goes_negative(client, db, admin_headers):
    item_id = _product(client, admin_headers, "Remkabel", quantity=3).json()["id"]

    res = client.post(f"/inventory/{item_id}/adjust", json={"delta": 4, "reason": "levering"}, headers=admin_headers)
    assert res.json()["quantity"] == 7
    assert res.json()["stock_status"] == "ok"

    res = client.post(f"/inventory/{item_id}/adjust", json={"delta": -10}, headers=admin_headers)
    assert res.status_code == 400
    assert db.query(Log).filter_by(action="STOCK_ADJUSTMENT").count() == 1

    # Direct edits clamp at zero
    res = client.put(f"/inventory/{item_id}", json={"quantity": -3}, headers=admin_headers)
    assert res.json()["quantity"] == 0
    assert res.json()["stock_status"] == "out"


def test_group_stock_is_the_sum_of_its_items(client, admin_headers):
    tube_a = _product(client, admin_headers, "Binnenband 26", quantity=1).json()["id"]
    tube_b = _product(client, admin_headers, "Binnenband 28", quantity=0).json()["id"]
    labour = _product(client, admin_headers, "Afstellen", quantity=50).json()["id"]
    client.put(f"/inventory/{labour}", json={"unlimited_stock": True}, headers=admin_headers)

    group = client.post("/inventory/groups", json={"name": "Binnenbanden", "min_stock_level": 2}, headers=admin_headers).json()
    for item_id in (tube_a, tube_b, labour):
        client.put(f"/inventory/{item_id}/group", json={"group_id": group["id"]}, headers=admin_headers)

    overview = client.get("/inventory", headers=admin_headers).json()
    g = overview["groups"][0]
    assert (g["total_quantity"], g["item_count"], g["stock_status"]) == (1, 3, "low")
    assert overview["low_stock_group_ids"] == [group["id"]]
    assert overview["out_of_stock_group_ids"] == []
    # Grouped items are reported through the group only
    assert overview["low_stock_item_ids"] == []
    by_id = {i["id"]: i for i in overview["items"]}
    assert by_id[tube_b]["effective_quantity"] == 1
    assert by_id[tube_b]["stock_status"] == "low"
    assert by_id[labour]["stock_status"] == "ok"

    client.delete(f"/inventory/groups/{group['id']}", headers=admin_headers)
    overview = client.get("/inventory", headers=admin_headers).json()
    assert overview["groups"] == []
    assert sorted(overview["out_of_stock_item_ids"]) == [tube_b]


def test_delete_product_removes_repair_type(client, db, admin_headers):
    item_id = _product(client, admin_headers, "Remkabel").json()["id"]
    assert client.delete(f"/inventory/{item_id}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.query(RepairType).count() == 0
    assert db.query(InventoryItem).count() == 0
    assert client.delete(f"/inventory/{item_id}", headers=admin_headers).status_code == 404
