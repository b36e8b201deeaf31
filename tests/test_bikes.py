from datetime import timedelta

import pytest

from models.bike import Bike, TableCallStatus
from models.log import Log
from models.repair import RepairType, CompletionChecklistItem, WorkRegistration
from utils.clock import utcnow


@pytest.fixture
def repair_types(db):
    rows = [
        RepairType(name="Binnenband", price=17.5, points=2),
        RepairType(name="Remblokken", price=24.95, points=3),
        RepairType(name="Ketting", price=34.95, points=4),
    ]
    db.add_all(rows)
    db.commit()
    return [r.id for r in rows]


@pytest.fixture
def checklist(db):
    rows = [
        CompletionChecklistItem(name="Remmen getest", sort_order=0),
        CompletionChecklistItem(name="Proefrit", sort_order=1),
        CompletionChecklistItem(name="Oud item", sort_order=2, is_active=False),
    ]
    db.add_all(rows)
    db.commit()
    return [r.id for r in rows]


def _intake(client, headers, frame="asy4104587", table="3", **extra):
    return client.post("/bikes", json={"frame_number": frame, "model": "S5", "table_number": table, **extra}, headers=headers)


def test_intake_normalizes_frame_and_starts_at_diagnosis(client, foh_headers):
    res = _intake(client, foh_headers, frame="  asy4104587 ")
    assert res.status_code == 201
    body = res.json()
    assert body["frame_number"] == "ASY4104587"
    assert body["workflow_status"] == "diagnose_nodig"
    assert body["status_label"] == "Diagnose nodig"


def test_occupied_table_is_conflict(client, foh_headers):
    _intake(client, foh_headers, frame="ASY1", table="3")
    res = _intake(client, foh_headers, frame="ASY2", table="3")
    assert res.status_code == 409


def test_same_bike_twice_is_conflict(client, foh_headers):
    _intake(client, foh_headers, frame="ASY1", table="3")
    assert _intake(client, foh_headers, frame="asy1", table="4").status_code == 409


def test_sales_bike_goes_straight_to_repair(client, mechanic, mechanic_headers):
    res = _intake(client, mechanic_headers, is_sales_bike=True)
    assert res.json()["workflow_status"] == "in_reparatie"
    assert res.json()["current_mechanic_id"] == mechanic.id


def test_unknown_model_and_status_are_rejected(client, foh_headers):
    res = client.post("/bikes", json={"frame_number": "X", "model": "Z9"}, headers=foh_headers)
    assert res.status_code == 422
    bike_id = _intake(client, foh_headers).json()["id"]
    res = client.patch(f"/bikes/{bike_id}/workflow", json={"workflow_status": "gestolen"}, headers=foh_headers)
    assert res.status_code == 422


def test_illegal_transition_is_conflict(client, foh_headers):
    bike_id = _intake(client, foh_headers).json()["id"]
    res = client.patch(f"/bikes/{bike_id}/workflow", json={"workflow_status": "afgerond"}, headers=foh_headers)
    assert res.status_code == 409


def test_force_is_admin_only(client, db, foh_headers, admin_headers):
    bike_id = _intake(client, foh_headers).json()["id"]
    body = {"workflow_status": "afgerond", "force": True}
    assert client.patch(f"/bikes/{bike_id}/workflow", json=body, headers=foh_headers).status_code == 403

    res = client.patch(f"/bikes/{bike_id}/workflow", json=body, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["workflow_status"] == "afgerond"
    log = db.query(Log).filter_by(action="WORKFLOW_CHANGE").one()
    assert log.meta["forced"] is True


def test_full_repair_flow(client, db, foh_headers, mechanic, mechanic_headers, repair_types, checklist):
    bike_id = _intake(client, foh_headers).json()["id"]

    res = client.post(f"/bikes/{bike_id}/start-diagnosis", headers=mechanic_headers)
    assert res.json()["workflow_status"] == "diagnose_bezig"
    assert res.json()["current_mechanic_id"] == mechanic.id

    res = client.post(f"/bikes/{bike_id}/diagnosis", json={"repair_type_ids": repair_types[:2]}, headers=mechanic_headers)
    assert res.status_code == 200
    assert res.json()["workflow_status"] == "wacht_op_akkoord"
    assert res.json()["diagnosed_by"] == mechanic.id

    # Customer asks for a chain as well
    res = client.post(f"/bikes/{bike_id}/registrations", json={"repair_type_id": repair_types[2]}, headers=foh_headers)
    assert res.status_code == 201
    res = client.post(f"/bikes/{bike_id}/registrations", json={"repair_type_id": repair_types[2]}, headers=foh_headers)
    assert res.status_code == 409

    detail = client.get(f"/bikes/{bike_id}", headers=foh_headers).json()
    regs = {r["repair_name"]: r["id"] for r in detail["registrations"]}
    assert set(regs) == {"Binnenband", "Remblokken", "Ketting"}

    res = client.post(
        f"/bikes/{bike_id}/approval",
        json={"approved_ids": [regs["Binnenband"], regs["Ketting"]]},
        headers=foh_headers,
    )
    assert res.json() == {
        "approved": 2, "rejected": 1, "total_price": 52.45, "workflow_status": "klaar_voor_reparatie",
    }

    res = client.post(f"/bikes/{bike_id}/start-repair", headers=mechanic_headers)
    assert res.json()["workflow_status"] == "in_reparatie"

    res = client.patch(f"/registrations/{regs['Binnenband']}", json={"completed": True}, headers=mechanic_headers)
    assert res.json()["completed"] is True
    assert res.json()["mechanic_name"] == "Mark Monteur"

    # Checklist not done yet
    assert client.post(f"/bikes/{bike_id}/complete", headers=mechanic_headers).status_code == 400

    for item_id in checklist[:2]:
        state = client.post(f"/bikes/{bike_id}/checklist/{item_id}", headers=mechanic_headers).json()
    assert state["all_completed"] is True

    res = client.post(f"/bikes/{bike_id}/complete", headers=mechanic_headers)
    assert res.status_code == 200
    assert res.json()["workflow_status"] == "afgerond"

    db.expire_all()
    regs_left = db.query(WorkRegistration).filter_by(bike_id=bike_id).all()
    assert len(regs_left) == 2 and all(r.completed for r in regs_left)

    overview = client.get("/me/overview", headers=mechanic_headers).json()
    assert overview["completed_repairs"] == 2
    assert overview["total_points"] == 6
    assert overview["diagnoses"] == 1


def test_check_all_is_admin_only(client, foh_headers, mechanic_headers, admin_headers, checklist):
    bike_id = _intake(client, foh_headers).json()["id"]
    assert client.post(f"/bikes/{bike_id}/checklist/check-all", headers=mechanic_headers).status_code == 403
    state = client.post(f"/bikes/{bike_id}/checklist/check-all", headers=admin_headers).json()
    assert state["completed_item_ids"] == checklist[:2]
    assert state["all_completed"] is True


def test_returning_bike_is_reopened(client, foh_headers, admin_headers):
    bike_id = _intake(client, foh_headers, table="5").json()["id"]
    client.patch(f"/bikes/{bike_id}/workflow", json={"workflow_status": "afgerond", "force": True}, headers=admin_headers)

    res = _intake(client, foh_headers, frame="ASY4104587", table="6")
    assert res.status_code == 201
    assert res.json()["id"] == bike_id
    assert res.json()["workflow_status"] == "diagnose_nodig"
    assert res.json()["table_number"] == "6"
    assert res.json()["visit"] == 2


def _finish_visit(client, bike_id, headers, repair_ids, checklist):
    client.post(f"/bikes/{bike_id}/start-diagnosis", headers=headers)
    client.post(f"/bikes/{bike_id}/diagnosis", json={"repair_type_ids": repair_ids}, headers=headers)
    reg_ids = [r["id"] for r in client.get(f"/bikes/{bike_id}", headers=headers).json()["registrations"]]
    client.post(f"/bikes/{bike_id}/approval", json={"approved_ids": reg_ids}, headers=headers)
    client.post(f"/bikes/{bike_id}/start-repair", headers=headers)
    for item_id in checklist[:2]:
        client.post(f"/bikes/{bike_id}/checklist/{item_id}", headers=headers)
    return client.post(f"/bikes/{bike_id}/complete", headers=headers)


def test_second_visit_starts_clean(client, db, foh_headers, mechanic_headers, repair_types, checklist):
    flat, brakes = repair_types[0], repair_types[1]
    bike_id = _intake(client, foh_headers, table="5").json()["id"]
    assert _finish_visit(client, bike_id, mechanic_headers, [flat], checklist).json()["workflow_status"] == "afgerond"

    # First visit was long ago
    long_ago = utcnow() - timedelta(days=10)
    db.query(Bike).filter_by(id=bike_id).update({"created_at": long_ago, "opened_at": long_ago})
    db.commit()

    assert _intake(client, foh_headers, table="4").json()["visit"] == 2

    state = client.get(f"/bikes/{bike_id}/checklist", headers=mechanic_headers).json()
    assert state["completed_item_ids"] == []
    assert client.post(f"/bikes/{bike_id}/complete", headers=mechanic_headers).status_code == 400

    # The same repair again is a new line item, not a duplicate of last visit's
    res = client.post(f"/bikes/{bike_id}/registrations", json={"repair_type_id": flat}, headers=foh_headers)
    assert res.status_code == 201
    assert res.json()["completed"] is False
    client.post(f"/bikes/{bike_id}/start-diagnosis", headers=mechanic_headers)
    res = client.post(f"/bikes/{bike_id}/diagnosis", json={"repair_type_ids": [flat, brakes]}, headers=mechanic_headers)
    assert res.status_code == 200

    detail = client.get(f"/bikes/{bike_id}", headers=foh_headers).json()
    assert sorted(r["repair_name"] for r in detail["registrations"]) == ["Binnenband", "Remblokken"]
    assert not any(r["completed"] for r in detail["registrations"])
    assert db.query(WorkRegistration).filter_by(bike_id=bike_id).count() == 3

    slot = next(s for s in client.get("/tv/board").json()["tables"] if s["table_number"] == "4")
    assert sorted(r["name"] for r in slot["bike"]["repairs"]) == ["Binnenband", "Remblokken"]
    assert not any(r["completed"] for r in slot["bike"]["repairs"])
    assert slot["bike"]["days_on_table"] == 1
    assert slot["bike"]["is_long_stay"] is False


def test_completed_bike_cannot_be_put_back_on_a_table(client, db, foh_headers, admin_headers):
    bike_id = _intake(client, foh_headers, table="5").json()["id"]
    client.patch(f"/bikes/{bike_id}/workflow", json={"workflow_status": "afgerond", "force": True}, headers=admin_headers)

    res = client.patch(f"/bikes/{bike_id}", json={"table_number": "9"}, headers=foh_headers)
    assert res.status_code == 409
    detail = client.get(f"/bikes/{bike_id}", headers=foh_headers).json()
    assert detail["workflow_status"] == "afgerond"
    assert detail["visit"] == 1

    # Clearing the table or editing other fields stays allowed
    assert client.patch(f"/bikes/{bike_id}", json={"table_number": None}, headers=foh_headers).status_code == 200
    assert client.patch(f"/bikes/{bike_id}", json={"customer_phone": "0611111111"}, headers=foh_headers).status_code == 200
    assert db.query(Log).filter_by(action="WORKFLOW_CHANGE").count() == 1


def test_search_by_frame_or_table(client, foh_headers):
    _intake(client, foh_headers, frame="ASY1", table="A")
    _intake(client, foh_headers, frame="ASY2", table="12")

    assert [b["frame_number"] for b in client.get("/bikes/search", params={"frame_number": "asy1"}, headers=foh_headers).json()] == ["ASY1"]
    assert [b["frame_number"] for b in client.get("/bikes/search", params={"frame_number": "tafel 12"}, headers=foh_headers).json()] == ["ASY2"]
    assert client.get("/bikes/search", params={"frame_number": "ASY9"}, headers=foh_headers).json() == []


def test_list_hides_completed_by_default(client, foh_headers, admin_headers):
    done = _intake(client, foh_headers, frame="ASY1", table="1").json()["id"]
    _intake(client, foh_headers, frame="ASY2", table="2")
    client.patch(f"/bikes/{done}/workflow", json={"workflow_status": "afgerond", "force": True}, headers=admin_headers)

    page = client.get("/bikes", headers=foh_headers).json()
    assert [b["frame_number"] for b in page["items"]] == ["ASY2"]
    page = client.get("/bikes", params={"include_completed": True}, headers=foh_headers).json()
    assert page["total"] == 2


def test_move_table_checks_occupancy(client, foh_headers):
    _intake(client, foh_headers, frame="ASY1", table="1")
    second = _intake(client, foh_headers, frame="ASY2", table="2").json()["id"]
    assert client.patch(f"/bikes/{second}", json={"table_number": "1"}, headers=foh_headers).status_code == 409
    res = client.patch(f"/bikes/{second}", json={"table_number": "c"}, headers=foh_headers)
    assert res.json()["table_number"] == "C"


def test_comments_and_calls(client, db, foh_headers, mechanic_headers):
    bike_id = _intake(client, foh_headers).json()["id"]

    res = client.post(f"/bikes/{bike_id}/comments", json={"content": "Klant wil hem vrijdag terug"}, headers=mechanic_headers)
    assert res.status_code == 201
    assert res.json()["author_name"] == "Mark Monteur"
    assert len(client.get(f"/bikes/{bike_id}/comments", headers=foh_headers).json()) == 1

    # Only front of house registers calls
    assert client.post(f"/bikes/{bike_id}/calls", json={}, headers=mechanic_headers).status_code == 403
    call = client.post(f"/bikes/{bike_id}/calls", json={"notes": "Geen gehoor"}, headers=foh_headers).json()
    assert call["caller_name"] == "Fleur Balie"
    assert client.delete(f"/calls/{call['id']}", headers=foh_headers).status_code == 200


def test_customer_status_is_public_and_hides_phone(client, foh_headers):
    _intake(client, foh_headers, customer_phone="0612345678")
    res = client.get("/status/asy4104587", params={"lang": "en"})
    assert res.status_code == 200
    body = res.json()
    assert body["label"] == "Diagnosis needed"
    assert len(body["steps"]) == 7
    assert "customer_phone" not in body
    assert client.get("/status/NOPE").status_code == 404


def test_call_status_assignment(client, db, foh_headers):
    status = TableCallStatus(name="Gebeld", name_en="Called", color="#22c55e")
    db.add(status)
    db.commit()
    bike_id = _intake(client, foh_headers).json()["id"]
    res = client.patch(f"/bikes/{bike_id}", json={"call_status_id": status.id}, headers=foh_headers)
    assert res.json()["call_status_id"] == status.id
    assert client.patch(f"/bikes/{bike_id}", json={"call_status_id": 999}, headers=foh_headers).status_code == 404


def test_unknown_bike_is_404(client, foh_headers):
    assert client.get("/bikes/999", headers=foh_headers).status_code == 404
