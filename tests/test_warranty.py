from datetime import timedelta

import pytest

from models.bike import Bike, BikeModel, BikeWorkflowStatus
from models.repair import RepairType, WorkRegistration
from utils.clock import utcnow

from conftest import make_user, auth_headers


@pytest.fixture
def history(db, mechanic):
    other = make_user(db, "tweede@bikeshop.nl", full_name="Tom Tweede")
    tube = RepairType(name="Binnenband", price=17.5, points=2)
    brakes = RepairType(name="Remblokken", price=24.95, points=3)
    bike = Bike(frame_number="ASY1", model=BikeModel.S5, workflow_status=BikeWorkflowStatus.AFGEROND, visit=3)
    old_bike = Bike(frame_number="ASY2", model=BikeModel.X5, workflow_status=BikeWorkflowStatus.AFGEROND, visit=2)
    db.add_all([tube, brakes, bike, old_bike])
    db.commit()

    now = utcnow()

    def done(b, rt, days_ago, visit, who):
        db.add(WorkRegistration(
            bike_id=b.id, repair_type_id=rt.id, visit=visit, completed=True,
            completed_at=now - timedelta(days=days_ago), mechanic_id=who.id,
        ))

    done(bike, tube, 100, 1, mechanic)
    done(bike, brakes, 100, 1, mechanic)
    # Tube again after 90 days, by someone else
    done(bike, tube, 10, 2, other)
    # Tube a third time, 5 days after the second
    done(bike, tube, 5, 3, mechanic)
    # Brakes again, but well past the window
    done(old_bike, brakes, 300, 1, mechanic)
    done(old_bike, brakes, 20, 2, mechanic)
    # Proposed but never done
    db.add(WorkRegistration(bike_id=bike.id, repair_type_id=brakes.id, visit=3, completed=False))
    db.commit()
    return {"bike": bike, "other": other}


def test_warranty_needs_permission(client, db, mechanic_headers):
    assert client.get("/warranty", headers=mechanic_headers).status_code == 403
    viewer = make_user(db, "garantie@bikeshop.nl", permissions=["warranty"])
    assert client.get("/warranty", headers=auth_headers(viewer)).status_code == 200


def test_repeat_repairs_within_window(client, admin_headers, mechanic, history):
    res = client.get("/warranty", params={"days": 30}, headers=admin_headers).json()
    assert res["window_days"] == 180
    assert res["total"] == 2

    latest, earlier = res["cases"]
    assert latest["days_since_original"] == 5
    assert latest["mechanic_name"] == "Mark Monteur"
    assert earlier["days_since_original"] == 90
    assert earlier["mechanic_name"] == "Tom Tweede"
    assert earlier["frame_number"] == "ASY1"
    assert earlier["model"] == "S5"
    assert {c["repair_name"] for c in res["cases"]} == {"Binnenband"}

    assert res["by_repair_type"] == [{"repair_name": "Binnenband", "count": 2}]
    # Ties keep the most recent case first
    assert [(m["mechanic_id"], m["total"]) for m in res["by_mechanic"]] == [(mechanic.id, 1), (history["other"].id, 1)]


def test_period_and_mechanic_filters(client, admin_headers, mechanic, history):
    res = client.get("/warranty", params={"days": 7}, headers=admin_headers).json()
    assert [c["days_since_original"] for c in res["cases"]] == [5]

    res = client.get("/warranty", params={"days": 9999, "mechanic_id": history["other"].id}, headers=admin_headers).json()
    assert res["total"] == 1
    assert res["by_mechanic"] == [{
        "mechanic_id": history["other"].id, "mechanic_name": "Tom Tweede", "total": 1, "repairs": {"Binnenband": 1},
    }]


def test_no_completions_is_empty(client, admin_headers):
    res = client.get("/warranty", headers=admin_headers).json()
    assert res == {"days": 30, "window_days": 180, "total": 0, "cases": [], "by_mechanic": [], "by_repair_type": []}
