import os
import sys
from datetime import date

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.bike import TableCallStatus
from models.repair import RepairType, RepairTypeModel, CompletionChecklistItem
from models.users import User, UserRole, AppRole
from utils.hashing import get_password_hash

# Configuration
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@workshop.nl")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Workshop Admin")

# (name, description, price, points, models); empty models = every model
REPAIR_TYPES = [
    ("Binnenband vervangen", "Inner tube replacement", 17.50, 2, []),
    ("Buitenband vervangen", "Tyre replacement", 39.95, 3, []),
    ("Remblokken vervangen", "Brake pads", 24.95, 2, []),
    ("Ketting vervangen", "Chain replacement", 34.95, 3, []),
    ("Versnelling afstellen", "Gear adjustment", 15.00, 1, []),
    ("Accu controleren", "Battery diagnostics", 29.95, 2, ["S3", "S5", "X3", "X5", "A5"]),
    ("Motor update", "Motor firmware update", 19.95, 1, ["S3", "S5", "X3", "X5"]),
    ("Grote beurt", "Full service", 129.00, 8, []),
]

# (name, name_en, color)
CALL_STATUSES = [
    ("Niet gebeld", "Not called", "#9ca3af"),
    ("Gebeld, geen gehoor", "Called, no answer", "#fbbf24"),
    ("Voicemail ingesproken", "Left voicemail", "#f97316"),
    ("Klant akkoord", "Customer approved", "#22c55e"),
    ("Klant belt terug", "Customer calls back", "#3b82f6"),
]

CHECKLIST_ITEMS = [
    ("Remmen getest", "Front and rear brakes tested"),
    ("Banden op spanning", "Tyre pressure checked"),
    ("Verlichting werkt", "Lights working"),
    ("Proefrit gemaakt", "Test ride done"),
]
# End Configuration


def seed_admin(session):
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        print(f"Admin {ADMIN_EMAIL} already exists, skipping.")
        return
    admin = User(
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        full_name=ADMIN_NAME,
        is_active=True,
        is_approved=True,
        date_of_birth=date(1990, 1, 1),
    )
    admin.role_row = UserRole(role=AppRole.ADMIN)
    session.add(admin)
    print(f"Created admin {ADMIN_EMAIL}.")


def seed_price_list(session):
    if session.query(RepairType).count():
        print("Price list already filled, skipping.")
        return
    for name, description, price, points, models in REPAIR_TYPES:
        rt = RepairType(name=name, description=description, price=price, points=points)
        rt.model_rows = [RepairTypeModel(model=m) for m in models]
        session.add(rt)
    print(f"Inserted {len(REPAIR_TYPES)} repair types.")


def seed_call_statuses(session):
    if session.query(TableCallStatus).count():
        print("Call statuses already present, skipping.")
        return
    for order, (name, name_en, color) in enumerate(CALL_STATUSES):
        session.add(TableCallStatus(name=name, name_en=name_en, color=color, sort_order=order, is_active=True))
    print(f"Inserted {len(CALL_STATUSES)} call statuses.")


def seed_checklist(session):
    if session.query(CompletionChecklistItem).count():
        print("Checklist already present, skipping.")
        return
    for order, (name, description) in enumerate(CHECKLIST_ITEMS):
        session.add(CompletionChecklistItem(name=name, description=description, sort_order=order, is_active=True))
    print(f"Inserted {len(CHECKLIST_ITEMS)} checklist items.")


def load_all_data():
    """Creates the tables and fills the reference data a fresh workshop needs."""
    init_db()
    session = SessionLocal()
    try:
        seed_admin(session)
        seed_price_list(session)
        seed_call_statuses(session)
        seed_checklist(session)
        session.commit()
        print("Seeding finished.")
    except Exception as e:
        session.rollback()
        print(f"Seeding failed: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    load_all_data()
