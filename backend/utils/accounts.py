# backend/utils/accounts.py
from sqlalchemy.orm import Session

from models.availability import Availability
from models.users import User


def remove_account(db: Session, user_id: int) -> bool:
    """Delete the profile, role, permissions and availability of a user.

    Returns False when the account did not exist; deleting twice is harmless.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return False
    db.query(Availability).filter(Availability.user_id == user_id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()
    return True
