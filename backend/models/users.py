# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, Enum, func
from sqlalchemy.orm import relationship
from database import Base


# Roles a workshop account can hold; exactly one per user
class AppRole(str, enum.Enum):
    MONTEUR = "monteur"
    ADMIN = "admin"
    FOH = "foh"


# Feature switches granted to non-admin accounts
class FeaturePermission(str, enum.Enum):
    INVENTORY = "inventory"
    PRICELIST = "pricelist"
    TV_ANNOUNCEMENTS = "tv_announcements"
    WARRANTY = "warranty"
    CALL_STATUS = "call_status"
    AVAILABILITY = "availability"


# Represents a workshop account (identity plus profile data)
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)

    # New accounts wait for an admin before they can sign in
    is_active = Column(Boolean, default=False, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)

    date_of_birth = Column(Date, nullable=True)
    job_function = Column(String, nullable=True)
    address = Column(String, nullable=True)
    contract = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    role_row = relationship("UserRole", uselist=False, back_populates="user", cascade="all, delete-orphan")
    permission_rows = relationship(
        "UserPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="UserPermission.user_id",
    )

    @property
    def role(self) -> str:
        return self.role_row.role.value if self.role_row else AppRole.MONTEUR.value

    @property
    def permissions(self) -> list:
        return sorted(p.permission.value for p in self.permission_rows)


# One role row per user (user_id is unique)
class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    role = Column(Enum(AppRole, values_callable=lambda e: [m.value for m in e]), default=AppRole.MONTEUR, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="role_row")


# Feature permission granted to a user by an admin
class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "permission", name="uq_user_permission"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(Enum(FeaturePermission, values_callable=lambda e: [m.value for m in e]), nullable=False)
    granted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="permission_rows", foreign_keys=[user_id])
