import uuid

from sqlalchemy import Column, String, Boolean, BigInteger, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from fleet_api.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    # CUIT, 11-digit tax identifier
    cuit = Column(BigInteger, unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    # Entra ID object id (token "oid" claim)
    entra_id = Column(String(64), nullable=False, default="", index=True)

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (
        CheckConstraint("end_time IS NULL OR end_time > start_time", name="ck_user_roles_time_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")  # user, admin
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)

    user = relationship("User", back_populates="roles")
