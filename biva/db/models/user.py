from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from biva.core.clock import utcnow
from biva.db.base import Base
from biva.db.models.role import user_roles


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), unique=True, nullable=True, index=True)
    # BI / passport number, required before a contract can be generated or signed
    id_document = Column(String(64), nullable=True)
    address = Column(String(500), nullable=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    roles = relationship("Role", secondary=user_roles, lazy="selectin", order_by="Role.id")

    @property
    def role_names(self) -> set[str]:
        return {role.name for role in self.roles}
