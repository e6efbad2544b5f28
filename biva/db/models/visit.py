from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from biva.core.clock import utcnow
from biva.db.base import Base

ACTIVE_VISIT_CLAUSE = "status IN ('pending_owner', 'pending_client', 'scheduled')"


class Visit(Base):
    __tablename__ = "visits"
    __table_args__ = (
        # At most one active visit per client and property
        Index(
            "uq_visits_active_client_property",
            "client_id",
            "property_id",
            unique=True,
            sqlite_where=text(ACTIVE_VISIT_CLAUSE),
            postgresql_where=text(ACTIVE_VISIT_CLAUSE),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    requested_date_time = Column(DateTime, nullable=False)
    owner_proposed_date_time = Column(DateTime, nullable=True)
    client_proposed_date_time = Column(DateTime, nullable=True)
    scheduled_date_time = Column(DateTime, nullable=True)
    status = Column(String(32), nullable=False, default="pending_owner")
    last_action_by = Column(String(16), nullable=True)
    client_message = Column(Text, nullable=True)
    owner_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    property = relationship("Property", backref="visits")
    client = relationship("User", backref="visits")
