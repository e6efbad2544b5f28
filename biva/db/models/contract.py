from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from biva.core.clock import utcnow
from biva.db.base import Base

BINDING_SALE_CLAUSE = "kind = 'sale' AND status IN ('pending_signatures', 'active')"


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        # At most one pending or active sale per property
        Index(
            "uq_contracts_binding_sale_property",
            "property_id",
            unique=True,
            sqlite_where=text(BINDING_SALE_CLAUSE),
            postgresql_where=text(BINDING_SALE_CLAUSE),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    owner_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    counterparty_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    kind = Column(String(16), nullable=False)
    amount = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    status = Column(String(32), nullable=False, default="pending_signatures")
    contract_text = Column(Text, nullable=False)

    owner_signed_at = Column(DateTime, nullable=True)
    owner_signature_image = Column(Text, nullable=True)
    counterparty_signed_at = Column(DateTime, nullable=True)
    counterparty_signature_image = Column(Text, nullable=True)
    owner_confirmed_at = Column(DateTime, nullable=True)
    counterparty_confirmed_at = Column(DateTime, nullable=True)

    activated_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    property = relationship("Property", backref="contracts")
    owner = relationship("User", foreign_keys=[owner_user_id])
    counterparty = relationship("User", foreign_keys=[counterparty_user_id])
