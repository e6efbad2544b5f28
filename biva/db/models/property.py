from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from biva.core.clock import utcnow
from biva.db.base import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    listing_type = Column(String(16), nullable=False)
    category = Column(String(64), nullable=False)
    price = Column(Integer, nullable=False)
    bairro = Column(String(255), nullable=False)
    municipio = Column(String(255), nullable=False)
    provincia = Column(String(255), nullable=False)
    area = Column(Float, nullable=True)
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="available")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", backref="properties")
