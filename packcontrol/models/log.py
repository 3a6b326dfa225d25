# packcontrol/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from packcontrol.database import Base

# Activity trail: who did what to which resource, and whether it worked
class Log(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)

    # Free-form context (ids, quantities, reasons)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
