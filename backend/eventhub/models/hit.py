"""
Access record written by the statistics service.

Append-only: rows are never updated or deleted by the application.
Index on (uri, timestamp) serves the windowed aggregation query.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String

from eventhub.db.base import Base


class EndpointHit(Base):
    __tablename__ = "endpoint_hits"

    id = Column(Integer, primary_key=True)
    app = Column(String(255), nullable=False)
    uri = Column(String(512), nullable=False)
    ip = Column(String(45), nullable=False)
    timestamp = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_endpoint_hits_uri_timestamp", "uri", "timestamp"),
        Index("ix_endpoint_hits_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<EndpointHit(app={self.app}, uri={self.uri}, ip={self.ip}, ts={self.timestamp})>"
