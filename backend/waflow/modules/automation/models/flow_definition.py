"""
Flow Definition ORM Model
SQLAlchemy model representing the 'automation_flows' table.

A row stores the whole editor graph as two JSON columns; saves overwrite
both columns wholesale.
"""
from sqlalchemy import Column, BigInteger, Text, Integer, DateTime, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from waflow.shared.db.base import Base, TimestampMixin

# JSONB on Postgres, plain JSON elsewhere
GraphJSON = JSON().with_variant(JSONB(), "postgresql")


class FlowDefinition(Base, TimestampMixin):
    """ORM Model for the automation_flows table."""
    __tablename__ = "automation_flows"

    id = Column(BigInteger, primary_key=True)

    # ============================================
    # OWNERSHIP
    # ============================================
    user_id = Column(Text, nullable=False)  # From the x-user-id identity header

    # ============================================
    # DEFINITION
    # ============================================
    name = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)
    nodes = Column(GraphJSON, nullable=False, default=list)
    edges = Column(GraphJSON, nullable=False, default=list)

    # ============================================
    # PUBLISH LIFECYCLE
    # ============================================
    status = Column(Text, nullable=False, default="draft")  # draft, published
    version = Column(Integer, nullable=False, default=1)    # +1 on every publish
    published_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_automation_flows_user_status", "user_id", "status"),
        Index("idx_automation_flows_user_name", "user_id", "name"),
    )

    def __repr__(self):
        return f"<FlowDefinition(id={self.id}, name='{self.name}', status='{self.status}', v{self.version})>"
