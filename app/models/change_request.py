from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
import enum

from app.core.time import utcnow
from app.db.session import Base


class ChangeStatus(str, enum.Enum):
    """ITIL change request lifecycle status"""
    draft = "draft"              # Created, not yet submitted
    submitted = "submitted"      # Sent to the ITIL system for review
    approved = "approved"        # Approved, ready to execute
    rejected = "rejected"        # Rejected by the change advisory board
    scheduled = "scheduled"      # Booked into a change window
    in_progress = "in_progress"  # Execution started
    completed = "completed"      # Execution finished
    cancelled = "cancelled"      # Withdrawn


class ChangePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class ChangeType(str, enum.Enum):
    standard = "standard"
    normal = "normal"
    emergency = "emergency"


class ChangeRequest(Base):
    __tablename__ = "change_requests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=False)
    change_type = Column(
        Enum(ChangeType, name="change_type", native_enum=False, length=32),
        nullable=False,
    )
    priority = Column(
        Enum(ChangePriority, name="change_priority", native_enum=False, length=32),
        nullable=False,
    )
    status = Column(
        Enum(ChangeStatus, name="change_status", native_enum=False, length=32),
        nullable=False,
        default=ChangeStatus.draft,
        index=True,
    )

    requester_name = Column(String(256), nullable=False)
    requester_email = Column(String(254), nullable=False)
    business_justification = Column(Text, nullable=False)
    implementation_plan = Column(Text, nullable=False)
    rollback_plan = Column(Text, nullable=False)
    risk_assessment = Column(Text, nullable=True)
    impact_assessment = Column(Text, nullable=True)

    # Planned window, edited through field updates only
    scheduled_start = Column(DateTime, nullable=True)
    scheduled_end = Column(DateTime, nullable=True)

    # Set by the execute / complete transitions
    actual_start = Column(DateTime, nullable=True)
    actual_end = Column(DateTime, nullable=True)

    # Naive UTC, written by the application so created_at == updated_at on insert
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
