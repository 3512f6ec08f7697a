from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from todo_api.core.base import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)

    email = Column(String(255), unique=True, index=True, nullable=False)
    # Subject from the identity provider. Updated when the same email signs in
    # with a different provider account; intentionally not unique.
    external_subject_id = Column(String(128), index=True, nullable=True)
    display_name = Column(String(100), nullable=True)

    is_active = Column(Boolean, nullable=False, default=False, server_default="false")

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    # user -> tasks
    tasks = relationship(
        "Task",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
