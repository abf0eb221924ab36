"""
Response Database Model

Stores committed responses. Feedback is a nullable JSON column written
at most once by the analysis pipeline; null means "absent".
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crosscare.domain.enums.queue_enums import ResponderType
from crosscare.domain.models.feedback import AIFeedback
from crosscare.domain.models.queue_item import Response, utc_now
from crosscare.infrastructure.database.connection import Base
from crosscare.infrastructure.database.models.queue_item_model import JSONType


class ResponseModel(Base):
    """
    Response table ORM model.

    Table: responses
    """

    __tablename__ = "responses"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    queue_item_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("queue_items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    responder_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    responder_type: Mapped[str] = mapped_column(String(10), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    model_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    feedback: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<ResponseModel(id={self.id}, queue_item_id={self.queue_item_id})>"

    @classmethod
    def from_domain(cls, response: Response) -> "ResponseModel":
        return cls(
            id=response.id,
            queue_item_id=response.queue_item_id,
            responder_id=response.responder_id,
            responder_type=response.responder_type.value,
            content=response.content,
            model_id=response.model_id,
            feedback=response.feedback.to_dict() if response.feedback else None,
            timestamp=response.timestamp,
        )

    def to_domain(self) -> Response:
        return Response(
            id=self.id,
            queue_item_id=self.queue_item_id,
            responder_id=self.responder_id,
            responder_type=ResponderType(self.responder_type),
            content=self.content,
            model_id=self.model_id,
            feedback=AIFeedback.from_dict(self.feedback) if self.feedback else None,
            timestamp=self.timestamp,
        )
