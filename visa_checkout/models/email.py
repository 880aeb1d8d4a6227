from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel


class EmailLog(SQLModel, table=True):
    __tablename__ = "email_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    to_email: str
    subject: str
    status: str  # sent / failed / skipped
    error: Optional[str] = None
    idempotency_key: Optional[str] = Field(default=None, index=True, unique=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
