# clutchline_backend/models/email_model.py
# In-game inbox: one e-mail thread per subject, each with its dialogue lines.

import datetime
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class Email(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    subject: str = Field(index=True, unique=True)
    persona_id: Optional[int] = Field(default=None, foreign_key="persona.id")
    sent_at: datetime.date
    read: bool = Field(default=False)


class Dialogue(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email_id: int = Field(foreign_key="email.id", index=True)
    persona_id: Optional[int] = Field(default=None, foreign_key="persona.id")
    content: str
    sent_at: datetime.date


class EmailRead(BaseModel):
    id: int
    subject: str
    sent_at: datetime.date
    read: bool

    class Config:
        from_attributes = True
