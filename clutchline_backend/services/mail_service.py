# clutchline_backend/services/mail_service.py
# Inbox delivery: e-mails are threaded by subject, each send adds a dialogue line.

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clutchline_backend.core.mail_templates import render
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.email_model import Dialogue, Email
from clutchline_backend.models.team_model import Persona, PersonaRole
from clutchline_backend.services.calendar_service import EmailSend, decode_payload, schedule
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)


async def send_email(db: AsyncSession, subject: str, content: str, persona_id: Optional[int],
                     sent_at: date) -> Email:
    """Create the thread for `subject` or append to it, marking it unread."""
    result = await db.execute(select(Email).where(Email.subject == subject))
    email = result.scalars().first()
    if email is None:
        email = Email(subject=subject, persona_id=persona_id, sent_at=sent_at)
    else:
        email.read = False
    db.add(email)
    await db.flush()

    db.add(Dialogue(email_id=email.id, persona_id=persona_id, content=content, sent_at=sent_at))
    logger.info("📧 %s", subject)
    return email


async def persona_for_team(db: AsyncSession, team_id: Optional[int],
                           role: PersonaRole = PersonaRole.MANAGER) -> Optional[int]:
    if team_id is None:
        return None
    result = await db.execute(select(Persona).where(Persona.team_id == team_id).order_by(Persona.id))
    personas = result.scalars().all()
    for persona in personas:
        if persona.role == role:
            return persona.id
    return personas[0].id if personas else None


async def send_template(ctx: GameContext, template: str, team_id: Optional[int] = None, **context) -> Email:
    """Render a template and deliver it today, signed by the team's manager."""
    mail = render(template, **context)
    persona_id = await persona_for_team(ctx.db, team_id)
    return await send_email(ctx.db, mail["subject"], mail["content"], persona_id, ctx.today)


async def schedule_template(ctx: GameContext, on: date, template: str, team_id: Optional[int] = None,
                            **context) -> Calendar:
    """Render a template now and deliver it on a later day."""
    mail = render(template, **context)
    persona_id = await persona_for_team(ctx.db, team_id)
    return await schedule(
        ctx.db, on, CalendarEntry.EMAIL_SEND,
        EmailSend(subject=mail["subject"], content=mail["content"], persona_id=persona_id),
    )


async def on_email_send(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    await send_email(ctx.db, payload.subject, payload.content, payload.persona_id, ctx.today)
    await ctx.db.commit()
