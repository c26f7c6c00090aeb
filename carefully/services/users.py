"""Profile updates for the current user."""
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.errors import ConflictError, ValidationError
from carefully.models.user import User

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "email", "role")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def update_profile(db: AsyncSession, user: User, updates: dict) -> User:
    """Apply name/email/role changes; the rollup counters are never written here."""
    unknown = set(updates) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    values = {}
    for field, value in updates.items():
        value = (value or "").strip()
        if not value:
            raise ValidationError(f"{field} must not be empty")
        values[field] = value

    if "email" in values:
        email_norm = _normalize_email(values["email"])
        if not EMAIL_RE.match(email_norm):
            raise ValidationError("email is not a valid address")
        # user exists?
        result = await db.execute(select(User.id).where(User.email == email_norm, User.id != user.id))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("Email is already in use")
        values["email"] = email_norm

    for field, value in values.items():
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use") from e
    await db.refresh(user)

    logger.info("Updated profile user=%s fields=%s", user.id, ",".join(sorted(values)))
    return user
