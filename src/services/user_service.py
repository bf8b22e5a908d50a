"""Service layer for user accounts: signup and credential checks."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import hash_password, verify_password
from core.exceptions import AppError, ErrorKind
from models.user import User

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get an active user by email, or None."""
    result = await db.execute(
        select(User).where(User.email == email, User.deleted_at.is_(None)),
    )
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Create a user with a hashed password.

    The existence check and the insert are separate statements, so two concurrent
    signups can both pass the check. The unique index on email rejects the loser,
    which is reported the same way as a failed check.

    Raises:
        AppError: USER_EXISTS if the email is already registered.
    """
    if await get_user_by_email(db, email) is not None:
        raise AppError(ErrorKind.USER_EXISTS, f"Signup for existing email {email}")

    user = User(email=email, password=hash_password(password))
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise AppError(ErrorKind.USER_EXISTS, f"Signup lost insert race for {email}") from e

    logger.info("user_created", extra={"user_id": user.id})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Return the user matching the credentials.

    Raises:
        AppError: INVALID_CREDENTIALS for an unknown email or a wrong password.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        raise AppError(ErrorKind.INVALID_CREDENTIALS, f"No account for {email}")
    if not verify_password(password, user.password):
        raise AppError(ErrorKind.INVALID_CREDENTIALS, f"Wrong password for user {user.id}")
    return user
