import logging
from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from billsplit.models.user import User
from billsplit.core.errors import InternalConsistency

logger = logging.getLogger(__name__)

async def get_user_by_id(db: AsyncSession, id: int):
    result = await db.execute(select(User).where(User.id == id))
    return result.scalar_one_or_none()

async def get_users_by_ids(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    """Resolve every id to a user, failing hard if the store lost one."""
    ids = set(user_ids)
    if not ids:
        return {}

    result = await db.execute(select(User).where(User.id.in_(ids)))
    users = {user.id: user for user in result.scalars().all()}

    missing = ids - set(users)
    if missing:
        logger.error("Ledger references unknown users: %s", sorted(missing))
        raise InternalConsistency(f"Unknown user ids referenced by ledger: {sorted(missing)}")

    return users
