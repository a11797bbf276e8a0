from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from billsplit.models.group import Group, GroupMember

async def list_group_for_user(db: AsyncSession, user_id: int, limit: int | None = None):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.created_at.desc(), Group.id.desc())
    )
    if limit is not None:
        q = q.limit(limit)
    result = await db.execute(q)
    return result.scalars().all()
