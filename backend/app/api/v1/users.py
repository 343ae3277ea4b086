from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_roles
from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.core.permissions import Principal, RoleName
from app.models.user import User
from app.schemas.user import UserMeResponse, UserSummary

router = APIRouter()

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10


@router.get("/me", response_model=UserMeResponse)
async def get_me(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the caller's account with effective roles and permissions.
    """
    user = await db.get(User, current_user.id)
    if user is None:
        raise UnauthorizedError("User not found or inactive")
    return {
        "user": {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
            "is_active": user.is_active,
            "created_at": user.created_at,
            "roles": current_user.roles,
            "permissions": sorted(current_user.permissions),
        }
    }


@router.get("/search")
async def search_users(
    q: str = Query("", description="Name or email fragment"),
    current_user: Principal = Depends(require_roles(RoleName.ADMIN, RoleName.HR_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """
    Find active users by name or email, for assigning reviewers and managers.
    """
    q = q.strip()
    if len(q) < SEARCH_MIN_LENGTH:
        return {"status": "success", "data": []}

    term = f"%{q}%"
    result = await db.execute(
        select(User)
        .where(
            User.is_active.is_(True),
            or_(
                User.email.ilike(term),
                User.first_name.ilike(term),
                User.last_name.ilike(term),
                (User.first_name + " " + User.last_name).ilike(term),
            ),
        )
        .order_by(User.first_name, User.last_name)
        .limit(SEARCH_LIMIT)
    )
    users = [UserSummary.model_validate(user).model_dump() for user in result.scalars()]
    return {"status": "success", "data": users}
