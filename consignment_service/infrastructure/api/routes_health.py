"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from consignment_service.adapters.persistence.database import get_session
from consignment_service.adapters.persistence.models import ConsignmentAssignmentModel

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Database reachability, checked by counting active assignments."""
    active_assignments = None
    try:
        active_assignments = await session.scalar(
            select(func.count(ConsignmentAssignmentModel.id)).where(
                ConsignmentAssignmentModel.is_active.is_(True)
            )
        )
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "activeAssignments": active_assignments,
        "service": "Consignment number service",
    }
