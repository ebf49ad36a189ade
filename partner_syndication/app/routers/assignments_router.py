"""Post assignments: publish one assignment to a partner's connected account."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.publish import PublishAssignmentRequest, PublishAssignmentResponse
from app.services.assignment_service import publish_assignment

router = APIRouter(prefix="/post-assignments", tags=["post-assignments"])


@router.post("/{assignment_id}/publish", response_model=PublishAssignmentResponse)
async def post_publish_assignment(
    assignment_id: int,
    payload: PublishAssignmentRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PublishAssignmentResponse:
    """
    401 when the account token has expired (the account is marked expired),
    502 when Facebook rejects the post (the assignment is marked failed).
    """
    assignment, external_id = await publish_assignment(db, ctx, assignment_id, payload.platform)
    return PublishAssignmentResponse(
        assignment_id=assignment.id,
        platform=payload.platform.strip().lower(),
        status=assignment.status,
        external_post_id=external_id,
        published_url=assignment.published_url,
        published_date=assignment.published_date,
    )
