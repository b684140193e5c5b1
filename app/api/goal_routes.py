"""Reading goal API routes (accounts only)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.api.schemas import GoalRequest, GoalResponse, MessageResponse
from app.core.dependencies import get_current_user, get_goal_service
from app.domain.entities import User
from app.services.goal_service import GoalService

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("", response_model=list[GoalResponse])
async def list_goals(
    current_user: Annotated[User, Depends(get_current_user)],
    goal_service: Annotated[GoalService, Depends(get_goal_service)],
) -> list[GoalResponse]:
    goals = await goal_service.list_goals(current_user.id)
    return [GoalResponse.model_validate(g) for g in goals]


@router.get("/{year}", response_model=GoalResponse)
async def get_goal(
    year: int,
    current_user: Annotated[User, Depends(get_current_user)],
    goal_service: Annotated[GoalService, Depends(get_goal_service)],
) -> GoalResponse:
    return GoalResponse.model_validate(await goal_service.get_goal(current_user.id, year))


@router.post("", response_model=GoalResponse)
async def set_goal(
    body: GoalRequest,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    goal_service: Annotated[GoalService, Depends(get_goal_service)],
) -> GoalResponse:
    """Create the goal for a year, or replace its targets if one exists."""
    goal, created = await goal_service.set_goal(
        current_user.id, body.year, body.target_books, body.target_pages
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return GoalResponse.model_validate(goal)


@router.delete("/{goal_id}", response_model=MessageResponse)
async def delete_goal(
    goal_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    goal_service: Annotated[GoalService, Depends(get_goal_service)],
) -> MessageResponse:
    await goal_service.delete_goal(current_user.id, goal_id)
    return MessageResponse(message="Goal deleted")
