"""Yearly reading goals (accounts only)."""

import logging
from typing import Optional
from uuid import UUID, uuid4

from app.core.exceptions import NotFoundError
from app.domain.entities import ReadingGoal
from app.domain.repositories import IReadingGoalRepository

logger = logging.getLogger(__name__)


class GoalService:

    def __init__(self, goal_repository: IReadingGoalRepository):
        self.goal_repository = goal_repository

    async def set_goal(
        self, user_id: UUID, year: int, target_books: int, target_pages: Optional[int] = None
    ) -> tuple[ReadingGoal, bool]:
        """Create or replace the goal for ``year``; returns ``(goal, created)``."""
        goal = await self.goal_repository.get_by_year(user_id, year)
        created = goal is None
        if goal is None:
            goal = ReadingGoal(id=uuid4(), user_id=user_id, year=year, target_books=target_books)
        goal.target_books = target_books
        goal.target_pages = target_pages
        saved = await self.goal_repository.save(goal)
        logger.info("Goal for %d %s for user %s", year, "set" if created else "updated", user_id)
        return saved, created

    async def list_goals(self, user_id: UUID) -> list[ReadingGoal]:
        return await self.goal_repository.list_for_user(user_id)

    async def get_goal(self, user_id: UUID, year: int) -> ReadingGoal:
        goal = await self.goal_repository.get_by_year(user_id, year)
        if goal is None:
            raise NotFoundError("Goal not found for this year")
        return goal

    async def delete_goal(self, user_id: UUID, goal_id: UUID) -> None:
        if not await self.goal_repository.delete(goal_id, user_id):
            raise NotFoundError("Goal not found")
