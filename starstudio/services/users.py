"""
User management and pricing grades.

Users are created by the first-login callback from the identity provider
as unapproved stars. Admins approve accounts and attach pricing grades;
attaching a grade copies its base rate onto the star.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

import structlog

from starstudio.core.auth import Identity, Principal
from starstudio.core.errors import BadRequest, NotFound, ValidationError
from starstudio.core.uow import UnitOfWork
from starstudio.models.grade import PricingGrade
from starstudio.models.user import User
from starstudio_shared.schemas.common import Page, PageParams, Role, total_pages
from starstudio_shared.schemas.users import (
    GradeCreate,
    GradeRead,
    GradeReorder,
    GradeUpdate,
    UserMeUpdate,
    UserRead,
)

log = structlog.get_logger()


async def _get_user_or_404(uow: UnitOfWork, user_id: uuid.UUID) -> User:
    user = await uow.users.get(user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


async def _get_star_or_404(uow: UnitOfWork, user_id: uuid.UUID) -> User:
    user = await _get_user_or_404(uow, user_id)
    if user.role != Role.STAR.value:
        raise BadRequest("Pricing applies to stars only.")
    return user


async def _get_grade_or_404(uow: UnitOfWork, grade_id: uuid.UUID) -> PricingGrade:
    grade = await uow.grades.get(grade_id)
    if grade is None:
        raise NotFound("Pricing grade not found.")
    return grade


# ---------------------------------------------------------------------------
# Registration and profile
# ---------------------------------------------------------------------------

async def register_from_identity(uow: UnitOfWork, identity: Identity, name: str) -> UserRead:
    """Create the local user on first login; later calls return the existing row."""
    async with uow:
        user = await uow.users.get_by_auth_id(identity.external_id)
        if user is not None:
            return UserRead.model_validate(user)

        if identity.email:
            # Accounts seeded before the identity provider existed are linked by email.
            user = await uow.users.get_by_email(identity.email)
            if user is not None:
                user.auth_id = identity.external_id
                await uow.users.add(user)
                log.info("user.identity_linked", user_id=str(user.id))
                return UserRead.model_validate(user)

        user = await uow.users.add(
            User(
                auth_id=identity.external_id,
                email=identity.email,
                name=name.strip(),
                role=Role.STAR.value,
                is_approved=False,
            )
        )
        log.info("user.registered", user_id=str(user.id))
        return UserRead.model_validate(user)


async def get_me(uow: UnitOfWork, principal: Principal) -> UserRead:
    async with uow:
        return UserRead.model_validate(await _get_user_or_404(uow, principal.user_id))


async def update_me(uow: UnitOfWork, principal: Principal, body: UserMeUpdate) -> UserRead:
    async with uow:
        user = await _get_user_or_404(uow, principal.user_id)
        if body.name is not None:
            name = body.name.strip()
            if not name:
                raise ValidationError("name: must not be blank")
            user.name = name
        await uow.users.add(user)
        return UserRead.model_validate(user)


# ---------------------------------------------------------------------------
# Admin: accounts
# ---------------------------------------------------------------------------

async def list_users(
    uow: UnitOfWork,
    principal: Principal,
    params: PageParams,
    *,
    role: Optional[Role] = None,
    approved: Optional[bool] = None,
    search: Optional[str] = None,
) -> Page[UserRead]:
    async with uow:
        items, total = await uow.users.list(
            params, role=role.value if role else None, approved=approved, search=search
        )
        return Page[UserRead](
            data=[UserRead.model_validate(u) for u in items],
            total=total,
            page=params.page,
            page_size=params.page_size,
            total_pages=total_pages(total, params.page_size),
        )


async def set_approval(uow: UnitOfWork, principal: Principal, user_id: uuid.UUID, approved: bool) -> UserRead:
    async with uow:
        user = await _get_user_or_404(uow, user_id)
        user.is_approved = approved
        await uow.users.add(user)
        log.info("user.approval_changed", user_id=str(user.id), approved=approved)
        return UserRead.model_validate(user)


async def assign_grade(
    uow: UnitOfWork, principal: Principal, star_id: uuid.UUID, grade_id: Optional[uuid.UUID]
) -> UserRead:
    async with uow:
        star = await _get_star_or_404(uow, star_id)
        if grade_id is None:
            star.grade_id = None
        else:
            grade = await _get_grade_or_404(uow, grade_id)
            star.grade_id = grade.id
            star.base_rate = grade.base_rate
        await uow.users.add(star)
        log.info("user.grade_assigned", user_id=str(star.id), grade_id=str(grade_id) if grade_id else None)
        return UserRead.model_validate(star)


async def set_base_rate(
    uow: UnitOfWork, principal: Principal, star_id: uuid.UUID, base_rate: Optional[Decimal]
) -> UserRead:
    async with uow:
        star = await _get_star_or_404(uow, star_id)
        star.base_rate = base_rate
        await uow.users.add(star)
        log.info("user.base_rate_set", user_id=str(star.id), base_rate=str(base_rate))
        return UserRead.model_validate(star)


# ---------------------------------------------------------------------------
# Admin: pricing grades
# ---------------------------------------------------------------------------

def _grade_read(grade: PricingGrade, star_count: int = 0) -> GradeRead:
    read = GradeRead.model_validate(grade)
    read.star_count = star_count
    return read


async def list_grades(uow: UnitOfWork, principal: Principal) -> list[GradeRead]:
    async with uow:
        counts = await uow.grades.star_counts()
        return [_grade_read(g, counts.get(g.id, 0)) for g in await uow.grades.list_ordered()]


async def create_grade(uow: UnitOfWork, principal: Principal, body: GradeCreate) -> GradeRead:
    async with uow:
        sort_order = body.sort_order if body.sort_order is not None else await uow.grades.next_sort_order()
        grade = await uow.grades.add(
            PricingGrade(
                name=body.name.strip(),
                base_rate=body.base_rate,
                color=body.color,
                sort_order=sort_order,
            )
        )
        log.info("grade.created", grade_id=str(grade.id))
        return _grade_read(grade)


async def update_grade(
    uow: UnitOfWork, principal: Principal, grade_id: uuid.UUID, body: GradeUpdate
) -> GradeRead:
    async with uow:
        grade = await _get_grade_or_404(uow, grade_id)
        for key, value in body.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(grade, key, value)
        await uow.grades.add(grade)
        counts = await uow.grades.star_counts()
        return _grade_read(grade, counts.get(grade.id, 0))


async def delete_grade(uow: UnitOfWork, principal: Principal, grade_id: uuid.UUID) -> None:
    """Delete a grade. Stars keep their copied base rate."""
    async with uow:
        grade = await _get_grade_or_404(uow, grade_id)
        await uow.users.clear_grade(grade.id)
        await uow.grades.delete(grade)
        log.info("grade.deleted", grade_id=str(grade_id))


async def reorder_grades(uow: UnitOfWork, principal: Principal, body: GradeReorder) -> list[GradeRead]:
    async with uow:
        grades = {g.id: g for g in await uow.grades.list_by_ids([i.id for i in body.items])}
        missing = [str(i.id) for i in body.items if i.id not in grades]
        if missing:
            raise NotFound(f"Pricing grade not found: {', '.join(missing)}")
        for entry in body.items:
            grades[entry.id].sort_order = entry.sort_order
            await uow.grades.add(grades[entry.id])
        counts = await uow.grades.star_counts()
        return [_grade_read(g, counts.get(g.id, 0)) for g in await uow.grades.list_ordered()]
