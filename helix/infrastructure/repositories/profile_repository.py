"""SQLAlchemy implementation of ProfileRepository."""

from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError

from helix.domain.entities import (
    FeatureVector,
    RiskCategory,
    RiskExplanation,
    RiskFlags,
    RiskGrade,
    RiskProfile,
    RiskProfileHistoryEntry,
)
from helix.domain.exceptions import PersistenceException
from helix.domain.interfaces import ProfileRepository
from helix.infrastructure.database import (
    DatabaseSessionManager,
    RiskProfileHistoryModel,
    RiskProfileModel,
)


class SqlProfileRepository(ProfileRepository):
    """
    SQLAlchemy implementation of the profile repository.

    Profiles are append-only: writing a profile whose id already exists is
    a no-op, so a retried write never creates a second snapshot.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def append_profile(self, profile: RiskProfile) -> RiskProfile:
        """Persist a profile snapshot once."""
        try:
            async with self._db.session() as session:
                existing = await session.scalar(
                    select(RiskProfileModel.row_id).where(RiskProfileModel.id == profile.id)
                )
                if existing is None:
                    session.add(self._to_model(profile))
        except SQLAlchemyError as exc:
            raise PersistenceException("append_profile", str(exc)) from exc
        return profile

    async def append_history(
        self,
        entry: RiskProfileHistoryEntry,
    ) -> RiskProfileHistoryEntry:
        """Persist a history row (upsert by id)."""
        model = RiskProfileHistoryModel(
            id=entry.id,
            profile_id=entry.profile_id,
            subject_id=entry.subject_id,
            helix_score=entry.helix_score,
            category=entry.category.value,
            dimension_scores=dict(entry.dimension_scores),
            created_at=entry.created_at,
        )
        try:
            async with self._db.session() as session:
                await session.merge(model)
        except SQLAlchemyError as exc:
            raise PersistenceException("append_history", str(exc)) from exc
        return entry

    async def get_latest(self, subject_id: str) -> Optional[RiskProfile]:
        """Retrieve the newest profile for a subject."""
        stmt = (
            select(RiskProfileModel)
            .where(RiskProfileModel.subject_id == subject_id)
            .order_by(RiskProfileModel.created_at.desc(), RiskProfileModel.row_id.desc())
            .limit(1)
        )
        try:
            async with self._db.session() as session:
                model = await session.scalar(stmt)
                return self._to_entity(model) if model else None
        except SQLAlchemyError as exc:
            raise PersistenceException("get_latest_profile", str(exc)) from exc

    async def get_prior(
        self,
        subject_id: str,
        excluding_id: str,
    ) -> Optional[RiskProfile]:
        """Retrieve the profile created immediately before ``excluding_id``."""
        try:
            async with self._db.session() as session:
                anchor = await session.scalar(
                    select(RiskProfileModel).where(RiskProfileModel.id == excluding_id)
                )

                stmt = select(RiskProfileModel).where(
                    RiskProfileModel.subject_id == subject_id,
                    RiskProfileModel.id != excluding_id,
                )
                if anchor is not None:
                    stmt = stmt.where(
                        or_(
                            RiskProfileModel.created_at < anchor.created_at,
                            and_(
                                RiskProfileModel.created_at == anchor.created_at,
                                RiskProfileModel.row_id < anchor.row_id,
                            ),
                        )
                    )
                stmt = stmt.order_by(
                    RiskProfileModel.created_at.desc(),
                    RiskProfileModel.row_id.desc(),
                ).limit(1)

                model = await session.scalar(stmt)
                return self._to_entity(model) if model else None
        except SQLAlchemyError as exc:
            raise PersistenceException("get_prior_profile", str(exc)) from exc

    async def list_history(
        self,
        subject_id: str,
        limit: int = 50,
    ) -> List[RiskProfileHistoryEntry]:
        """Retrieve a subject's score history, newest first."""
        stmt = (
            select(RiskProfileHistoryModel)
            .where(RiskProfileHistoryModel.subject_id == subject_id)
            .order_by(RiskProfileHistoryModel.created_at.desc(), RiskProfileHistoryModel.id)
            .limit(limit)
        )
        try:
            async with self._db.session() as session:
                result = await session.execute(stmt)
                return [
                    RiskProfileHistoryEntry(
                        id=model.id,
                        profile_id=model.profile_id,
                        subject_id=model.subject_id,
                        helix_score=model.helix_score,
                        category=RiskCategory(model.category),
                        dimension_scores=dict(model.dimension_scores),
                        created_at=model.created_at,
                    )
                    for model in result.scalars().all()
                ]
        except SQLAlchemyError as exc:
            raise PersistenceException("list_history", str(exc)) from exc

    def _to_model(self, profile: RiskProfile) -> RiskProfileModel:
        return RiskProfileModel(
            id=profile.id,
            subject_id=profile.subject_id,
            helix_score=profile.helix_score,
            category=profile.category.value,
            grade=profile.grade.value,
            dimension_scores=dict(profile.dimension_scores),
            confidence=profile.confidence,
            flags=profile.flags.to_dict(),
            explanation=profile.explanation.to_dict(),
            features=profile.features.to_dict(),
            created_at=profile.created_at,
        )

    def _to_entity(self, model: RiskProfileModel) -> RiskProfile:
        """Convert database model to domain entity."""
        return RiskProfile(
            id=model.id,
            subject_id=model.subject_id,
            helix_score=model.helix_score,
            category=RiskCategory(model.category),
            grade=RiskGrade(model.grade),
            dimension_scores=dict(model.dimension_scores),
            confidence=model.confidence,
            flags=RiskFlags.from_dict(model.flags),
            explanation=RiskExplanation.from_dict(model.explanation),
            features=FeatureVector.from_dict(model.features),
            created_at=model.created_at,
        )
