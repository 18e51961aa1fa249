from typing import List
from datetime import datetime
from sqlalchemy import (
    String, Integer, SmallInteger, BigInteger, Boolean, Text, Numeric, ForeignKey, DateTime,
    CheckConstraint, UniqueConstraint, Index, Table, Column, func, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from gamecore.core.database import Base
from gamecore.engine.stats import STAT_KEYS

# Association Table for Many-to-Many (JobClass <-> SkillLine)
job_class_skill_line = Table(
    "job_class_skill_lines",
    Base.metadata,
    Column("job_class_id", Integer, ForeignKey("job_classes.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_line_id", Integer, ForeignKey("skill_lines.id", ondelete="CASCADE"), primary_key=True),
)


class JobClass(Base):
    """직업 템플릿 (기획자가 작성, 캐릭터가 참조하는 동안 삭제 불가)"""
    __tablename__ = "job_classes"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        CheckConstraint("max_level >= 1", name="ck_job_classes_max_level"),
        CheckConstraint("experience_multiplier > 0", name="ck_job_classes_exp_multiplier"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64), unique=True)
    job_type: Mapped[str] = mapped_column(String(16))  # basic | advanced | special
    description: Mapped[str | None] = mapped_column(Text)
    max_level: Mapped[int] = mapped_column(SmallInteger, default=50)
    experience_multiplier: Mapped[float] = mapped_column(Numeric(6, 3), default=1)

    # Stats (Lv.1 기준값)
    base_hp: Mapped[int] = mapped_column(Integer, default=0)
    base_mp: Mapped[int] = mapped_column(Integer, default=0)
    base_attack: Mapped[int] = mapped_column(Integer, default=0)
    base_defense: Mapped[int] = mapped_column(Integer, default=0)
    base_magic_attack: Mapped[int] = mapped_column(Integer, default=0)
    base_magic_defense: Mapped[int] = mapped_column(Integer, default=0)
    base_agility: Mapped[int] = mapped_column(Integer, default=0)
    base_luck: Mapped[int] = mapped_column(Integer, default=0)

    # 레벨당 성장치
    hp_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    mp_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    attack_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    defense_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    magic_attack_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    magic_defense_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    agility_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)
    luck_multiplier: Mapped[float] = mapped_column(Numeric(8, 3), default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    skill_lines: Mapped[List["SkillLine"]] = relationship(
        "gamecore.models.skill.SkillLine",
        secondary=job_class_skill_line,
        back_populates="job_classes",
        lazy="selectin"
    )

    @property
    def base_stats(self) -> dict:
        return {key: getattr(self, f"base_{key}") or 0 for key in STAT_KEYS}

    @property
    def multipliers(self) -> dict:
        return {key: float(getattr(self, f"{key}_multiplier") or 0) for key in STAT_KEYS}


class CharacterJobClass(Base):
    """캐릭터의 직업별 진행도"""
    __tablename__ = "character_job_classes"
    __table_args__ = (
        UniqueConstraint("character_id", "job_class_id", name="uq_character_job_class"),
        CheckConstraint("skill_points >= 0", name="ck_character_job_classes_skill_points"),
        CheckConstraint("experience >= 0", name="ck_character_job_classes_experience"),
        # 캐릭터당 is_current=True 는 하나만
        Index(
            "uq_character_current_job",
            "character_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id", ondelete="CASCADE"))
    job_class_id: Mapped[int] = mapped_column(ForeignKey("job_classes.id"))
    level: Mapped[int] = mapped_column(SmallInteger, default=1)
    experience: Mapped[int] = mapped_column(BigInteger, default=0)
    skill_points: Mapped[int] = mapped_column(Integer, default=0)
    current_hp: Mapped[int | None] = mapped_column(Integer)
    current_mp: Mapped[int | None] = mapped_column(Integer)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    character = relationship("gamecore.models.character.Character", back_populates="job_classes", lazy="selectin")
    job_class: Mapped["JobClass"] = relationship("JobClass", lazy="selectin")


class ExperienceGrant(Base):
    """관리자 경험치 지급 감사 로그 (지급과 같은 트랜잭션에서 기록)"""
    __tablename__ = "experience_grants"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id", ondelete="CASCADE"))
    character_job_class_id: Mapped[int] = mapped_column(ForeignKey("character_job_classes.id", ondelete="CASCADE"))
    amount: Mapped[int] = mapped_column(BigInteger)
    reason: Mapped[str] = mapped_column(Text)
    actor: Mapped[str] = mapped_column(String(64))
    level_before: Mapped[int] = mapped_column(SmallInteger)
    level_after: Mapped[int] = mapped_column(SmallInteger)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
