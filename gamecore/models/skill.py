from typing import List
from datetime import datetime
from sqlalchemy import (
    String, Integer, SmallInteger, Boolean, Text, ForeignKey, DateTime, UniqueConstraint, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from gamecore.core.database import Base
from gamecore.models.common import JSONType
from gamecore.models.job_class import job_class_skill_line
from gamecore.engine.effects import parse_node_effect

NODE_TYPE_NAMES = {
    "stat_boost": "ステータス強化",
    "technique": "技",
    "passive": "パッシブ",
}

SKILL_LINE_TYPE_NAMES = {
    "weapon": "武器スキル",
    "job_specific": "職業専用スキル",
}


class SkillLine(Base):
    __tablename__ = "skill_lines"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    skill_line_type: Mapped[str] = mapped_column(String(16))  # weapon | job_specific
    unlock_level: Mapped[int] = mapped_column(SmallInteger, default=1)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 1:N Relationship
    nodes: Mapped[List["SkillNode"]] = relationship(
        back_populates="skill_line",
        lazy="selectin",
        order_by="SkillNode.display_order",
        cascade="all, delete-orphan"
    )
    job_classes = relationship(
        "gamecore.models.job_class.JobClass",
        secondary=job_class_skill_line,
        back_populates="skill_lines",
        lazy="selectin"
    )

    @property
    def skill_line_type_name(self) -> str:
        return SKILL_LINE_TYPE_NAMES.get(self.skill_line_type, self.skill_line_type)


class SkillNode(Base):
    __tablename__ = "skill_nodes"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    skill_line_id: Mapped[int] = mapped_column(ForeignKey("skill_lines.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    node_type: Mapped[str] = mapped_column(String(16))  # stat_boost | technique | passive
    points_required: Mapped[int] = mapped_column(SmallInteger, default=1)
    effects: Mapped[dict] = mapped_column(JSONType, default=dict)
    # 트리 레이아웃 전용 (게임 로직과 무관)
    position_x: Mapped[int] = mapped_column(Integer, default=0)
    position_y: Mapped[int] = mapped_column(Integer, default=0)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    skill_line: Mapped["SkillLine"] = relationship(back_populates="nodes", lazy="selectin")

    @property
    def effect(self):
        """JSON effects -> 타입이 지정된 효과 객체"""
        return parse_node_effect(self.node_type, self.effects)

    @property
    def node_type_name(self) -> str:
        return NODE_TYPE_NAMES.get(self.node_type, self.node_type)


class CharacterSkillInvestment(Base):
    """(캐릭터, 노드) 해금 기록"""
    __tablename__ = "character_skill_investments"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        UniqueConstraint("character_id", "skill_node_id", name="uq_character_skill_node"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id", ondelete="CASCADE"))
    skill_node_id: Mapped[int] = mapped_column(ForeignKey("skill_nodes.id", ondelete="CASCADE"))
    job_class_id: Mapped[int] = mapped_column(ForeignKey("job_classes.id"))
    points_spent: Mapped[int] = mapped_column(SmallInteger)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    node: Mapped["SkillNode"] = relationship("SkillNode", lazy="selectin")
    character = relationship("gamecore.models.character.Character", lazy="selectin")
