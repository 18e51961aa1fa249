from datetime import datetime
from sqlalchemy import (
    String, Integer, SmallInteger, Boolean, Text, ForeignKey, DateTime,
    CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from gamecore.core.database import Base
from gamecore.models.common import JSONType
from gamecore.engine.effects import parse_item_effects

RARITY_COLORS = {
    "common": "gray",
    "uncommon": "green",
    "rare": "blue",
    "epic": "purple",
    "legendary": "orange",
}


class Item(Base):
    """아이템 템플릿"""
    __tablename__ = "items"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        CheckConstraint("max_stack >= 1", name="ck_items_max_stack"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    item_type: Mapped[str] = mapped_column(String(16))  # weapon | armor | accessory | consumable | material | quest
    rarity: Mapped[str] = mapped_column(String(16), default="common")
    level_requirement: Mapped[int] = mapped_column(SmallInteger, default=1)
    job_requirement: Mapped[list] = mapped_column(JSONType, default=list)  # 직업명 리스트, 비어 있으면 제한 없음
    max_stack: Mapped[int] = mapped_column(SmallInteger, default=1)
    buy_price: Mapped[int] = mapped_column(Integer, default=0)
    sell_price: Mapped[int] = mapped_column(Integer, default=0)
    sale_type: Mapped[str] = mapped_column(String(16), default="shop")  # shop | bazaar | both | unsellable
    effects: Mapped[list] = mapped_column(JSONType, default=list)
    icon_path: Mapped[str | None] = mapped_column(String(128))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def parsed_effects(self) -> list:
        return parse_item_effects(self.effects)

    @property
    def rarity_color(self) -> str:
        return RARITY_COLORS.get(self.rarity, "gray")


class Warehouse(Base):
    __tablename__ = "warehouses"
    __table_args__ = (
        CheckConstraint("used_slots >= 0 AND used_slots <= max_slots", name="ck_warehouses_used_slots"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(64))
    max_slots: Mapped[int] = mapped_column(SmallInteger, default=50)
    used_slots: Mapped[int] = mapped_column(SmallInteger, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    character = relationship("gamecore.models.character.Character", back_populates="warehouses", lazy="selectin")


class CharacterItem(Base):
    """캐릭터가 보유한 아이템 (인스턴스/스택)"""
    __tablename__ = "character_items"
    __table_args__ = (
        # 캐릭터당 슬롯 하나에 장비 하나 (NULL은 중복 허용)
        UniqueConstraint("character_id", "equipment_slot", name="uq_character_equipment_slot"),
        CheckConstraint("quantity >= 1", name="ck_character_items_quantity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id", ondelete="CASCADE"))
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"))
    quantity: Mapped[int] = mapped_column(SmallInteger, default=1)
    location: Mapped[str] = mapped_column(String(16), default="inventory")  # inventory | equipped | warehouse
    warehouse_id: Mapped[int | None] = mapped_column(ForeignKey("warehouses.id"))
    equipment_slot: Mapped[str | None] = mapped_column(String(16))
    durability: Mapped[int | None] = mapped_column(Integer)
    max_durability: Mapped[int | None] = mapped_column(Integer)
    enchantment_level: Mapped[int] = mapped_column(SmallInteger, default=0)
    locked: Mapped[bool] = mapped_column(Boolean, default=False)
    obtained_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    item: Mapped["Item"] = relationship("Item", lazy="selectin")
    warehouse: Mapped["Warehouse | None"] = relationship("Warehouse", lazy="selectin")

    @property
    def equipped(self) -> bool:
        return self.location == "equipped"
