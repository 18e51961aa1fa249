# Base.metadata 에 모든 테이블을 등록하기 위한 import
from gamecore.models.character import Character
from gamecore.models.job_class import JobClass, CharacterJobClass, ExperienceGrant, job_class_skill_line
from gamecore.models.skill import SkillLine, SkillNode, CharacterSkillInvestment
from gamecore.models.item import Item, Warehouse, CharacterItem

__all__ = [
    "Character",
    "JobClass",
    "CharacterJobClass",
    "ExperienceGrant",
    "job_class_skill_line",
    "SkillLine",
    "SkillNode",
    "CharacterSkillInvestment",
    "Item",
    "Warehouse",
    "CharacterItem",
]
