from fastapi import APIRouter
from gamecore.api.endpoint import character, character_item, item, job_class, skill_line

api_router = APIRouter()

api_router.include_router(job_class.router, prefix="/job_classes", tags=["Job Classes"])
api_router.include_router(job_class.stats_router, tags=["Job Stats"])
api_router.include_router(character.router, prefix="/characters", tags=["Characters"])
api_router.include_router(character_item.router, prefix="/characters", tags=["Equipment & Items"])
api_router.include_router(skill_line.router, prefix="/skill_lines", tags=["Skill Lines"])
api_router.include_router(item.router, prefix="/items", tags=["Items"])
api_router.include_router(item.weapon_router, prefix="/weapons", tags=["Items"])
api_router.include_router(item.armor_router, prefix="/armors", tags=["Items"])
