from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from gamecore.schemas.character import (
    AddExperienceRequest,
    AcquireJobClassRequest,
    SwitchJobClassRequest,
    CharacterJobClassResponse,
    CharacterJobClassList,
    ExperienceGrantResponse,
    ExperienceGrantLog,
    CharacterListResponse,
    CharacterDetailResponse,
)
from gamecore.schemas.item import EquipmentOverviewResponse
from gamecore.schemas.skill import CharacterInvestmentResponse
from gamecore.service.character import CharacterService
from gamecore.service.equipment import EquipmentService
from gamecore.service.experience import ExperienceService
from gamecore.api import deps

router = APIRouter()


# --- 캐릭터 관리 화면 ---

@router.get("", response_model=CharacterListResponse)
async def read_characters(
    name: Optional[str] = Query(None, description="이름 부분 검색"),
    service: CharacterService = Depends(deps.get_character_service)
):
    return await service.list_characters(name)

@router.get("/equipments", response_model=EquipmentOverviewResponse)
async def read_equipment_overview(
    character_name: Optional[str] = Query(None),
    job_class_id: Optional[int] = Query(None, description="현재 직업 기준"),
    missing_equipment: Optional[str] = Query(None, description="비어 있는 슬롯 (예: 頭)"),
    service: EquipmentService = Depends(deps.get_equipment_service)
):
    """
    **전 캐릭터 장비 현황**
    - 슬롯별 장착 아이템 (강화 / 내구도)
    - equipped_count / empty_slots
    """
    return await service.get_overview(character_name, job_class_id, missing_equipment)

@router.get("/{character_id}", response_model=CharacterDetailResponse)
async def read_character(
    character_id: int,
    service: CharacterService = Depends(deps.get_character_service)
):
    """캐릭터 상세 (현재 직업 / 보유 직업 / 창고 / 위치별 아이템 수)"""
    return await service.get_character(character_id)

@router.get("/{character_id}/character_job_classes", response_model=CharacterJobClassList)
async def read_character_job_classes(
    character_id: int,
    service: CharacterService = Depends(deps.get_character_service)
):
    return await service.get_character_job_classes(character_id)

@router.get("/{character_id}/character_job_classes/{job_class_id}", response_model=CharacterJobClassResponse)
async def read_character_job_class(
    character_id: int,
    job_class_id: int,
    service: CharacterService = Depends(deps.get_character_service)
):
    """
    **캐릭터 직업 상세**
    - 레벨 / 경험치 / 스킬 포인트 / 다음 레벨까지 남은 경험치
    - 현재 스탯 (현재 직업이면 스킬/장비 보너스 포함)
    """
    return await service.get_character_job_class(character_id, job_class_id)

@router.post(
    "/{character_id}/character_job_classes",
    response_model=CharacterJobClassResponse,
    status_code=status.HTTP_201_CREATED
)
async def acquire_job_class(
    character_id: int,
    payload: AcquireJobClassRequest,
    service: CharacterService = Depends(deps.get_character_service)
):
    return await service.acquire_job_class(character_id, payload.job_class_id, payload.make_current)

@router.patch("/{character_id}/current_job_class", response_model=CharacterJobClassResponse)
async def switch_current_job_class(
    character_id: int,
    payload: SwitchJobClassRequest,
    service: CharacterService = Depends(deps.get_character_service)
):
    """현재 직업 전환 (기존 플래그 해제 + 새 플래그 설정이 원자적으로)"""
    return await service.switch_current_job(character_id, payload.job_class_id)

@router.patch("/{character_id}/add_experience", response_model=ExperienceGrantResponse)
async def add_experience(
    character_id: int,
    payload: AddExperienceRequest,
    actor: str = Depends(deps.get_actor),
    service: ExperienceService = Depends(deps.get_experience_service)
):
    """
    **관리자 경험치 지급**
    - reason 필수, 지급 기록(experience_grants)과 함께 커밋
    - 응답: newLevel / expToNextLevel / levelProgress ...
    """
    return await service.grant_experience(
        character_id,
        payload.experience,
        payload.reason,
        actor,
        job_class_id=payload.job_class_id,
    )

@router.get("/{character_id}/experience_grants", response_model=List[ExperienceGrantLog])
async def read_experience_grants(
    character_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    service: ExperienceService = Depends(deps.get_experience_service)
):
    """경험치 지급 감사 로그 (최신순)"""
    return await service.list_grants(character_id, skip=skip, limit=limit)

@router.get("/{character_id}/skill_investments", response_model=List[CharacterInvestmentResponse])
async def read_skill_investments(
    character_id: int,
    service: CharacterService = Depends(deps.get_character_service)
):
    return await service.get_skill_investments(character_id)
