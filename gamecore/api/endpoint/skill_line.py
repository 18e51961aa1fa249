from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status

from gamecore.schemas.skill import (
    SkillLineType,
    SkillLineSummary,
    SkillLineListResponse,
    SkillLineCreateRequest,
    SkillLineUpdateRequest,
    SkillLineDetailResponse,
    SkillNodeDetailResponse,
    SkillNodeResponse,
    SkillNodeCreateRequest,
    SkillNodeUpdateRequest,
    UnlockNodeRequest,
    UnlockNodeResponse,
)
from gamecore.service.skill import SkillService
from gamecore.api import deps

router = APIRouter()


@router.get("", response_model=SkillLineListResponse)
async def read_skill_lines(
    search: Optional[str] = Query(None, description="이름 부분 검색"),
    skill_line_type: Optional[SkillLineType] = Query(None),
    service: SkillService = Depends(deps.get_skill_service)
):
    """스킬 라인 목록 (nodes_count / job_classes_count)"""
    return await service.list_skill_lines(search, skill_line_type)

@router.post("", response_model=SkillLineSummary, status_code=status.HTTP_201_CREATED)
async def create_skill_line(
    payload: SkillLineCreateRequest,
    service: SkillService = Depends(deps.get_skill_service)
):
    return await service.create_skill_line(payload)

@router.get("/{skill_line_id}", response_model=SkillLineDetailResponse)
async def read_skill_line(
    skill_line_id: int,
    service: SkillService = Depends(deps.get_skill_service)
):
    """
    **스킬 라인 상세**
    - 노드 목록 (display_order 순)
    - 투자 집계: totalPoints / characterCount / averagePoints / topInvestors
    """
    return await service.get_skill_line(skill_line_id)

@router.patch("/{skill_line_id}", response_model=SkillLineSummary)
async def update_skill_line(
    skill_line_id: int,
    payload: SkillLineUpdateRequest,
    service: SkillService = Depends(deps.get_skill_service)
):
    """보낸 필드만 반영 (job_class_ids를 보내면 직업 연결 교체)"""
    return await service.update_skill_line(skill_line_id, payload)

@router.post(
    "/{skill_line_id}/skill_nodes",
    response_model=SkillNodeResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_skill_node(
    skill_line_id: int,
    payload: SkillNodeCreateRequest,
    service: SkillService = Depends(deps.get_skill_service)
):
    return await service.create_node(skill_line_id, payload)

@router.get("/{skill_line_id}/skill_nodes/{node_id}", response_model=SkillNodeDetailResponse)
async def read_skill_node(
    skill_line_id: int,
    node_id: int,
    service: SkillService = Depends(deps.get_skill_service)
):
    return await service.get_node(skill_line_id, node_id)

@router.patch("/{skill_line_id}/skill_nodes/{node_id}", response_model=SkillNodeResponse)
async def update_skill_node(
    skill_line_id: int,
    node_id: int,
    payload: SkillNodeUpdateRequest,
    service: SkillService = Depends(deps.get_skill_service)
):
    return await service.update_node(skill_line_id, node_id, payload)

@router.delete("/{skill_line_id}/skill_nodes/{node_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_skill_node(
    skill_line_id: int,
    node_id: int,
    service: SkillService = Depends(deps.get_skill_service)
):
    """투자 기록이 있으면 409 TemplateInUse (active=false로 비활성화할 것)"""
    await service.delete_node(skill_line_id, node_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{skill_line_id}/skill_nodes/{node_id}/unlock", response_model=UnlockNodeResponse)
async def unlock_skill_node(
    skill_line_id: int,
    node_id: int,
    payload: UnlockNodeRequest,
    service: SkillService = Depends(deps.get_skill_service)
):
    """노드 해금 (포인트 부족 시 InsufficientPoints)"""
    return await service.unlock_node(skill_line_id, node_id, payload.character_id)
