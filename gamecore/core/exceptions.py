# gamecore/core/exceptions.py
"""
도메인 에러 정의

- validation  : 입력값 자체가 잘못됨 (상태 변경 전에 거절)
- precondition: 게임 규칙 위반 (InsufficientPoints, SlotMismatch ...)
- not found   : 존재하지 않는 리소스 참조
- conflict    : 동시성 충돌 (재시도 후에도 실패한 경우) / 참조 중인 템플릿 삭제

모든 에러는 main.py의 핸들러에서 {"error": message, ...} 형태로 변환됩니다.
"""
from fastapi import status


class GameError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


# --- validation ---
class ValidationFailed(GameError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid input"

class InvalidAmount(ValidationFailed):
    default_message = "Experience amount must be greater than 0"


# --- not found ---
class NotFound(GameError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


# --- precondition ---
class PreconditionFailed(GameError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Precondition failed"

class InsufficientPoints(PreconditionFailed):
    default_message = "Not enough skill points"

class AlreadyUnlocked(PreconditionFailed):
    default_message = "Skill node is already unlocked"

class NodeInactive(PreconditionFailed):
    default_message = "Skill node is inactive"

class SkillLineUnavailable(PreconditionFailed):
    default_message = "Skill line is not available for the current job class"

class SlotMismatch(PreconditionFailed):
    default_message = "Item cannot be equipped in this slot"

class LevelTooLow(PreconditionFailed):
    default_message = "Level requirement not met"

class JobNotAllowed(PreconditionFailed):
    default_message = "Current job class cannot use this item"

class NoCurrentJob(PreconditionFailed):
    default_message = "Character has no current job class"

class SlotOccupied(PreconditionFailed):
    default_message = "Equipment slot is occupied by a locked item"

class ItemLocked(PreconditionFailed):
    default_message = "Item is locked"

class InvalidTransition(PreconditionFailed):
    default_message = "Item cannot move from its current location"

class NotConsumable(PreconditionFailed):
    default_message = "Item is not consumable"

class WarehouseFull(PreconditionFailed):
    default_message = "Warehouse is full"


# --- concurrency ---
class ConcurrencyConflict(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Character state changed concurrently, please retry"

class TemplateInUse(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Template is still referenced and cannot be deleted"
