# gamecore/core/locks.py
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# 캐릭터 단위 직렬화용 락 (프로세스 내부)
# 프로세스 간 충돌은 version 컬럼(낙관적 락)으로 감지합니다.
# asyncio.Lock은 이벤트 루프에 묶이므로 (루프, 캐릭터) 단위로 보관하고
# 사용 중인 코루틴이 없어지면 바로 지운다.


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


_locks: dict[tuple[asyncio.AbstractEventLoop, int], _Entry] = {}


def active_lock_count() -> int:
    return len(_locks)


@asynccontextmanager
async def character_lock(character_id: int):
    key = (asyncio.get_running_loop(), character_id)
    entry = _locks.get(key)
    if entry is None:
        entry = _locks[key] = _Entry()

    # 대기 중인 코루틴도 users에 포함 (락을 기다리는 동안 엔트리가 지워지면 안 됨)
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0 and _locks.get(key) is entry:
            del _locks[key]
