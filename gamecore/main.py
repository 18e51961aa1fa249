# gamecore/main.py
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHttpException

from gamecore.core import config
from gamecore.core.database import init_redis_pool, close_redis_pool, create_all
from gamecore.core.exceptions import GameError
from gamecore.schemas.common import ErrorResponse
from gamecore.api.api import api_router

logger = config.setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_redis_pool()
    if config.DB_CREATE_ALL:
        await create_all()
        logger.info("Database tables created.")
    yield
    # Shutdown
    await close_redis_pool()

app = FastAPI(
    title="Game Core API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs", # Swagger UI
    redoc_url="/redoc"
)


def error_content(status_code: int, message: str, error: str | None = None, data=None) -> dict:
    # 프론트엔드는 error 문자열을 그대로 노출한다
    return ErrorResponse(
        error=error or message,
        message=message,
        status=status_code,
        data=data
    ).model_dump()

# 1. 게임 규칙 위반 / 없는 리소스 / 동시성 충돌
@app.exception_handler(GameError)
async def game_exception_handler(request: Request, exc: GameError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.status_code, exc.message, data={"code": exc.code})
    )

# 2. 라우팅 404 / 405 등
@app.exception_handler(StarletteHttpException)
async def http_exception_handler(request: Request, exc: StarletteHttpException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.status_code, str(exc.detail))
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_content(
            422,
            "입력 데이터 형식이 올바르지 않습니다.",
            data=jsonable_encoder(exc.errors()) # 어떤 필드가 잘못되었는지 상세 정보 포함
        )
    )

# 3. 그 외 예상치 못한 모든 서버 에러 (500 에러)
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content(
            500,
            "서버 내부에서 오류가 발생했습니다.",
            data=str(exc) if app.debug else None # 디버그 모드일 때만 에러 내용 출력
        )
    )


# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(api_router, prefix="/api/v1")

@app.get("/health")
async def health_check():
    return {"status": "ok"}
