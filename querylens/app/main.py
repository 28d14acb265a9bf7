from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from querylens.app.core.logging import init_logging
from querylens.app.routers import analyses, examples, explain, history, validate
from querylens.app.validators.safety import QueryValidationError

init_logging()

app = FastAPI(title="QueryLens", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyses.router, prefix="/v1")
app.include_router(validate.router, prefix="/v1")
app.include_router(explain.router, prefix="/v1")
app.include_router(history.router, prefix="/v1")
app.include_router(examples.router, prefix="/v1")


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.exception_handler(QueryValidationError)
async def _validation_error(request: Request, exc: QueryValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Query validation failed",
            "reason": exc.reason.value,
            "message": str(exc),
        },
    )


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.opt(exception=exc).error("unhandled", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
