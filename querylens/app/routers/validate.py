from fastapi import APIRouter
from pydantic import BaseModel

from querylens.app.validators.safety import validate

router = APIRouter()


class ValidateRequest(BaseModel):
    query: str


@router.post("/validate")
def check(req: ValidateRequest):
    """Advisory pre-submission check; same rules as the analysis gate."""
    outcome = validate(req.query)
    return {
        "ok": outcome.ok,
        "reason": outcome.reason.value if outcome.reason else None,
        "message": outcome.message,
    }
