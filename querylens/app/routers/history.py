from fastapi import APIRouter
from querylens.app.store.history import STORE

router = APIRouter()


@router.get("/history/recent")
def recent(limit: int | None = None):
    try:
        return {"ok": True, "items": STORE.recent(limit=limit)}
    except Exception as e:
        return {"ok": False, "error": str(e)[:200]}


@router.delete("/history")
def clear():
    STORE.clear()
    return {"ok": True}
