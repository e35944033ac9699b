from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

router = APIRouter()

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


@router.get("/widget.js", include_in_schema=False)
async def widget_script():
    return FileResponse(STATIC_DIR / "widget.js", media_type="application/javascript")
