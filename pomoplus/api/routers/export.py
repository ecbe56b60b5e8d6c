"""
/export — download sessions, tasks and progression as JSON or CSV.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ...api.deps import get_core
from ...export import export_data, export_filename

router = APIRouter(prefix="/export", tags=["export"])

_MEDIA_TYPES = {"json": "application/json", "csv": "text/csv", "excel": "text/csv"}


@router.get("/{fmt}")
def export(fmt: str, core=Depends(get_core)):
    if fmt not in _MEDIA_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown export format: {fmt}")
    body = export_data(
        core.timer.sessions,
        core.tasks.all_tasks(),
        core.progression.stats,
        asdict(core.timer.settings),
        fmt,
    )
    filename = export_filename(fmt, core.today())
    return Response(
        content=body,
        media_type=_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
