"""Admin page behind HTTP Basic: entry overview plus departure/return actions."""

from __future__ import annotations

from html import escape
from typing import Any

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse

from awaylog.api.dependencies import EntryId, get_ledger, require_admin
from awaylog.core.logging import get_logger
from awaylog.core.timestamps import format_instant, utcnow
from awaylog.core.types import Entry
from awaylog.ledger import EntryLedger

router = APIRouter(prefix="/admin", tags=["admin"])
logger = get_logger("api.admin")

_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>awaylog admin</title></head>
<body>
<h1>Entries</h1>
<p>Signed in as {user}. {open_count} open, {closed_count} closed.</p>
<form method="post" action="/admin/entries">
<label for="estimatedDuration">Away for (min):</label>
<input type="number" id="estimatedDuration" name="estimatedDuration" min="1" required>
<button type="submit">Mark departure</button>
</form>
<table border="1" cellpadding="4">
<thead><tr><th>ID</th><th>Departure</th><th>Estimated (min)</th><th>Expected return</th>
<th>Return</th><th>Late by (min)</th><th>Action</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""

_RETURN_FORM = (
    '<form method="post" action="/admin/entries/{id}/return">'
    '<button type="submit">Returned</button></form>'
)


def _row(entry: Entry) -> str:
    data = entry.to_dict()
    cells = [
        escape(data["id"]),
        escape(data["departureTime"]),
        str(data["estimatedDuration"]),
        escape(format_instant(entry.expected_return)),
        escape(data["returnTime"] or "still out"),
        "" if data["lateBy"] is None else str(data["lateBy"]),
        _RETURN_FORM.format(id=escape(entry.id, quote=True)) if entry.is_open else "back",
    ]
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


def _form_duration(raw: str) -> Any:
    # Form fields arrive as text; anything non-integral is left for the ledger to reject
    try:
        return int(raw.strip())
    except ValueError:
        return raw


def _back_to_page() -> RedirectResponse:
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


@router.get("", response_class=HTMLResponse)
async def admin_page(
    user: str = Depends(require_admin),
    ledger: EntryLedger = Depends(get_ledger),
) -> HTMLResponse:
    entries = await ledger.list()
    open_count = sum(1 for entry in entries if entry.is_open)
    return HTMLResponse(
        _PAGE.format(
            user=escape(user),
            open_count=open_count,
            closed_count=len(entries) - open_count,
            rows="\n".join(_row(entry) for entry in entries),
        )
    )


@router.post("/entries")
async def mark_departure(
    estimatedDuration: str = Form(...),
    user: str = Depends(require_admin),
    ledger: EntryLedger = Depends(get_ledger),
) -> RedirectResponse:
    entry = await ledger.open(utcnow(), _form_duration(estimatedDuration))
    logger.info(f"{user} marked departure {entry.id}")
    return _back_to_page()


@router.post("/entries/{entry_id}/return")
async def mark_return(
    entry_id: EntryId,
    user: str = Depends(require_admin),
    ledger: EntryLedger = Depends(get_ledger),
) -> RedirectResponse:
    await ledger.close(entry_id, utcnow())
    logger.info(f"{user} marked return {entry_id}")
    return _back_to_page()
