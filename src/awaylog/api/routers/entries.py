"""Entry endpoints: list, open (departure) and close (return)."""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from awaylog.api.dependencies import EntryId, get_ledger
from awaylog.core.logging import get_logger
from awaylog.core.timestamps import utcnow
from awaylog.core.types import Entry
from awaylog.ledger import EntryLedger

router = APIRouter(prefix="/entries", tags=["entries"])
logger = get_logger("api.entries")


class OpenEntryRequest(BaseModel):
    # Values are checked by the ledger so bad input maps to a 400, not a 422
    departureTime: Optional[Any] = Field(
        default=None,
        description="ISO 8601 departure instant. Defaults to the current time.",
    )
    estimatedDuration: Optional[Any] = Field(
        default=None,
        description="Expected time away, in whole minutes (> 0).",
    )


class CloseEntryRequest(BaseModel):
    returnTime: Optional[Any] = Field(default=None, description="ISO 8601 return instant.")


class EntryModel(BaseModel):
    id: str
    departureTime: str
    estimatedDuration: int
    returnTime: Optional[str] = None
    lateBy: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryModel":
        return cls(**entry.to_dict())


@router.get("", response_model=List[EntryModel])
async def list_entries(ledger: EntryLedger = Depends(get_ledger)) -> List[EntryModel]:
    entries = await ledger.list()
    return [EntryModel.from_entry(entry) for entry in entries]


@router.get("/{entry_id}", response_model=EntryModel)
async def get_entry(entry_id: EntryId, ledger: EntryLedger = Depends(get_ledger)) -> EntryModel:
    return EntryModel.from_entry(await ledger.get(entry_id))


@router.post("", response_model=EntryModel, status_code=status.HTTP_201_CREATED)
async def open_entry(
    payload: OpenEntryRequest = Body(...),
    ledger: EntryLedger = Depends(get_ledger),
) -> EntryModel:
    departure = payload.departureTime if payload.departureTime is not None else utcnow()
    entry = await ledger.open(departure, payload.estimatedDuration)
    return EntryModel.from_entry(entry)


@router.put("/{entry_id}", response_model=EntryModel)
async def close_entry(
    entry_id: EntryId,
    payload: CloseEntryRequest = Body(...),
    ledger: EntryLedger = Depends(get_ledger),
) -> EntryModel:
    entry = await ledger.close(entry_id, payload.returnTime)
    return EntryModel.from_entry(entry)
