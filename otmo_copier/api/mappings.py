"""Trade mapping API: source trade → venue order/position ids."""

from fastapi import APIRouter, Depends, HTTPException

from otmo_copier.api.deps import get_repository
from otmo_copier.repository import SqlRepository
from otmo_copier.schemas.status import TradeMappingRead

router = APIRouter(prefix="/api/mappings", tags=["mappings"])


@router.get("", response_model=list[TradeMappingRead])
def list_mappings(
    venue: str | None = None,
    limit: int = 50,
    offset: int = 0,
    repository: SqlRepository = Depends(get_repository),
):
    return repository.list_trade_mappings(
        venue=venue.lower() if venue else None, limit=limit, offset=offset
    )


@router.get("/{source_trade_id}/{venue}", response_model=TradeMappingRead)
def get_mapping(source_trade_id: str, venue: str, repository: SqlRepository = Depends(get_repository)):
    mapping = repository.get_trade_mapping(source_trade_id, venue.lower())
    if not mapping:
        raise HTTPException(status_code=404, detail="Mapping not found")
    return mapping
