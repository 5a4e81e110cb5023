"""
Item Mover API Service
Provides REST API for moving, counting and balancing items across the network
"""

from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
import requests

from item_mover import operations
from item_mover.bridge_api import BridgeAPIError
from item_mover.config import load_config
from item_mover.directory import Directory
from item_mover.errors import IMVError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IMV_")

    config_path: Optional[str] = None
    bridge_host: Optional[str] = None
    strict: bool = False


settings = Settings()
app = FastAPI(title="Item Mover API", version="0.1.0")

# Enable CORS for web UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_directory() -> Directory:
    """Directory built from the service settings."""
    config_path = Path(settings.config_path) if settings.config_path else None
    config = load_config(config_path)
    return operations.get_directory(config, host=settings.bridge_host, strict=settings.strict)


# ============================================================================
# MODELS
# ============================================================================

class MoveRequest(BaseModel):
    source: str
    destination: str
    verbose: bool = False


class TransferInfo(BaseModel):
    source: str
    slot: int
    item: str
    destination: str
    count: int


class MoveResponse(BaseModel):
    transferred: int
    returncode: int
    error: Optional[str] = None
    error_kind: Optional[str] = None
    requested: Optional[int] = None
    transfers: list[TransferInfo] = []
    failures: list[str] = []


class CountResponse(BaseModel):
    item: str
    count: int


class NodeCountResponse(BaseModel):
    item: str
    inventory: Optional[str] = None
    count: int


class BalanceRequest(BaseModel):
    item: str
    limit: Optional[int] = None


class BalanceResponse(BaseModel):
    moved: int
    error: Optional[str] = None
    passes: int
    plan: Optional[dict] = None
    moves: list[dict] = []


def _bridge_failure(e: Exception) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Bridge error: {e}")


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/api")
def api_info():
    """API information endpoint"""
    return {
        "service": "Item Mover API",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "GET /inventories": "List inventories and the local network name",
            "POST /move": "Move items between two patterns",
            "GET /query/count": "Total of an item across the network",
            "GET /query/high": "Inventory with the most of an item",
            "GET /query/low": "Inventory with the least of an item",
            "POST /balance": "Distribute an item evenly",
            "GET /summary": "Item totals in a location",
        }
    }


@app.get("/inventories")
def list_inventories(directory: Directory = Depends(get_directory)):
    """Inventories on the network, in discovery order."""
    try:
        directory.refresh()
        return {
            "local_name": directory.local_name(),
            "inventories": directory.inventories(),
        }
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)


@app.post("/move", response_model=MoveResponse)
def move_items(request: MoveRequest, directory: Directory = Depends(get_directory)):
    """
    Move items from one pattern to another

    Partial moves succeed. Location errors return 400; nothing matched
    or every destination full returns 409.
    """
    try:
        result = operations.move(
            request.source, request.destination, directory, verbose=request.verbose
        )
    except IMVError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)

    if result.error_kind in ("LocationNotFound", "AmbiguousDestination"):
        raise HTTPException(status_code=400, detail=result.error)
    if result.error_kind == "NoMatchOrFull":
        raise HTTPException(status_code=409, detail=result.error)
    return MoveResponse(**result.to_dict())


@app.get("/query/count", response_model=CountResponse)
def query_count(item: str, directory: Directory = Depends(get_directory)):
    try:
        total = operations.query_count(item, directory)
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)
    return CountResponse(item=item, count=total)


@app.get("/query/high", response_model=NodeCountResponse)
def query_high(item: str, directory: Directory = Depends(get_directory)):
    try:
        name, total = operations.query_high(item, directory)
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)
    return NodeCountResponse(item=item, inventory=name, count=total)


@app.get("/query/low", response_model=NodeCountResponse)
def query_low(
    item: str,
    include_empty: bool = False,
    directory: Directory = Depends(get_directory),
):
    try:
        name, total = operations.query_low(item, directory, include_empty=include_empty)
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)
    return NodeCountResponse(item=item, inventory=name, count=total)


@app.post("/balance", response_model=BalanceResponse)
def balance(request: BalanceRequest, directory: Directory = Depends(get_directory)):
    """
    Balance an item across every inventory

    Runs to completion; this can take a while on large networks. Nothing to
    balance (no inventories, no matching items) returns 409.
    """
    try:
        result = operations.query_balance(request.item, directory, limit=request.limit)
    except IMVError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)
    if result.error:
        raise HTTPException(status_code=409, detail=result.error)
    return BalanceResponse(**result.to_dict())


@app.get("/summary")
def location_summary(location: str, directory: Directory = Depends(get_directory)):
    """Item totals in the nodes a location pattern resolves to."""
    try:
        totals = operations.summary(location, directory)
    except IMVError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (BridgeAPIError, requests.RequestException) as e:
        raise _bridge_failure(e)
    return {"location": location, "items": totals}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
