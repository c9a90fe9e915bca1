"""Nationsim World Server — FastAPI."""
from __future__ import annotations
import time, uuid, logging, threading
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Any
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from nationsim.config import SimConfig, get_default_save_dir
from nationsim.logging_config import setup_logging
from nationsim.map_gen import describe_cell
from nationsim.persistence import CorruptSaveError
from nationsim.types import ActionType, Economy, Government, MilitaryActionType, Resource
from nationsim.world import World, TickInProgressError
from server.saves import save_slot, list_slots, load_slot, delete_slot

logger = logging.getLogger(__name__)

app = FastAPI(title="Nationsim", version="1.0.0")

# ── Data stores ──────────────────────────────────────────────────────────────

@dataclass
class WorldInstance:
    id: str
    world: World
    lock: threading.Lock = field(default_factory=threading.Lock)
    created_at: float = field(default_factory=time.time)

WORLDS: dict[str, WorldInstance] = {}
SAVE_DIR: Path = get_default_save_dir()


def get_instance(world_id: str) -> WorldInstance:
    wi = WORLDS.get(world_id)
    if not wi:
        raise HTTPException(404, "World not found")
    return wi


def require_nations(wi: WorldInstance, *nation_ids: str):
    for nid in nation_ids:
        if wi.world.get_nation(nid) is None:
            raise HTTPException(404, f"Nation {nid} not found")


def _register(world: World) -> WorldInstance:
    wi = WorldInstance(id=str(uuid.uuid4())[:8], world=world)
    WORLDS[wi.id] = wi
    return wi

# ── Models ───────────────────────────────────────────────────────────────────

class CreateWorldRequest(BaseModel):
    seed: int | None = None
    config: dict[str, Any] = {}

class CreateNationRequest(BaseModel):
    name: str = Field(min_length=1)
    government: Government = Government.MONARCHY
    economy: Economy = Economy.MIXED
    population: float = Field(10.0, gt=0)
    military_strength: int = Field(5, ge=1, le=10)
    color: str | None = None

class TerritoryRequest(BaseModel):
    x: float
    y: float

class TickRequest(BaseModel):
    years: int = Field(1, ge=1, le=100)

class ProposalRequest(BaseModel):
    sender: str
    recipient: str
    type: ActionType
    terms: dict[str, Any] = {}

class ResolveProposalRequest(BaseModel):
    nation_id: str

class TradeRouteRequest(BaseModel):
    nation_id: str
    partner_id: str
    resource: Resource
    amount: float

class DeclareWarRequest(BaseModel):
    attacker: str
    defender: str

class EndWarRequest(BaseModel):
    nation_id: str
    other_id: str

class MilitaryActionRequest(BaseModel):
    attacker: str
    defender: str
    type: MilitaryActionType = MilitaryActionType.BATTLE
    commitment: float = Field(0.5, ge=0, le=1)

class SaveRequest(BaseModel):
    name: str | None = None

# ── Worlds ───────────────────────────────────────────────────────────────────

@app.post("/worlds")
def create_world(req: CreateWorldRequest):
    overrides = {**SimConfig.from_env().to_dict(), **req.config}
    try:
        config = SimConfig.from_dict(overrides)
    except (TypeError, ValueError) as e:
        raise HTTPException(422, f"Invalid config: {e}")
    world = World.create(config=config, seed=req.seed)
    wi = _register(world)
    logger.info("Created world %s (seed=%s)", wi.id, req.seed)
    return {"world_id": wi.id, "year": world.year,
            "grid": [world.config.grid_cols, world.config.grid_rows],
            "grid_size": world.config.grid_size}

@app.get("/worlds")
def list_worlds():
    return [{"world_id": wid, "year": wi.world.year, "nations": len(wi.world.nations),
             "created_at": wi.created_at} for wid, wi in WORLDS.items()]

@app.get("/worlds/{world_id}/state")
def get_state(world_id: str):
    wi = get_instance(world_id)
    with wi.lock:
        state = wi.world.get_full_state()
    state["world_id"] = world_id
    return state

@app.get("/worlds/{world_id}/rankings")
def get_rankings(world_id: str):
    wi = get_instance(world_id)
    with wi.lock:
        return wi.world.rankings()

@app.post("/worlds/{world_id}/nations")
def create_nation(world_id: str, req: CreateNationRequest):
    wi = get_instance(world_id)
    with wi.lock:
        nation = wi.world.create_nation(
            name=req.name, government=req.government, economy=req.economy,
            population=req.population, military_strength=req.military_strength,
            color=req.color,
        )
        return nation.snapshot()

@app.post("/worlds/{world_id}/nations/{nation_id}/territory")
def claim_territory(world_id: str, nation_id: str, req: TerritoryRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, nation_id)
        if not wi.world.claim_territory(nation_id, req.x, req.y):
            raise HTTPException(400, "Cell is occupied, already held, or off the map")
        territories = wi.world.nations[nation_id].territories
        col, row = territories[-1]
        return {"ok": True, "territories": len(territories),
                "cell": [col, row], "terrain": describe_cell(wi.world.terrain, col, row)}

@app.post("/worlds/{world_id}/tick")
def tick(world_id: str, req: TickRequest | None = None):
    wi = get_instance(world_id)
    years = req.years if req else 1
    if not wi.lock.acquire(blocking=False):
        raise HTTPException(409, "A tick is already in progress")
    try:
        results = [wi.world.tick() for _ in range(years)]
    except TickInProgressError as e:
        raise HTTPException(409, str(e))
    finally:
        wi.lock.release()
    return {
        "status": "tick_processed",
        "year": wi.world.year,
        "battles": sum(r.battles for r in results),
        "wars_declared": sum(r.wars_declared for r in results),
        "wars_ended": sum(r.wars_ended for r in results),
        "notifications": [n.to_dict() for r in results for n in r.notifications],
    }

# ── Diplomacy ────────────────────────────────────────────────────────────────

@app.post("/worlds/{world_id}/diplomacy/proposals")
def propose(world_id: str, req: ProposalRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, req.sender, req.recipient)
        action = wi.world.propose(req.sender, req.recipient, req.type, req.terms, announce=True)
        if action is None:
            raise HTTPException(400, "A nation cannot make proposals to itself")
        return action.to_dict()

def _resolve(world_id: str, action_id: str, nation_id: str, accept: bool) -> dict:
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, nation_id)
        if wi.world.diplomacy.get(action_id) is None:
            raise HTTPException(404, "Proposal not found")
        ok = (wi.world.accept_action(nation_id, action_id) if accept
              else wi.world.reject_action(nation_id, action_id))
        if not ok:
            raise HTTPException(400, "Proposal is not pending for this nation")
        return wi.world.diplomacy.get(action_id).to_dict()

@app.post("/worlds/{world_id}/diplomacy/proposals/{action_id}/accept")
def accept_proposal(world_id: str, action_id: str, req: ResolveProposalRequest):
    return _resolve(world_id, action_id, req.nation_id, accept=True)

@app.post("/worlds/{world_id}/diplomacy/proposals/{action_id}/reject")
def reject_proposal(world_id: str, action_id: str, req: ResolveProposalRequest):
    return _resolve(world_id, action_id, req.nation_id, accept=False)

# ── Trade ────────────────────────────────────────────────────────────────────

@app.post("/worlds/{world_id}/trade/routes")
def create_trade_route(world_id: str, req: TradeRouteRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, req.nation_id, req.partner_id)
        route = wi.world.create_trade_route(req.nation_id, req.partner_id, req.resource, req.amount)
        if route is None:
            raise HTTPException(400, "Route refused: partner must differ, resource must be tradable and amount non-zero")
        return route.to_dict()

@app.delete("/worlds/{world_id}/trade/routes/{route_id}")
def cancel_trade_route(world_id: str, route_id: str, nation_id: str):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, nation_id)
        if not wi.world.cancel_trade_route(nation_id, route_id):
            raise HTTPException(400, "Nation holds no such route")
        return {"ok": True}

# ── War ──────────────────────────────────────────────────────────────────────

@app.post("/worlds/{world_id}/wars")
def declare_war(world_id: str, req: DeclareWarRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, req.attacker, req.defender)
        war = wi.world.declare_war(req.attacker, req.defender)
        if war is None:
            raise HTTPException(400, "War refused: same nation or already at war")
        return war.to_dict()

@app.post("/worlds/{world_id}/wars/end")
def end_war(world_id: str, req: EndWarRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, req.nation_id, req.other_id)
        if not wi.world.end_war(req.nation_id, req.other_id):
            raise HTTPException(400, "No active war between these nations")
        return {"ok": True}

@app.post("/worlds/{world_id}/wars/actions")
def military_action(world_id: str, req: MilitaryActionRequest):
    wi = get_instance(world_id)
    with wi.lock:
        require_nations(wi, req.attacker, req.defender)
        battle = wi.world.conduct_military_action(req.attacker, req.defender, req.type, req.commitment)
        if battle is None:
            raise HTTPException(400, "Nations are not at war with each other")
        return battle.to_dict()

# ── Save slots ───────────────────────────────────────────────────────────────

@app.post("/worlds/{world_id}/save")
def save_world(world_id: str, req: SaveRequest | None = None):
    wi = get_instance(world_id)
    with wi.lock:
        slot = save_slot(wi.world, name=req.name if req else None, save_dir=SAVE_DIR)
    return asdict(slot)

@app.get("/saves")
def api_list_saves():
    return [asdict(s) for s in list_slots(SAVE_DIR)]

@app.post("/saves/{slot_id}/load")
def api_load_save(slot_id: str):
    try:
        world = load_slot(slot_id, SAVE_DIR)
    except CorruptSaveError as e:
        raise HTTPException(422, str(e))
    if world is None:
        raise HTTPException(404, "Save not found")
    wi = _register(world)
    return {"world_id": wi.id, "year": world.year, "nations": len(world.nations)}

@app.delete("/saves/{slot_id}")
def api_delete_save(slot_id: str):
    if not delete_slot(slot_id, SAVE_DIR):
        raise HTTPException(404, "Save not found")
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
