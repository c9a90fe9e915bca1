"""Save/load codec: a World to and from UTF-8 JSON."""
from __future__ import annotations
import json
import logging
import random
import re

from .config import SimConfig
from .diplomacy import DiplomacyLedger
from .nation import Nation
from .trade import GlobalMarket, TradeLedger
from .types import Notification, TradeRoute
from .warfare import WarLedger
from .world import World

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
REQUIRED_KEYS = ("year", "nations", "diplomacy", "warfare", "trade", "terrain")

_ID_SUFFIX = re.compile(r"^([a-z]+)_(\d+)$")


class CorruptSaveError(ValueError):
    """The bytes could not be decoded into a consistent world."""


def serialize(world: World) -> bytes:
    config = world.config.to_dict()
    config.pop("save_dir", None)
    payload = {
        "version": FORMAT_VERSION,
        "year": world.year,
        "nations": [n.to_dict() for n in world.nations.values()],
        "diplomacy": world.diplomacy.to_dict(),
        "warfare": world.warfare.to_dict(),
        "trade": world.trade.to_dict(),
        "terrain": list(world.terrain),
        "notifications": [n.to_dict() for n in world.notifications],
        "counters": dict(world.counters),
        "config": config,
    }
    return json.dumps(payload).encode("utf-8")


def deserialize(data: bytes | str, config: SimConfig | None = None,
                rng: random.Random | None = None) -> World:
    """Rebuild a World. Raises CorruptSaveError and builds nothing on bad input."""
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise CorruptSaveError(f"save is not valid UTF-8 JSON: {e}") from e
    if not isinstance(payload, dict):
        raise CorruptSaveError("save must be a JSON object")
    missing = [k for k in REQUIRED_KEYS if k not in payload]
    if missing:
        raise CorruptSaveError(f"save is missing keys: {', '.join(missing)}")

    try:
        return _build_world(payload, config, rng)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CorruptSaveError(f"malformed save: {e!r}") from e


def _build_world(payload: dict, config: SimConfig | None,
                 rng: random.Random | None) -> World:
    config = config or SimConfig.from_dict(payload.get("config") or {})
    nations: dict[str, Nation] = {}
    for raw in payload["nations"]:
        nation = Nation.from_dict(raw)
        if nation.at_war != bool(nation.war_with):
            logger.info("Reconciled at_war for %s with its war list", nation.name)
        nation.at_war = bool(nation.war_with)
        nations[nation.id] = nation

    trade_data = payload["trade"]
    routes: list[TradeRoute] = []
    for raw in trade_data.get("trade_routes", []):
        owner = nations.get(raw["owner"])
        record = owner.route(raw["id"]) if owner else None
        if record is None:
            logger.warning("Dropping orphaned trade route %s", raw.get("id"))
            continue
        routes.append(record)

    terrain = payload["terrain"]
    if not isinstance(terrain, list) or not all(isinstance(row, str) for row in terrain):
        raise ValueError("terrain must be a list of row strings")

    world = World(
        config=config,
        rng=rng or random.Random(),
        year=int(payload["year"]),
        nations=nations,
        diplomacy=DiplomacyLedger.from_dict(payload["diplomacy"]),
        warfare=WarLedger.from_dict(payload["warfare"]),
        trade=TradeLedger(routes=routes,
                          market=GlobalMarket.from_dict(trade_data.get("global_market", {}))),
        terrain=terrain,
        notifications=[Notification.from_dict(n) for n in payload.get("notifications", [])],
        counters={str(k): int(v) for k, v in (payload.get("counters") or {}).items()},
    )
    _restore_counters(world)
    return world


def _restore_counters(world: World):
    """Make sure freshly allocated ids never collide with loaded ones."""
    seen = list(world.nations)
    seen += [r.id for n in world.nations.values() for r in n.trade_routes]
    seen += [a.id for a in world.diplomacy.actions]
    for war in world.warfare.active_wars + world.warfare.history:
        seen.append(war.id)
        seen += [b.id for b in war.battles]
    for ident in seen:
        m = _ID_SUFFIX.match(str(ident))
        if m:
            prefix, k = m.group(1), int(m.group(2))
            world.counters[prefix] = max(world.counters.get(prefix, 0), k)
