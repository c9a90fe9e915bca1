"""Save slots for Nationsim worlds, one JSON file per slot."""
from __future__ import annotations
import json, time, uuid, re, logging
from pathlib import Path
from dataclasses import dataclass, asdict

from nationsim.config import get_default_save_dir
from nationsim.persistence import serialize, deserialize, CorruptSaveError
from nationsim.world import World

logger = logging.getLogger(__name__)

SLOT_ID = re.compile(r"^[0-9a-f]{8}$")


@dataclass
class SaveSlot:
    slot_id: str
    name: str
    date: str  # ISO format
    timestamp: float
    year: int
    nation_count: int


def _slot_dir(save_dir: str | Path | None) -> Path:
    return Path(save_dir) if save_dir else get_default_save_dir()


def _slot_path(slot_id: str, save_dir: str | Path | None) -> Path | None:
    if not SLOT_ID.match(slot_id):
        return None
    return _slot_dir(save_dir) / f"{slot_id}.json"


def _load_slot_file(path: Path) -> dict:
    return json.loads(path.read_bytes())


def _save_slot_file(path: Path, payload: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def save_slot(world: World, name: str | None = None,
              save_dir: str | Path | None = None) -> SaveSlot:
    now = time.time()
    slot = SaveSlot(
        slot_id=uuid.uuid4().hex[:8],
        name=name or f"Year {world.year}",
        date=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(now)),
        timestamp=now,
        year=world.year,
        nation_count=len(world.nations),
    )
    payload = json.loads(serialize(world))
    payload["slot"] = asdict(slot)
    _save_slot_file(_slot_dir(save_dir or world.config.save_dir) / f"{slot.slot_id}.json", payload)
    logger.info("Saved year %d to slot %s", world.year, slot.slot_id)
    return slot


def list_slots(save_dir: str | Path | None = None) -> list[SaveSlot]:
    directory = _slot_dir(save_dir)
    if not directory.exists():
        return []
    slots = []
    for path in directory.glob("*.json"):
        try:
            slots.append(SaveSlot(**_load_slot_file(path)["slot"]))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Skipping unreadable save %s: %s", path.name, e)
    slots.sort(key=lambda s: s.timestamp, reverse=True)  # newest first
    return slots


def load_slot(slot_id: str, save_dir: str | Path | None = None) -> World | None:
    """Load a slot. Returns None if it doesn't exist; raises CorruptSaveError if unreadable."""
    path = _slot_path(slot_id, save_dir)
    if path is None or not path.exists():
        return None
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CorruptSaveError(f"cannot read slot {slot_id}: {e}") from e
    world = deserialize(data)
    world.config.save_dir = str(_slot_dir(save_dir))
    logger.info("Loaded slot %s (year %d)", slot_id, world.year)
    return world


def delete_slot(slot_id: str, save_dir: str | Path | None = None) -> bool:
    path = _slot_path(slot_id, save_dir)
    if path is None or not path.exists():
        return False
    path.unlink()
    logger.info("Deleted slot %s", slot_id)
    return True
