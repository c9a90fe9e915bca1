"""Per-nation resource stockpile."""
from __future__ import annotations
from dataclasses import dataclass
from .types import Resource, RESOURCE_CAP, STARTING_RESOURCES


@dataclass
class ResourceLedger:
    food: float = STARTING_RESOURCES[Resource.FOOD]
    minerals: float = STARTING_RESOURCES[Resource.MINERALS]
    technology: float = STARTING_RESOURCES[Resource.TECHNOLOGY]
    gold: float = STARTING_RESOURCES[Resource.GOLD]

    def get(self, resource: Resource | str) -> float:
        return getattr(self, Resource(resource).value)

    def set(self, resource: Resource | str, value: float):
        setattr(self, Resource(resource).value, value)

    def add(self, resource: Resource | str, delta: float):
        self.set(resource, self.get(resource) + delta)

    def can_afford(self, resource: Resource | str, amount: float) -> bool:
        return self.get(resource) >= amount

    def clamp(self):
        """Apply the stockpile rules: nothing negative, food/minerals capped."""
        for res in Resource:
            value = max(0.0, self.get(res))
            cap = RESOURCE_CAP[res]
            if cap is not None:
                value = min(value, cap)
            self.set(res, value)

    def floor_at_zero(self):
        for res in Resource:
            if self.get(res) < 0:
                self.set(res, 0.0)

    def to_dict(self) -> dict[str, float]:
        return {res.value: self.get(res) for res in Resource}

    @classmethod
    def from_dict(cls, data: dict) -> ResourceLedger:
        ledger = cls()
        for res in Resource:
            if res.value in data:
                ledger.set(res, float(data[res.value]))
        return ledger
