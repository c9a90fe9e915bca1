"""Government and economy definitions for Nationsim."""
from __future__ import annotations
from .types import Government, Economy

GOVERNMENTS = {
    Government.MONARCHY: {
        "name": "Monarchy",
        "desc": "No innate stability modifier",
        "stability_bonus": 0.0,
        "coup_risk": False,
    },
    Government.REPUBLIC: {
        "name": "Republic",
        "desc": "No innate stability modifier",
        "stability_bonus": 0.0,
        "coup_risk": False,
    },
    Government.DICTATORSHIP: {
        "name": "Dictatorship",
        "desc": "10% yearly chance of a coup costing 0.05 stability",
        "stability_bonus": 0.0,
        "coup_risk": True,
    },
    Government.DEMOCRACY: {
        "name": "Democracy",
        "desc": "+0.02 stability per year",
        "stability_bonus": 0.02,
        "coup_risk": False,
    },
}

ECONOMIES = {
    Economy.CAPITALIST: {
        "name": "Capitalist",
        "desc": "Population growth x1.1",
        "growth_factor": 1.1,
    },
    Economy.SOCIALIST: {
        "name": "Socialist",
        "desc": "Population growth x0.9",
        "growth_factor": 0.9,
    },
    Economy.MIXED: {
        "name": "Mixed",
        "desc": "Population growth x1.0",
        "growth_factor": 1.0,
    },
}


def get_government_info(government: Government | str) -> dict:
    return GOVERNMENTS.get(Government(government), GOVERNMENTS[Government.MONARCHY])


def get_economy_info(economy: Economy | str) -> dict:
    return ECONOMIES.get(Economy(economy), ECONOMIES[Economy.MIXED])
