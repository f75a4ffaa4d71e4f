"""
CAMEO Lookup Tables

Static mappings from export-feed codes to the contract enums.
Inputs reaching these tables have already passed the conflict-root
filter (17-20), which is why out-of-range quad classes default to
material conflict.
"""

from __future__ import annotations
from typing import Dict, Optional

from .contracts import ActorType, GeoPrecision, QuadClass


ACTOR_TYPE_BY_CODE: Dict[str, ActorType] = {
    'GOV': ActorType.GOVERNMENT,
    'MIL': ActorType.MILITARY,
    'UAF': ActorType.MILITARY,
    'REB': ActorType.REBEL,
    'INS': ActorType.REBEL,
    'SEP': ActorType.REBEL,
    'OPP': ActorType.OPPOSITION,
    'COP': ActorType.POLICE,
    'SPY': ActorType.INTELLIGENCE,
    'CVL': ActorType.CIVILIAN,
    'MED': ActorType.MEDIA,
    'IGO': ActorType.IGO,
    'NGO': ActorType.NGO,
}

QUAD_CLASS_BY_CODE: Dict[int, QuadClass] = {
    1: QuadClass.VERBAL_COOPERATION,
    2: QuadClass.MATERIAL_COOPERATION,
    3: QuadClass.VERBAL_CONFLICT,
    4: QuadClass.MATERIAL_CONFLICT,
}

GEO_PRECISION_BY_CODE: Dict[int, GeoPrecision] = {
    1: GeoPrecision.COUNTRY,
    2: GeoPrecision.STATE,
    3: GeoPrecision.CITY,
    4: GeoPrecision.LANDMARK,
}

UNKNOWN_EVENT = "Unknown event"

# Root families 17-20
EVENT_DESCRIPTIONS: Dict[str, str] = {
    '170': "Coerce",
    '171': "Seize or damage property",
    '172': "Impose administrative sanctions",
    '173': "Arrest, detain, or charge with legal action",
    '174': "Expel or deport individuals",
    '175': "Use tactics of violent repression",
    '176': "Attack cybernetically",
    '180': "Use unconventional violence",
    '181': "Abduct, hijack, or take hostage",
    '182': "Physically assault",
    '183': "Conduct suicide, car, or other non-military bombing",
    '184': "Use as human shield",
    '185': "Attempt to assassinate",
    '186': "Assassinate",
    '190': "Use conventional military force",
    '191': "Impose blockade, restrict movement",
    '192': "Occupy territory",
    '193': "Fight with small arms and light weapons",
    '194': "Fight with artillery and tanks",
    '195': "Employ aerial weapons",
    '196': "Violate ceasefire",
    '200': "Use unconventional mass violence",
    '201': "Engage in mass expulsion",
    '202': "Engage in mass killings",
    '203': "Engage in ethnic cleansing",
    '204': "Use weapons of mass destruction",
}


def actor_type_for(code: str) -> ActorType:
    return ACTOR_TYPE_BY_CODE.get((code or '').strip().upper()[:3], ActorType.OTHER)


def quad_class_for(code: Optional[int]) -> QuadClass:
    return QUAD_CLASS_BY_CODE.get(code, QuadClass.MATERIAL_CONFLICT)


def geo_precision_for(code: Optional[int]) -> GeoPrecision:
    return GEO_PRECISION_BY_CODE.get(code, GeoPrecision.UNKNOWN)


def describe_event_code(event_code: str) -> str:
    """Describe a CAMEO event code by its 3-digit family (e.g. 1823 -> 182)."""
    return EVENT_DESCRIPTIONS.get((event_code or '').strip()[:3], UNKNOWN_EVENT)
