"""
Conflict category classification and display tables.

Pure functions and lookup tables; no side effects.
"""

from __future__ import annotations
from typing import Dict

from .contracts import ActorType, ConflictCategory


CATEGORY_BY_ROOT: Dict[str, ConflictCategory] = {
    '17': ConflictCategory.COERCE,
    '18': ConflictCategory.ASSAULT,
    '19': ConflictCategory.FIGHT,
    '20': ConflictCategory.MASS_VIOLENCE,
}

CATEGORY_LABELS: Dict[ConflictCategory, str] = {
    ConflictCategory.COERCE: 'Coercion',
    ConflictCategory.ASSAULT: 'Assault',
    ConflictCategory.FIGHT: 'Armed Conflict',
    ConflictCategory.MASS_VIOLENCE: 'Mass Violence',
    ConflictCategory.OTHER: 'Other',
}

CATEGORY_COLORS: Dict[ConflictCategory, str] = {
    ConflictCategory.COERCE: '#f97316',
    ConflictCategory.ASSAULT: '#ef4444',
    ConflictCategory.FIGHT: '#dc2626',
    ConflictCategory.MASS_VIOLENCE: '#7f1d1d',
    ConflictCategory.OTHER: '#6b7280',
}

ACTOR_TYPE_LABELS: Dict[ActorType, str] = {
    ActorType.GOVERNMENT: 'Government',
    ActorType.MILITARY: 'Military',
    ActorType.REBEL: 'Rebel',
    ActorType.OPPOSITION: 'Opposition',
    ActorType.POLICE: 'Police',
    ActorType.INTELLIGENCE: 'Intelligence',
    ActorType.CIVILIAN: 'Civilian',
    ActorType.MEDIA: 'Media',
    ActorType.IGO: 'Intergovernmental Org',
    ActorType.NGO: 'NGO',
    ActorType.OTHER: 'Other',
}


def classify_cameo_root(cameo_code: str) -> ConflictCategory:
    """
    Classify by CAMEO root code (the first two characters).

    17 -> coerce, 18 -> assault, 19 -> fight, 20 -> mass-violence,
    anything else -> other.
    """
    return CATEGORY_BY_ROOT.get((cameo_code or '')[:2], ConflictCategory.OTHER)

