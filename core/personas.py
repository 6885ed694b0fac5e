"""
Static persona registry.

Persona data is loaded once from core/data/personas.json at import time and never
mutated afterwards. Every lookup is total: unknown input falls back to the
primary persona (GreenBot) or to the generic sustainability texts.
"""
import json
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping

from schemas.persona import PersonaRead


DATA_FILE = Path(__file__).resolve().parent / "data" / "personas.json"


def _load_registry(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    personas: Dict[str, PersonaRead] = {}
    for item in raw["personas"]:
        personas[item["id"]] = PersonaRead(
            id=item["id"],
            name=item["name"],
            description=item.get("description"),
            welcome_message=item["welcome_message"],
            quiz_title=item["quiz_title"],
            # system prompts are stored line by line in the JSON file
            system_prompt="\n".join(item["system_prompt"]),
        )

    return {
        "default": raw["default_persona"],
        "fallback_system_prompt": raw["fallback_system_prompt"],
        "fallback_welcome_message": raw["fallback_welcome_message"],
        "fallback_quiz_title": raw["fallback_quiz_title"],
        "personas": MappingProxyType(personas),
    }


_REGISTRY = _load_registry(DATA_FILE)

DEFAULT_PERSONA: str = _REGISTRY["default"]
PERSONAS: Mapping[str, PersonaRead] = _REGISTRY["personas"]
_BY_DISPLAY_NAME: Mapping[str, PersonaRead] = MappingProxyType(
    {p.name: p for p in PERSONAS.values()}
)


def list_personas() -> List[PersonaRead]:
    """ All personas in registry order """
    return list(PERSONAS.values())

def display_name(persona_id: str | None) -> str:
    persona = PERSONAS.get(persona_id) or PERSONAS[DEFAULT_PERSONA]
    return persona.name

def persona_id_for(name: str | None) -> str:
    """ Reverse of display_name(); unknown display names map to the default persona """
    persona = _BY_DISPLAY_NAME.get(name)
    return persona.id if persona else DEFAULT_PERSONA

def normalize_display_name(value: str | None) -> str:
    """ Accept either a persona id or a display name and return the display name """
    if value in _BY_DISPLAY_NAME:
        return value
    return display_name(value)

def system_prompt(name: str | None) -> str:
    """ System prompt keyed by display name (the value stored on conversations) """
    persona = _BY_DISPLAY_NAME.get(name)
    return persona.system_prompt if persona else _REGISTRY["fallback_system_prompt"]

def welcome_message(persona_id: str | None) -> str:
    persona = PERSONAS.get(persona_id)
    return persona.welcome_message if persona else _REGISTRY["fallback_welcome_message"]

def quiz_title(persona_id: str | None) -> str:
    persona = PERSONAS.get(persona_id)
    return persona.quiz_title if persona else _REGISTRY["fallback_quiz_title"]
