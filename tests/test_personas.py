from fastapi.testclient import TestClient

from typing import Dict

import core.personas

# API URL prefix
API_PREFIX = "/api/chat"

# --- 1. Registry lookups ---
def test_display_name_known_and_unknown():
    assert core.personas.display_name("energy") == "Power Sage"
    assert core.personas.display_name("waste") == "Waste Wizard"
    # unknown ids fall back to the primary persona
    assert core.personas.display_name("unknown-id") == "GreenBot"
    assert core.personas.display_name(None) == "GreenBot"

def test_persona_id_for_is_reverse_of_display_name():
    for persona in core.personas.list_personas():
        assert core.personas.persona_id_for(persona.name) == persona.id
    assert core.personas.persona_id_for("Nobody") == "greenbot"

def test_normalize_display_name_accepts_id_or_name():
    assert core.personas.normalize_display_name("climate") == "Climate Guardian"
    assert core.personas.normalize_display_name("Climate Guardian") == "Climate Guardian"
    assert core.personas.normalize_display_name("bogus") == "GreenBot"

def test_system_prompt_fallback():
    assert core.personas.system_prompt("Power Sage").startswith("You are Power Sage")
    assert core.personas.system_prompt("Unknown Persona") == (
        "You are a helpful assistant focused on environmental sustainability."
    )

def test_welcome_message_and_quiz_title(personas_file: Dict):
    """
    1. Known ids return the texts from core/data/personas.json
    2. Unknown ids return the generic fallbacks
    """
    for item in personas_file["personas"]:
        assert core.personas.welcome_message(item["id"]) == item["welcome_message"]
        assert core.personas.quiz_title(item["id"]) == item["quiz_title"]

    assert core.personas.welcome_message("nope") == personas_file["fallback_welcome_message"]
    assert core.personas.quiz_title("nope") == personas_file["fallback_quiz_title"]

def test_registry_is_read_only():
    try:
        core.personas.PERSONAS["new"] = core.personas.PERSONAS["greenbot"]
    except TypeError:
        pass
    else:
        raise AssertionError("persona registry must be immutable")

# --- 2. GET /api/chat/personas ---
def test_get_personas_success(client: TestClient, personas_file: Dict):
    """
    GET /api/chat/personas
    1. returns 200 OK
    2. lists the six personas in file order
    3. never exposes system prompts
    """
    response = client.get(f"{API_PREFIX}/personas")

    # 1. 200 OK
    assert response.status_code == 200

    # 2. same ids and names as the data file
    data = response.json()
    assert [p["id"] for p in data["personas"]] == [p["id"] for p in personas_file["personas"]]
    assert [p["name"] for p in data["personas"]] == [p["name"] for p in personas_file["personas"]]
    assert len(data["personas"]) == 6

    # 3. no system prompt in the payload
    assert all("system_prompt" not in p for p in data["personas"])
