from fastapi import APIRouter

from schemas.persona import PersonaListResponse

import core.personas


router = APIRouter(prefix="/chat", tags=["Chat"])

@router.get("/personas", response_model=PersonaListResponse)
async def get_personas():
    """ List the available assistant personas. """
    return {"personas": core.personas.list_personas()}
