from sqlmodel import SQLModel

from typing import List, Optional

# Base persona schema
class PersonaBase(SQLModel):
    id: str
    name: str
    description: Optional[str] = None

# Full registry entry
class PersonaRead(PersonaBase):
    welcome_message: str
    quiz_title: str
    system_prompt: str

# API response item (system prompts stay server-side)
class PersonaPublic(PersonaBase):
    welcome_message: str
    quiz_title: str

# API response persona list
class PersonaListResponse(SQLModel):
    personas: List[PersonaPublic]
