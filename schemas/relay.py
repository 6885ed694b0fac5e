from pydantic import BaseModel

from typing import List, Literal

from core.providers import DEFAULT_PROVIDER


class RelayMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

class RelayRequest(BaseModel):
    messages: List[RelayMessage]
    # mapped to Provider by the route once the caller is known
    provider: str = DEFAULT_PROVIDER.value
