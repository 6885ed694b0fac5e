from sqlmodel import SQLModel

from datetime import datetime
from typing import Dict, Optional


class CredentialsUpdateRequest(SQLModel):
    # Only the providers present (and non-empty) are written; others are kept
    openai: Optional[str] = None
    deepseek: Optional[str] = None
    grok: Optional[str] = None

class ProviderKeyStatus(SQLModel):
    configured: bool
    masked_key: Optional[str] = None

class CredentialsResponse(SQLModel):
    providers: Dict[str, ProviderKeyStatus]
    updated_at: Optional[datetime] = None
