from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int | None
    user_id: int | None
    action: str
    entity_type: str
    entity_id: str | None
    ip_address: str | None
    created_at: datetime
