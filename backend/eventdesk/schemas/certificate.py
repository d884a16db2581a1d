"""Certificate Schemas — issuance, verification, and AI design requests.

Invariants:
    - Design text fields get generous raw limits here; the real limits apply
      after sanitizing in core/certificate_rules.py
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from eventdesk.core.domain_types import CertificateType


class CertificateIssue(BaseModel):
    recipient_id: UUID
    type: CertificateType
    metadata: dict = Field(default_factory=dict)


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    certificate_id: str
    recipient_id: UUID
    event_id: UUID
    type: CertificateType
    metadata: dict = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    issued_at: datetime
    distributed_at: datetime | None


class CertificateVerification(BaseModel):
    valid: bool
    certificate_id: str
    type: CertificateType
    recipient_name: str
    event_name: str
    issued_at: datetime


class DesignRequest(BaseModel):
    workspace_id: UUID
    event_theme: str = Field(max_length=1000)
    certificate_type: str | None = Field(None, max_length=40)
    primary_color: str | None = Field(None, max_length=20)
    secondary_color: str | None = Field(None, max_length=20)
    style: str | None = Field(None, max_length=40)
    additional_notes: str | None = Field(None, max_length=2000)


class DesignResponse(BaseModel):
    canvas_json: dict
