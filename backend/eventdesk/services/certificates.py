"""Certificate Service — issuance by the organizer and public verification.

Invariants:
    - Only the event organizer issues certificates
    - COMPLETION certificates require a CONFIRMED registration for the recipient
    - One certificate per (recipient, event, type); duplicates are 409
    - Verification is public and reveals only names, type, and issue date
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utc_now
from eventdesk.core.certificate_rules import generate_certificate_id
from eventdesk.core.domain_types import CertificateType, RegistrationStatus
from eventdesk.core.errors import (
    BusinessRuleError, ConflictError, ErrorContext, ResourceNotFoundError,
)
from eventdesk.models.certificate import Certificate
from eventdesk.models.event import Event
from eventdesk.models.registration import Registration
from eventdesk.models.user import User
from eventdesk.schemas.certificate import CertificateIssue
from eventdesk.services.guards import (
    get_event_or_404, get_or_404, get_user_or_404, require_organizer,
)

logger = logging.getLogger(__name__)


class CertificateService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def issue(self, event_id: UUID, body: CertificateIssue, user: User) -> Certificate:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        recipient = await get_user_or_404(self.db, body.recipient_id)

        if body.type == CertificateType.COMPLETION and not await self._has_confirmed(
            event_id, recipient.id,
        ):
            raise BusinessRuleError(
                "Completion certificates require a confirmed registration",
                "NOT_REGISTERED",
                ErrorContext(event_id=str(event_id), user_id=str(recipient.id)),
            )
        existing = await self.db.execute(
            select(Certificate.id).where(
                Certificate.event_id == event_id,
                Certificate.recipient_id == recipient.id,
                Certificate.type == body.type.value,
            ),
        )
        if existing.first() is not None:
            raise ConflictError(
                f"{body.type.value} certificate already issued to this recipient",
                "CERTIFICATE_EXISTS",
            )

        certificate = Certificate(
            certificate_id=generate_certificate_id(event_id, utc_now()),
            recipient_id=recipient.id,
            event_id=event_id,
            type=body.type.value,
            metadata_=body.metadata,
            issued_by=user.id,
        )
        self.db.add(certificate)
        await self.db.commit()
        await self.db.refresh(certificate)
        logger.info(
            f"Certificate {certificate.certificate_id} issued",
            extra={"event_id": event_id, "user_id": recipient.id},
        )
        return certificate

    async def list_for_event(self, event_id: UUID, user: User) -> list[Certificate]:
        event = await get_event_or_404(self.db, event_id)
        require_organizer(event, user)
        result = await self.db.execute(
            select(Certificate)
            .where(Certificate.event_id == event_id)
            .order_by(Certificate.issued_at),
        )
        return list(result.scalars().all())

    async def list_mine(self, user: User) -> list[Certificate]:
        result = await self.db.execute(
            select(Certificate)
            .where(Certificate.recipient_id == user.id)
            .order_by(Certificate.issued_at.desc()),
        )
        return list(result.scalars().all())

    async def mark_distributed(self, certificate_pk: UUID, user: User) -> Certificate:
        certificate = await get_or_404(self.db, Certificate, certificate_pk, "Certificate")
        event = await get_event_or_404(self.db, certificate.event_id)
        require_organizer(event, user)
        if certificate.distributed_at is None:
            certificate.distributed_at = utc_now()
            await self.db.commit()
            await self.db.refresh(certificate)
        return certificate

    async def verify(self, certificate_id: str) -> dict:
        result = await self.db.execute(
            select(Certificate, User.full_name, Event.name)
            .join(User, User.id == Certificate.recipient_id)
            .join(Event, Event.id == Certificate.event_id)
            .where(Certificate.certificate_id == certificate_id),
        )
        row = result.first()
        if row is None:
            raise ResourceNotFoundError("Certificate", certificate_id)
        certificate, recipient_name, event_name = row
        return {
            "valid": True,
            "certificate_id": certificate.certificate_id,
            "type": certificate.type,
            "recipient_name": recipient_name,
            "event_name": event_name,
            "issued_at": certificate.issued_at,
        }

    async def _has_confirmed(self, event_id: UUID, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(Registration.id).where(
                Registration.event_id == event_id,
                Registration.user_id == user_id,
                Registration.status == RegistrationStatus.CONFIRMED.value,
            ),
        )
        return result.first() is not None
