"""
Quote Repository - quote requests, admin pricing, acceptance into orders
and the expiry sweep.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from dateutil import parser as date_parser
from sqlalchemy.orm import Session

from database.models import Quote, User
from errors import PermissionDeniedError, ValidationError
from services.base import BaseRepository
from services.order_service import OrderRepository
from services.service_catalog import ServiceCatalogRepository
from validators import (
    PRIORITIES,
    ensure_valid,
    validate_quote_request,
    validate_quote_response,
    validate_string_length,
)
from workflows import QUOTE_WORKFLOW

logger = logging.getLogger(__name__)

ENTITY_TYPE = 'quote'


class QuoteRepository(BaseRepository):
    """Repository for quotes."""

    def __init__(self, session: Session, number_prefix: str = 'QTE', validity_days: int = 30,
                 order_prefix: str = 'TBX'):
        super().__init__(session)
        self.number_prefix = number_prefix
        self.validity_days = validity_days
        self.order_prefix = order_prefix

    def next_quote_number(self) -> str:
        return self._next_number(Quote, self.number_prefix)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_quote_model(self, quote_id: str, user: Optional[User] = None) -> Quote:
        quote = self._get_or_404(Quote, quote_id, 'Quote')
        if user is not None and not user.is_staff and quote.client_id != user.id:
            raise PermissionDeniedError("Access denied")
        return quote

    def get_quote(self, quote_id: str, user: Optional[User] = None) -> Dict:
        quote = self.get_quote_model(quote_id, user)
        include_internal = user is None or user.is_staff
        return quote.to_dict(communication=self._communications(ENTITY_TYPE, quote.id, include_internal))

    def list_quotes(self, user: User, status: str = None, page: int = 1, limit: int = 10) -> Dict:
        """Quotes newest first; clients only see their own."""
        query = self.session.query(Quote)
        if not user.is_staff:
            query = query.filter(Quote.client_id == user.id)
        if status:
            QUOTE_WORKFLOW.allowed_transitions(status)
            query = query.filter(Quote.status == status)
        quotes, pagination = self._paginate(query.order_by(Quote.created_at.desc()), page, limit)
        return {'quotes': [q.to_dict() for q in quotes], 'pagination': pagination}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create_quote(self, client_id: str, data: Dict) -> Dict:
        """
        Submit a quote request.

        expiresAt is creation time plus the validity window unless the
        request carries an explicit expiresAt.
        """
        ensure_valid(validate_quote_request(data))
        service = ServiceCatalogRepository(self.session).get_service_model(data['serviceId'])

        now = datetime.utcnow()
        expires_at = now + timedelta(days=self.validity_days)
        if data.get('expiresAt'):
            expires_at = _parse_datetime(data['expiresAt'])

        quote = Quote(
            quote_number=self.next_quote_number(),
            client_id=client_id,
            service_id=service.id,
            custom_amount=data['customAmount'],
            requirements=data['requirements'].strip(),
            timeline=data.get('timeline'),
            contact_preference=data['contactPreference'],
            additional_notes=data.get('additionalNotes'),
            attachments=list(data.get('attachments') or []),
            status=QUOTE_WORKFLOW.initial,
            priority=data.get('priority') or 'medium',
            tags=[],
            expires_at=expires_at,
            created_at=now,
            updated_at=now
        )
        self.session.add(quote)
        self.session.flush()
        logger.info(f"Created quote {quote.quote_number} for client {client_id}")
        return quote.to_dict()

    def respond(self, quote_id: str, admin_id: str, quoted_amount: float, message: str) -> Dict:
        """Price a pending quote. The status stays pending until the client decides."""
        ensure_valid(validate_quote_response({'quotedAmount': quoted_amount, 'response': message}))
        quote = self.get_quote_model(quote_id)
        self._ensure_not_converted(quote)
        if quote.status != 'pending':
            raise ValidationError("Only pending quotes can be responded to", field='status')

        quote.quoted_amount = quoted_amount
        quote.admin_response = message.strip()
        quote.responded_at = datetime.utcnow()
        quote.responded_by = admin_id
        self.session.flush()
        logger.info(f"Quote {quote.quote_number} priced at {quoted_amount}")
        return quote.to_dict()

    def accept(self, quote_id: str, client_id: str) -> Dict:
        """Accept a priced quote and convert it into a pending order."""
        quote = self.get_quote_model(quote_id)
        if quote.client_id != client_id:
            raise PermissionDeniedError("Access denied")
        QUOTE_WORKFLOW.require_transition(quote.status, 'accepted')
        if quote.quoted_amount is None:
            raise ValidationError("Quote has not been priced yet", field='quotedAmount')

        order = OrderRepository(self.session, number_prefix=self.order_prefix).create_order_from_quote(quote)
        quote.status = 'accepted'
        quote.converted_to_order = order.id
        self.session.flush()
        logger.info(f"Quote {quote.quote_number} accepted as order {order.order_number}")
        return {'quote': quote.to_dict(), 'order': order.to_dict()}

    def reject(self, quote_id: str, user: User) -> Dict:
        """Reject a pending quote; the owning client or an admin may do this."""
        quote = self.get_quote_model(quote_id)
        if user.role != 'admin' and quote.client_id != user.id:
            raise PermissionDeniedError("Access denied")
        QUOTE_WORKFLOW.require_transition(quote.status, 'rejected')
        quote.status = 'rejected'
        self.session.flush()
        logger.info(f"Quote {quote.quote_number} rejected by {user.id}")
        return quote.to_dict()

    def update_quote(self, quote_id: str, data: Dict) -> Dict:
        """Admin edits of priority, tags and notes."""
        quote = self.get_quote_model(quote_id)
        self._ensure_not_converted(quote)
        if 'priority' in data:
            if data['priority'] not in PRIORITIES:
                raise ValidationError(f"Priority must be one of: {', '.join(PRIORITIES)}", field='priority')
            quote.priority = data['priority']
        if 'tags' in data:
            if not isinstance(data['tags'], list):
                raise ValidationError("Tags must be an array", field='tags')
            quote.tags = [str(t).strip().lower() for t in data['tags'] if str(t).strip()]
        if 'additionalNotes' in data:
            is_valid, error = validate_string_length(data['additionalNotes'] or '', max_length=1000)
            if not is_valid:
                raise ValidationError(error, field='additionalNotes')
            quote.additional_notes = data['additionalNotes']
        if 'expiresAt' in data:
            quote.expires_at = _parse_datetime(data['expiresAt'])
        self.session.flush()
        return quote.to_dict()

    def expire_overdue(self, now: datetime = None) -> int:
        """Mark pending quotes past their expiresAt as expired. Returns the count."""
        now = now or datetime.utcnow()
        overdue = self.session.query(Quote).filter(
            Quote.status == 'pending',
            Quote.expires_at < now
        ).all()
        for quote in overdue:
            QUOTE_WORKFLOW.require_transition(quote.status, 'expired')
            quote.status = 'expired'
        self.session.flush()
        if overdue:
            logger.info(f"Expired {len(overdue)} overdue quote(s)")
        return len(overdue)

    def _ensure_not_converted(self, quote: Quote):
        if quote.converted_to_order:
            raise ValidationError("Quote has already been converted to an order", field='convertedToOrder')

    # =========================================================================
    # COMMUNICATION
    # =========================================================================

    def add_communication(self, quote_id: str, user: User, message: str,
                          is_internal: bool = False, attachments: List[Dict] = None) -> Dict:
        quote = self.get_quote_model(quote_id, user)
        if is_internal and user.role != 'admin':
            raise PermissionDeniedError("Only admins can post internal notes")
        is_valid, error = validate_string_length(message, 1, 2000)
        if not is_valid:
            raise ValidationError(error, field='message')
        entry = self._log_communication(ENTITY_TYPE, quote.id, user.id, message.strip(),
                                        is_internal=is_internal, attachments=attachments)
        return entry.to_dict()


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        parsed = date_parser.isoparse(str(value))
    except ValueError:
        raise ValidationError("expiresAt must be an ISO 8601 date", field='expiresAt')
    # Stored naive in UTC
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return parsed
