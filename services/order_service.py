"""
Order Repository - order lifecycle, payment confirmation, progress tracking
and client reviews.

Every status change goes through ORDER_WORKFLOW; nothing writes
Order.status directly.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from database.models import Order, Quote, User
from errors import NotFoundError, PermissionDeniedError, ValidationError
from services.base import BaseRepository
from services.service_catalog import ServiceCatalogRepository
from validators import (
    MILESTONE_STATUSES,
    ensure_valid,
    validate_order_request,
    validate_review_request,
    validate_string_length,
)
from workflows import ORDER_WORKFLOW

logger = logging.getLogger(__name__)

ENTITY_TYPE = 'order'


class OrderRepository(BaseRepository):
    """Repository for orders."""

    def __init__(self, session: Session, number_prefix: str = 'TBX', currency: str = 'USD'):
        super().__init__(session)
        self.number_prefix = number_prefix
        self.currency = currency

    def next_order_number(self) -> str:
        return self._next_number(Order, self.number_prefix)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_order_model(self, order_id: str, user: Optional[User] = None) -> Order:
        """Load an order; a client asking for someone else's order gets NotFound."""
        order = self._get_or_404(Order, order_id, 'Order')
        if user is not None and not user.is_staff and order.client_id != user.id:
            raise NotFoundError('Order', order_id)
        return order

    def get_order(self, order_id: str, user: Optional[User] = None) -> Dict:
        order = self.get_order_model(order_id, user)
        include_internal = user is None or user.is_staff
        return order.to_dict(communication=self._communications(ENTITY_TYPE, order.id, include_internal))

    def list_orders(self, user: User, status: str = None, page: int = 1, limit: int = 10) -> Dict:
        """Orders newest first; clients only see their own."""
        query = self.session.query(Order)
        if not user.is_staff:
            query = query.filter(Order.client_id == user.id)
        if status:
            ORDER_WORKFLOW.allowed_transitions(status)
            query = query.filter(Order.status == status)
        orders, pagination = self._paginate(query.order_by(Order.created_at.desc()), page, limit)
        return {'orders': [o.to_dict() for o in orders], 'pagination': pagination}

    # =========================================================================
    # CREATION
    # =========================================================================

    def create_order(self, client_id: str, data: Dict) -> Dict:
        """
        Place an order for a fixed or hourly priced service.

        Services priced on quote must go through the quote flow instead.
        """
        ensure_valid(validate_order_request(data))
        service = ServiceCatalogRepository(self.session).get_service_model(data['serviceId'])
        if service.pricing_type == 'quote':
            raise ValidationError(
                "This service requires a quote. Please submit a quote request instead.",
                field='serviceId'
            )

        quantity = data.get('quantity', 1)
        subtotal = (service.pricing_amount or 0) * quantity
        order = Order(
            order_number=self.next_order_number(),
            client_id=client_id,
            service_id=service.id,
            quantity=quantity,
            custom_amount=data.get('customAmount'),
            total_amount=subtotal,
            status=ORDER_WORKFLOW.initial,
            requirements=data['requirements'].strip(),
            timeline=data.get('timeline'),
            contact_preference=data['contactPreference'],
            additional_notes=data.get('additionalNotes'),
            pricing=self._pricing(subtotal, service.currency),
            payment={'status': 'pending'},
            payment_status='pending',
            deliverables=[],
            milestones=[],
            tags=[]
        )
        self.session.add(order)
        self.session.flush()
        logger.info(f"Created order {order.order_number} for client {client_id}")
        return order.to_dict()

    def create_order_from_quote(self, quote: Quote) -> Order:
        """Create the order an accepted quote converts into."""
        amount = quote.quoted_amount
        order = Order(
            order_number=self.next_order_number(),
            client_id=quote.client_id,
            service_id=quote.service_id,
            quote_id=quote.id,
            quantity=1,
            custom_amount=amount,
            total_amount=amount,
            status=ORDER_WORKFLOW.initial,
            requirements=quote.requirements,
            timeline=quote.timeline,
            contact_preference=quote.contact_preference,
            additional_notes=quote.additional_notes,
            pricing=self._pricing(amount, quote.service.currency if quote.service else self.currency),
            payment={'status': 'pending'},
            payment_status='pending',
            deliverables=[],
            milestones=[],
            tags=list(quote.tags or [])
        )
        self.session.add(order)
        self.session.flush()
        logger.info(f"Created order {order.order_number} from quote {quote.quote_number}")
        return order

    def _pricing(self, subtotal: float, currency: Optional[str]) -> Dict:
        tax = 0
        return {
            'subtotal': subtotal,
            'tax': tax,
            'total': subtotal + tax,
            'currency': currency or self.currency
        }

    # =========================================================================
    # STATUS & PAYMENT
    # =========================================================================

    def transition_status(self, order_id: str, new_status: str,
                          actor_id: str = None, notes: str = None) -> Dict:
        """Move an order along its workflow, logging notes as a communication."""
        order = self.get_order_model(order_id)
        ORDER_WORKFLOW.require_transition(order.status, new_status)
        previous = order.status
        order.status = new_status
        now = datetime.utcnow()

        if new_status == 'completed':
            order.actual_delivery = now
        elif new_status == 'refunded':
            order.payment = {**(order.payment or {}), 'status': 'refunded'}
            order.payment_status = 'refunded'
            order.refund = {
                'amount': order.total_amount,
                'reason': notes,
                'processedAt': now.isoformat()
            }

        if notes:
            if not actor_id:
                raise ValidationError("Status notes need an author", field='notes')
            self._log_communication(ENTITY_TYPE, order.id, actor_id,
                                    f"Status updated to {new_status}. {notes}")

        self.session.flush()
        logger.info(f"Order {order.order_number}: {previous} -> {new_status}")
        return self.get_order(order.id)

    def confirm_payment(self, order_id: str, method: str, transaction_id: str,
                        paid_at: datetime = None) -> Dict:
        """Record a completed payment and advance the order to payment_confirmed."""
        order = self.get_order_model(order_id)
        ORDER_WORKFLOW.require_transition(order.status, 'payment_confirmed')
        paid_at = paid_at or datetime.utcnow()
        order.payment = {
            'status': 'completed',
            'method': method,
            'transactionId': transaction_id,
            'paidAt': paid_at.isoformat()
        }
        order.payment_status = 'completed'
        order.status = 'payment_confirmed'
        self.session.flush()
        logger.info(f"Payment confirmed for order {order.order_number} ({transaction_id})")
        return order.to_dict()

    # =========================================================================
    # COMMUNICATION
    # =========================================================================

    def add_communication(self, order_id: str, user: User, message: str,
                          is_internal: bool = False, attachments: List[Dict] = None) -> Dict:
        """Append to the order's communication log."""
        order = self.get_order_model(order_id, user)
        if is_internal and user.role != 'admin':
            raise PermissionDeniedError("Only admins can post internal notes")
        is_valid, error = validate_string_length(message, 1, 2000)
        if not is_valid:
            raise ValidationError(error, field='message')
        entry = self._log_communication(ENTITY_TYPE, order.id, user.id, message.strip(),
                                        is_internal=is_internal, attachments=attachments)
        return entry.to_dict()

    # =========================================================================
    # PROGRESS TRACKING
    # =========================================================================

    def add_deliverable(self, order_id: str, data: Dict) -> Dict:
        order = self.get_order_model(order_id)
        name = data.get('name')
        is_valid, error = validate_string_length(name, 1, 200)
        if not is_valid:
            raise ValidationError(error, field='name')
        deliverable = {
            'name': name.strip(),
            'description': data.get('description'),
            'fileUrl': data.get('fileUrl'),
            'deliveredAt': datetime.utcnow().isoformat()
        }
        order.deliverables = list(order.deliverables or []) + [deliverable]
        self.session.flush()
        return order.to_dict()

    def add_milestone(self, order_id: str, data: Dict) -> Dict:
        order = self.get_order_model(order_id)
        title = data.get('title')
        is_valid, error = validate_string_length(title, 1, 200)
        if not is_valid:
            raise ValidationError(error, field='title')
        milestone = {
            'title': title.strip(),
            'description': data.get('description'),
            'dueDate': data.get('dueDate'),
            'status': 'pending',
            'completedAt': None
        }
        order.milestones = list(order.milestones or []) + [milestone]
        self.session.flush()
        return order.to_dict()

    def update_milestone_status(self, order_id: str, index: int, status: str) -> Dict:
        order = self.get_order_model(order_id)
        if status not in MILESTONE_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(MILESTONE_STATUSES)}", field='status')
        milestones = [dict(m) for m in (order.milestones or [])]
        if not 0 <= index < len(milestones):
            raise NotFoundError('Milestone', str(index))
        milestones[index]['status'] = status
        milestones[index]['completedAt'] = datetime.utcnow().isoformat() if status == 'completed' else None
        order.milestones = milestones
        self.session.flush()
        return order.to_dict()

    # =========================================================================
    # REVIEWS
    # =========================================================================

    def submit_review(self, order_id: str, client_id: str, rating: int, comment: str = None) -> Dict:
        """Review a completed order once and fold the rating into the service."""
        ensure_valid(validate_review_request({'rating': rating, 'comment': comment}))
        order = self._get_or_404(Order, order_id, 'Order')
        if order.client_id != client_id:
            raise NotFoundError('Order', order_id)
        if order.status != 'completed':
            raise ValidationError("Only completed orders can be reviewed", field='status')
        if order.review:
            raise ValidationError("Order has already been reviewed", field='rating')

        order.review = {
            'rating': rating,
            'comment': comment,
            'reviewedAt': datetime.utcnow().isoformat()
        }
        ServiceCatalogRepository(self.session).record_rating(order.service_id, rating)
        self.session.flush()
        logger.info(f"Order {order.order_number} reviewed: {rating}/5")
        return order.to_dict()
