"""
SQLAlchemy models for the TubeX Marketplace.
Each top-level entity is a "document": scalar columns for anything that is
filtered or sorted on, JSON columns for embedded sub-documents.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# USERS
# =============================================================================

class User(Base):
    """Marketplace users: clients, admins and support staff."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(255))
    phone = Column(String(50))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default='client')  # client, admin, support
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_users_role', 'role'),
    )

    @property
    def name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_staff(self):
        return self.role in ('admin', 'support')

    def to_summary(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'role': self.role,
        }

    def to_dict(self, include_sensitive=False):
        data = {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'name': self.name,
            'company': self.company,
            'phone': self.phone,
            'role': self.role,
            'isActive': self.is_active,
            'lastLogin': _iso(self.last_login),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_sensitive:
            data['passwordHash'] = self.password_hash
        return data


# =============================================================================
# SERVICE CATALOG
# =============================================================================

class Service(Base):
    """Catalog entry. Never hard-deleted; deactivated through is_active."""
    __tablename__ = 'services'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    pricing_type = Column(String(20), nullable=False)  # fixed, hourly, quote
    pricing_amount = Column(Float)
    currency = Column(String(10), default='USD')
    billing_cycle = Column(String(20), default='one-time')
    features = Column(JSON, default=list)
    technologies = Column(JSON, default=list)
    delivery_time = Column(String(100), nullable=False)
    images = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    difficulty = Column(String(20), default='Intermediate')
    requirements = Column(JSON, default=list)
    portfolio = Column(JSON, default=list)
    rating_average = Column(Float, default=0)
    rating_count = Column(Integer, default=0)
    tags = Column(JSON, default=list)
    created_by = Column(String(36), ForeignKey('users.id'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User")

    __table_args__ = (
        Index('ix_services_category_active', 'category', 'is_active'),
        Index('ix_services_featured_active', 'is_featured', 'is_active'),
        Index('ix_services_pricing_amount', 'pricing_amount'),
    )

    @property
    def pricing(self):
        return {
            'type': self.pricing_type,
            'amount': self.pricing_amount,
            'currency': self.currency,
            'billingCycle': self.billing_cycle
        }

    def to_summary(self):
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category,
            'pricing': self.pricing
        }

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'pricing': self.pricing,
            'features': self.features or [],
            'technologies': self.technologies or [],
            'deliveryTime': self.delivery_time,
            'images': self.images or [],
            'isActive': self.is_active,
            'isFeatured': self.is_featured,
            'difficulty': self.difficulty,
            'requirements': self.requirements or [],
            'portfolio': self.portfolio or [],
            'rating': {
                'average': self.rating_average or 0,
                'count': self.rating_count or 0
            },
            'tags': self.tags or [],
            'createdBy': self.created_by,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# QUOTES
# =============================================================================

class Quote(Base):
    """A client's price request for a service."""
    __tablename__ = 'quotes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    quote_number = Column(String(20), unique=True, nullable=False)
    client_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    service_id = Column(String(36), ForeignKey('services.id'), nullable=False)
    custom_amount = Column(Float, nullable=False)
    requirements = Column(Text, nullable=False)
    timeline = Column(String(500))
    contact_preference = Column(String(20), nullable=False)
    additional_notes = Column(Text)
    attachments = Column(JSON, default=list)
    status = Column(String(20), default='pending')  # pending, accepted, rejected, expired
    quoted_amount = Column(Float)
    admin_response = Column(Text)
    responded_at = Column(DateTime)
    responded_by = Column(String(36), ForeignKey('users.id'))
    # Plain reference: orders.quote_id already carries the foreign key
    converted_to_order = Column(String(36))
    priority = Column(String(20), default='medium')
    tags = Column(JSON, default=list)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("User", foreign_keys=[client_id])
    service = relationship("Service")

    __table_args__ = (
        Index('ix_quotes_client_status', 'client_id', 'status'),
        Index('ix_quotes_status_priority', 'status', 'priority'),
        Index('ix_quotes_expires_at', 'expires_at'),
    )

    def to_dict(self, communication=None):
        data = {
            'id': self.id,
            'quoteNumber': self.quote_number,
            'client': self.client.to_summary() if self.client else self.client_id,
            'serviceId': self.service.to_summary() if self.service else self.service_id,
            'customAmount': self.custom_amount,
            'requirements': self.requirements,
            'timeline': self.timeline,
            'contactPreference': self.contact_preference,
            'additionalNotes': self.additional_notes,
            'attachments': self.attachments or [],
            'status': self.status,
            'quotedAmount': self.quoted_amount,
            'adminResponse': self.admin_response,
            'respondedAt': _iso(self.responded_at),
            'respondedBy': self.responded_by,
            'convertedToOrder': self.converted_to_order,
            'priority': self.priority,
            'tags': self.tags or [],
            'expiresAt': _iso(self.expires_at),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if communication is not None:
            data['communication'] = communication
        return data


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """A committed unit of work moving through the order workflow."""
    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_number = Column(String(20), unique=True, nullable=False)
    client_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    service_id = Column(String(36), ForeignKey('services.id'), nullable=False)
    quote_id = Column(String(36), ForeignKey('quotes.id'))
    quantity = Column(Integer, nullable=False, default=1)
    custom_amount = Column(Float)
    total_amount = Column(Float, nullable=False)
    status = Column(String(30), default='pending')
    requirements = Column(Text, nullable=False)
    timeline = Column(String(500))
    contact_preference = Column(String(20), nullable=False)
    additional_notes = Column(Text)
    pricing = Column(JSON, default=dict)  # subtotal, tax, total, currency
    payment = Column(JSON, default=dict)  # status, method, transactionId, paidAt
    payment_status = Column(String(20), default='pending')
    deliverables = Column(JSON, default=list)
    milestones = Column(JSON, default=list)
    estimated_delivery = Column(DateTime)
    actual_delivery = Column(DateTime)
    review = Column(JSON)
    assigned_to = Column(String(36), ForeignKey('users.id'))
    tags = Column(JSON, default=list)
    refund = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("User", foreign_keys=[client_id])
    service = relationship("Service")

    __table_args__ = (
        Index('ix_orders_client_status', 'client_id', 'status'),
        Index('ix_orders_payment_status', 'payment_status'),
        Index('ix_orders_assigned_status', 'assigned_to', 'status'),
    )

    def to_dict(self, communication=None):
        data = {
            'id': self.id,
            'orderNumber': self.order_number,
            'client': self.client.to_summary() if self.client else self.client_id,
            'serviceId': self.service.to_summary() if self.service else self.service_id,
            'quoteId': self.quote_id,
            'quantity': self.quantity,
            'customAmount': self.custom_amount,
            'totalAmount': self.total_amount,
            'status': self.status,
            'requirements': self.requirements,
            'timeline': {
                'description': self.timeline,
                'estimatedDelivery': _iso(self.estimated_delivery),
                'actualDelivery': _iso(self.actual_delivery),
                'milestones': self.milestones or []
            },
            'contactPreference': self.contact_preference,
            'additionalNotes': self.additional_notes,
            'pricing': self.pricing or {},
            'payment': self.payment or {'status': self.payment_status},
            'deliverables': self.deliverables or [],
            'review': self.review,
            'assignedTo': self.assigned_to,
            'tags': self.tags or [],
            'refund': self.refund,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if communication is not None:
            data['communication'] = communication
        return data


# =============================================================================
# COMMUNICATION LOG (orders and quotes)
# =============================================================================

class Communication(Base):
    """Order/quote conversation entries, stored apart from their parent."""
    __tablename__ = 'communications'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    entity_type = Column(String(20), nullable=False)  # order, quote
    entity_id = Column(String(36), nullable=False)
    from_user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    message = Column(Text, nullable=False)
    attachments = Column(JSON, default=list)
    is_internal = Column(Boolean, default=False)
    timestamp = Column(DateTime, default=datetime.utcnow)

    sender = relationship("User")

    __table_args__ = (
        Index('ix_communications_entity', 'entity_type', 'entity_id', 'timestamp'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'from': self.sender.to_summary() if self.sender else self.from_user_id,
            'message': self.message,
            'attachments': self.attachments or [],
            'isInternal': self.is_internal,
            'timestamp': _iso(self.timestamp)
        }


# =============================================================================
# CHAT
# =============================================================================

class Chat(Base):
    """A persistent conversation thread."""
    __tablename__ = 'chats'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    type = Column(String(20), nullable=False)  # support, order, quote, general
    subject = Column(String(200))
    related_order_id = Column(String(36), ForeignKey('orders.id'))
    related_quote_id = Column(String(36), ForeignKey('quotes.id'))
    status = Column(String(20), default='active')  # active, closed, archived
    priority = Column(String(20), default='medium')
    assigned_agent_id = Column(String(36), ForeignKey('users.id'))
    tags = Column(JSON, default=list)
    closed_at = Column(DateTime)
    closed_by = Column(String(36), ForeignKey('users.id'))
    close_reason = Column(String(500))
    last_activity = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    participants = relationship(
        "ChatParticipant", back_populates="chat",
        cascade="all, delete-orphan", order_by="ChatParticipant.joined_at"
    )
    messages = relationship(
        "ChatMessage", back_populates="chat",
        cascade="all, delete-orphan", order_by="ChatMessage.timestamp"
    )

    __table_args__ = (
        Index('ix_chats_type_status', 'type', 'status'),
        Index('ix_chats_agent_status', 'assigned_agent_id', 'status'),
        Index('ix_chats_last_activity', 'last_activity'),
        Index('ix_chats_related_order', 'related_order_id'),
        Index('ix_chats_related_quote', 'related_quote_id'),
    )

    def participant(self, user_id):
        return next((p for p in self.participants if p.user_id == user_id), None)

    def unread_count(self, user_id):
        return sum(
            1 for m in self.messages
            if m.sender_id != user_id and not m.is_read_by(user_id)
        )

    def to_dict(self, include_messages=True, viewer_id=None):
        data = {
            'id': self.id,
            'type': self.type,
            'subject': self.subject,
            'participants': [p.to_dict() for p in self.participants],
            'relatedOrder': self.related_order_id,
            'relatedQuote': self.related_quote_id,
            'status': self.status,
            'priority': self.priority,
            'assignedAgent': self.assigned_agent_id,
            'tags': self.tags or [],
            'closedAt': _iso(self.closed_at),
            'closedBy': self.closed_by,
            'closeReason': self.close_reason,
            'lastActivity': _iso(self.last_activity),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_messages:
            data['messages'] = [m.to_dict() for m in self.messages]
        if viewer_id:
            data['unreadCount'] = self.unread_count(viewer_id)
        return data


class ChatParticipant(Base):
    """Membership of a user in a chat, with role and last-seen stamp."""
    __tablename__ = 'chat_participants'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    chat_id = Column(String(36), ForeignKey('chats.id'), nullable=False)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    role = Column(String(20), nullable=False)  # client, admin, support
    joined_at = Column(DateTime, default=datetime.utcnow)
    last_seen = Column(DateTime, default=datetime.utcnow)

    chat = relationship("Chat", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('chat_id', 'user_id', name='uq_chat_participant'),
        Index('ix_chat_participants_user', 'user_id'),
    )

    def to_dict(self):
        return {
            'user': self.user.to_summary() if self.user else self.user_id,
            'role': self.role,
            'joinedAt': _iso(self.joined_at),
            'lastSeen': _iso(self.last_seen)
        }


class ChatMessage(Base):
    """One message of a chat, stored as its own row keyed by chat id."""
    __tablename__ = 'chat_messages'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    chat_id = Column(String(36), ForeignKey('chats.id'), nullable=False)
    sender_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), default='text')  # text, image, file, system
    attachments = Column(JSON, default=list)
    read_by = Column(JSON, default=list)  # [{user, readAt}]
    edited_at = Column(DateTime)
    deleted_at = Column(DateTime)
    timestamp = Column(DateTime, default=datetime.utcnow)

    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User")

    __table_args__ = (
        Index('ix_chat_messages_chat_timestamp', 'chat_id', 'timestamp'),
    )

    def is_read_by(self, user_id):
        return any(r.get('user') == user_id for r in (self.read_by or []))

    def to_dict(self):
        return {
            'id': self.id,
            'chatId': self.chat_id,
            'sender': self.sender.to_summary() if self.sender else self.sender_id,
            'content': self.content,
            'messageType': self.message_type,
            'attachments': self.attachments or [],
            'readBy': list(self.read_by or []),
            'editedAt': _iso(self.edited_at),
            'deletedAt': _iso(self.deleted_at),
            'timestamp': _iso(self.timestamp)
        }
