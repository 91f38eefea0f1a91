"""
Services package for the TubeX Marketplace.
Contains repository classes holding the business logic over the database.
"""

from services.chat_service import ChatRepository
from services.order_service import OrderRepository
from services.payment_service import PaymentService, SimulatedPaymentGateway
from services.quote_service import QuoteRepository
from services.service_catalog import ServiceCatalogRepository
from services.users_repository import UsersRepository

__all__ = [
    'ChatRepository',
    'OrderRepository',
    'PaymentService',
    'SimulatedPaymentGateway',
    'QuoteRepository',
    'ServiceCatalogRepository',
    'UsersRepository'
]
