"""
Service Catalog Repository - browse, search and curate marketplace services.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from database.models import Service
from errors import NotFoundError, ValidationError
from services.base import BaseRepository
from validators import SERVICE_CATEGORIES, ensure_valid, validate_service_request

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('price_asc', 'price_desc', 'rating', 'newest')
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50
RELATED_LIMIT = 4

# Request field -> column, for the scalar fields an update may touch
_SCALAR_FIELDS = {
    'title': 'title',
    'description': 'description',
    'category': 'category',
    'deliveryTime': 'delivery_time',
    'difficulty': 'difficulty',
    'isFeatured': 'is_featured',
    'isActive': 'is_active',
}
_LIST_FIELDS = {
    'features': 'features',
    'technologies': 'technologies',
    'images': 'images',
    'requirements': 'requirements',
    'portfolio': 'portfolio',
}


class ServiceCatalogRepository(BaseRepository):
    """Repository for the service catalog."""

    def __init__(self, session: Session, default_currency: str = 'USD'):
        super().__init__(session)
        self.default_currency = default_currency

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_services(self, category: str = None, search: str = None,
                      min_price: float = None, max_price: float = None,
                      sort: str = 'newest', page: int = 1, limit: int = DEFAULT_PAGE_SIZE,
                      include_inactive: bool = False) -> Dict:
        """
        List catalog services with filtering, sorting and pagination.

        Featured services come first unless a search term is given. Services
        priced on quote have no amount and are excluded by price filters.
        """
        if sort not in SORT_OPTIONS:
            raise ValidationError(f"Sort must be one of: {', '.join(SORT_OPTIONS)}", field='sort')
        if page < 1:
            raise ValidationError("Page must be at least 1", field='page')
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field='limit')

        query = self.session.query(Service)
        if not include_inactive:
            query = query.filter(Service.is_active == True)  # noqa: E712
        if category:
            query = query.filter(Service.category == category)
        if min_price is not None:
            query = query.filter(Service.pricing_amount >= min_price)
        if max_price is not None:
            query = query.filter(Service.pricing_amount <= max_price)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Service.title.ilike(pattern),
                Service.description.ilike(pattern),
                cast(Service.tags, String).ilike(pattern)
            ))

        ordering = []
        if not search:
            ordering.append(Service.is_featured.desc())
        if sort == 'price_asc':
            ordering.append(Service.pricing_amount.asc())
        elif sort == 'price_desc':
            ordering.append(Service.pricing_amount.desc())
        elif sort == 'rating':
            ordering.extend([Service.rating_average.desc(), Service.rating_count.desc()])
        ordering.append(Service.created_at.desc())

        services, pagination = self._paginate(query.order_by(*ordering), page, limit)
        return {
            'services': [s.to_dict() for s in services],
            'pagination': pagination
        }

    def get_service_model(self, service_id: str, active_only: bool = True) -> Service:
        service = self._get_or_404(Service, service_id, 'Service')
        if active_only and not service.is_active:
            raise NotFoundError('Service', service_id)
        return service

    def get_service(self, service_id: str, include_inactive: bool = False) -> Dict:
        """Get one service plus up to four active services from the same category."""
        service = self.get_service_model(service_id, active_only=not include_inactive)
        related = self.session.query(Service).filter(
            Service.category == service.category,
            Service.id != service.id,
            Service.is_active == True  # noqa: E712
        ).order_by(Service.rating_average.desc(), Service.created_at.desc()).limit(RELATED_LIMIT).all()
        return {
            'service': service.to_dict(),
            'relatedServices': [r.to_dict() for r in related]
        }

    def list_featured(self, limit: int = 6) -> List[Dict]:
        services = self.session.query(Service).filter(
            Service.is_active == True,  # noqa: E712
            Service.is_featured == True  # noqa: E712
        ).order_by(Service.rating_average.desc(), Service.created_at.desc()).limit(limit).all()
        return [s.to_dict() for s in services]

    def list_categories(self) -> List[Dict]:
        """Every catalog category with its number of active services."""
        counts = dict(
            self.session.query(Service.category, func.count(Service.id))
            .filter(Service.is_active == True)  # noqa: E712
            .group_by(Service.category)
            .all()
        )
        return [{'name': name, 'count': counts.get(name, 0)} for name in SERVICE_CATEGORIES]

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create_service(self, data: Dict, created_by: str) -> Dict:
        """Create a new catalog service."""
        ensure_valid(validate_service_request(data))
        pricing = data['pricing']

        service = Service(
            title=data['title'].strip(),
            description=data['description'].strip(),
            category=data['category'],
            pricing_type=pricing['type'],
            pricing_amount=pricing.get('amount'),
            currency=pricing.get('currency') or self.default_currency,
            billing_cycle=pricing.get('billingCycle') or 'one-time',
            features=list(data['features']),
            technologies=list(data.get('technologies') or []),
            delivery_time=data['deliveryTime'].strip(),
            images=list(data.get('images') or []),
            is_active=data.get('isActive', True),
            is_featured=data.get('isFeatured', False),
            difficulty=data.get('difficulty') or 'Intermediate',
            requirements=list(data.get('requirements') or []),
            portfolio=list(data.get('portfolio') or []),
            tags=_normalize_tags(data.get('tags')),
            rating_average=0,
            rating_count=0,
            created_by=created_by
        )
        self.session.add(service)
        self.session.flush()
        logger.info(f"Created service: {service.id} ({service.category})")
        return service.to_dict()

    def update_service(self, service_id: str, data: Dict) -> Dict:
        """Partially update a service; unknown fields are ignored."""
        service = self.get_service_model(service_id, active_only=False)
        ensure_valid(validate_service_request(data, partial=True))

        for field, column in _SCALAR_FIELDS.items():
            if field in data:
                value = data[field]
                setattr(service, column, value.strip() if isinstance(value, str) else value)
        for field, column in _LIST_FIELDS.items():
            if field in data:
                setattr(service, column, list(data[field] or []))
        if 'tags' in data:
            service.tags = _normalize_tags(data['tags'])

        if 'pricing' in data:
            pricing = data['pricing']
            service.pricing_type = pricing['type']
            service.pricing_amount = pricing.get('amount')
            service.currency = pricing.get('currency') or service.currency or self.default_currency
            service.billing_cycle = pricing.get('billingCycle') or service.billing_cycle

        self.session.flush()
        logger.info(f"Updated service: {service_id}")
        return service.to_dict()

    def deactivate_service(self, service_id: str) -> Dict:
        """Soft delete: services are never removed, only hidden from the catalog."""
        service = self.get_service_model(service_id, active_only=False)
        service.is_active = False
        self.session.flush()
        logger.info(f"Deactivated service: {service_id}")
        return service.to_dict()

    def record_rating(self, service_id: str, rating: float) -> Dict:
        """Fold one rating into the service's running average."""
        if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", field='rating')
        service = self.get_service_model(service_id, active_only=False)
        count = service.rating_count or 0
        average = service.rating_average or 0
        service.rating_average = (average * count + rating) / (count + 1)
        service.rating_count = count + 1
        self.session.flush()
        return service.to_dict()['rating']


def _normalize_tags(tags: Optional[List]) -> List[str]:
    return [str(t).strip().lower() for t in (tags or []) if str(t).strip()]
