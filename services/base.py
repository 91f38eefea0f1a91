"""
Shared plumbing for the marketplace repositories: lookups that raise
NotFoundError, count-based human-readable numbering, pagination and the
order/quote communication log.
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from database.models import Communication
from errors import NotFoundError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Base class holding the request-scoped session."""

    def __init__(self, session: Session):
        self.session = session

    def _get_or_404(self, model, entity_id: str, resource: str):
        entity = self.session.get(model, entity_id) if entity_id else None
        if entity is None:
            raise NotFoundError(resource, entity_id)
        return entity

    def _next_number(self, model, prefix: str) -> str:
        """
        Next sequential number, e.g. TBX-000042, derived from the row count.

        Not concurrency-safe: two writers that count before either inserts
        compute the same number and the unique index rejects the second.
        """
        count = self.session.query(func.count(model.id)).scalar() or 0
        return f"{prefix}-{count + 1:06d}"

    def _paginate(self, query, page: int, limit: int) -> Tuple[List, Dict]:
        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        pagination = {
            'current': page,
            'pages': math.ceil(total / limit) if limit else 0,
            'total': total,
            'hasNext': (page - 1) * limit + len(items) < total,
            'hasPrev': page > 1
        }
        return items, pagination

    # =========================================================================
    # COMMUNICATION LOG
    # =========================================================================

    def _log_communication(self, entity_type: str, entity_id: str, from_user_id: str,
                           message: str, is_internal: bool = False,
                           attachments: Optional[List[Dict]] = None) -> Communication:
        entry = Communication(
            entity_type=entity_type,
            entity_id=entity_id,
            from_user_id=from_user_id,
            message=message,
            is_internal=is_internal,
            attachments=attachments or [],
            timestamp=datetime.utcnow()
        )
        self.session.add(entry)
        self.session.flush()
        logger.debug(f"Logged {entity_type} communication on {entity_id}")
        return entry

    def _communications(self, entity_type: str, entity_id: str,
                        include_internal: bool = True) -> List[Dict]:
        query = self.session.query(Communication).filter(
            Communication.entity_type == entity_type,
            Communication.entity_id == entity_id
        )
        if not include_internal:
            query = query.filter(Communication.is_internal == False)  # noqa: E712
        return [c.to_dict() for c in query.order_by(Communication.timestamp).all()]
