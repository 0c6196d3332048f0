# podcast_studio/repositories/catalog_repository.py
"""
Read-only access to the reference catalog (decors, pack offers, themes,
supplements).

The booking flow only needs to know whether an item exists and is active, and
the prices to snapshot; catalog management lives elsewhere.
"""

import logging
from typing import List, Optional, Sequence, Type, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.catalog import PodcastDecor, PodcastPackOffer, PodcastSupplement, PodcastTheme

logger = logging.getLogger(__name__)

CatalogModel = TypeVar("CatalogModel", PodcastDecor, PodcastPackOffer, PodcastSupplement, PodcastTheme)


class CatalogRepository:
    """Active-item lookups across the catalog tables."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(__name__)

    def _get_active(self, model: Type[CatalogModel], item_id: str) -> Optional[CatalogModel]:
        try:
            return cast(
                Optional[CatalogModel],
                self.db.query(model)
                .filter(model.id == item_id, model.is_active.is_(True))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {model.__name__} {item_id}: {str(e)}")
            raise RepositoryException(f"Failed to get {model.__name__}: {str(e)}")

    def get_active_pack_offer(self, pack_offer_id: str) -> Optional[PodcastPackOffer]:
        return self._get_active(PodcastPackOffer, pack_offer_id)

    def is_active_decor(self, decor_id: str) -> bool:
        return self._get_active(PodcastDecor, decor_id) is not None

    def is_active_theme(self, theme_id: str) -> bool:
        return self._get_active(PodcastTheme, theme_id) is not None

    def get_active_supplements(self, supplement_ids: Sequence[str]) -> List[PodcastSupplement]:
        """
        Active supplements among ``supplement_ids``.

        Missing or inactive ids are simply absent from the result; the caller
        decides whether that is an error.
        """
        if not supplement_ids:
            return []
        try:
            return cast(
                List[PodcastSupplement],
                self.db.query(PodcastSupplement)
                .filter(
                    PodcastSupplement.id.in_(list(supplement_ids)),
                    PodcastSupplement.is_active.is_(True),
                )
                .order_by(PodcastSupplement.sort_order, PodcastSupplement.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting supplements: {str(e)}")
            raise RepositoryException(f"Failed to get supplements: {str(e)}")
