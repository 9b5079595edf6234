"""
    Admin Dashboard Service module
"""

import logging
from collections import Counter
from config import setup_logging, LISTINGS_COLLECTION, USERS_COLLECTION
from providers.provider_interfaces import DocumentStore, StoreError
from taxonomy_errors import OperationFailed
from taxonomy_schemas import DashboardStats, ListingStatus


setup_logging()
logger = logging.getLogger(__name__)

class DashboardService:
    """Headline counts for the admin dashboard"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_stats(self) -> DashboardStats:
        # Counts raw documents, so malformed listings still add to the total
        try:
            users = self.store.list_documents(USERS_COLLECTION)
            listings = self.store.list_documents(LISTINGS_COLLECTION)

        except StoreError as e:
            logger.error(f"Error fetching dashboard stats: {e}", exc_info=True)
            raise OperationFailed("Could not fetch dashboard statistics.") from e

        by_status = Counter(listing.get('status') for listing in listings)

        stats = DashboardStats(
            total_users=len(users),
            total_listings=len(listings),
            pending_listings=by_status[ListingStatus.PENDING.value],
            approved_listings=by_status[ListingStatus.APPROVED.value],
            rejected_listings=by_status[ListingStatus.REJECTED.value],
            sold_listings=by_status[ListingStatus.SOLD.value],
        )
        logger.info(f"Dashboard stats: {stats.total_users} users, {stats.total_listings} listings")
        return stats
