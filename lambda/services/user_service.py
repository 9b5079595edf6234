"""
    User Administration Service module
"""

import logging
from typing import List, Optional
from pydantic import ValidationError as SchemaValidationError
from config import setup_logging, USERS_COLLECTION
from providers.provider_interfaces import DocumentStore, StoreError
from taxonomy_errors import NotFound, OperationFailed, ValidationError
from taxonomy_schemas import User, user_sort_key


setup_logging()
logger = logging.getLogger(__name__)

class UserAdminService:
    """Browse users, grant or revoke the admin role, delete profiles"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def list_users(self, search: Optional[str] = None) -> List[User]:
        """Ordered by name; `search` matches name, email or id, case-insensitively"""
        try:
            documents = self.store.list_documents(USERS_COLLECTION)

        except StoreError as e:
            logger.error(f"Error fetching users: {e}", exc_info=True)
            raise OperationFailed("Could not fetch users.") from e

        users = []
        for document in documents:
            try:
                users.append(User.model_validate(document))
            except SchemaValidationError as e:
                logger.warning(f"Skipping malformed user {document.get('id')}: {e}")

        term = (search or '').strip().casefold()
        if term:
            users = [user for user in users
                     if any(term in (value or '').casefold() for value in (user.name, user.email, user.id))]

        users.sort(key=user_sort_key)
        return users

    def set_admin(self, user_id: str, is_admin: bool) -> User:
        if not isinstance(is_admin, bool):
            raise ValidationError("isAdmin must be true or false.")

        user = self._require_user(user_id)

        try:
            self.store.update_document(USERS_COLLECTION, user_id, {'isAdmin': is_admin})

        except StoreError as e:
            logger.error(f"Error updating role of user {user_id}: {e}", exc_info=True)
            raise OperationFailed("Could not update user role.") from e

        logger.info(f"User {user_id} is {'now' if is_admin else 'no longer'} an admin")
        return user.model_copy(update={'is_admin': is_admin})

    def delete_user(self, user_id: str) -> User:
        """Remove the profile document; the auth account is left alone"""
        user = self._require_user(user_id)

        try:
            self.store.delete_document(USERS_COLLECTION, user_id)

        except StoreError as e:
            logger.error(f"Error deleting user {user_id}: {e}", exc_info=True)
            raise OperationFailed("Could not delete user.") from e

        logger.info(f"User {user_id} ({user.name}) deleted")
        return user

    def _require_user(self, user_id: str) -> User:
        try:
            document = self.store.get_document(USERS_COLLECTION, user_id)

        except StoreError as e:
            logger.error(f"Error fetching user {user_id}: {e}", exc_info=True)
            raise OperationFailed("Could not fetch user.") from e

        if document is None:
            raise NotFound(f"User '{user_id}' not found.")

        return User.model_validate(document)
