"""
    S3 Storage Provider module
"""

import logging
from typing import Optional, Dict
from datetime import datetime, timezone
from botocore.exceptions import BotoCoreError, ClientError
from providers.provider_interfaces import ImageStorage
from config import get_s3_client, LISTING_IMAGES_BUCKET, setup_logging


setup_logging()
logger = logging.getLogger(__name__)

# Listing photos are immutable once written (new uploads get a new key)
IMAGE_CACHE_CONTROL = 'public, max-age=31536000, immutable'


class S3StorageProvider(ImageStorage):
    """Listing photos in one S3 bucket, addressed by object key"""

    def __init__(self, s3_client=None, bucket_name: Optional[str] = None):
        self.s3_client = s3_client or get_s3_client()
        self.bucket_name = bucket_name if bucket_name is not None else LISTING_IMAGES_BUCKET

    def _configured(self, action: str) -> bool:
        if not self.bucket_name:
            logger.error(f"Cannot {action}: listing images bucket not configured")
        return bool(self.bucket_name)

    def store(self, key: str, image_data: bytes, metadata: Optional[Dict] = None) -> Optional[str]:
        if not self._configured(f"store {key}"):
            return None

        s3_metadata = {'uploaded_at': datetime.now(timezone.utc).isoformat(), **(metadata or {})}

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=image_data,
                ContentType='image/jpeg',
                CacheControl=IMAGE_CACHE_CONTROL,
                Metadata={name: str(value) for name, value in s3_metadata.items()}
            )

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to store listing image {key}: {e}")
            return None

        s3_url = f"s3://{self.bucket_name}/{key}"
        logger.info(f"Listing image stored: {s3_url} ({len(image_data)} bytes)")
        return s3_url

    def delete(self, key: str) -> bool:
        """S3 deletes are idempotent; a missing key still counts as deleted"""
        if not self._configured(f"delete {key}"):
            return False

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete listing image {key}: {e}")
            return False

        logger.info(f"Listing image deleted: s3://{self.bucket_name}/{key}")
        return True
