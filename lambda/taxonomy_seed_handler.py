"""
Taxonomy Seed Lambda Handler
Adds the default categories to an empty categories collection
"""

import json
import urllib3
import logging
from config import setup_logging, DOCUMENT_STORE_PROVIDER, DEFAULT_CATEGORIES
from providers.provider_factory import ProviderFactory
from services.category_service import CategoryTreeEditor


setup_logging()
logger = logging.getLogger(__name__)


def lambda_handler(event, context):
    """Handle taxonomy seeding for CloudFormation custom resource"""

    logger.info(f"Taxonomy seed event: {event.get('RequestType')}")

    if event['RequestType'] == 'Create':
        try:
            seeded = seed_categories(ProviderFactory.create_document_store(DOCUMENT_STORE_PROVIDER))
            send_response(event, context, "SUCCESS", {"Message": f"Seeded {seeded} categories"})
        except Exception as e:
            logger.error(f"Seeding failed: {e}", exc_info=True)
            send_response(event, context, "FAILED", {"Error": str(e)})
    else:
        # For Update/Delete, no action needed
        send_response(event, context, "SUCCESS", {"Message": "No action required"})


def seed_categories(store) -> int:
    """Add DEFAULT_CATEGORIES when no category exists yet; returns how many were added"""

    with CategoryTreeEditor(store) as editor:
        if editor.categories:
            logger.info(f"Categories already present ({len(editor.categories)}), skipping seed")
            return 0

        for category in DEFAULT_CATEGORIES:
            category_id = editor.add_category(category['name'], category.get('iconName'))
            for subcategory in category.get('subcategories', []):
                editor.add_subcategory(category_id, subcategory['name'], subcategory.get('iconName'))

        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")
        return len(DEFAULT_CATEGORIES)


def send_response(event, context, status, data):
    """Send CloudFormation response"""

    response = {
        'Status': status,
        'PhysicalResourceId': context.log_stream_name,
        'StackId': event['StackId'],
        'RequestId': event['RequestId'],
        'LogicalResourceId': event['LogicalResourceId'],
        'Data': data
    }
    payload = json.dumps(response)

    try:
        http = urllib3.PoolManager()
        http.request('PUT', event['ResponseURL'],
                     body=payload,
                     headers={'content-type': '', 'content-length': str(len(payload))})
        logger.info("CloudFormation response sent")
    except urllib3.exceptions.HTTPError as e:
        logger.error(f"Failed to send response: {e}")
        raise
