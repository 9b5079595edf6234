"""
    Configuration and Constants
"""

import os
import json
import logging
import boto3
from functools import lru_cache


# ---------- App Configuration -----------------------
AWS_REGION = 'eu-west-1'
BEDROCK_MODEL_ID = 'eu.anthropic.claude-3-7-sonnet-20250219-v1:0'
BEDROCK_REGION = 'eu-west-1'
LLM_PROVIDER = os.environ.get('LLM_PROVIDER', 'bedrock')  # Options: bedrock, openai
OPENAI_MODEL_ID = os.environ.get('OPENAI_MODEL_ID', 'gpt-4.1-2025-04-14')
LLM_TEMPERATURE = 0.0

DOCUMENT_STORE_PROVIDER = os.environ.get('DOCUMENT_STORE_PROVIDER', 'dynamodb')  # Options: dynamodb, memory
IMAGE_STORAGE_PROVIDER = 's3'  # Options: s3
# ------------------------------------------------------


# Limits
MAX_IMAGE_DIMENSION = 1568
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_RECOMMENDATIONS = 10
DYNAMODB_IN_LIMIT = 100

# Collections
CATEGORIES_COLLECTION = 'categories'
LOCATIONS_COLLECTION = 'locations'
LISTINGS_COLLECTION = 'listings'
USERS_COLLECTION = 'users'
SETTINGS_COLLECTION = 'settings'

# Site settings documents
HERO_BANNER_DOCUMENT = 'heroBanner'
MAX_HERO_IMAGES = 5

# --------------- Configuration from lambda environment variables --------------
STAGE = os.environ.get('STAGE', 'dev')
LISTING_IMAGES_BUCKET = os.environ.get('LISTING_IMAGES_BUCKET', '')
# ------------------------------------------------------------------------------

TABLE_NAMES = {
    CATEGORIES_COLLECTION: os.environ.get('CATEGORIES_TABLE', f"classifieds-{STAGE}-categories"),
    LOCATIONS_COLLECTION: os.environ.get('LOCATIONS_TABLE', f"classifieds-{STAGE}-locations"),
    LISTINGS_COLLECTION: os.environ.get('LISTINGS_TABLE', f"classifieds-{STAGE}-listings"),
    USERS_COLLECTION: os.environ.get('USERS_TABLE', f"classifieds-{STAGE}-users"),
    SETTINGS_COLLECTION: os.environ.get('SETTINGS_TABLE', f"classifieds-{STAGE}-settings"),
}

# Default taxonomy written by the seed custom resource
DEFAULT_CATEGORIES = [
    {
        'name': 'Electronics',
        'iconName': 'Laptop',
        'subcategories': [
            {'name': 'Mobile Phones', 'iconName': 'Smartphone'},
            {'name': 'Tablets', 'iconName': 'Tablet'},
        ]
    },
]

# AWS Clients (singleton pattern)
_bedrock_client = None
_s3_client = None
_dynamodb = None

# ------------- Secrets Management (stored in AWS Secrets Manager)-------------
@lru_cache(maxsize=1)
def get_secrets() -> dict:
    """Get all secrets from AWS Secrets Manager (cached)"""
    client = boto3.client('secretsmanager', region_name=AWS_REGION)
    secret_name = f"classifieds-admin-{STAGE}"

    try:
        response = client.get_secret_value(SecretId=secret_name)
        return json.loads(response['SecretString'])

    except Exception as e:
        logging.error(f"Failed to get secrets: {e}")
        raise


def get_openai_api_key() -> str:
    """OpenAI key from the environment, falling back to Secrets Manager"""
    return os.environ.get('OPENAI_API_KEY') or get_secrets()["OPENAI_API_KEY"]
# ----------------------------------------------------------------------------


def get_table_name(collection: str) -> str:
    if collection not in TABLE_NAMES:
        raise ValueError(f"Unknown collection '{collection}'. Available: {', '.join(TABLE_NAMES)}")
    return TABLE_NAMES[collection]


def get_dynamodb():
    """Get DynamoDB resource (singleton)"""
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource('dynamodb', region_name=AWS_REGION)
    return _dynamodb


def get_bedrock_client():
    """Get Bedrock client (singleton)"""
    global _bedrock_client
    if _bedrock_client is None:
        _bedrock_client = boto3.client('bedrock-runtime', region_name=BEDROCK_REGION)
    return _bedrock_client


def get_s3_client():
    """Get S3 client (singleton)"""
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client('s3', region_name=AWS_REGION)
    return _s3_client


def setup_logging():
    """Setup logging configuration"""
    logging.basicConfig(
        level=logging.INFO,
        format='[%(levelname)s] %(name)s: %(message)s',
        force=True
    )
