"""
    Common Utility Functions
"""

import re
import json
import base64
import binascii
from decimal import Decimal
from typing import Any, Dict, Tuple


_WHITESPACE_RUN = re.compile(r'\s+')
_NON_SLUG_CHARS = re.compile(r'[^A-Za-z0-9_-]+')
_DATA_URI = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$', re.DOTALL)


def slugify(name: str) -> str:
    """
    Map a display name to a lowercase, hyphenated identifier

    Whitespace runs become a single '-', anything outside [A-Za-z0-9_-] is
    dropped. Names written only in non-Latin scripts slugify to "".
    """
    slug = _WHITESPACE_RUN.sub('-', name.lower())
    return _NON_SLUG_CHARS.sub('', slug)


def parse_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split 'data:<mime>;base64,<data>' into (mime type, decoded bytes)"""
    match = _DATA_URI.match((data_uri or '').strip())
    if not match:
        raise ValueError("Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")

    try:
        return match.group('mime'), base64.b64decode(match.group('data'), validate=True)

    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload in data URI: {e}") from e


def convert_decimals(value: Any) -> Any:
    """Turn DynamoDB Decimals back into int/float, recursively"""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: convert_decimals(v) for k, v in value.items()}
    if isinstance(value, list):
        return [convert_decimals(v) for v in value]
    return value


def convert_floats_to_decimals(value: Any) -> Any:
    """DynamoDB rejects floats; store them as Decimal"""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: convert_floats_to_decimals(v) for k, v in value.items()}
    if isinstance(value, list):
        return [convert_floats_to_decimals(v) for v in value]
    return value


def get_path(document: Dict[str, Any], field_path: str) -> Any:
    """Resolve a dotted path such as 'category.id' inside a document"""
    current: Any = document
    for part in field_path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def create_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Create Lambda response in API Gateway format"""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json"
        },
        "body": json.dumps(body, ensure_ascii=False, default=str),
        "isBase64Encoded": False
    }


def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON object body of an API Gateway event ({} when absent)"""
    raw_body = event.get('body')
    if not raw_body:
        return {}

    if event.get('isBase64Encoded'):
        raw_body = base64.b64decode(raw_body).decode('utf-8')

    body = json.loads(raw_body) if isinstance(raw_body, str) else raw_body
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def error_response(error: Exception) -> Dict[str, Any]:
    """Map an exception onto an API Gateway error response"""
    status_code = getattr(error, 'http_status', 500)
    message = getattr(error, 'message', None) or "Internal server error"
    return create_response(status_code, {"error": type(error).__name__, "message": message})
