"""
    DynamoDB Document Store Provider module
"""

import uuid
import logging
from typing import Optional, Dict, List, Any, Iterable, Tuple
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError
from config import get_dynamodb, get_table_name, setup_logging, DYNAMODB_IN_LIMIT
from providers.provider_interfaces import DocumentStore, StoreError
from utils.helpers import convert_decimals, convert_floats_to_decimals


setup_logging()
logger = logging.getLogger(__name__)

class DynamoDBDocumentStore(DocumentStore):
    """DynamoDB implementation of DocumentStore interface

    Every table uses the string attribute "id" as its partition key.
    """

    def __init__(self, dynamodb=None):
        super().__init__()
        self.dynamodb = dynamodb or get_dynamodb()

    def _table(self, collection: str):
        return self.dynamodb.Table(get_table_name(collection))

    @staticmethod
    def _set_expression(fields: Dict[str, Any]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """Build 'SET #f0 = :v0, ...' with placeholder maps"""
        names, values, parts = {}, {}, []
        for index, (field, value) in enumerate(fields.items()):
            names[f"#f{index}"] = field
            values[f":v{index}"] = convert_floats_to_decimals(value)
            parts.append(f"#f{index} = :v{index}")
        return "SET " + ", ".join(parts), names, values

    def _fail(self, action: str, collection: str, error: Exception):
        logger.error(f"DynamoDB {action} error on '{collection}': {error}")
        raise StoreError(f"DynamoDB {action} failed on '{collection}': {error}") from error

    def _written(self, collection: str) -> None:
        # Each notification is a full-table scan
        if self.has_listeners(collection):
            self._notify(collection)

    # ----------------------------- reads -----------------------------

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """Full-table scan following pagination"""
        try:
            table_resource = self._table(collection)
            scan_params: Dict[str, Any] = {}
            items: List[Dict[str, Any]] = []

            while True:
                response = table_resource.scan(**scan_params)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                scan_params['ExclusiveStartKey'] = response['LastEvaluatedKey']

            return convert_decimals(items)

        except (ClientError, BotoCoreError) as e:
            self._fail('scan', collection, e)

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self._table(collection).get_item(Key={'id': doc_id}, ConsistentRead=True)
            if 'Item' in response:
                return convert_decimals(response['Item'])
            return None

        except (ClientError, BotoCoreError) as e:
            self._fail('get', collection, e)

    def query_in(self, collection: str, field_path: str, values: Iterable[str],
                 limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Scan with an IN filter, chunked to the DynamoDB IN operand limit"""
        wanted = list(dict.fromkeys(values))
        matches: List[Dict[str, Any]] = []

        try:
            table_resource = self._table(collection)

            for start in range(0, len(wanted), DYNAMODB_IN_LIMIT):
                chunk = wanted[start:start + DYNAMODB_IN_LIMIT]
                scan_params: Dict[str, Any] = {'FilterExpression': Attr(field_path).is_in(chunk)}

                while True:
                    response = table_resource.scan(**scan_params)
                    matches.extend(response.get('Items', []))

                    if limit and len(matches) >= limit:
                        return convert_decimals(matches[:limit])

                    if 'LastEvaluatedKey' not in response:
                        break
                    scan_params['ExclusiveStartKey'] = response['LastEvaluatedKey']

            return convert_decimals(matches)

        except (ClientError, BotoCoreError) as e:
            self._fail('query_in', collection, e)

    # ----------------------------- writes ----------------------------

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        item = convert_floats_to_decimals(dict(data, id=doc_id))

        try:
            self._table(collection).put_item(
                Item=item,
                ConditionExpression='attribute_not_exists(id)'
            )
            logger.info(f"Document {doc_id} created in table: {collection}")
            self._written(collection)
            return doc_id

        except (ClientError, BotoCoreError) as e:
            self._fail('create', collection, e)

    def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        item = convert_floats_to_decimals(dict(data, id=doc_id))

        try:
            self._table(collection).put_item(Item=item)
            logger.info(f"Document {doc_id} stored in table: {collection}")

        except (ClientError, BotoCoreError) as e:
            self._fail('put', collection, e)

        self._written(collection)

    def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        expression, names, values = self._set_expression(fields)

        try:
            self._table(collection).update_item(
                Key={'id': doc_id},
                UpdateExpression=expression,
                ConditionExpression='attribute_exists(id)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )
            logger.info(f"Document {doc_id} updated in table: {collection}")

        except (ClientError, BotoCoreError) as e:
            self._fail('update', collection, e)

        self._written(collection)

    def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            self._table(collection).delete_item(Key={'id': doc_id})
            logger.info(f"Document {doc_id} deleted from table: {collection}")

        except (ClientError, BotoCoreError) as e:
            self._fail('delete', collection, e)

        self._written(collection)

    def array_union(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        def merge(current: List[Any], incoming: List[Any]) -> List[Any]:
            merged = list(current)
            for value in incoming:
                if value not in merged:
                    merged.append(value)
            return merged

        self._compare_and_set_array(collection, doc_id, field, list(values), merge)

    def array_remove(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        def prune(current: List[Any], removed: List[Any]) -> List[Any]:
            return [item for item in current if item not in removed]

        self._compare_and_set_array(collection, doc_id, field, list(values), prune)

    def _compare_and_set_array(self, collection: str, doc_id: str, field: str,
                               values: List[Any], combine) -> None:
        """Rewrite a top-level list only if it still holds the value just read

        DynamoDB's list_append cannot skip elements already present, so the
        array primitives read the list and write it back under a condition
        on the previous value.
        """
        values = convert_floats_to_decimals(values)

        try:
            table_resource = self._table(collection)
            response = table_resource.get_item(Key={'id': doc_id}, ConsistentRead=True)
            if 'Item' not in response:
                logger.error(f"Array update on missing document {doc_id} in table: {collection}")
                raise StoreError(f"Document '{doc_id}' not found in '{collection}'")

            item = response['Item']
            current = item.get(field)
            updated = combine(current or [], values)

            condition = 'attribute_exists(id) AND '
            expression_values: Dict[str, Any] = {':new': updated}
            if current is None:
                condition += 'attribute_not_exists(#f)'
            else:
                condition += '#f = :old'
                expression_values[':old'] = current

            table_resource.update_item(
                Key={'id': doc_id},
                UpdateExpression='SET #f = :new',
                ConditionExpression=condition,
                ExpressionAttributeNames={'#f': field},
                ExpressionAttributeValues=expression_values
            )
            logger.info(f"Array '{field}' of {doc_id} rewritten in table: {collection}")

        except (ClientError, BotoCoreError) as e:
            self._fail('array update', collection, e)

        self._written(collection)

    def batch_update(self, collection: str, updates: List[Tuple[str, Dict[str, Any]]]) -> None:
        """All-or-nothing update via TransactWriteItems"""
        table_name = get_table_name(collection)
        transact_items = []

        for doc_id, fields in updates:
            expression, names, values = self._set_expression(fields)
            transact_items.append({
                'Update': {
                    'TableName': table_name,
                    'Key': {'id': doc_id},
                    'UpdateExpression': expression,
                    'ConditionExpression': 'attribute_exists(id)',
                    'ExpressionAttributeNames': names,
                    'ExpressionAttributeValues': values
                }
            })

        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
            logger.info(f"Batch updated {len(updates)} items in table: {collection}")

        except (ClientError, BotoCoreError) as e:
            self._fail('transact write', collection, e)

        self._written(collection)
