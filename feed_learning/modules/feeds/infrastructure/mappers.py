"""Feed entity-record mappers.

Records are Redis hashes: the key attributes are stored verbatim and every
other attribute is JSON-encoded under its camelCase name.
"""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from feed_learning.core.infrastructure.mapper import BaseMapper
from feed_learning.modules.feeds.domain.entities import CatalogFeed, FeedUsage
from feed_learning.modules.feeds.domain.exceptions import InvalidStoreRecordError
from feed_learning.modules.feeds.infrastructure.keys import (
    KEY_ATTRIBUTES,
    catalog_sk,
    category_key,
    usage_count_sort_key,
    usage_pk,
)

StoredRecord = dict[str, str]


def _encode_attributes(entity: FeedUsage | CatalogFeed) -> StoredRecord:
    data = entity.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {name: json.dumps(value, ensure_ascii=False) for name, value in data.items()}


def _decode_attributes(record: StoredRecord) -> dict[str, Any]:
    key = record.get("PK", "<unknown>")
    try:
        return {
            name: json.loads(value)
            for name, value in record.items()
            if name not in KEY_ATTRIBUTES
        }
    except json.JSONDecodeError as e:
        raise InvalidStoreRecordError(key, str(e)) from e


class FeedUsageMapper(BaseMapper[FeedUsage, StoredRecord]):
    """Feed usage entity-record mapper."""

    def to_domain(self, model: StoredRecord) -> FeedUsage:
        try:
            return FeedUsage.model_validate(_decode_attributes(model))
        except PydanticValidationError as e:
            raise InvalidStoreRecordError(model.get("PK", "<unknown>"), str(e)) from e

    def to_model(self, entity: FeedUsage) -> StoredRecord:
        return {
            "PK": usage_pk(entity.url),
            "SK": category_key(entity.category_id),
            "GSI1PK": category_key(entity.category_id),
            "GSI1SK": usage_count_sort_key(entity.usage_count),
            **_encode_attributes(entity),
        }


class CatalogFeedMapper(BaseMapper[CatalogFeed, StoredRecord]):
    """Catalog feed entity-record mapper."""

    def to_domain(self, model: StoredRecord) -> CatalogFeed:
        try:
            return CatalogFeed.model_validate(_decode_attributes(model))
        except PydanticValidationError as e:
            raise InvalidStoreRecordError(model.get("PK", "<unknown>"), str(e)) from e

    def to_model(self, entity: CatalogFeed) -> StoredRecord:
        return {
            "PK": category_key(entity.category_id),
            "SK": catalog_sk(entity.url),
            **_encode_attributes(entity),
        }
