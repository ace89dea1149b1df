"""Defines the collection registry: schemas, index fields and search paths."""

from types import MappingProxyType
from typing import Any, Callable, Dict, NamedTuple, Tuple, Type

from pydantic import BaseModel

from . import models
from .exceptions import UnknownCollectionError, UnsupportedCollectionError


# Collection name -> document model, in display order
COLLECTIONS: 'MappingProxyType[str, Type[BaseModel]]' = MappingProxyType({
    'radicals': models.Radical,
    'kanji': models.Kanji,
    'words': models.Word,
    'yojijukugo': models.Yojijukugo,
    'kotowaza': models.Kotowaza,
    'sentences': models.Sentence,
})

# Collections accepted by write operations
WRITABLE_COLLECTIONS: Tuple[str, ...] = (
    'radicals',
    'kanji',
    'words',
    'yojijukugo',
    'kotowaza',
    'sentences',
)

# Collection name -> field used for index lookups
INDEX_FIELDS: 'MappingProxyType[str, str]' = MappingProxyType({
    'radicals': 'character',
    'kanji': 'character',
    'words': 'word',
    'yojijukugo': 'idiom',
    'kotowaza': 'proverb',
})

# Collection name -> text paths covered by its full-text index
FUZZY_SEARCH_FIELDS: 'MappingProxyType[str, Tuple[str, ...]]' = (
    MappingProxyType({
        'words': (
            'word',
            'readings.reading',
            'readings.furigana',
            'meanings.japanese',
            'meanings.english',
            'meanings.english_extension',
            'synonyms',
            'antonyms',
            'collocations',
            'related_words',
            'other_forms',
            'nuance.japanese',
            'nuance.english',
        ),
        'yojijukugo': (
            'idiom',
            'readings.reading',
            'readings.furigana',
            'meaning.japanese',
            'meaning.english',
            'explanation.japanese',
            'explanation.english',
            'source',
            'synonyms',
            'antonyms',
            'tags',
        ),
        'kotowaza': (
            'proverb',
            'readings.reading',
            'readings.furigana',
            'meanings.japanese',
            'meanings.english',
            'explanation.japanese',
            'explanation.english',
            'related_phrases',
        ),
    })
)

# Kanji kentei grades, easiest first
KANKEN_LEVELS: Tuple[float, ...] = (
    10.0, 9.0, 8.0, 7.0, 6.0, 5.0, 4.0, 3.0, 2.5, 2.0, 1.5, 1.0,
)

_LABELS = MappingProxyType({
    'radicals': 'Radical',
    'kanji': 'Kanji',
    'words': 'Word',
    'yojijukugo': 'Yojijukugo',
    'kotowaza': 'Kotowaza',
    'sentences': 'Sentence',
})


class FieldSpec(NamedTuple):
    """Schema entry for one document field."""
    required: bool
    default_factory: Callable[[], Any]

    def default(self) -> Any:
        """Returns a fresh default value for the field."""

        value = self.default_factory()
        if isinstance(value, BaseModel):
            return value.model_dump()
        return value


def get_model(collection: str) -> Type[BaseModel]:
    """Returns the document model registered for `collection`.

    Args:
        collection: The collection name.

    Returns:
        The pydantic model class.

    Raises:
        UnknownCollectionError: If no schema is registered.
    """

    try:
        return COLLECTIONS[collection]
    except (KeyError, TypeError):
        raise UnknownCollectionError(
            f'No schema found for collection {collection!r}'
        ) from None


def get_schema(collection: str) -> Dict[str, FieldSpec]:
    """Returns the field schema for `collection`.

    Args:
        collection: The collection name.

    Returns:
        Mapping of field name to :class:`FieldSpec`, in declaration order.

    Raises:
        UnknownCollectionError: If no schema is registered.
    """

    schema = {}
    for name, info in get_model(collection).model_fields.items():
        extra = info.json_schema_extra or {}
        schema[name] = FieldSpec(
            required=bool(extra.get('required_field', False)),
            default_factory=info.default_factory,
        )
    return schema


def get_index_field(collection: str) -> str:
    """Returns the index lookup field for `collection`.

    Raises:
        UnsupportedCollectionError: If the collection has no index field.
    """

    try:
        return INDEX_FIELDS[collection]
    except (KeyError, TypeError):
        raise UnsupportedCollectionError(
            f'Collection {collection!r} does not support index-based lookups.'
        ) from None


def get_search_fields(collection: str) -> Tuple[str, ...]:
    """Returns the full-text search paths for `collection`.

    Raises:
        UnsupportedCollectionError: If fuzzy search is not available.
    """

    try:
        return FUZZY_SEARCH_FIELDS[collection]
    except (KeyError, TypeError):
        supported = ', '.join(FUZZY_SEARCH_FIELDS)
        raise UnsupportedCollectionError(
            f'Fuzzy search is not supported for collection: {collection}. '
            f'Supported collections are: {supported}'
        ) from None


def node_label(collection: str) -> str:
    """Returns the Neo4j node label used for `collection` documents."""

    get_model(collection)
    return _LABELS[collection]
