"""Validates entries and fills in schema defaults before they are written.

Validation happens in two passes over the merged document. Strict pydantic
validation against the collection's model reports type problems, then the
collection's own rules report structural and content problems. All
violations are collected so that a caller can present the complete list of
corrections at once.
"""

import logging

from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Sequence

from pydantic import ValidationError as PydanticValidationError

from . import registry
from .exceptions import MissingParameterError, ValidationFailedError
from .parsers.furigana import extract_kanji

logger = logging.getLogger('nihongodb')


class Violation(NamedTuple):
    """A single broken validation rule."""
    field: str
    message: str

    def __str__(self):
        return self.message

    @property
    def root(self) -> str:
        """The top-level document field the violation refers to."""

        return self.field.split('.', 1)[0].split('[', 1)[0]


Document = Dict[str, Any]
Validator = Callable[[Document], List[Violation]]


def _dig(value: Any, *keys: str) -> Any:
    """Returns the nested value at `keys`, or ``None`` if any step is absent.
    """

    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _format_loc(loc: Sequence[Any]) -> str:
    path = ''
    for part in loc:
        if isinstance(part, int):
            path += f'[{part}]'
        else:
            path += f'.{part}' if path else str(part)
    return path


def _require_text(doc: Document, *keys: str) -> List[Violation]:
    field = '.'.join(keys)
    if _blank(_dig(doc, *keys)):
        return [Violation(
            field, f"Field '{field}' is required and cannot be empty.",
        )]
    return []


def _require_list(
    doc: Document,
    field: str,
    minimum: int = 1,
) -> List[Violation]:
    value = doc.get(field)
    if not isinstance(value, list) or len(value) < minimum:
        if minimum == 1:
            message = f"Field '{field}' must be a non-empty array."
        else:
            message = (
                f"Field '{field}' must be an array of at least "
                f'{minimum} items.'
            )
        return [Violation(field, message)]
    return []


def _check_readings(doc: Document) -> List[Violation]:
    """Checks a ``readings`` list of ``{reading, furigana}`` records."""

    violations = _require_list(doc, 'readings')
    if violations:
        return violations
    for i, item in enumerate(doc['readings']):
        if _blank(_dig(item, 'reading')):
            violations.append(Violation(
                f'readings[{i}].reading',
                f"'readings[{i}].reading' must be a non-empty string.",
            ))
    return violations


def _check_meanings(
    doc: Document,
    every_item: bool = False,
) -> List[Violation]:
    """Checks a ``meanings`` list for at least one Japanese meaning.

    Args:
        doc: The merged document.
        every_item: Whether every meaning needs a Japanese text.

    Returns:
        The list of violations.
    """

    violations = _require_list(doc, 'meanings')
    if violations:
        return violations
    meanings = doc['meanings']
    if all(_blank(_dig(m, 'japanese')) for m in meanings):
        violations.append(Violation(
            'meanings',
            "At least one object in 'meanings' must have a non-empty "
            "'japanese' field.",
        ))
    if every_item:
        for i, meaning in enumerate(meanings):
            if _blank(_dig(meaning, 'japanese')):
                violations.append(Violation(
                    f'meanings[{i}].japanese',
                    f"'meanings[{i}].japanese' is required and cannot be "
                    'empty.',
                ))
    return violations


def _check_kanken_level(doc: Document) -> List[Violation]:
    level = doc.get('kanken_level')
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        # Reported by the type check
        return []
    if level not in registry.KANKEN_LEVELS:
        return [Violation(
            'kanken_level',
            f"Field 'kanken_level' must be a kanken grade, got {level!r}.",
        )]
    return []


def validate_radical(doc: Document) -> List[Violation]:
    """Structural rules for radicals."""

    return (
        _require_text(doc, 'character') +
        _require_list(doc, 'names') +
        _require_text(doc, 'meaning', 'japanese')
    )


def validate_kanji(doc: Document) -> List[Violation]:
    """Structural rules for kanji.

    At least one of ``readings.on`` and ``readings.kun`` must be non-empty,
    and every listed reading must be filled in.
    """

    violations = (
        _require_text(doc, 'character') +
        _require_text(doc, 'radical')
    )

    readings = {}
    for kind in ('on', 'kun'):
        value = _dig(doc, 'readings', kind)
        if isinstance(value, list):
            readings[kind] = value
        else:
            violations.append(Violation(
                f'readings.{kind}',
                f"Field 'readings.{kind}' must be an array.",
            ))
    if not any(readings.values()):
        violations.append(Violation(
            'readings',
            'Kanji must have at least one reading in readings.on or '
            'readings.kun.',
        ))
    for kind, items in readings.items():
        for i, item in enumerate(items):
            if _blank(_dig(item, 'reading')):
                violations.append(Violation(
                    f'readings.{kind}[{i}].reading',
                    f"'readings.{kind}[{i}].reading' must be a non-empty "
                    'string.',
                ))

    violations += _check_meanings(doc, every_item=True)
    violations += _require_list(doc, 'categories')
    violations += _require_list(doc, 'references')
    return violations


def validate_word(doc: Document) -> List[Violation]:
    """Structural rules for words."""

    violations = (
        _require_text(doc, 'word') +
        _check_readings(doc) +
        _check_meanings(doc)
    )

    # A nuance is optional, but half a nuance is not
    nuance = doc.get('nuance')
    if isinstance(nuance, Mapping):
        has_japanese = not _blank(nuance.get('japanese'))
        has_english = not _blank(nuance.get('english'))
        if has_japanese != has_english:
            violations.append(Violation(
                'nuance',
                "Field 'nuance' needs both 'japanese' and 'english', or "
                'neither.',
            ))

    violations += _require_list(doc, 'references')
    return violations


def validate_yojijukugo(doc: Document) -> List[Violation]:
    """Structural rules for yojijukugo."""

    return (
        _require_text(doc, 'idiom') +
        _check_readings(doc) +
        _require_text(doc, 'meaning', 'japanese') +
        _require_text(doc, 'explanation', 'japanese') +
        _require_list(doc, 'references')
    )


def validate_kotowaza(doc: Document) -> List[Violation]:
    """Structural rules for kotowaza."""

    return (
        _require_text(doc, 'proverb') +
        _check_readings(doc) +
        _require_text(doc, 'meanings', 'japanese') +
        _require_text(doc, 'explanation', 'japanese')
    )


def validate_sentence(doc: Document) -> List[Violation]:
    """Structural rules for example sentences.

    Every kanji of the sentence must occur somewhere in the concatenated
    ``words_in_sentence`` entries.
    """

    violations = (
        _require_text(doc, 'sentence') +
        _require_list(doc, 'words_in_sentence', minimum=2)
    )

    sentence = doc.get('sentence')
    words = doc.get('words_in_sentence')
    if isinstance(sentence, str):
        if not isinstance(words, list):
            words = []
        combined = ''.join(w for w in words if isinstance(w, str))
        missing = []
        for kanji in extract_kanji(sentence):
            if kanji not in combined and kanji not in missing:
                missing.append(kanji)
        for kanji in missing:
            violations.append(Violation(
                'words_in_sentence',
                f"Kanji '{kanji}' in sentence not found in "
                'words_in_sentence.',
            ))
    return violations


VALIDATORS: Mapping[str, Validator] = {
    'radicals': validate_radical,
    'kanji': validate_kanji,
    'words': validate_word,
    'yojijukugo': validate_yojijukugo,
    'kotowaza': validate_kotowaza,
    'sentences': validate_sentence,
}


def check_types(collection: str, doc: Document) -> List[Violation]:
    """Checks field types of `doc` against the collection model.

    Args:
        collection: The collection name.
        doc: The merged document.

    Returns:
        One violation per type error.
    """

    model = registry.get_model(collection)
    try:
        model.model_validate(doc, strict=True)
    except PydanticValidationError as exc:
        violations = []
        for error in exc.errors():
            field = _format_loc(error['loc'])
            violations.append(Violation(
                field, f"Field '{field}': {error['msg']}.",
            ))
        return violations
    return []


def validate_and_prepare(
    collection: str,
    raw_entry: Mapping[str, Any],
) -> Document:
    """Merges `raw_entry` with schema defaults and validates the result.

    Fields the caller supplies are copied as they are; omitted fields get a
    fresh copy of the schema default. Fields the schema does not declare
    are dropped.

    Args:
        collection: The collection the entry belongs to.
        raw_entry: The caller-supplied document.

    Returns:
        The merged, validated document.

    Raises:
        UnknownCollectionError: If no schema is registered for `collection`.
        MissingParameterError: If `raw_entry` is not a mapping.
        ValidationFailedError: If any rule is broken.
    """

    schema = registry.get_schema(collection)
    if not isinstance(raw_entry, Mapping):
        raise MissingParameterError('Entry must be a mapping of fields')

    entry = {}
    missing = []
    for name, field_spec in schema.items():
        if name in raw_entry:
            entry[name] = raw_entry[name]
        else:
            entry[name] = field_spec.default()
            if field_spec.required:
                missing.append(Violation(
                    name, f"Field '{name}' is required.",
                ))

    detected = check_types(collection, entry)
    detected += VALIDATORS[collection](entry)
    detected += _check_kanken_level(entry)

    missing_fields = {v.field for v in missing}
    violations = missing + [
        v for v in detected if v.root not in missing_fields
    ]
    if violations:
        logger.debug(
            'Rejected %s entry with %s violation(s)',
            collection,
            len(violations),
        )
        raise ValidationFailedError(collection, violations)

    return entry
