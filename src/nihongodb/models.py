"""Defines document models for the Japanese reference collections."""

from typing import List

from pydantic import BaseModel, Field


def required(default_factory):
    """Declares a required document field with the shape it defaults to.

    Args:
        default_factory: Callable producing a fresh default value.

    Returns:
        The pydantic field definition.
    """

    return Field(
        default_factory=default_factory,
        json_schema_extra={'required_field': True},
    )


def optional(default_factory):
    """Declares an optional document field with the shape it defaults to.

    Args:
        default_factory: Callable producing a fresh default value.

    Returns:
        The pydantic field definition.
    """

    return Field(default_factory=default_factory)


class Gloss(BaseModel):
    """Model for a bilingual text pair."""
    japanese: str = ''
    english: str = ''


class Meaning(BaseModel):
    """Model for a kanji meaning."""
    japanese: str = ''
    english: str = ''


class WordMeaning(BaseModel):
    """Model for a word meaning."""
    japanese: str = ''
    english: str = ''
    english_extension: str = ''


class Reading(BaseModel):
    """Model for a reading with its furigana bracket notation."""
    reading: str = ''
    furigana: str = ''


class OnReading(BaseModel):
    """Model for a kanji on'yomi."""
    reading: str = ''
    tags: List[str] = []


class KunReading(BaseModel):
    """Model for a kanji kun'yomi."""
    reading: str = ''
    okurigana: str = ''
    tags: List[str] = []


class KanjiReadings(BaseModel):
    """Model for the readings of a kanji."""
    on: List[OnReading] = []
    kun: List[KunReading] = []


class AlternateForm(BaseModel):
    """Model for an alternate form of a kanji."""
    character: str = ''
    type: str = ''


class Reference(BaseModel):
    """Model for a bibliographic reference."""
    source: str = ''
    url: str = ''


class Radical(BaseModel):
    """Model for Radical documents."""
    character: str = required(str)
    stroke_count: int = required(int)
    names: List[str] = required(list)
    alternates: List[str] = optional(list)
    meaning: Gloss = required(Gloss)


class Kanji(BaseModel):
    """Model for Kanji documents.

    ``radical`` refers to a radical by its character (or one of its
    alternates); the reference is not checked against the radicals
    collection.
    """
    character: str = required(str)
    alternate_forms: List[AlternateForm] = optional(list)
    radical: str = required(str)
    stroke_count: int = required(int)
    readings: KanjiReadings = required(KanjiReadings)
    meanings: List[Meaning] = required(list)
    kanken_level: float = required(lambda: 10.0)
    categories: List[str] = required(list)
    references: List[Reference] = required(list)


class Word(BaseModel):
    """Model for Word documents."""
    word: str = required(str)
    readings: List[Reading] = required(list)
    meanings: List[WordMeaning] = required(list)
    synonyms: List[str] = optional(list)
    antonyms: List[str] = optional(list)
    collocations: List[str] = optional(list)
    related_words: List[str] = optional(list)
    other_forms: List[str] = optional(list)
    nuance: Gloss = optional(dict)
    kanken_level: float = required(lambda: 10.0)
    references: List[Reference] = required(list)


class Yojijukugo(BaseModel):
    """Model for Yojijukugo (four-character idiom) documents."""
    idiom: str = required(str)
    readings: List[Reading] = required(list)
    meaning: Gloss = required(Gloss)
    explanation: Gloss = required(Gloss)
    source: str = optional(str)
    synonyms: List[str] = optional(list)
    antonyms: List[str] = optional(list)
    tags: List[str] = optional(list)
    kanken_level: float = required(lambda: 10.0)
    references: List[Reference] = required(list)


class Kotowaza(BaseModel):
    """Model for Kotowaza (proverb) documents.

    Unlike the other kinds, ``meanings`` is a single struct and
    ``references`` may be left empty.
    """
    proverb: str = required(str)
    readings: List[Reading] = required(list)
    meanings: Gloss = required(Gloss)
    explanation: Gloss = required(Gloss)
    related_phrases: List[str] = optional(list)
    kanken_level: float = required(lambda: 10.0)
    references: List[Reference] = optional(list)


class Sentence(BaseModel):
    """Model for example Sentence documents."""
    sentence: str = required(str)
    words_in_sentence: List[str] = required(list)
    explanation: str = optional(str)
    english: str = optional(str)
    kanken_level: float = required(lambda: 10.0)
    references: List[Reference] = optional(list)
