"""Shared test fixtures for nihongodb."""

import copy

import pytest

from nihongodb.memory import MemoryDocumentStore
from nihongodb.services import EntryService, ReadService, WriteService


SAMPLES = {
    'radicals': {
        'character': '水',
        'stroke_count': 4,
        'names': ['みず', 'さんずい'],
        'alternates': ['氵'],
        'meaning': {'japanese': 'みず', 'english': 'water'},
    },
    'kanji': {
        'character': '感',
        'radical': '心',
        'stroke_count': 13,
        'readings': {
            'on': [{'reading': 'カン', 'tags': []}],
            'kun': [],
        },
        'meanings': [{'japanese': 'かんじる', 'english': 'feeling'}],
        'kanken_level': 8.0,
        'categories': ['常用'],
        'references': [{'source': '漢字源', 'url': ''}],
    },
    'words': {
        'word': '感動',
        'readings': [
            {'reading': 'かんどう', 'furigana': '[感](かん)[動](どう)'},
        ],
        'meanings': [{
            'japanese': '深く心を動かされること',
            'english': 'being deeply moved',
            'english_extension': '',
        }],
        'synonyms': ['感激'],
        'kanken_level': 8.0,
        'references': [{'source': '広辞苑', 'url': ''}],
    },
    'yojijukugo': {
        'idiom': '一期一会',
        'readings': [{
            'reading': 'いちごいちえ',
            'furigana': '[一](いち)[期](ご)[一](いち)[会](え)',
        }],
        'meaning': {
            'japanese': '一生に一度の出会い',
            'english': 'once in a lifetime encounter',
        },
        'explanation': {
            'japanese': '茶道の心得から',
            'english': 'from the tea ceremony',
        },
        'kanken_level': 5.0,
        'references': [{'source': '四字熟語辞典', 'url': ''}],
    },
    'kotowaza': {
        'proverb': '猿も木から落ちる',
        'readings': [{
            'reading': 'さるもきからおちる',
            'furigana': '[猿](さる)も[木](き)から[落](お)ちる',
        }],
        'meanings': {
            'japanese': '名人も失敗することがある',
            'english': 'even monkeys fall from trees',
        },
        'explanation': {
            'japanese': '油断を戒める',
            'english': 'a warning against carelessness',
        },
        'kanken_level': 4.0,
    },
    'sentences': {
        'sentence': '毎日勉強する',
        'words_in_sentence': ['毎日', '勉強|勉強する', 'する'],
        'english': 'I study every day',
        'kanken_level': 9.0,
    },
}


@pytest.fixture
def sample():
    """Returns a factory for a fresh valid document of a collection."""

    def make(collection):
        return copy.deepcopy(SAMPLES[collection])

    return make


@pytest.fixture
def store():
    """Create an empty in-memory document store."""
    with MemoryDocumentStore() as st:
        yield st


@pytest.fixture
def reader(store):
    return ReadService(store)


@pytest.fixture
def writer(store):
    return WriteService(store)


@pytest.fixture
def entries(store):
    return EntryService(store)


@pytest.fixture
def store_with_data(store, entries, sample):
    """Store holding one entry of every collection.

    Returns the store and a mapping of collection to inserted ID.
    """
    ids = {}
    for collection in SAMPLES:
        ids[collection] = entries.add_entry(collection, sample(collection))
    return store, ids
