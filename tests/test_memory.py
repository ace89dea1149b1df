"""Tests for the in-memory document store."""

import pytest

from nihongodb.exceptions import InvalidFilterError
from nihongodb.memory import MemoryDocumentStore, field_values, matches
from nihongodb.query import Raw, build_filter
from nihongodb.store import DeleteResult, UpdateResult


KANJI = {
    'character': '感',
    'readings': {
        'on': [{'reading': 'カン', 'tags': []}],
        'kun': [],
    },
    'meanings': [
        {'japanese': 'かんじる', 'english': 'feeling'},
        {'japanese': 'こころ', 'english': 'sensation'},
    ],
    'kanken_level': 8.0,
}


class TestFieldValues:

    def test_scalar(self):
        assert field_values(KANJI, 'character') == ['感']

    def test_through_lists(self):
        assert field_values(KANJI, 'meanings.english') == [
            'feeling', 'sensation',
        ]
        assert field_values(KANJI, 'readings.on.reading') == ['カン']

    def test_missing(self):
        assert field_values(KANJI, 'readings.nanori') == []


class TestMatches:

    @pytest.mark.parametrize('filters, expected', [
        ({}, True),
        ({'character': '感'}, True),
        ({'character': '動'}, False),
        ({'meanings.english': 'sensation'}, True),
        ({'character': ['動', '感']}, True),
        ({'character': 'regex:^感'}, True),
        ({'meanings.english': 'regex:^SENS'}, True),
        ({'kanken_level': {'$gte': 5, '$lte': 8}}, True),
        ({'kanken_level': {'$gt': 8}}, False),
        ({'kanken_level': {'$ne': 8.0}}, False),
        ({'character': {'$nin': ['感']}}, False),
        ({'$or': [{'character': '動'}, {'kanken_level': 8.0}]}, True),
        ({'$nor': [{'character': '感'}]}, False),
        ({'nuance': None}, True),
    ])
    def test_filters(self, filters, expected):
        assert matches(build_filter(filters), KANJI) is expected

    def test_raw_unsupported(self):
        with pytest.raises(InvalidFilterError):
            matches(Raw('true'), KANJI)


class TestStore:

    def test_insert_and_find(self, store):
        doc_id = store.insert_one('kanji', KANJI)
        assert len(doc_id) == 24
        assert store.find_by_ids('kanji', [doc_id]) == [
            {'_id': doc_id, **KANJI},
        ]

    def test_collections_separate(self, store):
        doc_id = store.insert_one('kanji', KANJI)
        assert store.find_by_ids('words', [doc_id]) == []

    def test_results_are_copies(self, store):
        doc_id = store.insert_one('kanji', KANJI)
        found = store.find_by_ids('kanji', [doc_id])[0]
        found['meanings'].clear()
        assert store.find_by_ids('kanji', [doc_id])[0]['meanings']

    def test_update(self, store):
        doc_id = store.insert_one('kanji', KANJI)
        assert store.update_one('kanji', doc_id, {'kanken_level': 7.0}) == \
            UpdateResult(1, 1)
        assert store.update_one('kanji', doc_id, {'kanken_level': 7.0}) == \
            UpdateResult(1, 0)
        assert store.update_one('kanji', 'f' * 24, {'kanken_level': 7.0}) \
            == UpdateResult(0, 0)
        found = store.find_by_ids('kanji', [doc_id])[0]
        assert found['kanken_level'] == 7.0
        assert found['character'] == '感'

    def test_delete(self, store):
        doc_id = store.insert_one('kanji', KANJI)
        assert store.delete_one('kanji', doc_id) == DeleteResult(1)
        assert store.delete_one('kanji', doc_id) == DeleteResult(0)

    def test_text_search_ranked(self, store):
        store.insert_one('words', {
            'word': '感', 'meanings': [{'english': 'feeling'}],
        })
        best = store.insert_one('words', {
            'word': '感動', 'meanings': [{'english': 'moving feeling'}],
            'synonyms': ['moving'],
        })
        results = store.text_search('words', 'moving feeling')
        assert [r['_id'] for r in results][0] == best
        assert len(results) == 2

    def test_text_search_path(self, store):
        store.insert_one('words', {
            'word': '感動', 'synonyms': ['moving'],
        })
        assert store.text_search('words', 'moving', 'meanings.english') == []
        assert len(store.text_search('words', 'moving', 'synonyms')) == 1
