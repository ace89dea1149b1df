"""Tests for the Cypher translation of documents and expressions."""

import json

import pytest

from nihongodb.cypher import (
    build_fulltext_query,
    compile_expression,
    escape_lucene,
    flatten_document,
    load_document,
    node_properties,
    quote_identifier,
)
from nihongodb.exceptions import InvalidFilterError
from nihongodb.query import (
    And,
    AnyOf,
    Compare,
    Equals,
    Not,
    Or,
    Raw,
    Regex,
    build_filter,
)


class TestCompile:

    def test_equals(self):
        predicate, params = compile_expression(Equals('word', '感動'))
        assert predicate == '$p0 IN coalesce(n[$p1], [])'
        assert params == {'p0': '感動', 'p1': 'f.word'}

    def test_equals_none(self):
        predicate, params = compile_expression(Equals('nuance', None))
        assert predicate == 'n[$p0] IS NULL'
        assert params == {'p0': 'f.nuance'}

    def test_any_of(self):
        predicate, params = compile_expression(
            AnyOf('character', ('感', '動')),
        )
        assert predicate == 'any(x IN coalesce(n[$p1], []) WHERE x IN $p0)'
        assert params == {'p0': ['感', '動'], 'p1': 'f.character'}

    def test_regex(self):
        predicate, params = compile_expression(Regex('character', '^感'))
        assert predicate == (
            'any(x IN coalesce(n[$p1], []) WHERE toString(x) =~ $p0)'
        )
        assert params['p0'] == '(?siu).*(?:^感).*'
        assert params['p1'] == 'f.character'

    def test_compare(self):
        predicate, params = compile_expression(
            Compare('kanken_level', '$gte', 2),
        )
        assert predicate == 'any(x IN coalesce(n[$p1], []) WHERE x >= $p0)'
        assert params == {'p0': 2, 'p1': 'f.kanken_level'}

    def test_not_equal(self):
        predicate, params = compile_expression(
            Compare('word', '$ne', '感動'),
        )
        assert predicate == 'NOT coalesce($p0 IN n[$p1], false)'

    def test_empty_and_or(self):
        assert compile_expression(And(()))[0] == 'true'
        assert compile_expression(Or(()))[0] == 'false'
        assert compile_expression(build_filter({}))[0] == 'true'

    def test_combined(self):
        predicate, params = compile_expression(Not(And((
            Equals('word', 'a'),
            Equals('word', 'b'),
        ))))
        assert predicate == (
            'NOT (($p0 IN coalesce(n[$p1], []) AND '
            '$p2 IN coalesce(n[$p3], [])))'
        )
        assert params == {
            'p0': 'a', 'p1': 'f.word', 'p2': 'b', 'p3': 'f.word',
        }

    def test_raw(self):
        predicate, params = compile_expression(
            Raw('size(n.`f.readings.reading`) > $min', {'min': 1}),
        )
        assert predicate == '(size(n.`f.readings.reading`) > $min)'
        assert params == {'min': 1}

    def test_raw_parameter_clash(self):
        expression = And((
            Equals('word', 'a'),
            Raw('true', {'p1': 'x'}),
        ))
        with pytest.raises(InvalidFilterError):
            compile_expression(expression)

    def test_nested_value_rejected(self):
        with pytest.raises(InvalidFilterError):
            compile_expression(Equals('meaning', {'english': 'water'}))


class TestDocuments:

    def test_flatten(self):
        document = {
            'word': '感動',
            'readings': [
                {'reading': 'かんどう', 'furigana': ''},
                {'reading': 'かんとう', 'furigana': ''},
            ],
            'synonyms': [],
            'nuance': {},
            'kanken_level': 8.0,
        }
        assert flatten_document(document) == {
            'word': ['感動'],
            'readings.reading': ['かんどう', 'かんとう'],
            'readings.furigana': ['', ''],
            'kanken_level': [8.0],
        }

    def test_flatten_mixed_numbers(self):
        assert flatten_document({'levels': [1, 2.5]}) == {
            'levels': [1.0, 2.5],
        }

    def test_flatten_mixed_types(self):
        assert flatten_document({'tags': ['a', 1]}) == {'tags': ['a', '1']}

    def test_node_properties(self, sample):
        document = sample('words')
        properties = node_properties('words', 'a' * 24, document)
        assert properties['id'] == 'a' * 24
        assert json.loads(properties['document']) == document
        assert properties['f.meanings.english'] == ['being deeply moved']
        assert properties['t.word'] == '感動'
        assert 't.kanken_level' not in properties

    def test_radicals_have_no_text(self, sample):
        properties = node_properties('radicals', 'a' * 24, sample('radicals'))
        assert not any(key.startswith('t.') for key in properties)

    def test_load_document(self):
        assert load_document('b' * 24, '{"word": "感動"}') == {
            '_id': 'b' * 24,
            'word': '感動',
        }


class TestLucene:

    def test_escape(self):
        assert escape_lucene('a+b (c)') == r'a\+b \(c\)'

    def test_keywords_lowercased(self):
        assert escape_lucene('cats AND dogs') == 'cats and dogs'

    def test_whole_index(self):
        assert build_fulltext_query('感動') == '感動'

    def test_single_path(self):
        assert build_fulltext_query('moved', 'meanings.english') == \
            r't.meanings.english:(moved)'

    def test_quote_identifier(self):
        assert quote_identifier('a`b') == '`a``b`'
