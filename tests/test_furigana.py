"""Tests for furigana segmentation and bracket notation."""

import pytest

from nihongodb.parsers.furigana import (
    Segment,
    assign_furigana,
    build_furigana_string,
    extract_kanji,
    is_kanji,
    merge_segments,
    parse_furigana_string,
    parse_into_segments,
    reading_from_segments,
    sentence_word,
    split_segment,
)


def test_is_kanji():
    assert is_kanji('漢')
    assert not is_kanji('か')
    assert not is_kanji('カ')
    assert not is_kanji('')


def test_extract_kanji():
    assert extract_kanji('漢字を読む') == ['漢', '字', '読']
    assert extract_kanji('') == []


def test_parse_into_segments():
    assert parse_into_segments('食べ物') == [
        Segment('食', '', True),
        Segment('べ', '', False),
        Segment('物', '', True),
    ]
    assert [s.text for s in parse_into_segments('漢字を読む')] == [
        '漢', '字', 'を', '読', 'む',
    ]


def test_assign_and_build():
    segments = assign_furigana(
        parse_into_segments('漢字を読む'), ['かん', 'じ', 'よ'],
    )
    assert build_furigana_string(segments) == '[漢](かん)[字](じ)を[読](よ)む'
    assert reading_from_segments(segments) == {
        'reading': 'かんじをよむ',
        'furigana': '[漢](かん)[字](じ)を[読](よ)む',
    }


def test_assign_count_mismatch():
    with pytest.raises(ValueError):
        assign_furigana(parse_into_segments('漢字'), ['かんじ'])


def test_merge_and_split():
    segments = parse_into_segments('今日は')
    merged = merge_segments(segments, 0)
    assert merged[0] == Segment('今日', '', True)
    merged = assign_furigana(merged, ['きょう'])
    assert build_furigana_string(merged) == '[今日](きょう)は'

    split = split_segment(merged, 0)
    assert split[:2] == [Segment('今', 'き', True), Segment('日', 'ょう', True)]


def test_merge_errors():
    segments = parse_into_segments('今は')
    with pytest.raises(ValueError):
        merge_segments(segments, 0)
    with pytest.raises(ValueError):
        merge_segments(segments, 1)


def test_split_errors():
    with pytest.raises(ValueError):
        split_segment(parse_into_segments('今'), 0)


def test_parse_furigana_string():
    segments = parse_furigana_string('[食](た)べる[今日](きょう)')
    assert segments == [
        Segment('食', 'た', True),
        Segment('べる', '', False),
        Segment('今日', 'きょう', True),
    ]
    assert build_furigana_string(segments) == '[食](た)べる[今日](きょう)'


def test_kanji_without_furigana():
    assert build_furigana_string(parse_into_segments('漢字')) == '漢字'


def test_sentence_word():
    assert sentence_word('読んだ', '読む') == '読んだ|読む'
    assert sentence_word('毎日') == '毎日'
