"""Defines helpers for furigana segmentation and bracket notation.

Readings are stored in a bracket notation that attaches furigana to each
kanji segment, e.g. ``[漢](かん)[字](じ)を[読](よ)む``.
"""

import re

from typing import Dict, List, NamedTuple, Sequence

# Basic CJK unified ideographs
KANJI_RE = re.compile('[\u4e00-\u9fff]')

_BRACKET_RE = re.compile(r'\[([^\]]+)\]\(([^)]*)\)')


class Segment(NamedTuple):
    """A run of text with the furigana that belongs to it."""
    text: str
    furigana: str = ''
    is_kanji: bool = False


def is_kanji(char: str) -> bool:
    """Returns whether the first character of `char` is a kanji."""

    return bool(char) and KANJI_RE.match(char) is not None


def extract_kanji(text: str) -> List[str]:
    """Returns every kanji of `text`, in order and with repeats."""

    if not text:
        return []
    return KANJI_RE.findall(text)


def parse_into_segments(text: str) -> List[Segment]:
    """Splits `text` into furigana segments.

    Each kanji becomes its own segment; consecutive non-kanji characters
    are kept together in a single segment.

    Args:
        text: The base text to split.

    Returns:
        The list of segments, all with empty furigana.
    """

    segments = []
    run = ''
    run_is_kanji = None
    for char in text:
        char_is_kanji = is_kanji(char)
        if char_is_kanji and run_is_kanji:
            segments.append(Segment(run, '', True))
            run = char
        elif run_is_kanji is None or char_is_kanji == run_is_kanji:
            run += char
        else:
            segments.append(Segment(run, '', run_is_kanji))
            run = char
        run_is_kanji = char_is_kanji
    if run:
        segments.append(Segment(run, '', run_is_kanji))
    return segments


def merge_segments(segments: Sequence[Segment], index: int) -> List[Segment]:
    """Merges the kanji segment at `index` with the one following it.

    Used for jukujikun and other readings that span several kanji.

    Args:
        segments: The current segments.
        index: Position of the first segment to merge.

    Returns:
        A new list of segments.

    Raises:
        ValueError: If either segment is missing or not a kanji segment.
    """

    if index < 0 or index + 1 >= len(segments):
        raise ValueError(f'No segment follows position {index}')
    first, second = segments[index], segments[index + 1]
    if not (first.is_kanji and second.is_kanji):
        raise ValueError('Only kanji segments can be merged')
    merged = Segment(
        first.text + second.text,
        first.furigana + second.furigana,
        True,
    )
    return [*segments[:index], merged, *segments[index + 2:]]


def split_segment(segments: Sequence[Segment], index: int) -> List[Segment]:
    """Splits the first character off the kanji segment at `index`.

    The first character of the furigana goes with the first kanji and the
    remainder stays with the rest of the segment.

    Raises:
        ValueError: If the segment is not a multi-character kanji segment.
    """

    segment = segments[index]
    if not segment.is_kanji or len(segment.text) < 2:
        raise ValueError(f'Segment {index} cannot be split')
    head = Segment(segment.text[0], segment.furigana[:1], True)
    tail = Segment(segment.text[1:], segment.furigana[1:], True)
    return [*segments[:index], head, tail, *segments[index + 1:]]


def assign_furigana(
    segments: Sequence[Segment],
    furigana: Sequence[str],
) -> List[Segment]:
    """Attaches `furigana` to the kanji segments of `segments`, in order.

    Raises:
        ValueError: If the counts of kanji segments and furigana differ.
    """

    kanji_count = sum(1 for s in segments if s.is_kanji)
    if kanji_count != len(furigana):
        raise ValueError(
            f'Expected {kanji_count} furigana, got {len(furigana)}'
        )
    readings = iter(furigana)
    return [
        s._replace(furigana=next(readings)) if s.is_kanji else s
        for s in segments
    ]


def build_furigana_string(segments: Sequence[Segment]) -> str:
    """Builds bracket notation for `segments`.

    For example ``[漢](かん)[字](じ)``.

    Kanji segments without furigana are written as plain text.
    """

    return ''.join(
        f'[{s.text}]({s.furigana})' if s.is_kanji and s.furigana else s.text
        for s in segments
    )


def parse_furigana_string(notation: str) -> List[Segment]:
    """Parses bracket notation back into segments.

    Args:
        notation: Text such as ``[食](た)べる``.

    Returns:
        Segments with furigana attached to the bracketed runs.
    """

    segments = []
    position = 0
    for match in _BRACKET_RE.finditer(notation):
        if match.start() > position:
            segments.extend(
                parse_into_segments(notation[position:match.start()])
            )
        segments.append(Segment(match.group(1), match.group(2), True))
        position = match.end()
    if position < len(notation):
        segments.extend(parse_into_segments(notation[position:]))
    return segments


def reading_from_segments(segments: Sequence[Segment]) -> Dict[str, str]:
    """Returns a ``{reading, furigana}`` record for `segments`."""

    return {
        'reading': ''.join(
            s.furigana if s.is_kanji and s.furigana else s.text
            for s in segments
        ),
        'furigana': build_furigana_string(segments),
    }


def sentence_word(surface: str, dictionary_form: str = '') -> str:
    """Returns a ``words_in_sentence`` token.

    A dictionary form is appended after a ``|`` when given, e.g.
    ``読んだ|読む``.
    """

    return f'{surface}|{dictionary_form}' if dictionary_form else surface
