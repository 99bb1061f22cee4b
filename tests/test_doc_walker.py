import asyncio

import httpx
import pytest

from mathdocx.doc_walker import convert, convert_inline, extract_plain_text
from mathdocx.schemas import FormulaRun, ImageRun, MathRun, SuperScript, TextRun


def _run(coro):
    return asyncio.run(coro)


async def _no_fetch(src):
    raise AssertionError(f"unexpected fetch: {src}")


def _text(value):
    return {'type': 'text', 'value': value}


SAMPLE_TREE = {
    'type': 'root',
    'children': [
        {'type': 'heading', 'depth': 1, 'children': [_text('Title')]},
        {'type': 'paragraph', 'children': [
            {'type': 'strong', 'children': [_text('bold')]},
            _text(' and '),
            {'type': 'inlineMath', 'value': 'a+b'},
        ]},
        {'type': 'math', 'value': 'x^2'},
    ],
}


def test_heading_paragraph_and_display_math():
    """Heading, mixed paragraph and display formula yield three paragraphs in order"""
    logs = []
    paragraphs = _run(convert(SAMPLE_TREE, fetch=_no_fetch, logger=logs.append))
    assert len(paragraphs) == 3

    heading, paragraph, formula = paragraphs
    assert heading.style == 'Heading 1'
    assert heading.heading_level == 1
    assert heading.children == [TextRun(text='Title')]

    assert paragraph.style == 'Normal'
    assert paragraph.children[0] == TextRun(text='bold', bold=True)
    assert paragraph.children[1] == TextRun(text=' and ')
    assert isinstance(paragraph.children[2], FormulaRun)
    assert paragraph.children[2].display is False
    assert paragraph.children[2].math.children == [MathRun(text='a+b')]

    assert formula.alignment == 'center'
    display = formula.children[0]
    assert display.display is True
    assert display.math.children == [SuperScript(base=MathRun(text='x'), superscript=[MathRun(text='2')])]


def test_formula_inside_strong_is_bold():
    runs = convert_inline([{'type': 'strong', 'children': [{'type': 'inlineMath', 'value': 'x'}]}])
    assert isinstance(runs[0], FormulaRun)
    assert runs[0].bold is True
    assert runs[0].italic is False


def test_nested_emphasis_sets_both_flags():
    runs = convert_inline([{'type': 'strong', 'children': [{'type': 'emphasis', 'children': [_text('both')]}]}])
    assert runs == [TextRun(text='both', bold=True, italic=True)]


def test_break_and_unknown_inline_nodes():
    runs = convert_inline([
        _text('a'),
        {'type': 'break'},
        {'type': 'link', 'url': 'http://x', 'children': [_text('link')]},
        {'type': 'inlineCode', 'value': 'code'},
    ])
    assert [run.text for run in runs] == ['a', '\n', 'link', 'code']


def test_deep_headings_use_fallback_style():
    tree = {'type': 'heading', 'depth': 5, 'children': [_text('Deep')]}
    paragraphs = _run(convert(tree, fetch=_no_fetch))
    assert paragraphs[0].style == 'Heading 5'
    assert paragraphs[0].heading_level == 5


def test_html_without_image_becomes_text():
    tree = {'type': 'root', 'children': [
        {'type': 'html', 'value': '<div>note</div>'},
        {'type': 'html', 'value': '   '},
    ]}
    paragraphs = _run(convert(tree, fetch=_no_fetch))
    assert len(paragraphs) == 1
    assert paragraphs[0].children == [TextRun(text='<div>note</div>')]


def test_unknown_nodes_fall_back_to_plain_text():
    tree = {'type': 'root', 'children': [
        {'type': 'blockquote', 'children': [{'type': 'paragraph', 'children': [_text('quoted '), _text('text')]}]},
        {'type': 'thematicBreak'},
    ]}
    logs = []
    paragraphs = _run(convert(tree, fetch=_no_fetch, logger=logs.append))
    assert len(paragraphs) == 1
    assert paragraphs[0].children == [TextRun(text='quoted text')]
    assert any('thematicBreak' in line for line in logs)


def test_extract_plain_text():
    node = {'type': 'list', 'children': [{'type': 'listItem', 'children': [_text('a')]},
                                         {'type': 'listItem', 'children': [{'type': 'inlineMath', 'value': 'b'}]}]}
    assert extract_plain_text(node) == 'ab'
    assert extract_plain_text({'type': 'thematicBreak'}) == ''


def test_images_keep_source_order():
    """Images are fetched one at a time and emitted in source order"""
    calls = []

    async def fetch(src):
        calls.append(src)
        # 第一张图片更慢，顺序仍应保持
        await asyncio.sleep(0.01 if src == 'first.png' else 0)
        return src.encode()

    tree = {'type': 'root', 'children': [
        {'type': 'html', 'value': '<img src="first.png" alt="one">'},
        {'type': 'paragraph', 'children': [_text('between')]},
        {'type': 'html', 'value': '<img src="second.png" alt="two">'},
    ]}
    paragraphs = _run(convert(tree, fetch=fetch, logger=lambda message: None))
    assert calls == ['first.png', 'second.png']
    assert isinstance(paragraphs[0].children[0], ImageRun)
    assert paragraphs[0].children[0].data == b'first.png'
    assert paragraphs[1].children == [TextRun(text='between')]
    assert paragraphs[2].children[0].data == b'second.png'


def test_failed_image_becomes_placeholder():
    async def fetch(src):
        raise httpx.ConnectError("connection refused")

    tree = {'type': 'html', 'value': '<img src="http://example.com/a.png" alt="diagram">'}
    paragraphs = _run(convert(tree, fetch=fetch, logger=lambda message: None))
    assert len(paragraphs) == 1
    assert paragraphs[0].children[0].text == '[图片: diagram]'


def test_cancellation_before_next_node():
    """should_cancel is checked before each top-level node"""
    checks = []

    def should_cancel():
        checks.append(True)
        return len(checks) > 1

    async def run_cancelled():
        with pytest.raises(asyncio.CancelledError):
            await convert(SAMPLE_TREE, fetch=_no_fetch, logger=lambda message: None, should_cancel=should_cancel)

    _run(run_cancelled())
    assert len(checks) == 2


def test_empty_root():
    assert _run(convert({'type': 'root', 'children': []}, fetch=_no_fetch)) == []
