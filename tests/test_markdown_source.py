from mathdocx.markdown_source import get_parser, parse_markdown

SAMPLE_MARKDOWN = """# Title

Some **bold** and $a+b$.

$$x^2$$
"""


def test_block_structure():
    tree = parse_markdown(SAMPLE_MARKDOWN)
    assert tree['type'] == 'root'
    assert [node['type'] for node in tree['children']] == ['heading', 'paragraph', 'math']
    assert tree['children'][0]['depth'] == 1
    assert tree['children'][2]['value'] == 'x^2'


def test_inline_nodes():
    paragraph = parse_markdown(SAMPLE_MARKDOWN)['children'][1]
    types = [child['type'] for child in paragraph['children']]
    assert 'strong' in types
    assert types.index('strong') < types.index('inlineMath')
    math = next(child for child in paragraph['children'] if child['type'] == 'inlineMath')
    assert math['value'] == 'a+b'
    strong = paragraph['children'][types.index('strong')]
    assert strong['children'] == [{'type': 'text', 'value': 'bold'}]


def test_multiline_display_math_is_stripped():
    tree = parse_markdown("$$\n\\frac{a}{b}\n$$\n")
    assert tree['children'] == [{'type': 'math', 'value': '\\frac{a}{b}'}]


def test_heading_depth_and_emphasis():
    tree = parse_markdown("### Three *it*\n")
    heading = tree['children'][0]
    assert heading['depth'] == 3
    assert heading['children'][1]['type'] == 'emphasis'


def test_html_block_is_kept_raw():
    tree = parse_markdown('<img src="a.png" alt="x">\n')
    node = tree['children'][0]
    assert node['type'] == 'html'
    assert '<img src="a.png"' in node['value']


def test_softbreak_becomes_space():
    paragraph = parse_markdown("a\nb\n")['children'][0]
    assert ''.join(child['value'] for child in paragraph['children']) == 'a b'


def test_parser_is_singleton():
    assert get_parser() is get_parser()
