# mathdocx/markdown_source.py
"""Markdown parsing using markdown-it-py.

Configures markdown-it with the plugins we need:
- CommonMark base
- GFM tables and strikethrough
- Dollar math ($inline$ and $$display$$)

and converts its syntax tree into the generic rich-text tree (``{'type': ..., 'children': [...]}``
dicts) consumed by the document walker.
"""
from typing import Any, Dict, List, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.dollarmath import dollarmath_plugin

# markdown-it 节点类型 -> 通用树节点类型
TYPE_MAP = {
    'em': 'emphasis',
    'strong': 'strong',
    's': 'delete',
    'paragraph': 'paragraph',
    'bullet_list': 'list',
    'ordered_list': 'list',
    'list_item': 'listItem',
    'blockquote': 'blockquote',
    'link': 'link',
    'image': 'image',
    'hr': 'thematicBreak',
    'table': 'table',
    'thead': 'tableHead',
    'tbody': 'tableBody',
    'tr': 'tableRow',
    'th': 'tableCell',
    'td': 'tableCell',
}
LEAF_TYPES = {
    'math_inline': 'inlineMath',
    'math_inline_double': 'inlineMath',
    'math_block': 'math',
    'math_block_label': 'math',
    'html_block': 'html',
    'html_inline': 'html',
    'code_inline': 'inlineCode',
    'fence': 'code',
    'code_block': 'code',
}


def create_parser() -> MarkdownIt:
    """Create configured markdown-it parser."""
    md = MarkdownIt("commonmark")
    md.enable("table")
    md.enable("strikethrough")
    dollarmath_plugin(md)
    return md


# Singleton parser instance
_parser: Optional[MarkdownIt] = None


def get_parser() -> MarkdownIt:
    """Get or create the singleton parser instance."""
    global _parser
    if _parser is None:
        _parser = create_parser()
    return _parser


def _convert_children(node: SyntaxTreeNode) -> List[Dict[str, Any]]:
    converted = []
    for child in node.children:
        converted.extend(_convert_node(child))
    return converted


def _convert_node(node: SyntaxTreeNode) -> List[Dict[str, Any]]:
    node_type = node.type
    if node_type == 'inline':
        return _convert_children(node)
    if node_type == 'text':
        return [{'type': 'text', 'value': node.content}]
    if node_type == 'softbreak':
        return [{'type': 'text', 'value': ' '}]
    if node_type == 'hardbreak':
        return [{'type': 'break'}]
    if node_type in LEAF_TYPES:
        value = node.content
        if LEAF_TYPES[node_type] == 'math':
            value = value.strip()
        return [{'type': LEAF_TYPES[node_type], 'value': value}]
    if node_type == 'heading':
        return [{'type': 'heading', 'depth': int(node.tag[1:]), 'children': _convert_children(node)}]

    converted = {'type': TYPE_MAP.get(node_type, node_type), 'children': _convert_children(node)}
    if node_type == 'link':
        converted['url'] = node.attrs.get('href', '')
    elif node_type == 'image':
        converted['url'] = node.attrs.get('src', '')
    return [converted]


def parse_markdown(text: str) -> Dict[str, Any]:
    """Parse markdown text into the generic rich-text tree.

    Args:
        text: Markdown text to parse

    Returns:
        Root node ``{'type': 'root', 'children': [...]}``
    """
    tokens = get_parser().parse(text)
    return {'type': 'root', 'children': _convert_children(SyntaxTreeNode(tokens))}
