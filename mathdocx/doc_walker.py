# mathdocx/doc_walker.py
import asyncio
import functools
from typing import Any, Callable, Dict, List, Optional

from .image_resolver import Fetcher, fetch_image_bytes, resolve_image
from .latex_converter import parse_latex
from .schemas import AnyRun, ConverterConfig, FormulaRun, ParagraphNode, TextRun


def extract_plain_text(node: Dict[str, Any]) -> str:
    """按深度优先顺序拼接节点下所有文本叶子。"""
    if node.get('value'):
        return node['value']
    return "".join(extract_plain_text(child) for child in node.get('children') or [])


def convert_inline(nodes: List[Dict[str, Any]], bold: bool = False, italic: bool = False) -> List[AnyRun]:
    """
    将行内节点转换为 run 列表。strong/emphasis 递归转换，粗体/斜体标记加在每个 run 上
    （包括公式 run），而不是数学树内部。
    """
    runs: List[AnyRun] = []
    for child in nodes:
        child_type = child.get('type')
        if child_type == 'text':
            runs.append(TextRun(text=child.get('value', ''), bold=bold, italic=italic))
        elif child_type == 'strong':
            runs.extend(convert_inline(child.get('children', []), bold=True, italic=italic))
        elif child_type == 'emphasis':
            runs.extend(convert_inline(child.get('children', []), bold=bold, italic=True))
        elif child_type == 'inlineMath':
            runs.append(FormulaRun(math=parse_latex(child.get('value', '')), bold=bold, italic=italic))
        elif child_type == 'break':
            runs.append(TextRun(text="\n", bold=bold, italic=italic))
        elif child.get('children'):
            runs.extend(convert_inline(child['children'], bold=bold, italic=italic))
        elif child.get('value'):
            runs.append(TextRun(text=child['value'], bold=bold, italic=italic))
    return runs


async def _convert_node(node: Dict[str, Any], config: ConverterConfig, fetch: Fetcher,
                        log: Callable[[str], None]) -> List[ParagraphNode]:
    node_type = node.get('type')

    if node_type == 'heading':
        depth = node.get('depth', 1)
        return [ParagraphNode(children=convert_inline(node.get('children', [])),
                              style=config.styles.heading_style_name(depth),
                              heading_level=depth)]

    if node_type == 'paragraph':
        return [ParagraphNode(children=convert_inline(node.get('children', [])))]

    if node_type == 'math':
        formula = FormulaRun(math=parse_latex(node.get('value', '')), display=True)
        return [ParagraphNode(children=[formula], alignment='center')]

    if node_type == 'html':
        markup = node.get('value') or ''
        if '<img' in markup.lower():
            image_paragraphs = await resolve_image(markup, fetch, config.images, logger=log)
            if image_paragraphs is not None:
                return image_paragraphs
        if markup.strip():
            return [ParagraphNode(children=[TextRun(text=markup)])]
        return []

    text_content = extract_plain_text(node)
    if text_content:
        return [ParagraphNode(children=[TextRun(text=text_content)])]
    log(f"提示：节点类型 '{node_type}' 没有可提取的文本，已忽略。")
    return []


async def convert(tree: Dict[str, Any], *, config: Optional[ConverterConfig] = None,
                  fetch: Optional[Fetcher] = None, logger: Optional[Callable[[str], None]] = None,
                  should_cancel: Optional[Callable[[], bool]] = None) -> List[ParagraphNode]:
    """
    深度优先遍历通用富文本树，生成段落节点序列。

    图片按源顺序逐个等待获取，因此输出顺序与源顺序一致。

    Args:
        tree (Dict[str, Any]): 根节点（type 为 'root'）或单个块级节点。
        config (Optional[ConverterConfig]): 样式与图片配置，默认使用内置配置。
        fetch (Optional[Fetcher]): 图片获取函数，默认通过 httpx 下载。
        logger (Optional[Callable[[str], None]]): 日志回调，默认打印到控制台。
        should_cancel (Optional[Callable[[], bool]]): 每个顶层节点开始前检查，返回 True 时取消转换。

    Raises:
        asyncio.CancelledError: 转换被取消，已生成的部分结果被丢弃。

    Returns:
        List[ParagraphNode]: 按源顺序排列的段落。
    """
    config = config or ConverterConfig()
    fetch = fetch or functools.partial(fetch_image_bytes, timeout=config.images.timeout,
                                       local_root=config.images.local_root)
    log = logger or print

    nodes = tree.get('children', []) if tree.get('type') == 'root' else [tree]
    paragraphs: List[ParagraphNode] = []
    for node in nodes:
        if should_cancel and should_cancel():
            log("[CANCEL] 文档转换已取消。")
            raise asyncio.CancelledError()
        paragraphs.extend(await _convert_node(node, config, fetch, log))
    return paragraphs
