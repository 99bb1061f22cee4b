# mathdocx/app_logic.py
from typing import Callable, Optional

from .config import load_config
from .doc_generator import create_document
from .doc_walker import convert
from .image_resolver import Fetcher
from .markdown_source import parse_markdown
from .schemas import ConverterConfig


async def generate_docx_from_markdown(
        markdown: str,
        logger: Optional[Callable[[str], None]] = None,
        config: Optional[ConverterConfig] = None,
        fetch: Optional[Fetcher] = None,
        should_cancel: Optional[Callable[[], bool]] = None
) -> tuple[bytes, str]:
    """
    协调完整的转换流程：Markdown -> 通用富文本树 -> 段落节点 -> DOCX。

    Args:
        markdown (str): Markdown 源文本，$...$ 为行内公式，$$...$$ 为块级公式。
        logger (Optional[Callable[[str], None]]): 用于流式日志记录的回调函数。
        config (Optional[ConverterConfig]): 转换配置，默认从 config.yaml 加载。
        fetch (Optional[Fetcher]): 图片获取函数。
        should_cancel (Optional[Callable[[], bool]]): 取消检查回调。

    Returns:
        tuple[bytes, str]: 文档字节流和完整日志。
    """
    log_stream = []

    def log(message: str):
        log_stream.append(message)
        if logger:
            logger(message)
        else:
            print(message)

    config = config or load_config()

    log("🚀 转换流程启动...")
    tree = parse_markdown(markdown)
    log(f"  > Markdown 解析完成，共 {len(tree['children'])} 个顶层节点。")

    paragraphs = await convert(tree, config=config, fetch=fetch, logger=log, should_cancel=should_cancel)
    log(f"  > 文档遍历完成，生成 {len(paragraphs)} 个段落。")

    docx_bytes = create_document(paragraphs, config.styles)
    log("✅ DOCX 文档生成完毕。")

    return docx_bytes, "\n".join(log_stream)
