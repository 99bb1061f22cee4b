# mathdocx/image_resolver.py
import asyncio
import os
import re
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlsplit

import httpx

from .schemas import ImageRun, ImageSettings, ParagraphNode, TextRun

Fetcher = Callable[[str], Awaitable[bytes]]

IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
SRC_RE = re.compile(r"""\bsrc\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
ALT_RE = re.compile(r"""\balt\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
WIDTH_RE = re.compile(r"""\bwidth\s*=\s*["'](\d+)["']""", re.IGNORECASE)
HEIGHT_RE = re.compile(r"""\bheight\s*=\s*["'](\d+)["']""", re.IGNORECASE)
CAPTION_RE = re.compile(r"<strong>([^<]*)</strong>")


def _read_file(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def _resolve_local_path(url: str, local_root: str) -> str:
    root = os.path.realpath(local_root)
    path = os.path.realpath(os.path.join(root, url.lstrip('/\\')))
    if os.path.commonpath([root, path]) != root:
        raise ValueError(f"图片路径超出允许的目录: {url}")
    return path


async def fetch_image_bytes(url: str, timeout: float = 30.0, local_root: Optional[str] = None) -> bytes:
    """
    下载图片字节。http(s) 地址通过 httpx 获取。

    本地路径只有在配置了 local_root 时才允许读取，且必须位于该目录之内
    （绝对路径也按相对 local_root 解析）。

    Raises:
        httpx.HTTPError: 网络错误或非 2xx 响应。
        ValueError: 不支持的地址，或本地路径不在 local_root 之内。
        OSError: 本地文件不可读。
    """
    scheme = urlsplit(url).scheme
    if scheme in ('http', 'https'):
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
        return response.content
    if scheme or local_root is None:
        raise ValueError(f"不支持的图片地址: {url}")
    return await asyncio.to_thread(_read_file, _resolve_local_path(url, local_root))


def infer_image_type(src: str) -> str:
    ext = os.path.splitext(urlsplit(src).path)[1].lstrip('.').lower()
    return 'jpeg' if ext == 'jpg' else ext


def _image_name(src: str) -> str:
    return os.path.splitext(os.path.basename(urlsplit(src).path))[0]


def _dimension(pattern: re.Pattern, markup: str, default: int) -> int:
    match = pattern.search(markup)
    return int(match.group(1)) if match else default


def _placeholder_paragraph(src: str, alt: str, settings: ImageSettings) -> ParagraphNode:
    return ParagraphNode(
        children=[
            TextRun(text=settings.placeholder.format(alt=alt)),
            TextRun(text="\n" + settings.path_label.format(src=src),
                    font_name=settings.path_font, font_size=settings.path_font_size),
        ],
        alignment='center',
    )


async def resolve_image(markup: str, fetch: Fetcher, settings: Optional[ImageSettings] = None,
                        logger: Optional[Callable[[str], None]] = None) -> Optional[List[ParagraphNode]]:
    """
    从原始 HTML 片段中提取 <img> 引用并生成图片段落。

    Args:
        markup (str): html 节点的原始内容。
        fetch (Fetcher): 异步获取图片字节的函数，失败时抛出异常。
        settings (Optional[ImageSettings]): 默认尺寸与占位符文本。
        logger (Optional[Callable[[str], None]]): 日志回调。

    Returns:
        Optional[List[ParagraphNode]]: 图片段落（可能附带说明段落）或占位段落；
        片段中没有带 src 的 <img> 时返回 None。
    """
    settings = settings or ImageSettings()
    log = logger or print

    tag_match = IMG_TAG_RE.search(markup)
    if not tag_match:
        return None
    tag = tag_match.group(0)
    src_match = SRC_RE.search(tag)
    if not src_match:
        return None
    src = src_match.group(1)
    alt_match = ALT_RE.search(tag)
    alt = alt_match.group(1) if alt_match else ''

    try:
        data = await fetch(src)
    except (httpx.HTTPError, OSError, ValueError) as e:
        log(f"警告：图片加载失败 -> {src} ({e})，使用占位文本。")
        return [_placeholder_paragraph(src, alt, settings)]

    image = ImageRun(
        data=data,
        image_type=infer_image_type(src),
        width=_dimension(WIDTH_RE, tag, settings.default_width),
        height=_dimension(HEIGHT_RE, tag, settings.default_height),
        alt_text=alt,
        name=_image_name(src),
    )
    paragraphs = [ParagraphNode(children=[image], alignment='center')]

    if '</center>' in markup and '<strong>' in markup:
        caption_match = CAPTION_RE.search(markup)
        if caption_match:
            paragraphs.append(ParagraphNode(children=[TextRun(text=caption_match.group(1), bold=True)],
                                            alignment='center'))
    return paragraphs
