# mathdocx/doc_generator.py
import io
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.image.image import Image
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, RGBColor

from .omml_builder import math_to_omml, math_to_omml_para
from .schemas import DocumentStyleConfig, FormulaRun, ImageRun, ParagraphNode, ParagraphStyle, TextRun

ALIGNMENT_MAP = {
    'left': WD_ALIGN_PARAGRAPH.LEFT,
    'center': WD_ALIGN_PARAGRAPH.CENTER,
    'right': WD_ALIGN_PARAGRAPH.RIGHT,
    'justify': WD_ALIGN_PARAGRAPH.JUSTIFY,
}
EMU_PER_PIXEL = 9525
# python-docx 识别出的扩展名 -> 与扩展名推断一致的格式名
IMAGE_TYPE_ALIASES = {'jpg': 'jpeg', 'tif': 'tiff'}


def _set_east_asia_font(rpr, font_name: str):
    rFonts = rpr.get_or_add_rFonts()
    rFonts.set(qn('w:eastAsia'), font_name)


def apply_style_config(doc, style_config: DocumentStyleConfig):
    """
    将样式配置写入文档的段落样式（Normal、Heading 1-3）。
    文档模板中不存在的样式会被跳过。
    """
    for style_def in style_config.styles:
        if not any(s.name == style_def.name for s in doc.styles):
            print(f"警告：找不到名为 '{style_def.name}' 的样式，已跳过样式配置。")
            continue
        _apply_paragraph_style(doc.styles[style_def.name], style_def)


def _apply_paragraph_style(style, style_def: ParagraphStyle):
    font = style.font
    font.name = style_def.font_ascii
    font.size = Pt(style_def.font_size)
    font.bold = style_def.bold
    if style_def.id.startswith('Heading'):
        # 默认模板中的标题为蓝色
        font.color.rgb = RGBColor(0, 0, 0)
    _set_east_asia_font(style.element.get_or_add_rPr(), style_def.font_east_asia)

    p_format = style.paragraph_format
    if style_def.alignment in ALIGNMENT_MAP:
        p_format.alignment = ALIGNMENT_MAP[style_def.alignment]
    if style_def.spacing_before is not None:
        p_format.space_before = Pt(style_def.spacing_before)
    if style_def.spacing_after is not None:
        p_format.space_after = Pt(style_def.spacing_after)
    if style_def.line_spacing is not None:
        p_format.line_spacing = style_def.line_spacing


def _add_text_run(paragraph, run_item: TextRun):
    run = paragraph.add_run(run_item.text)
    if run_item.bold:
        run.bold = True
    if run_item.italic:
        run.italic = True
    if run_item.font_name:
        run.font.name = run_item.font_name
        _set_east_asia_font(run._r.get_or_add_rPr(), run_item.font_name)
    if run_item.font_size is not None:
        run.font.size = Pt(run_item.font_size)


def _add_formula_run(paragraph, run_item: FormulaRun):
    if run_item.display:
        omml_element = math_to_omml_para(run_item.math, bold=run_item.bold, italic=run_item.italic)
    else:
        omml_element = math_to_omml(run_item.math, bold=run_item.bold, italic=run_item.italic)
    paragraph._p.append(omml_element)


def _normalize_image_type(image_type: str) -> str:
    image_type = image_type.lower()
    return IMAGE_TYPE_ALIASES.get(image_type, image_type)


def _add_image_run(paragraph, run_item: ImageRun):
    run = paragraph.add_run()
    try:
        detected_type = Image.from_blob(run_item.data).ext
        shape = run.add_picture(io.BytesIO(run_item.data),
                                width=Emu(run_item.width * EMU_PER_PIXEL),
                                height=Emu(run_item.height * EMU_PER_PIXEL))
    except (UnrecognizedImageError, ValueError) as e:
        print(f"警告：插入图片时发生错误 -> {run_item.name or run_item.alt_text} ({e})，使用占位文本。")
        run.text = f"[图片: {run_item.alt_text}]"
        return
    if run_item.image_type and _normalize_image_type(run_item.image_type) != _normalize_image_type(detected_type):
        print(f"警告：图片 {run_item.name or run_item.alt_text} 的扩展名为 '{run_item.image_type}'，"
              f"实际格式为 '{detected_type}'。")
    doc_pr = shape._inline.docPr
    doc_pr.set('descr', run_item.alt_text)
    doc_pr.set('title', run_item.alt_text)
    if run_item.name:
        doc_pr.set('name', run_item.name)


def add_paragraph_from_node(doc, node: ParagraphNode):
    """
    根据段落节点在文档中添加一个段落，按顺序渲染文本、公式和图片 run。

    Args:
        doc: python-docx的Document对象。
        node (ParagraphNode): 文档遍历器生成的段落节点。
    """
    final_style = None
    if node.style:
        if any(s.name == node.style for s in doc.styles):
            final_style = node.style
        else:
            print(f"警告：找不到名为 '{node.style}' 的样式，已忽略样式设置。")

    p = doc.add_paragraph(style=final_style)
    if node.alignment in ALIGNMENT_MAP:
        p.paragraph_format.alignment = ALIGNMENT_MAP[node.alignment]

    for run_item in node.children:
        if isinstance(run_item, TextRun):
            _add_text_run(p, run_item)
        elif isinstance(run_item, FormulaRun):
            _add_formula_run(p, run_item)
        elif isinstance(run_item, ImageRun):
            _add_image_run(p, run_item)
    return p


def create_document(paragraphs: List[ParagraphNode], style_config: Optional[DocumentStyleConfig] = None) -> bytes:
    """
    根据段落节点序列创建Word文档并返回其字节流。

    Args:
        paragraphs (List[ParagraphNode]): 文档遍历器的完整输出。
        style_config (Optional[DocumentStyleConfig]): 段落样式配置，默认使用内置样式。

    Returns:
        bytes: .docx 文件内容。
    """
    doc = Document()
    apply_style_config(doc, style_config or DocumentStyleConfig())

    for node in paragraphs:
        add_paragraph_from_node(doc, node)

    stream = io.BytesIO()
    doc.save(stream)
    return stream.getvalue()


if __name__ == '__main__':
    from .latex_converter import parse_latex

    TEST_CASES = [
        r"\frac{-b \pm \sqrt{b^2 - 4ac}}{2a}",
        r"\sum_{i=1}^{n} x_i^2",
        r"\int_0^\infty e^{-x} \, dx = 1",
        r"\sqrt[3]{x} + \sin\theta \cdot \log_2 n",
        r"\begin{pmatrix} a & b \\ c & d \end{pmatrix} \begin{bmatrix} 1 \\ 0 \end{bmatrix}",
        r"\left( x + \frac{1}{x} \right)^2 \quad \text{for all } x > 0",
    ]

    def main():
        """Generates a DOCX document from a list of LaTeX strings."""
        nodes = [ParagraphNode(children=[TextRun(text='LaTeX to OMML Conversion Test Suite')], style='Heading 1',
                               heading_level=1)]
        for i, latex_string in enumerate(TEST_CASES):
            print(f"Processing Equation #{i + 1}...")
            nodes.append(ParagraphNode(children=[TextRun(text=latex_string, font_name='Courier New', font_size=10)]))
            nodes.append(ParagraphNode(children=[FormulaRun(math=parse_latex(latex_string), display=True)],
                                       alignment='center'))

        file_path = "latex_test_document.docx"
        with open(file_path, 'wb') as f:
            f.write(create_document(nodes))
        print(f"\nSuccessfully generated document: {file_path}")

    main()
