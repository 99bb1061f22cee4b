import base64
import io
import zipfile

from docx import Document
from docx.shared import Emu, Pt
from lxml import etree

from mathdocx.doc_generator import EMU_PER_PIXEL, create_document
from mathdocx.latex_converter import parse_latex
from mathdocx.omml_builder import NSMAP
from mathdocx.schemas import FormulaRun, ImageRun, ParagraphNode, TextRun

ONE_PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==")


def _document_xml(docx_bytes):
    with zipfile.ZipFile(io.BytesIO(docx_bytes)) as archive:
        return etree.fromstring(archive.read('word/document.xml'))


def test_document_contains_math():
    paragraphs = [
        ParagraphNode(children=[TextRun(text='Title')], style='Heading 1', heading_level=1),
        ParagraphNode(children=[TextRun(text='bold', bold=True), FormulaRun(math=parse_latex('a+b'))]),
        ParagraphNode(children=[FormulaRun(math=parse_latex('x^2'), display=True)], alignment='center'),
    ]
    docx_bytes = create_document(paragraphs)
    assert docx_bytes.startswith(b'PK')

    root = _document_xml(docx_bytes)
    body_paragraphs = root.xpath('//w:body/w:p', namespaces=NSMAP)
    assert len(body_paragraphs) == 3
    assert body_paragraphs[0].xpath('w:pPr/w:pStyle/@w:val', namespaces=NSMAP) == ['Heading1']
    assert body_paragraphs[1].xpath('w:r/w:rPr/w:b', namespaces=NSMAP)
    assert body_paragraphs[1].xpath('m:oMath', namespaces=NSMAP)
    assert body_paragraphs[2].xpath('m:oMathPara/m:oMath/m:sSup', namespaces=NSMAP)


def test_style_config_is_applied():
    doc = Document(io.BytesIO(create_document([ParagraphNode(children=[TextRun(text='x')])])))
    normal = doc.styles['Normal']
    assert normal.font.size == Pt(12)
    assert normal.font.name == 'Cambria Math'
    heading = doc.styles['Heading 1']
    assert heading.font.size == Pt(20)
    assert heading.font.bold is True


def test_image_is_embedded_with_pixel_size():
    image = ImageRun(data=ONE_PIXEL_PNG, image_type='png', width=10, height=20, alt_text='dot', name='dot')
    doc = Document(io.BytesIO(create_document([ParagraphNode(children=[image], alignment='center')])))
    assert len(doc.inline_shapes) == 1
    shape = doc.inline_shapes[0]
    assert shape.width == Emu(10 * EMU_PER_PIXEL)
    assert shape.height == Emu(20 * EMU_PER_PIXEL)
    doc_pr = shape._inline.docPr
    assert doc_pr.get('descr') == 'dot'


def test_unreadable_image_falls_back_to_text():
    image = ImageRun(data=b'not an image', image_type='png', width=10, height=10, alt_text='broken')
    doc = Document(io.BytesIO(create_document([ParagraphNode(children=[image])])))
    assert len(doc.inline_shapes) == 0
    assert doc.paragraphs[0].text == '[图片: broken]'


def test_unknown_style_is_ignored():
    docx_bytes = create_document([ParagraphNode(children=[TextRun(text='x')], style='No Such Style')])
    doc = Document(io.BytesIO(docx_bytes))
    assert doc.paragraphs[0].text == 'x'
    assert doc.paragraphs[0].style.name == 'Normal'


def test_text_run_font_override():
    node = ParagraphNode(children=[TextRun(text='path', font_name='Courier New', font_size=10)])
    run = Document(io.BytesIO(create_document([node]))).paragraphs[0].runs[0]
    assert run.font.name == 'Courier New'
    assert run.font.size == Pt(10)


def test_image_type_mismatch_is_reported(capsys):
    """The declared image type is compared with the format python-docx detects"""
    image = ImageRun(data=ONE_PIXEL_PNG, image_type='jpeg', width=1, height=1, name='dot')
    doc = Document(io.BytesIO(create_document([ParagraphNode(children=[image])])))
    assert len(doc.inline_shapes) == 1
    assert "实际格式为 'png'" in capsys.readouterr().out

    matching = ImageRun(data=ONE_PIXEL_PNG, image_type='png', width=1, height=1, name='dot')
    create_document([ParagraphNode(children=[matching])])
    assert '实际格式' not in capsys.readouterr().out
