# mathdocx/schemas.py

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# ==============================================================================
# SECTION 1: MATH EXPRESSION TREE
# ==============================================================================
class MathBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class MathRun(MathBase): type: Literal['run'] = 'run'; text: str
class UprightText(MathBase): type: Literal['upright_text'] = 'upright_text'; text: str


class Fraction(MathBase):
    type: Literal['fraction'] = 'fraction'
    numerator: List['MathNode']
    denominator: List['MathNode']


class SuperScript(MathBase):
    type: Literal['superscript'] = 'superscript'
    base: 'MathNode'
    superscript: List['MathNode']


class SubScript(MathBase):
    type: Literal['subscript'] = 'subscript'
    base: 'MathNode'
    subscript: List['MathNode']


class SubSuperScript(MathBase):
    type: Literal['subsuperscript'] = 'subsuperscript'
    base: 'MathNode'
    subscript: List['MathNode']
    superscript: List['MathNode']


class Radical(MathBase):
    type: Literal['radical'] = 'radical'
    content: List['MathNode']
    degree: Optional[List['MathNode']] = None


class Sum(MathBase):
    type: Literal['sum'] = 'sum'
    children: List['MathNode']
    subscript: Optional[List['MathNode']] = None
    superscript: Optional[List['MathNode']] = None


class Integral(MathBase):
    type: Literal['integral'] = 'integral'
    children: List['MathNode']
    subscript: Optional[List['MathNode']] = None
    superscript: Optional[List['MathNode']] = None


class Brackets(MathBase):
    type: Literal['brackets'] = 'brackets'
    kind: Literal['round', 'square', 'curly']
    children: List['MathNode']


class Matrix(MathBase):
    """
    行列数由 cells 推导：rows == len(cells)，cols 为各行单元格数的最大值。
    参差不齐的行原样保留，只在序列化为 OMML 时补齐。
    """
    type: Literal['matrix'] = 'matrix'
    rows: int
    cols: int
    cells: List[List[List['MathNode']]]


class Group(MathBase):
    """透明包装节点，插入到子节点列表时会被展开。"""
    type: Literal['group'] = 'group'
    children: List['MathNode'] = Field(default_factory=list)


MathNode = Annotated[
    Union[MathRun, UprightText, Fraction, SuperScript, SubScript, SubSuperScript, Radical, Sum, Integral,
          Brackets, Matrix, Group],
    Field(discriminator='type')
]

for _model in (Fraction, SuperScript, SubScript, SubSuperScript, Radical, Sum, Integral, Brackets, Matrix, Group):
    _model.model_rebuild()

# ==============================================================================
# SECTION 2: PARAGRAPH OUTPUT (Document Walker -> Document Assembler)
# ==============================================================================
Alignment = Literal['left', 'center', 'right', 'justify']


class TextRun(BaseModel):
    type: Literal['text'] = 'text'
    text: str
    bold: bool = False
    italic: bool = False
    font_name: Optional[str] = None
    font_size: Optional[float] = None


class FormulaRun(BaseModel):
    type: Literal['formula'] = 'formula'
    math: Group
    display: bool = False
    bold: bool = False
    italic: bool = False


class ImageRun(BaseModel):
    type: Literal['image'] = 'image'
    data: bytes
    image_type: str = Field(..., description="由文件扩展名推断的格式；嵌入时与实际格式比对，不一致只告警。")
    width: int
    height: int
    alt_text: str = ''
    name: str = ''


AnyRun = Annotated[Union[TextRun, FormulaRun, ImageRun], Field(discriminator='type')]


class ParagraphNode(BaseModel):
    children: List[AnyRun] = Field(default_factory=list)
    style: str = 'Normal'
    heading_level: Optional[int] = None
    alignment: Optional[Alignment] = None

# ==============================================================================
# SECTION 3: STYLE & CONVERTER CONFIGURATION
# ==============================================================================
class ParagraphStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="样式ID，例如 'Heading1'。")
    name: str = Field(..., description="Word 中的样式名，例如 'Heading 1'。")
    font_ascii: str
    font_east_asia: str
    font_size: float = Field(..., description="字号，单位 pt。")
    bold: bool = False
    alignment: Optional[Alignment] = None
    spacing_before: Optional[float] = None
    spacing_after: Optional[float] = None
    line_spacing: Optional[float] = None


def _default_styles() -> List[ParagraphStyle]:
    heading_spacing = dict(spacing_before=12, spacing_after=12, line_spacing=1.5)
    return [
        ParagraphStyle(id='Normal', name='Normal', font_ascii='Cambria Math', font_east_asia='宋体',
                       font_size=12, alignment='justify', line_spacing=1.5),
        ParagraphStyle(id='Heading1', name='Heading 1', font_ascii='黑体', font_east_asia='黑体',
                       font_size=20, bold=True, alignment='center', **heading_spacing),
        ParagraphStyle(id='Heading2', name='Heading 2', font_ascii='黑体', font_east_asia='黑体',
                       font_size=16, bold=True, **heading_spacing),
        ParagraphStyle(id='Heading3', name='Heading 3', font_ascii='黑体', font_east_asia='黑体',
                       font_size=12, bold=True, **heading_spacing),
    ]


class DocumentStyleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    styles: List[ParagraphStyle] = Field(default_factory=_default_styles)
    fallback_heading_style: str = Field('Heading 5', description="四级及以下标题使用的较小样式。")

    def get(self, style_id: str) -> Optional[ParagraphStyle]:
        for style in self.styles:
            if style.id == style_id:
                return style
        return None

    def heading_style_name(self, depth: int) -> str:
        style = self.get(f'Heading{depth}') if 1 <= depth <= 3 else None
        return style.name if style else self.fallback_heading_style


class ImageSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout: float = 30.0
    local_root: Optional[str] = Field(None, description="允许读取本地图片的目录，None 表示只接受 http(s) 地址。")
    default_width: int = 360
    default_height: int = 360
    placeholder: str = "[图片: {alt}]"
    path_label: str = "图片路径: {src}"
    path_font: str = "Courier New"
    path_font_size: float = 10


class ConverterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    styles: DocumentStyleConfig = Field(default_factory=DocumentStyleConfig)
    images: ImageSettings = Field(default_factory=ImageSettings)
