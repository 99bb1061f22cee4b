# mathdocx/omml_builder.py
from typing import List, Optional

from lxml import etree

from .schemas import (Brackets, Fraction, Group, Integral, MathBase, MathRun, Matrix, Radical, SubScript,
                      SubSuperScript, Sum, SuperScript, UprightText)

# --- 1. OMML 命名空间和常量 ---
M_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/math"
W_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
M_PREFIX = "{%s}" % M_NAMESPACE
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"
NSMAP = {'m': M_NAMESPACE, 'w': W_NAMESPACE}

BRACKET_CHARS = {'round': ('(', ')'), 'square': ('[', ']'), 'curly': ('{', '}')}
NARY_CHARS = {Sum: ('∑', 'undOvr'), Integral: ('∫', 'subSup')}


def _m_tag(tag_name: str) -> str: return M_PREFIX + tag_name


def _set_val(parent: etree._Element, tag_name: str, value: str) -> etree._Element:
    el = etree.SubElement(parent, _m_tag(tag_name))
    el.set(_m_tag('val'), value)
    return el


def _append_all(parent: etree._Element, elements: List[etree._Element]):
    for el in elements: parent.append(el)


# --- 2. OMML 元素构建器 (Element Builders) ---
def _create_run_omml(text: str, is_text: bool = False) -> etree._Element:
    mr = etree.Element(_m_tag('r'))
    if is_text:
        rpr = etree.SubElement(mr, _m_tag('rPr'))
        etree.SubElement(rpr, _m_tag('nor'))
    mt = etree.SubElement(mr, _m_tag('t'))
    if text.startswith(' ') or text.endswith(' '): mt.set(XML_SPACE, 'preserve')
    mt.text = text
    return mr


def _create_fraction_omml(num: List[etree._Element], den: List[etree._Element]) -> etree._Element:
    mf = etree.Element(_m_tag('f'))
    _append_all(etree.SubElement(mf, _m_tag('num')), num)
    _append_all(etree.SubElement(mf, _m_tag('den')), den)
    return mf


def _create_radical_omml(base: List[etree._Element], degree: Optional[List[etree._Element]]) -> etree._Element:
    mrad = etree.Element(_m_tag('rad'))
    mradPr = etree.SubElement(mrad, _m_tag('radPr'))
    if degree is None:
        _set_val(mradPr, 'degHide', '1')
    _append_all(etree.SubElement(mrad, _m_tag('deg')), degree or [])
    _append_all(etree.SubElement(mrad, _m_tag('e')), base)
    return mrad


def _create_script_omml(tag: str, base: List[etree._Element], sub: Optional[List[etree._Element]],
                        sup: Optional[List[etree._Element]]) -> etree._Element:
    script = etree.Element(_m_tag(tag))
    _append_all(etree.SubElement(script, _m_tag('e')), base)
    if sub is not None: _append_all(etree.SubElement(script, _m_tag('sub')), sub)
    if sup is not None: _append_all(etree.SubElement(script, _m_tag('sup')), sup)
    return script


def _create_nary_omml(op: str, lim_loc: str, sub: Optional[List[etree._Element]],
                      sup: Optional[List[etree._Element]], base: List[etree._Element]) -> etree._Element:
    mnary = etree.Element(_m_tag('nary'))
    mnaryPr = etree.SubElement(mnary, _m_tag('naryPr'))
    _set_val(mnaryPr, 'chr', op)
    _set_val(mnaryPr, 'limLoc', lim_loc)
    if not sub: _set_val(mnaryPr, 'subHide', '1')
    if not sup: _set_val(mnaryPr, 'supHide', '1')
    _append_all(etree.SubElement(mnary, _m_tag('sub')), sub or [])
    _append_all(etree.SubElement(mnary, _m_tag('sup')), sup or [])
    _append_all(etree.SubElement(mnary, _m_tag('e')), base)
    return mnary


def _create_delimiter_omml(open_c: str, close_c: str, content: List[etree._Element]) -> etree._Element:
    md = etree.Element(_m_tag('d'))
    mdPr = etree.SubElement(md, _m_tag('dPr'))
    _set_val(mdPr, 'begChr', open_c)
    _set_val(mdPr, 'endChr', close_c)
    _append_all(etree.SubElement(md, _m_tag('e')), content)
    return md


def _create_matrix_omml(matrix: Matrix) -> etree._Element:
    mm = etree.Element(_m_tag('m'))
    mPr = etree.SubElement(mm, _m_tag('mPr'))
    _set_val(mPr, 'baseJc', 'center')
    _set_val(mPr, 'plcHide', 'on')
    mcPr = etree.SubElement(etree.SubElement(etree.SubElement(mPr, _m_tag('mcs')), _m_tag('mc')), _m_tag('mcPr'))
    _set_val(mcPr, 'count', str(matrix.cols))
    _set_val(mcPr, 'mcJc', 'center')
    for row in matrix.cells:
        mmr = etree.SubElement(mm, _m_tag('mr'))
        for j in range(matrix.cols):
            me = etree.SubElement(mmr, _m_tag('e'))
            # 短行用空单元格补齐
            cell = row[j] if j < len(row) else []
            _append_all(me, nodes_to_omml(cell) if cell else [_create_run_omml('')])
    return mm


# --- 3. 数学树 -> OMML ---
def _node_to_omml(node: MathBase) -> List[etree._Element]:
    if isinstance(node, MathRun):
        return [_create_run_omml(node.text)]
    if isinstance(node, UprightText):
        return [_create_run_omml(node.text, is_text=True)]
    if isinstance(node, Group):
        return nodes_to_omml(node.children)
    if isinstance(node, Fraction):
        return [_create_fraction_omml(nodes_to_omml(node.numerator), nodes_to_omml(node.denominator))]
    if isinstance(node, SuperScript):
        return [_create_script_omml('sSup', _node_to_omml(node.base), None, nodes_to_omml(node.superscript))]
    if isinstance(node, SubScript):
        return [_create_script_omml('sSub', _node_to_omml(node.base), nodes_to_omml(node.subscript), None)]
    if isinstance(node, SubSuperScript):
        return [_create_script_omml('sSubSup', _node_to_omml(node.base), nodes_to_omml(node.subscript),
                                    nodes_to_omml(node.superscript))]
    if isinstance(node, Radical):
        degree = nodes_to_omml(node.degree) if node.degree is not None else None
        return [_create_radical_omml(nodes_to_omml(node.content), degree)]
    if isinstance(node, (Sum, Integral)):
        op, lim_loc = NARY_CHARS[type(node)]
        sub = nodes_to_omml(node.subscript) if node.subscript else None
        sup = nodes_to_omml(node.superscript) if node.superscript else None
        return [_create_nary_omml(op, lim_loc, sub, sup, nodes_to_omml(node.children))]
    if isinstance(node, Brackets):
        open_c, close_c = BRACKET_CHARS[node.kind]
        return [_create_delimiter_omml(open_c, close_c, nodes_to_omml(node.children))]
    if isinstance(node, Matrix):
        return [_create_matrix_omml(node)]
    raise TypeError(f"Unsupported math node: {type(node).__name__}")


def nodes_to_omml(nodes: List[MathBase]) -> List[etree._Element]:
    elements = []
    for node in nodes:
        elements.extend(_node_to_omml(node))
    return elements


def apply_math_style(elements: List[etree._Element], bold: bool = False, italic: bool = False) -> List[etree._Element]:
    """Marks every math run with m:sty (b / i / bi); untouched when neither flag is set."""
    if not (bold or italic):
        return elements
    style = ('b' if bold else '') + ('i' if italic else '')
    for element in elements:
        for run in element.iter(_m_tag('r')):
            rPr = run.find(_m_tag('rPr'))
            if rPr is None: rPr = etree.Element(_m_tag('rPr')); run.insert(0, rPr)
            if rPr.find(_m_tag('nor')) is not None: continue  # m:nor 与 m:sty 互斥
            sty = rPr.find(_m_tag('sty'))
            if sty is None: sty = etree.SubElement(rPr, _m_tag('sty'))
            sty.set(_m_tag('val'), style)
    return elements


def math_to_omml(group: Group, bold: bool = False, italic: bool = False) -> etree._Element:
    omml_math = etree.Element(_m_tag('oMath'), nsmap=NSMAP)
    _append_all(omml_math, apply_math_style(nodes_to_omml(group.children), bold, italic))
    return omml_math


def math_to_omml_para(group: Group, alignment: str = 'center', bold: bool = False,
                      italic: bool = False) -> etree._Element:
    omml_para = etree.Element(_m_tag('oMathPara'), nsmap=NSMAP)
    omml_para_pr = etree.SubElement(omml_para, _m_tag('oMathParaPr'))
    _set_val(omml_para_pr, 'jc', alignment)
    omml_para.append(math_to_omml(group, bold, italic))
    return omml_para
