# mathdocx/matrix_builder.py
from typing import List

from . import latex_converter
from .schemas import MathBase, MathRun, Matrix

ROW_SEPARATOR = '\\\\'
COLUMN_SEPARATOR = '&'


def _parse_cell(cell_text: str) -> List[MathBase]:
    if not cell_text:
        # 空单元格保留一个空文本，维持网格形状
        return [MathRun(text='')]
    return latex_converter.parse_latex(cell_text).children


def build_matrix(rows_text: str) -> Matrix:
    """
    Builds a Matrix node from the body of a matrix environment.

    Args:
        rows_text (str): 环境主体，例如 "1 & 2 \\\\ 3 & 4"。

    Returns:
        Matrix: rows/cols 由单元格推导，参差不齐的行不会报错。
    """
    rows = [row.strip() for row in rows_text.split(ROW_SEPARATOR)]
    cells = [[_parse_cell(cell.strip()) for cell in row.split(COLUMN_SEPARATOR)] for row in rows if row]
    cols = max((len(row) for row in cells), default=0)
    return Matrix(rows=len(cells), cols=cols, cells=cells)
