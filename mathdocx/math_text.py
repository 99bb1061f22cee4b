# mathdocx/math_text.py
from typing import Iterable

from .schemas import Group, MathRun, UprightText


def extract_text(nodes: Iterable) -> str:
    """Recursively extracts the literal text of a list of math nodes, depth-first."""
    text_parts = []
    for node in nodes:
        if isinstance(node, (MathRun, UprightText)):
            text_parts.append(node.text)
        elif isinstance(node, Group):
            text_parts.append(extract_text(node.children))
        else:
            # 结构化节点：按字段声明顺序遍历其子树
            for field_name in type(node).model_fields:
                value = getattr(node, field_name)
                if isinstance(value, list):
                    text_parts.append(extract_text(_flatten_cells(value)))
                elif hasattr(value, 'model_fields'):
                    text_parts.append(extract_text([value]))
    return "".join(text_parts)


def _flatten_cells(value: list) -> list:
    # Matrix.cells 是三层嵌套列表
    flat = []
    for item in value:
        if isinstance(item, list):
            flat.extend(_flatten_cells(item))
        else:
            flat.append(item)
    return flat
