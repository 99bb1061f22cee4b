# mathdocx/latex_converter.py
import re
from typing import Callable, Dict, List, Optional, Tuple

from . import matrix_builder
from .latex_cmd_map import is_function_name, lookup_symbol
from .math_text import extract_text
from .schemas import (Brackets, Fraction, Group, Integral, MathBase, MathRun, Radical, SubScript, SubSuperScript,
                      Sum, SuperScript, UprightText)

# --- 1. 语法常量 ---
BRACKET_PAIRS = [('\\left(', '\\right)', 'round'), ('\\left[', '\\right]', 'square'),
                 ('\\left\\{', '\\right\\}', 'curly')]
# 矩阵环境 -> 外层括号类型 (None 表示不加括号)
MATRIX_ENVIRONMENTS = {'pmatrix': 'round', 'bmatrix': 'square', 'Bmatrix': 'curly', 'matrix': None}
SIZING_COMMANDS = {'left', 'right', 'big', 'Big', 'bigg', 'Bigg', 'bigl', 'bigr', 'Bigl', 'Bigr'}
TEXT_COMMANDS = {'text', 'textrm', 'mathrm', 'operatorname'}

COMMAND_NAME_RE = re.compile(r"[A-Za-z]+")
IDENTIFIER_RE = re.compile(r"[A-Za-z0-9.+\-*/=()]+")
BEGIN_RE = re.compile(r"\\begin\{([^}]+)\}")
WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")


# --- 2. 游标 ---
class ParserState:
    def __init__(self, source: str):
        self.source, self.pos = source, 0
        # 已确认缺少匹配 \right 的开括号位置，重试时直接跳过
        self.failed_brackets = set()

    def has_chars(self) -> bool: return self.pos < len(self.source)
    def peek(self) -> Optional[str]: return self.source[self.pos] if self.has_chars() else None
    def startswith(self, text: str) -> bool: return self.source.startswith(text, self.pos)

    def consume(self, n: int = 1) -> str:
        chunk = self.source[self.pos:self.pos + n]
        self.pos += len(chunk)
        return chunk

    def skip_spaces(self):
        while self.has_chars() and self.source[self.pos].isspace():
            self.pos += 1

    def at_closer(self) -> bool:
        if self.peek() in ('}', None) or self.startswith('\\end{'):
            return True
        # \right 后紧跟字母时是 \rightarrow 之类的命令
        return self.startswith('\\right') and not self.source[self.pos + 6:self.pos + 7].isalpha()


# --- 3. 命令处理器 ---
def _parse_command_name(state: ParserState) -> str:
    state.consume()  # '\'
    match = COMMAND_NAME_RE.match(state.source, state.pos)
    if match:
        state.pos = match.end()
        return match.group(0)
    # 单字符命令，例如 \{ \, \\
    return state.consume()


def _parse_group(state: ParserState) -> List[MathBase]:
    """Parses a braced group {...}, or falls back to a single atom."""
    state.skip_spaces()
    if state.at_closer():
        # 不吞掉外层的 '}' 或 \right、\end
        return []
    if state.peek() != '{':
        atom = _parse_atom(state)
        return [atom] if atom is not None else []
    state.consume()
    content = _parse_expression(state, '}')
    if state.peek() == '}':
        state.consume()
    return content


def _parse_scripts(state: ParserState) -> Tuple[Optional[List[MathBase]], Optional[List[MathBase]]]:
    subscript, superscript = None, None
    while True:
        state.skip_spaces()
        op = state.peek()
        if op not in ('_', '^'):
            break
        state.consume()
        argument = _parse_group(state)
        if op == '_' and subscript is None:
            subscript = argument
        elif op == '^' and superscript is None:
            superscript = argument
        else:
            print(f"警告: 重复的 '{op}' 脚标已被忽略。")
            break
    return subscript, superscript


def _attach_scripts(state: ParserState, base: MathBase) -> MathBase:
    if isinstance(base, (Sum, Integral)):
        return base
    subscript, superscript = _parse_scripts(state)
    if subscript is not None and superscript is not None:
        return SubSuperScript(base=base, subscript=subscript, superscript=superscript)
    if subscript is not None:
        return SubScript(base=base, subscript=subscript)
    if superscript is not None:
        return SuperScript(base=base, superscript=superscript)
    return base


def _parse_fraction(state: ParserState) -> MathBase:
    numerator = _parse_group(state)
    denominator = _parse_group(state)
    return Fraction(numerator=numerator, denominator=denominator)


def _parse_sqrt(state: ParserState) -> MathBase:
    state.skip_spaces()
    degree = None
    if state.peek() == '[':
        state.consume()
        degree = _parse_expression(state, ']')
        if state.peek() == ']':
            state.consume()
    return Radical(content=_parse_group(state), degree=degree)


def _nary_handler(node_type, symbol: str) -> Callable[[ParserState], MathBase]:
    def handler(state: ParserState) -> MathBase:
        subscript, superscript = _parse_scripts(state)
        state.skip_spaces()
        body = None if state.at_closer() else _parse_atom(state)
        if body is not None:
            body = _attach_scripts(state, body)
        return node_type(children=[body] if body is not None else [MathRun(text=symbol)],
                         subscript=subscript, superscript=superscript)
    return handler


def _read_braced(state: ParserState) -> str:
    """返回与当前 '{' 匹配的原始内容；缺少 '}' 时读到输入末尾。"""
    state.consume()
    start, depth = state.pos, 1
    while state.has_chars():
        ch = state.consume()
        if ch == '\\':
            state.consume()
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return state.source[start:state.pos - 1]
    return state.source[start:]


def _parse_text(state: ParserState) -> MathBase:
    state.skip_spaces()
    if state.peek() != '{':
        return UprightText(text=extract_text(_parse_group(state)))
    raw_text = _read_braced(state)
    # 保留空白，其余片段按公式解析后取出字面文本
    parts = [part if not part or part.isspace() else extract_text(parse_latex(part).children)
             for part in WHITESPACE_SPLIT_RE.split(raw_text)]
    return UprightText(text="".join(parts))


def _skip_end(state: ParserState) -> MathBase:
    # 孤立的 \end{...}
    if state.peek() == '{':
        _read_braced(state)
    return Group()


COMMAND_HANDLERS: Dict[str, Callable[[ParserState], MathBase]] = {
    'frac': _parse_fraction,
    'sqrt': _parse_sqrt,
    'sum': _nary_handler(Sum, '∑'),
    'int': _nary_handler(Integral, '∫'),
    'end': _skip_end,
    **{name: _parse_text for name in TEXT_COMMANDS},
}


# --- 4. 原子与表达式 ---
def _parse_brackets(state: ParserState, left: str, right: str, kind: str) -> Optional[MathBase]:
    start = state.pos
    if start not in state.failed_brackets:
        state.consume(len(left))
        content = _parse_expression(state, right)
        if state.startswith(right):
            state.consume(len(right))
            return Brackets(kind=kind, children=content)
        print(f"警告: '{left}' 缺少匹配的 '{right}'，按普通文本处理。")
        state.failed_brackets.add(start)
    state.pos = start + 1
    return None


def _parse_environment(state: ParserState, match: 're.Match') -> MathBase:
    name = match.group(1)
    state.pos = match.end()
    end_marker = f'\\end{{{name}}}'
    if name in MATRIX_ENVIRONMENTS:
        end_index = state.source.find(end_marker, state.pos)
        if end_index == -1:
            print(f"警告: 环境 '{name}' 缺少 '{end_marker}'，读取到输入末尾。")
            end_index = len(state.source)
        body = state.source[state.pos:end_index]
        state.pos = min(end_index + len(end_marker), len(state.source))
        matrix = matrix_builder.build_matrix(body)
        kind = MATRIX_ENVIRONMENTS[name]
        return Brackets(kind=kind, children=[matrix]) if kind else matrix
    content = _parse_expression(state, end_marker)
    if state.startswith(end_marker):
        state.consume(len(end_marker))
    return Group(children=content)


def _parse_atom(state: ParserState) -> Optional[MathBase]:
    state.skip_spaces()
    if not state.has_chars():
        return None

    for left, right, kind in BRACKET_PAIRS:
        if state.startswith(left):
            return _parse_brackets(state, left, right, kind)

    if state.startswith('\\begin{'):
        match = BEGIN_RE.match(state.source, state.pos)
        if match:
            return _parse_environment(state, match)

    if state.peek() == '\\':
        name = _parse_command_name(state)
        handler = COMMAND_HANDLERS.get(name)
        if handler:
            return handler(state)
        if name in SIZING_COMMANDS:
            return Group()
        if is_function_name(name):
            return UprightText(text=lookup_symbol(name))
        return MathRun(text=lookup_symbol(name))

    if state.peek() == '{':
        children = _parse_group(state)
        return children[0] if len(children) == 1 else Group(children=children)

    match = IDENTIFIER_RE.match(state.source, state.pos)
    if match:
        state.pos = match.end()
        return MathRun(text=match.group(0))

    return MathRun(text=state.consume())


def _parse_expression(state: ParserState, *terminators: str) -> List[MathBase]:
    children: List[MathBase] = []
    while state.has_chars():
        state.skip_spaces()
        if state.peek() in ('}', None) or any(state.startswith(t) for t in terminators):
            break
        before = state.pos
        atom = _parse_atom(state)
        if atom is None:
            if state.pos == before:
                break
            continue
        children.append(_attach_scripts(state, atom))
    return children


# --- 5. 规范化 ---
def flatten_groups(node: MathBase) -> MathBase:
    """Splices transparent Group nodes into the children list that contains them."""
    updates = {}
    for field_name in type(node).model_fields:
        value = getattr(node, field_name)
        if field_name == 'cells':
            updates[field_name] = [[_flatten_list(cell) for cell in row] for row in value]
        elif isinstance(value, list):
            updates[field_name] = _flatten_list(value)
        elif isinstance(value, MathBase):
            child = flatten_groups(value)
            if isinstance(child, Group) and len(child.children) == 1:
                child = child.children[0]
            updates[field_name] = child
    return node.model_copy(update=updates) if updates else node


def _flatten_list(nodes: List[MathBase]) -> List[MathBase]:
    flat = []
    for node in nodes:
        node = flatten_groups(node)
        if isinstance(node, Group):
            flat.extend(node.children)
        else:
            flat.append(node)
    return flat


def parse_latex(latex_string: str) -> Group:
    """
    将 LaTeX 公式字符串解析为数学节点树。

    解析器对格式错误的输入保持宽容：括号不匹配、缺少 '}'、未知命令都在局部恢复，
    不会抛出异常。

    Args:
        latex_string (str): LaTeX 公式（不含 $ 定界符）。

    Returns:
        Group: 根节点，空输入返回空 Group。
    """
    state = ParserState(latex_string.strip())
    children: List[MathBase] = []
    while state.has_chars():
        children.extend(_parse_expression(state))
        state.skip_spaces()
        if state.has_chars():
            print(f"警告: 忽略位置 {state.pos} 处多余的 '{state.peek()}'。")
            state.consume()
    return flatten_groups(Group(children=children))
