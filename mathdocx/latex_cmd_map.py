# mathdocx/latex_cmd_map.py

# --- Symbol and Function Maps ---
GREEK_LETTERS = {'alpha': 'α', 'beta': 'β', 'gamma': 'γ', 'delta': 'δ', 'epsilon': 'ϵ', 'zeta': 'ζ', 'eta': 'η',
                 'theta': 'θ', 'iota': 'ι', 'kappa': 'κ', 'lambda': 'λ', 'mu': 'μ', 'nu': 'ν', 'xi': 'ξ',
                 'omicron': 'ο', 'pi': 'π', 'rho': 'ρ', 'sigma': 'σ', 'tau': 'τ', 'upsilon': 'υ', 'phi': 'ϕ',
                 'chi': 'χ', 'psi': 'ψ', 'omega': 'ω', 'Gamma': 'Γ', 'Delta': 'Δ', 'Theta': 'Θ', 'Lambda': 'Λ',
                 'Xi': 'Ξ', 'Pi': 'Π', 'Sigma': 'Σ', 'Upsilon': 'Υ', 'Phi': 'Φ', 'Psi': 'Ψ', 'Omega': 'Ω',
                 'varepsilon': 'ε', 'vartheta': 'ϑ', 'varpi': 'ϖ', 'varrho': 'ϱ', 'varsigma': 'ς', 'varphi': 'φ'}
OPERATORS = {'pm': '±', 'mp': '∓', 'times': '×', 'div': '÷', 'cdot': '⋅', 'ast': '∗', 'circ': '∘', 'cup': '∪',
             'cap': '∩', 'in': '∈', 'notin': '∉', 'ni': '∋', 'subset': '⊂', 'supset': '⊃', 'subseteq': '⊆',
             'supseteq': '⊇', 'ne': '≠', 'neq': '≠', 'equiv': '≡', 'approx': '≈', 'sim': '∼', 'simeq': '≃',
             'cong': '≅', 'propto': '∝', 'le': '≤', 'leq': '≤', 'ge': '≥', 'geq': '≥', 'll': '≪', 'gg': '≫',
             'infty': '∞', 'nabla': '∇', 'partial': '∂', 'forall': '∀', 'exists': '∃', 'neg': '¬', 'land': '∧',
             'lor': '∨', 'wedge': '∧', 'vee': '∨', 'oplus': '⊕', 'otimes': '⊗', 'perp': '⊥', 'parallel': '∥',
             'angle': '∠', 'degree': '°', 'hbar': 'ħ', 'ell': 'ℓ', 'prime': '′', 'emptyset': '∅',
             'leftarrow': '←', 'rightarrow': '→', 'to': '→', 'gets': '←', 'mapsto': '↦', 'uparrow': '↑',
             'downarrow': '↓', 'leftrightarrow': '↔', 'Leftarrow': '⇐', 'Rightarrow': '⇒', 'implies': '⇒',
             'iff': '⇔', 'Uparrow': '⇑', 'Downarrow': '⇓', 'Leftrightarrow': '⇔', 'prod': '∏', 'coprod': '∐',
             'oint': '∮', 'iint': '∬', 'iiint': '∭', 'bigcup': '⋃', 'bigcap': '⋂'}
SYMBOLS = {'langle': '⟨', 'rangle': '⟩', 'lfloor': '⌊', 'rfloor': '⌋', 'lceil': '⌈', 'rceil': '⌉',
           '{': '{', '}': '}', '|': '‖', '%': '%', '$': '$', '#': '#', '&': '&', '_': '_',
           'ldots': '…', 'dots': '…', 'cdots': '⋯', 'vdots': '⋮', 'ddots': '⋱',
           ' ': ' ', 'quad': ' ', 'qquad': '  ', ',': ' ', ':': ' ', ';': ' ',
           '!': '', '\\': ' '}
SYMBOL_MAP = {**GREEK_LETTERS, **OPERATORS, **SYMBOLS}

# 按排版惯例以正体显示的函数名
FUNCTION_NAMES = {'sin', 'cos', 'tan', 'cot', 'sec', 'csc', 'arcsin', 'arccos', 'arctan', 'sinh', 'cosh', 'tanh',
                  'coth', 'ln', 'log', 'lg', 'exp', 'max', 'min', 'sup', 'inf', 'lim', 'liminf', 'limsup', 'det',
                  'dim', 'ker', 'deg', 'gcd', 'Pr', 'arg'}


def lookup_symbol(name: str) -> str:
    """未知命令名原样返回，作为字面量显示。"""
    return SYMBOL_MAP.get(name, name)


def is_function_name(name: str) -> bool:
    return name in FUNCTION_NAMES
