"""
Calculator tool: evaluate a mathematical equation the model wrote.

Expressions are parsed with ``ast`` and walked node by node; only numbers,
whitelisted names and whitelisted functions are accepted, so nothing the model
writes is ever executed as code. The walk builds a sympy expression, which
gives exact rational arithmetic, complex numbers, matrices and unit conversion.

Supported syntax beyond plain arithmetic:
    2 ^ 10                 power
    9 / 3 + 2i             imaginary unit
    sin(45 deg) ^ 2        angles in degrees
    12.7 cm to inch        unit conversion ("to" or "in")
    det([-1, 2; 3, 1])     matrices, rows separated by ";" or as nested lists
"""

from __future__ import annotations

import ast
import math
import operator as _op
import re
from typing import Any, Callable, Mapping, Optional

import structlog
import sympy
from pydantic import BaseModel
from sympy.physics import units as _units

from toolwire.config import CalculatorConfig
from toolwire.types import ToolResponseEnvelope, build_envelope

logger = structlog.get_logger(__name__)

_MAX_DEPTH = 40
_MAX_EXPONENT = 1000
_MAX_FACTORIAL = 10000
_MAX_BASE = sympy.Integer(10) ** 100


class CalculateArgs(BaseModel):
    """Arguments accepted by the calculate tool."""

    equation: str


# Unit tokens the model may use, mapped to sympy.physics.units attributes.
_UNIT_NAMES: dict[str, str] = {
    "m": "meter", "meter": "meter", "cm": "centimeter", "mm": "millimeter",
    "km": "kilometer", "inch": "inch", "ft": "foot", "foot": "foot", "feet": "foot",
    "yd": "yard", "yard": "yard", "mi": "mile", "mile": "mile",
    "g": "gram", "gram": "gram", "kg": "kilogram", "mg": "milligram",
    "lb": "pound", "lbs": "pound", "pound": "pound",
    "s": "second", "sec": "second", "second": "second", "ms": "millisecond",
    "minute": "minute", "h": "hour", "hour": "hour", "day": "day",
    "l": "liter", "L": "liter", "liter": "liter", "ml": "milliliter", "mL": "milliliter",
    "deg": "degree", "degree": "degree", "rad": "radian", "radian": "radian",
    "J": "joule", "W": "watt", "N": "newton", "Pa": "pascal",
}
UNITS: dict[str, Any] = {token: getattr(_units, attr) for token, attr in _UNIT_NAMES.items()}
UNITS["week"] = 7 * _units.day

CONSTANTS: dict[str, Any] = {
    "pi": sympy.pi,
    "e": sympy.E,
    "i": sympy.I,
    "tau": 2 * sympy.pi,
    "phi": sympy.GoldenRatio,
    "Infinity": sympy.oo,
}

_ANGLE_SUBS = {_units.degree: sympy.pi / 180, _units.radian: sympy.Integer(1)}


def _angle(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Wrap a trig function so degree/radian quantities become plain numbers."""
    def wrapper(x: Any) -> Any:
        return func(sympy.sympify(x).subs(_ANGLE_SUBS))
    return wrapper


def _matrix(value: Any) -> sympy.MatrixBase:
    if not isinstance(value, sympy.MatrixBase):
        raise ValueError("expected a matrix")
    return value


def _factorial(x: Any) -> Any:
    if getattr(x, "is_number", False) and abs(x) > _MAX_FACTORIAL:
        raise ValueError(f"factorial argument is too large (max {_MAX_FACTORIAL})")
    return sympy.factorial(x)


def _round(x: Any, digits: Any = 0) -> Any:
    # Exact half-up rounding; Expr.round() yields a low-precision binary Float.
    scale = sympy.Integer(10) ** int(digits)
    return sympy.floor(sympy.sympify(x) * scale + sympy.Rational(1, 2)) / scale


def _log(x: Any, base: Any = None) -> Any:
    if x == 0:
        return -sympy.oo
    return sympy.log(x) if base is None else sympy.log(x, base)


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "sin": _angle(sympy.sin),
    "cos": _angle(sympy.cos),
    "tan": _angle(sympy.tan),
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "sqrt": sympy.sqrt,
    "cbrt": sympy.cbrt,
    "exp": sympy.exp,
    "log": _log,
    "log10": lambda x: _log(x, 10),
    "log2": lambda x: _log(x, 2),
    "abs": sympy.Abs,
    "floor": sympy.floor,
    "ceil": sympy.ceiling,
    "round": _round,
    "factorial": _factorial,
    "min": sympy.Min,
    "max": sympy.Max,
    "re": sympy.re,
    "im": sympy.im,
    "conj": sympy.conjugate,
    "arg": sympy.arg,
    "det": lambda m: _matrix(m).det(),
    "inv": lambda m: _matrix(m).inv(),
    "transpose": lambda m: _matrix(m).T,
}

_BINARY_OPS: dict[type[ast.AST], Callable[[Any, Any], Any]] = {
    ast.Add: _op.add,
    ast.Sub: _op.sub,
    ast.Mult: _op.mul,
    ast.MatMult: _op.mul,
    ast.Div: _op.truediv,
    ast.Mod: _op.mod,
    ast.Pow: _op.pow,
}
_UNARY_OPS: dict[type[ast.AST], Callable[[Any], Any]] = {
    ast.UAdd: _op.pos,
    ast.USub: _op.neg,
}

# "<expr> to <unit>" / "<expr> in <unit>"
_CONVERSION_RE = re.compile(r"^(?P<expr>.+?)\s+(?:to|in)\s+(?P<unit>[A-Za-z][A-Za-z0-9^*/ ]*)$")
# A bracket group with ";" row separators and no nested brackets.
_ROW_MATRIX_RE = re.compile(r"\[([^\[\]]*;[^\[\]]*)\]")
# A number immediately followed by a name or "(" means multiplication: 2i, 45 deg.
_IMPLICIT_NUM_RE = re.compile(
    r"(?<![A-Za-z_\d.])(\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)(?![\d.])(?![eE][+-]?\d)\s*(?=[A-Za-z_(])"
)
_IMPLICIT_PAREN_RE = re.compile(r"\)\s*(?=[A-Za-z_\d(])")


def _rewrite_rows(match: re.Match) -> str:
    rows = [row.strip() for row in match.group(1).split(";")]
    return "[" + ", ".join(f"[{row}]" for row in rows) + "]"


def _to_python_syntax(expression: str) -> str:
    """Rewrite calculator notation into something ``ast`` can parse."""
    text = _ROW_MATRIX_RE.sub(_rewrite_rows, expression)
    text = text.replace("^", "**")
    text = _IMPLICIT_NUM_RE.sub(lambda m: m.group(1) + "*", text)
    text = _IMPLICIT_PAREN_RE.sub(")*", text)
    return text


def _eval_ast(node: ast.AST, depth: int = 0) -> Any:
    if depth > _MAX_DEPTH:
        raise ValueError("expression is too complex")

    if isinstance(node, ast.Expression):
        return _eval_ast(node.body, depth + 1)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool):
            raise ValueError("boolean values are not allowed")
        if isinstance(node.value, int):
            return sympy.Integer(node.value)
        if isinstance(node.value, float):
            # Go through the literal's repr so 2.3 stays exactly 23/10.
            return sympy.Rational(repr(node.value))
        raise ValueError("only numeric literals are allowed")

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError("operator is not allowed")
        left = _eval_ast(node.left, depth + 1)
        right = _eval_ast(node.right, depth + 1)
        if isinstance(node.op, ast.Pow):
            if getattr(right, "is_number", False) and abs(right) > _MAX_EXPONENT:
                raise ValueError(f"exponent is too large (max {_MAX_EXPONENT})")
            if (
                getattr(left, "is_number", False)
                and getattr(right, "is_number", False)
                and abs(left) > _MAX_BASE
                and abs(right) > 1
            ):
                raise ValueError("base is too large for exponentiation")
        return op(left, right)

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError("unary operator is not allowed")
        return op(_eval_ast(node.operand, depth + 1))

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name):
            raise ValueError("only direct function calls are allowed")
        func = FUNCTIONS.get(node.func.id)
        if func is None:
            raise ValueError(f"function '{node.func.id}' is not allowed")
        if node.keywords:
            raise ValueError("keyword arguments are not allowed")
        if len(node.args) > 16:
            raise ValueError("too many function arguments")
        return func(*[_eval_ast(arg, depth + 1) for arg in node.args])

    if isinstance(node, ast.Name):
        if node.id in CONSTANTS:
            return CONSTANTS[node.id]
        if node.id in UNITS:
            return UNITS[node.id]
        raise ValueError(f"undefined symbol '{node.id}'")

    if isinstance(node, (ast.List, ast.Tuple)):
        items = [_eval_ast(item, depth + 1) for item in node.elts]
        if not items:
            raise ValueError("empty matrix")
        if all(isinstance(item, sympy.MatrixBase) for item in items):
            return sympy.Matrix.vstack(*items)
        if any(isinstance(item, sympy.MatrixBase) for item in items):
            raise ValueError("matrix rows must all be lists")
        return sympy.Matrix([items])

    raise ValueError("unsupported expression element")


def _has_units(expr: Any) -> bool:
    return bool(sympy.sympify(expr).atoms(_units.Quantity))


def _parse_unit(text: str) -> Any:
    tree = ast.parse(_to_python_syntax(text.strip()), mode="eval")
    unit = _eval_ast(tree)
    if isinstance(unit, sympy.MatrixBase) or not _has_units(unit):
        raise ValueError(f"'{text.strip()}' is not a unit")
    return unit


def _format_real(value: Any, precision: int) -> str:
    if value == sympy.oo:
        return "Infinity"
    if value == -sympy.oo:
        return "-Infinity"
    number = sympy.Float(value, precision + 2)
    if abs(number) < 1e15 and number == int(number):
        return str(int(number))
    as_float = float(number)
    if math.isfinite(as_float) and (as_float != 0 or number == 0):
        return format(as_float, f".{precision}g")
    return _format_scientific(number, precision)


def _format_scientific(number: Any, precision: int) -> str:
    """Format a finite value outside the float range as ``<mantissa>e<exponent>``."""
    exponent = int(sympy.floor(sympy.log(abs(number), 10)))
    mantissa = format(float(number / sympy.Integer(10) ** exponent), f".{precision}g")
    if mantissa.lstrip("-") == "10":
        exponent += 1
        mantissa = mantissa.replace("10", "1")
    return f"{mantissa}e{'+' if exponent >= 0 else '-'}{abs(exponent):02d}"


def _format_number(value: Any, precision: int) -> str:
    if value is sympy.zoo:
        return "Infinity"
    if value is sympy.nan:
        return "NaN"
    if value in (sympy.oo, -sympy.oo):
        return _format_real(value, precision)
    if value.is_Integer:
        return str(value)
    real, imag = sympy.N(value, precision + 2).as_real_imag()
    if imag == 0:
        return _format_real(real, precision)
    imag_text = _format_real(abs(imag), precision)
    imag_text = "i" if imag_text == "1" else f"{imag_text}i"
    if real == 0:
        return f"-{imag_text}" if imag < 0 else imag_text
    sign = "-" if imag < 0 else "+"
    return f"{_format_real(real, precision)} {sign} {imag_text}"


def _format_result(result: Any, precision: int) -> str:
    if isinstance(result, sympy.MatrixBase):
        rows = [
            "[" + ", ".join(_format_result(result[r, c], precision) for c in range(result.cols)) + "]"
            for r in range(result.rows)
        ]
        return rows[0] if result.rows == 1 else "[" + ", ".join(rows) + "]"

    result = sympy.sympify(result)
    if _has_units(result):
        factors = sympy.Mul.make_args(result)
        coeff = sympy.Mul(*[f for f in factors if f.is_number])
        unit = sympy.Mul(*[f for f in factors if not f.is_number])
        if unit != 1 and not unit.is_Add:
            unit_text = str(unit).replace("**", "^")
            return f"{_format_number(coeff, precision)} {unit_text}"
        return str(result).replace("**", "^")

    if result.is_number:
        return _format_number(result, precision)
    return str(result).replace("**", "^")


def evaluate_equation(equation: str, precision: int = 14, max_length: int = 512) -> str:
    """
    Evaluate ``equation`` and return the result as display text.

    Raises ValueError (or SyntaxError for unparsable input) when the equation
    is empty, too long, or uses anything outside the whitelist.
    """
    expr = (equation or "").strip()
    if not expr:
        raise ValueError("equation cannot be empty")
    if len(expr) > max_length:
        raise ValueError(f"equation is too long (max {max_length} characters)")

    target_unit = None
    match = _CONVERSION_RE.match(expr)
    if match:
        expr = match.group("expr")
        target_unit = _parse_unit(match.group("unit"))

    tree = ast.parse(_to_python_syntax(expr), mode="eval")
    result = _eval_ast(tree)

    if target_unit is not None:
        if isinstance(result, sympy.MatrixBase):
            raise ValueError("cannot convert a matrix to a unit")
        if not _has_units(result):
            raise ValueError("Units do not match")
        result = _units.convert_to(result, target_unit)
        # convert_to hands back its input unchanged when dimensions differ.
        if _has_units(sympy.simplify(result / target_unit)):
            raise ValueError("Units do not match")
    elif not isinstance(result, sympy.MatrixBase):
        result = sympy.simplify(result)

    return _format_result(result, precision)


class CalculatorTool:
    """Handler for ``calculate``: echoes the equation and returns its result as content."""

    def __init__(self, config: Optional[CalculatorConfig] = None):
        self._config = config or CalculatorConfig()

    def __call__(self, args: Optional[Mapping[str, Any]], name: str) -> ToolResponseEnvelope:
        raw_equation = args.get("equation") if isinstance(args, Mapping) else None
        try:
            parsed = CalculateArgs.model_validate(args or {})
            result = evaluate_equation(
                parsed.equation,
                precision=self._config.precision,
                max_length=self._config.max_length,
            )
        except Exception as e:
            error_message = f"Error calculating the equation: {e}"
            logger.error("calculator.failed", tool_name=name, equation=raw_equation, error=str(e))
            return build_envelope(name, error_message, equation=raw_equation)

        logger.debug("calculator.evaluated", tool_name=name, equation=raw_equation, result=result)
        return build_envelope(name, result, equation=raw_equation)
