#!filepath: qtdsim/core/precision.py
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    localcontext,
)
from typing import Any, Callable, Optional

from qtdsim.utils.errors import EvaluationError

ROUNDING_MODES = {
    "ROUND_DOWN": ROUND_DOWN,
    "ROUND_HALF_UP": ROUND_HALF_UP,
    "ROUND_HALF_EVEN": ROUND_HALF_EVEN,
}

# 与 `tr -cd` 清洗一致：只保留数字、小数点、符号和指数
_OPERAND_NOISE = re.compile(r"[^0-9eE+\-.]")


@dataclass(frozen=True)
class Evaluation:
    """
    计算结果：要么 value，要么 error（不会同时存在）
    """
    value: Optional[Decimal] = None
    error: Optional[EvaluationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_else(self, fallback: Decimal) -> Decimal:
        """失败时返回调用方指定的 fallback（evaluator 自己从不猜）"""
        return self.value if self.ok else fallback


class PrecisionEvaluator:
    """
    任意精度 Decimal 表达式求值器

    evaluate(expr, scale):
      - expr 是零参数 callable，在隔离的 decimal context 内执行
      - 结果按 scale（小数位数）量化，默认截断（与 bc 的 scale 语义一致）
      - 除零 / 负数开方 / 非法操作数 / 后端不可用 → Evaluation(error=...)
      - 无副作用，不抛异常

    用法：
        ev = PrecisionEvaluator()
        res = ev.evaluate(lambda: ev.sqrt(1 - ev.div(rs, r)), scale=15)
        factor = res.or_else(Decimal("1"))
    """

    def __init__(
        self,
        working_digits: int = 100,
        rounding: str = ROUND_DOWN,
        available: bool = True,
    ):
        self.working_digits = working_digits
        self.rounding = ROUNDING_MODES.get(rounding, rounding)
        self.available = available

    @classmethod
    def from_config(cls, cfg, available: bool = True) -> "PrecisionEvaluator":
        return cls(
            working_digits=cfg.working_digits,
            rounding=cfg.rounding,
            available=available,
        )

    # --------------------------------------------------
    # context
    # --------------------------------------------------
    def _context(self) -> Context:
        return Context(
            prec=self.working_digits,
            rounding=ROUND_HALF_EVEN,
            traps=[InvalidOperation, DivisionByZero, Overflow],
        )

    # --------------------------------------------------
    # operands
    # --------------------------------------------------
    def operand(self, raw: Any) -> Decimal:
        """
        把任意输入转成有限 Decimal；无法解析时抛 EvaluationError
        """
        if isinstance(raw, bool):
            raise EvaluationError("malformed operand", repr(raw))

        if isinstance(raw, Decimal):
            value = raw
        elif isinstance(raw, int):
            value = Decimal(raw)
        elif isinstance(raw, float):
            value = Decimal(repr(raw))
        else:
            text = _OPERAND_NOISE.sub("", str(raw if raw is not None else ""))
            if not text:
                raise EvaluationError("empty operand", repr(raw))
            try:
                value = Decimal(text)
            except InvalidOperation:
                raise EvaluationError("malformed operand", repr(raw)) from None

        if not value.is_finite():
            raise EvaluationError("non-finite operand", repr(raw))
        return value

    # --------------------------------------------------
    # operations（在 evaluate 的 context 内调用）
    # --------------------------------------------------
    def div(self, a: Any, b: Any) -> Decimal:
        return self.operand(a) / self.operand(b)

    def sqrt(self, x: Any) -> Decimal:
        return self.operand(x).sqrt()

    def floor(self, x: Any) -> Decimal:
        return self.operand(x).to_integral_value(rounding=ROUND_FLOOR)

    def quantize(self, value: Decimal, scale: int, rounding: Optional[str] = None) -> Decimal:
        exponent = Decimal(1).scaleb(-scale)
        result = value.quantize(exponent, rounding=rounding or self.rounding)
        if result.is_zero():
            result = result.copy_abs()
        return result

    # --------------------------------------------------
    # entry
    # --------------------------------------------------
    def evaluate(
        self,
        expr: Callable[[], Any],
        scale: int,
        *,
        label: str = "",
        rounding: Optional[str] = None,
    ) -> Evaluation:
        if not self.available:
            return Evaluation(error=EvaluationError("evaluator backend unavailable", label))

        with localcontext(self._context()):
            try:
                value = self.operand(expr())
                return Evaluation(value=self.quantize(value, scale, ROUNDING_MODES.get(rounding, rounding)))
            except EvaluationError as e:
                return Evaluation(error=e)
            except ZeroDivisionError:
                return Evaluation(error=EvaluationError("division by zero", label))
            except InvalidOperation:
                return Evaluation(error=EvaluationError("invalid operation (negative sqrt or bad domain)", label))
            except DecimalException as e:
                return Evaluation(error=EvaluationError(type(e).__name__, label))

    def compare(self, a: Any, b: Any) -> Evaluation:
        """a < b → -1, a == b → 0, a > b → 1"""
        return self.evaluate(lambda: self.operand(a).compare(self.operand(b)), scale=0, label="compare")
