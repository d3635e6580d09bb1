"""Typed builder for ffmpeg filter expressions.

Overlay timing (when an overlay is enabled, where it sits at time t) is
kept as data: an expression tree that can be *evaluated* in Python and
*rendered* to ffmpeg's expression syntax. The same tree drives both, so
the animation law tested here is exactly what ffmpeg receives.

    t = Var("t")
    expr = If(Lt(t, 361), Var("H") - Var("h") * (t - 360), Var("H") - Var("h"))
    expr.render()                             # 'if(lt(t,361),H-h*(t-360),H-h)'
    expr.evaluate({"t": 360, "H": 720, "h": 60})  # 720.0

Rendering is deterministic: the same tree always yields the same string.
"""

from dataclasses import dataclass

from .common import fmt_num


# ── Expression nodes ──────────────────────────────────────────────
# Precedence drives parenthesization: a child is wrapped only when it
# binds looser than its parent (or equally, on the right of - and /).

_ATOM = 100


class Expr:
    """Base node. Supports +, -, *, / with numbers or other nodes."""

    prec = _ATOM

    def render(self) -> str:
        raise NotImplementedError

    def evaluate(self, env: dict[str, float]) -> float:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()

    def __add__(self, other):
        return BinOp("+", self, as_expr(other))

    def __radd__(self, other):
        return BinOp("+", as_expr(other), self)

    def __sub__(self, other):
        return BinOp("-", self, as_expr(other))

    def __rsub__(self, other):
        return BinOp("-", as_expr(other), self)

    def __mul__(self, other):
        return BinOp("*", self, as_expr(other))

    def __rmul__(self, other):
        return BinOp("*", as_expr(other), self)

    def __truediv__(self, other):
        return BinOp("/", self, as_expr(other))


def as_expr(value) -> Expr:
    """Wrap plain numbers as Const; pass nodes through."""
    if isinstance(value, Expr):
        return value
    if isinstance(value, (int, float)):
        return Const(float(value))
    raise TypeError(f"Cannot build an expression from {value!r}")


@dataclass(frozen=True, eq=False)
class Const(Expr):
    value: float

    def render(self) -> str:
        return fmt_num(self.value)

    def evaluate(self, env):
        return float(self.value)


@dataclass(frozen=True, eq=False)
class Var(Expr):
    """A variable ffmpeg provides: t (seconds), W/H (main), w/h (overlay)."""

    name: str

    def render(self) -> str:
        return self.name

    def evaluate(self, env):
        if self.name not in env:
            raise KeyError(f"Unbound expression variable: {self.name}")
        return float(env[self.name])


_BINOP_PREC = {"+": 1, "-": 1, "*": 2, "/": 2}


@dataclass(frozen=True, eq=False)
class BinOp(Expr):
    op: str
    left: Expr
    right: Expr

    @property
    def prec(self):
        return _BINOP_PREC[self.op]

    def render(self) -> str:
        left = self.left.render()
        if self.left.prec < self.prec:
            left = f"({left})"
        right = self.right.render()
        if self.right.prec < self.prec or (
            self.right.prec == self.prec and self.op in "-/"
        ):
            right = f"({right})"
        return f"{left}{self.op}{right}"

    def evaluate(self, env):
        a = self.left.evaluate(env)
        b = self.right.evaluate(env)
        if self.op == "+":
            return a + b
        if self.op == "-":
            return a - b
        if self.op == "*":
            return a * b
        return a / b


@dataclass(frozen=True, eq=False)
class Lt(Expr):
    """lt(a,b): 1 if a < b else 0."""

    left: Expr
    right: Expr

    def render(self) -> str:
        return f"lt({self.left.render()},{self.right.render()})"

    def evaluate(self, env):
        return 1.0 if self.left.evaluate(env) < self.right.evaluate(env) else 0.0


@dataclass(frozen=True, eq=False)
class Between(Expr):
    """between(x,lo,hi): 1 if lo <= x <= hi (closed interval) else 0."""

    value: Expr
    low: Expr
    high: Expr

    def render(self) -> str:
        return (
            f"between({self.value.render()},"
            f"{self.low.render()},{self.high.render()})"
        )

    def evaluate(self, env):
        x = self.value.evaluate(env)
        return 1.0 if self.low.evaluate(env) <= x <= self.high.evaluate(env) else 0.0


@dataclass(frozen=True, eq=False)
class If(Expr):
    """if(cond,then,else): *then* when cond is non-zero."""

    cond: Expr
    then: Expr
    otherwise: Expr

    def render(self) -> str:
        return (
            f"if({self.cond.render()},"
            f"{self.then.render()},{self.otherwise.render()})"
        )

    def evaluate(self, env):
        if self.cond.evaluate(env) != 0:
            return self.then.evaluate(env)
        return self.otherwise.evaluate(env)


T = Var("t")
MAIN_W = Var("W")
MAIN_H = Var("H")
OVERLAY_W = Var("w")
OVERLAY_H = Var("h")


# ── Overlay window ────────────────────────────────────────────────


@dataclass(frozen=True)
class OverlayWindow:
    """Closed interval [entry, exit] during which an overlay is composited.

    The overlay slides up from below the frame during [entry, entry+slide),
    rests flush with the bottom edge until exit-slide, then slides back
    down, reaching the hidden position exactly at *exit*.
    """

    entry: float
    exit: float
    slide: float = 1.0

    def __post_init__(self):
        if not self.entry < self.exit:
            raise ValueError(
                f"Overlay window: entry ({self.entry}) must be < exit ({self.exit})"
            )
        if self.slide <= 0 or 2 * self.slide > self.exit - self.entry:
            raise ValueError(
                f"Overlay window: slide ({self.slide}) must be > 0 and fit twice "
                f"in the window ({self.exit - self.entry}s)"
            )

    @classmethod
    def starting_at(cls, entry: float, duration: float = 60.0, slide: float = 1.0):
        return cls(float(entry), float(entry) + float(duration), float(slide))

    def _progress(self, start: float) -> Expr:
        elapsed = T - start
        return elapsed if self.slide == 1 else elapsed / self.slide

    def enable_expr(self) -> Expr:
        return Between(T, as_expr(self.entry), as_expr(self.exit))

    def y_expr(self) -> Expr:
        shown = MAIN_H - OVERLAY_H
        slide_in = MAIN_H - OVERLAY_H * self._progress(self.entry)
        slide_out = shown + OVERLAY_H * self._progress(self.exit - self.slide)
        return If(
            Lt(T, as_expr(self.entry + self.slide)),
            slide_in,
            If(Lt(T, as_expr(self.exit - self.slide)), shown, slide_out),
        )

    def enabled(self, t: float) -> bool:
        return self.enable_expr().evaluate({"t": t}) != 0

    def y_offset(self, t: float, frame_h: float, overlay_h: float) -> float:
        return self.y_expr().evaluate({"t": t, "H": frame_h, "h": overlay_h})


# ── Anchors ───────────────────────────────────────────────────────

VALID_ANCHORS = {
    "top-left", "top-center", "top-right",
    "middle-left", "middle-center", "middle-right",
    "bottom-left", "bottom-center", "bottom-right",
}


def anchor_exprs(position: str, margin: float = 0) -> tuple[Expr, Expr]:
    """(x, y) overlay expressions for a 3x3 grid position.

    Margin is in pixels from the nearest edge; centered axes ignore it.

    Raises:
        ValueError: Unknown position name.
    """
    if position not in VALID_ANCHORS:
        raise ValueError(
            f"Unknown anchor: '{position}'. Valid: {sorted(VALID_ANCHORS)}"
        )
    vert, horiz = position.split("-", 1)

    if horiz == "left":
        x = as_expr(margin)
    elif horiz == "right":
        x = MAIN_W - OVERLAY_W if not margin else MAIN_W - OVERLAY_W - margin
    else:  # center
        x = (MAIN_W - OVERLAY_W) / 2

    if vert == "top":
        y = as_expr(margin)
    elif vert == "bottom":
        y = MAIN_H - OVERLAY_H if not margin else MAIN_H - OVERLAY_H - margin
    else:  # middle
        y = (MAIN_H - OVERLAY_H) / 2

    return x, y
