"""Activation layers for seqnet."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Optional

import numpy as np

from . import data
from .backprop import FLOAT, JACOBIAN, Backprop, Derivative
from .types import Array, LayerContext

ELEMENTWISE = "float"
WHOLE_VECTOR = "list"


def relu(n: float) -> float:
    return relu_with_threshold(n, 0.0)


def relu_with_threshold(n: float, threshold: float) -> float:
    return float(n) if n > threshold else float(threshold)


def relu_deriv(n: float, threshold: float = 0.0) -> float:
    return 1.0 if n > threshold else 0.0


def sigmoid(n: float) -> float:
    """Return the logistic function, saturated beyond +/-100."""

    if n > 100:
        return 1.0
    if n < -100:
        return 0.0
    return float(1.0 / (1.0 + np.exp(-n)))


def sigmoid_deriv(n: float) -> float:
    fx = sigmoid(n)
    return fx * (1.0 - fx)


def tanh(n: float) -> float:
    return float(np.tanh(n))


def tanh_deriv(n: float) -> float:
    return 1.0 - float(np.tanh(n)) ** 2


def softmax(values: Array) -> Array:
    values = np.asarray(values, dtype=np.float64)
    exps = np.exp(values - values.max())
    return exps / exps.sum()


def softmax_jacobian(values: Array) -> Array:
    s = softmax(values)
    return np.diag(s) - np.outer(s, s)


@dataclass(frozen=True)
class Activation:
    """Stateless layer applying ``activator`` and exporting ``derivative``.

    ``func_type`` is ``"float"`` when the activator maps one number to one
    number and ``"list"`` when it maps the whole input vector at once.
    Activations keep the width of their input, so once initialised they
    report the neighbouring width as both ``input_dims`` and ``output_dims``.
    """

    activator: Callable
    derivative: Derivative
    func_type: str = ELEMENTWISE
    name: Any = None
    width: Optional[int] = None
    output: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def custom(
        cls,
        activator: Callable,
        derivative: Callable,
        *,
        name: Any = "custom",
        func_type: str = ELEMENTWISE,
        derivative_type: str = FLOAT,
    ) -> "Activation":
        """Build an activation from user supplied pure functions."""

        if func_type not in {ELEMENTWISE, WHOLE_VECTOR}:
            raise ValueError(f"Unknown activation type: {func_type}")
        return cls(
            activator=activator,
            derivative=Derivative(derivative, derivative_type),
            func_type=func_type,
            name=name,
        )

    @property
    def input_dims(self) -> Optional[int]:
        return self.width

    @property
    def output_dims(self) -> Optional[int]:
        return self.width

    def initialize(self, context: LayerContext | None = None) -> "Activation":
        context = context or LayerContext()
        width = getattr(context.previous_layer, "output_dims", None) or getattr(
            context.next_layer, "input_dims", None
        )
        if not width or width == self.width:
            return self
        return replace(self, width=int(width))

    def generate_outputs(self, values: Array) -> Array:
        if self.func_type == WHOLE_VECTOR:
            return np.asarray(self.activator(values), dtype=np.float64)
        return np.vectorize(self.activator, otypes=[np.float64])(values)

    def feedforward(self, inputs: Any) -> tuple["Activation", Any]:
        data_type = data.infer_type(inputs)
        dims = data.shape(data_type, inputs)
        values = np.asarray(data.to_flat_list(data_type, inputs), dtype=np.float64)
        output = data.cast(data_type, self.generate_outputs(values).tolist(), dims)
        return replace(self, output=output), output

    def backprop(
        self,
        total_loss_pd: float,
        loss_pd: Any,
        props: Backprop,
    ) -> tuple["Activation", Any, Backprop]:
        return self, loss_pd, props.put_derivative(self.derivative)


Builder = Callable[..., Activation]


class ActivationRegistry:
    """Named activation builders."""

    def __init__(self) -> None:
        self._registry: Dict[str, Builder] = {}

    def register(self, name: str, builder: Builder) -> None:
        self._registry[name] = builder

    def get(self, name: str) -> Builder:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown activation {name!r}. Available activations: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def build(self, spec: Any) -> Activation:
        """Build from ``"name"`` or ``("name", *args)``."""

        if isinstance(spec, (tuple, list)):
            name, *args = spec
            activation = self.get(str(name))(*args)
            return replace(activation, name=(str(name), *args))
        return self.get(str(spec))()


REGISTRY = ActivationRegistry()


def _relu(threshold: float = 0.0) -> Activation:
    threshold = float(threshold)
    if threshold == 0.0:
        return Activation(relu, Derivative(relu_deriv), ELEMENTWISE, "relu")
    return Activation(
        lambda n: relu_with_threshold(n, threshold),
        Derivative(lambda n: relu_deriv(n, threshold)),
        ELEMENTWISE,
        "relu",
    )


def _sigmoid() -> Activation:
    return Activation(sigmoid, Derivative(sigmoid_deriv), ELEMENTWISE, "sigmoid")


def _tanh() -> Activation:
    return Activation(tanh, Derivative(tanh_deriv), ELEMENTWISE, "tanh")


def _softmax() -> Activation:
    # Known defect kept for compatibility: the slope is the tanh derivative,
    # not the softmax Jacobian. Use "softmax_jacobian" for the exact term.
    return Activation(softmax, Derivative(tanh_deriv), WHOLE_VECTOR, "softmax")


def _softmax_jacobian() -> Activation:
    return Activation(
        softmax, Derivative(softmax_jacobian, JACOBIAN), WHOLE_VECTOR, "softmax_jacobian"
    )


REGISTRY.register("relu", _relu)
REGISTRY.register("sigmoid", _sigmoid)
REGISTRY.register("tanh", _tanh)
REGISTRY.register("softmax", _softmax)
REGISTRY.register("softmax_jacobian", _softmax_jacobian)


def build(spec: Any) -> Activation:
    """Return the built-in activation named by ``spec``."""

    return REGISTRY.build(spec)


__all__ = [
    "Activation",
    "ActivationRegistry",
    "REGISTRY",
    "build",
    "relu",
    "relu_deriv",
    "relu_with_threshold",
    "sigmoid",
    "sigmoid_deriv",
    "softmax",
    "softmax_jacobian",
    "tanh",
    "tanh_deriv",
]
