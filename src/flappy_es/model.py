"""Fixed-topology feedforward network used as a bird's brain.

A :class:`Model` is defined by its layer widths ``L = [L0, ..., Ln]``.
For every layer ``l`` in ``1..n`` it holds

* ``weights[l-1]`` with shape ``(L[l], L[l-1])``
* ``biases[l-1]`` with shape ``(L[l],)``

Hidden layers use ReLU, the output layer is linear: the output is an
unbounded decision value (the bird flaps when it is positive), not a
probability.

Models are never mutated after they are handed to an agent.  Mutation
always produces a new model via :meth:`Model.clone_with_noise`.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .exceptions import ConfigurationError, ShapeMismatch
from .noise import RandomNoise


def relu(x: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.maximum(0.0, x)


class Model:
    """Feedforward network with one weight matrix and bias per layer.

    Args:
        layer_sizes: Layer widths, input layer first.
        activation: Elementwise activation for the hidden layers.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: Callable[[NDArray[np.float64]], NDArray[np.float64]] = relu,
    ):
        sizes = tuple(int(width) for width in layer_sizes)
        if len(sizes) < 2 or any(width < 1 for width in sizes):
            raise ConfigurationError(
                f"invalid layer sizes: {list(layer_sizes)}"
            )
        self.layer_sizes: Tuple[int, ...] = sizes
        self.activation = activation
        self.weights: List[NDArray[np.float64]] = []
        self.biases: List[NDArray[np.float64]] = []
        self.zero()

    # ------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------

    @property
    def num_layers(self) -> int:
        """Number of weight layers (``len(layer_sizes) - 1``)."""
        return len(self.layer_sizes) - 1

    def weight_shape(self, layer: int) -> Tuple[int, int]:
        return (self.layer_sizes[layer + 1], self.layer_sizes[layer])

    def bias_shape(self, layer: int) -> Tuple[int]:
        return (self.layer_sizes[layer + 1],)

    def fan_in(self, layer: int) -> int:
        return self.layer_sizes[layer]

    @property
    def num_parameters(self) -> int:
        return sum(w.size + b.size for w, b in zip(self.weights, self.biases))

    # ------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------

    def zero(self) -> None:
        """Reset every weight and bias to zero."""
        self.weights = [
            np.zeros(self.weight_shape(layer)) for layer in range(self.num_layers)
        ]
        self.biases = [
            np.zeros(self.bias_shape(layer)) for layer in range(self.num_layers)
        ]

    def randomize_weights(self, sampler: Callable[[], float]) -> None:
        """Draw every weight from ``sampler`` with He scaling.

        Each draw is multiplied by ``sqrt(2 / fan_in)`` where ``fan_in``
        is the width of the layer feeding the weight.
        """
        for layer, w in enumerate(self.weights):
            scale = np.sqrt(2.0 / self.fan_in(layer))
            draws = np.array([sampler() for _ in range(w.size)], dtype=np.float64)
            self.weights[layer] = draws.reshape(w.shape) * scale

    def randomize_biases(self, sampler: Callable[[], float]) -> None:
        """Draw every bias from ``sampler``, unscaled."""
        for layer, b in enumerate(self.biases):
            draws = np.array([sampler() for _ in range(b.size)], dtype=np.float64)
            self.biases[layer] = draws.reshape(b.shape)

    # ------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------

    def copy(self) -> "Model":
        """Exact copy with independent parameter arrays."""
        clone = Model(self.layer_sizes, self.activation)
        clone.weights = [w.copy() for w in self.weights]
        clone.biases = [b.copy() for b in self.biases]
        return clone

    def clone_with_noise(self, eps: float, noise: RandomNoise) -> "Model":
        """Return a new model equal to this one plus noise of size ``eps``.

        With probability 0.5 every weight matrix and every bias vector
        receives its own directional perturbation of norm ``eps``;
        otherwise every scalar receives independent Gaussian noise.
        """
        if noise.use_directional():
            perturb = noise.directional
        else:
            perturb = noise.gaussian

        clone = Model(self.layer_sizes, self.activation)
        clone.weights = [w + perturb(w.shape, eps) for w in self.weights]
        clone.biases = [b + perturb(b.shape, eps) for b in self.biases]
        return clone

    # ------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------

    def forward(self, x: Sequence[float]) -> NDArray[np.float64]:
        """Evaluate the network on input vector ``x``.

        Raises:
            ShapeMismatch: If ``x`` is not a vector of length
                ``layer_sizes[0]``.
        """
        a = np.asarray(x, dtype=np.float64)
        if a.shape != (self.layer_sizes[0],):
            raise ShapeMismatch(
                f"expected input of shape ({self.layer_sizes[0]},), "
                f"got {a.shape}"
            )

        z = a
        last = self.num_layers - 1
        for layer, (w, b) in enumerate(zip(self.weights, self.biases)):
            z = w @ a + b
            if layer < last:
                a = self.activation(z)
        return z

    def same_parameters(self, other: "Model") -> bool:
        """True if ``other`` has the same shapes and parameter values."""
        if self.layer_sizes != other.layer_sizes:
            return False
        return all(
            np.array_equal(mine, theirs)
            for mine, theirs in zip(
                self.weights + self.biases, other.weights + other.biases
            )
        )

    def __repr__(self) -> str:
        return f"Model(layer_sizes={list(self.layer_sizes)})"
