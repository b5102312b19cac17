"""Feedforward decision network.

The simulation only talks to a controller through the ``Decidable``
protocol, so the network's internals can be swapped without touching the
tick loop.

Flattened parameter layout, layer by layer: the weight matrix row-major
(outputs x inputs) followed by that layer's bias vector. ``extract`` and
``rebuild`` share this layout, so ``rebuild(extract())`` is an identity.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

import numpy as np


class Decidable(Protocol):
    def propagate(self, features: Sequence[float]) -> Sequence[float]: ...

    def rebuild(self, weights: Sequence[float]) -> None: ...

    def extract(self) -> List[float]: ...


def parameter_count(topology: Sequence[int]) -> int:
    """Number of weights and biases a network of ``topology`` carries."""
    return sum(fan_out * fan_in + fan_out for fan_in, fan_out in zip(topology[:-1], topology[1:]))


class FeedForwardNetwork:
    """Dense network with tanh hidden layers and a linear output layer.

    A fresh network has every parameter set to zero; load weights with
    ``rebuild``.
    """

    def __init__(self, topology: Sequence[int]):
        sizes = tuple(int(size) for size in topology)
        if len(sizes) < 2 or any(size < 1 for size in sizes):
            raise ValueError(f"Invalid network topology: {list(topology)}")
        self._topology = sizes
        self._weights: List[np.ndarray] = []
        self._biases: List[np.ndarray] = []
        for fan_in, fan_out in zip(sizes[:-1], sizes[1:]):
            self._weights.append(np.zeros((fan_out, fan_in), dtype=np.float64))
            self._biases.append(np.zeros(fan_out, dtype=np.float64))

    @property
    def topology(self) -> tuple[int, ...]:
        return self._topology

    def propagate(self, features: Sequence[float]) -> List[float]:
        activation = np.asarray(features, dtype=np.float64)
        if activation.shape != (self._topology[0],):
            raise ValueError(f"Expected {self._topology[0]} inputs, got {activation.size}")
        last = len(self._weights) - 1
        for index, (weights, bias) in enumerate(zip(self._weights, self._biases)):
            activation = weights @ activation + bias
            if index < last:
                activation = np.tanh(activation)
        return activation.tolist()

    def rebuild(self, weights: Sequence[float]) -> None:
        flat = np.asarray(weights, dtype=np.float64)
        expected = parameter_count(self._topology)
        if flat.ndim != 1 or flat.size != expected:
            raise ValueError(f"Expected {expected} parameters, got {flat.size}")
        offset = 0
        for layer, (matrix, bias) in enumerate(zip(self._weights, self._biases)):
            size = matrix.size
            self._weights[layer] = flat[offset : offset + size].reshape(matrix.shape).copy()
            offset += size
            self._biases[layer] = flat[offset : offset + bias.size].copy()
            offset += bias.size

    def extract(self) -> List[float]:
        parts = []
        for matrix, bias in zip(self._weights, self._biases):
            parts.append(matrix.ravel())
            parts.append(bias)
        return np.concatenate(parts).tolist()
