from abc import ABC, abstractmethod
from typing import Any, Callable

import numpy as np
import torch

import IsoMesh

import logging

logger = logging.getLogger(IsoMesh.__name__)


class ScalarField(ABC):
    """Abstract base class for scalar fields sampled by the extraction
    algorithms.

    The isosurface is the zero level set of the field. Values greater than or
    equal to zero are classified as outside, negative values as inside. Signed
    distance functions follow this convention naturally.

    Parameters
    ----------
    geometric_dim : int, default 3
        Geometric dimension of the field.

    Notes
    -----
    Subclasses must implement:
    - ``_compute(queries)``: Calculate field values for query points
    - ``_get_domain_bounds()``: Return the bounding box of the geometry

    Examples
    --------
    >>> from IsoMesh.sdf_primitives import SphereSDF
    >>> import torch
    >>>
    >>> sphere = SphereSDF(center=[0, 0, 0], radius=1.0)
    >>> points = torch.tensor([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    >>> sphere(points)  # [-1.0, 1.0] (inside, outside)
    """

    def __init__(self, geometric_dim=3):
        self.geometric_dim = geometric_dim

    def __call__(self, queries: torch.Tensor) -> torch.Tensor:
        """Evaluate the field at given query points.

        Parameters
        ----------
        queries : torch.Tensor
            Query points of shape (N, 3).

        Returns
        -------
        torch.Tensor
            Field values of shape (N, 1).

        Raises
        ------
        ValueError
            If queries have invalid shape.
        RuntimeError
            If the field computation returns invalid output.
        """
        self._validate_input(queries)
        values = self._compute(queries)
        if values is None or values.shape != (queries.shape[0], 1):
            raise RuntimeError(
                f"Invalid field output for {queries.shape[0]} queries: "
                f"{None if values is None else tuple(values.shape)}"
            )
        return values

    def _validate_input(self, queries: torch.Tensor):
        if queries.ndim != 2 or queries.shape[1] != self.geometric_dim:
            raise ValueError(
                f"Expected input of shape (N, {self.geometric_dim}), got {queries.shape}"
            )

    @abstractmethod
    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        """Compute field values for query points.

        Parameters
        ----------
        queries : torch.Tensor
            Query points of shape (N, 3).

        Returns
        -------
        torch.Tensor
            Field values of shape (N, 1).
        """
        pass

    @abstractmethod
    def _get_domain_bounds(self) -> np.ndarray:
        """Return the bounding box of the field's domain as (2, 3) array."""
        pass

    def evaluate(self, points: np.ndarray) -> np.ndarray:
        """Evaluate the field on a numpy point array, returns shape (N,)."""
        queries = torch.as_tensor(np.asarray(points, dtype=np.float64))
        with torch.no_grad():
            values = self(queries)
        return values.detach().cpu().numpy().reshape(-1)

    def gradient(self, points: np.ndarray) -> np.ndarray:
        """Field gradient at the given points via autograd, shape (N, 3)."""
        queries = torch.tensor(np.asarray(points, dtype=np.float64), requires_grad=True)
        values = self(queries)
        (grad,) = torch.autograd.grad(values.sum(), queries)
        return grad.detach().cpu().numpy()

    def normals(self, points: np.ndarray) -> np.ndarray:
        """Unit gradients at the given points. Zero gradients stay zero."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            return np.zeros((0, 3))
        grad = self.gradient(points)
        length = np.linalg.norm(grad, axis=1, keepdims=True)
        return np.divide(grad, length, out=np.zeros_like(grad), where=length > 0)


class FunctionField(ScalarField):
    """Wraps a plain callback ``func(x, y, z, aux) -> float`` as a field.

    The callback is called once per query point. Gradients are computed with
    central differences since the callback is opaque to autograd.

    Parameters
    ----------
    func : callable
        Scalar callback, ``>= 0`` means outside.
    aux : any, optional
        Auxiliary argument forwarded to every call.
    bounds : array-like, optional
        Domain bounds returned by ``_get_domain_bounds``.
    step : float, default 1e-5
        Central difference step.
    """

    def __init__(
        self,
        func: Callable[[float, float, float, Any], float],
        aux: Any = None,
        bounds=None,
        step: float = 1e-5,
    ):
        super().__init__()
        if not callable(func):
            raise TypeError(f"Scalar field callback must be callable, got {func!r}")
        self.func = func
        self.aux = aux
        self.bounds = bounds
        self.step = step

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        points = queries.detach().cpu().tolist()
        values = [float(self.func(x, y, z, self.aux)) for x, y, z in points]
        return torch.tensor(values, dtype=queries.dtype, device=queries.device).reshape(
            -1, 1
        )

    def _get_domain_bounds(self) -> np.ndarray:
        if self.bounds is None:
            return np.array([[-1, -1, -1], [1, 1, 1]], dtype=np.float64)
        return np.asarray(self.bounds, dtype=np.float64)

    def gradient(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        grad = np.zeros_like(points)
        for axis in range(3):
            offset = np.zeros(3)
            offset[axis] = self.step
            grad[:, axis] = (
                self.evaluate(points + offset) - self.evaluate(points - offset)
            ) / (2 * self.step)
        return grad


def as_field(field, aux=None) -> ScalarField:
    """Return ``field`` as :class:`ScalarField`, wrapping plain callbacks."""
    if isinstance(field, ScalarField):
        if aux is not None:
            raise ValueError("Auxiliary data is only forwarded to plain callbacks")
        return field
    return FunctionField(field, aux)
