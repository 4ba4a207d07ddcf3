from IsoMesh.SDF import ScalarField
import numpy as np
import torch


def _bounds(lower=-1.0, upper=1.0):
    return np.array([[lower] * 3, [upper] * 3], dtype=np.float64)


class SphereSDF(ScalarField):
    def __init__(self, center, radius):
        super().__init__()
        self.center = torch.tensor(center, dtype=torch.float64)
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        center = self.center.to(queries)
        return (torch.linalg.norm(queries - center, dim=1) - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> np.ndarray:
        center = self.center.numpy()
        return np.stack([center - 1.1 * self.r, center + 1.1 * self.r])


class CylinderSDF(ScalarField):
    def __init__(self, point, axis, radius):
        super().__init__()
        self.point = torch.tensor(point, dtype=torch.float64)
        if axis not in ("x", "y", "z"):
            raise ValueError("Axis must be 'x', 'y', or 'z'")
        self.axis = axis
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        diff = queries - self.point.to(queries)
        keep = [i for i, name in enumerate("xyz") if name != self.axis]
        dist = torch.linalg.norm(diff[:, keep], dim=1)
        return (dist - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> np.ndarray:
        return _bounds()


class TorusSDF(ScalarField):
    def __init__(self, center, R, r):
        super().__init__()
        self.center = torch.tensor(center, dtype=torch.float64)
        self.R = R
        self.r = r

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        p = queries - self.center.to(queries)
        q = torch.stack(
            [torch.sqrt(p[:, 0] ** 2 + p[:, 1] ** 2) - self.R, p[:, 2]], dim=1
        )
        dist = torch.linalg.norm(q, dim=1) - self.r
        return dist.reshape(-1, 1)

    def _get_domain_bounds(self) -> np.ndarray:
        extent = self.R + self.r
        center = self.center.numpy()
        return np.stack(
            [center - [extent, extent, self.r], center + [extent, extent, self.r]]
        )


class PlaneSDF(ScalarField):
    """Signed distance to a plane, positive on the side the normal points to."""

    def __init__(self, point, normal):
        super().__init__()
        self.point = torch.tensor(point, dtype=torch.float64)
        self.normal = torch.tensor(normal, dtype=torch.float64)
        self.normal = self.normal / torch.linalg.norm(self.normal)

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        return torch.matmul(
            queries - self.point.to(queries), self.normal.to(queries)
        ).reshape(-1, 1)

    def _get_domain_bounds(self) -> np.ndarray:
        return _bounds()
