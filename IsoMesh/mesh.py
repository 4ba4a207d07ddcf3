import logging
import os
import pathlib

import gustaf as gus
import numpy as np
import vtk

from IsoMesh.errors import MeshIndexError
import IsoMesh

logger = logging.getLogger(IsoMesh.__name__)


class Mesh:
    """Growable polygon mesh with per-vertex normals.

    Faces may have any number of vertices (at least three). Every face index
    must refer to an existing vertex, which is checked when the face is added.

    Examples
    --------
    >>> mesh = Mesh()
    >>> a = mesh.add_vertex([0, 0, 0])
    >>> b = mesh.add_vertex([1, 0, 0])
    >>> c = mesh.add_vertex([0, 1, 0])
    >>> mesh.add_face([a, b, c])
    0
    >>> mesh.is_triangle_mesh
    True
    """

    def __init__(self):
        self._positions = []
        self._normals = []
        self._faces = []

    @classmethod
    def from_arrays(cls, vertices, faces, normals=None):
        mesh = cls()
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        if normals is None:
            normals = np.zeros_like(vertices)
        for position, normal in zip(vertices, np.asarray(normals, dtype=np.float64)):
            mesh.add_vertex(position, normal)
        for face in faces:
            mesh.add_face(face)
        return mesh

    def add_vertex(self, position, normal=(0.0, 0.0, 0.0)) -> int:
        position = np.asarray(position, dtype=np.float64).reshape(3)
        normal = np.asarray(normal, dtype=np.float64).reshape(3)
        self._positions.append(position)
        self._normals.append(normal)
        return len(self._positions) - 1

    def add_face(self, indices) -> int:
        indices = tuple(int(i) for i in indices)
        if len(indices) < 3:
            raise ValueError(f"A face needs at least 3 vertices, got {indices}")
        for index in indices:
            if not 0 <= index < len(self._positions):
                raise MeshIndexError(
                    f"Face {indices} references vertex {index} of "
                    f"{len(self._positions)}"
                )
        self._faces.append(indices)
        return len(self._faces) - 1

    @property
    def vertex_count(self) -> int:
        return len(self._positions)

    @property
    def face_count(self) -> int:
        return len(self._faces)

    @property
    def vertices(self) -> np.ndarray:
        if not self._positions:
            return np.zeros((0, 3))
        return np.array(self._positions)

    @property
    def normals(self) -> np.ndarray:
        if not self._normals:
            return np.zeros((0, 3))
        return np.array(self._normals)

    @normals.setter
    def normals(self, normals):
        normals = np.asarray(normals, dtype=np.float64)
        if normals.shape != (self.vertex_count, 3):
            raise ValueError(
                f"Expected normals of shape ({self.vertex_count}, 3), got {normals.shape}"
            )
        self._normals = list(normals)

    @property
    def faces(self) -> list[tuple[int, ...]]:
        return list(self._faces)

    @property
    def is_triangle_mesh(self) -> bool:
        return all(len(face) == 3 for face in self._faces)

    def face_normals(self) -> np.ndarray:
        """Newell normal of every face, its length is twice the face area."""
        vertices = self.vertices
        normals = np.zeros((self.face_count, 3))
        for i, face in enumerate(self._faces):
            points = vertices[list(face)]
            normals[i] = np.cross(points, np.roll(points, -1, axis=0)).sum(axis=0)
        return normals

    def compute_normals(self):
        """Set vertex normals to the normalized sum of adjacent face normals."""
        accumulated = np.zeros((self.vertex_count, 3))
        for face, normal in zip(self._faces, self.face_normals()):
            accumulated[list(face)] += normal
        length = np.linalg.norm(accumulated, axis=1, keepdims=True)
        self.normals = np.divide(
            accumulated, length, out=np.zeros_like(accumulated), where=length > 0
        )
        return self

    def triangulated(self) -> "Mesh":
        """Copy of the mesh with every polygon split into a triangle fan."""
        mesh = Mesh()
        mesh._positions = list(self._positions)
        mesh._normals = list(self._normals)
        for face in self._faces:
            for triangle in fan_triangulate(face):
                mesh._faces.append(triangle)
        return mesh

    def to_gus(self) -> gus.Faces:
        triangles = self.triangulated()
        faces = np.array(triangles.faces, dtype=np.int64).reshape(-1, 3)
        return gus.Faces(self.vertices, faces)

    def __repr__(self):
        return f"Mesh(vertices={self.vertex_count}, faces={self.face_count})"


def fan_triangulate(polygon) -> list[tuple[int, int, int]]:
    """Split a polygon into triangles sharing its first vertex."""
    return [
        (polygon[0], polygon[i], polygon[i + 1]) for i in range(1, len(polygon) - 1)
    ]


def _export_surface_mesh_vtk(mesh: Mesh, filename):
    vtk_points = vtk.vtkPoints()
    for v in mesh.vertices:
        vtk_points.InsertNextPoint(v.tolist())

    vtk_cells = vtk.vtkCellArray()
    for face in mesh.faces:
        polygon = vtk.vtkPolygon()
        polygon.GetPointIds().SetNumberOfIds(len(face))
        for i, index in enumerate(face):
            polygon.GetPointIds().SetId(i, index)
        vtk_cells.InsertNextCell(polygon)

    normals = vtk.vtkDoubleArray()
    normals.SetNumberOfComponents(3)
    normals.SetName("Normals")
    for n in mesh.normals:
        normals.InsertNextTuple(n.tolist())

    polydata = vtk.vtkPolyData()
    polydata.SetPoints(vtk_points)
    polydata.SetPolys(vtk_cells)
    polydata.GetPointData().SetNormals(normals)

    writer = vtk.vtkPolyDataWriter()
    writer.SetFileName(str(filename))
    writer.SetInputData(polydata)
    writer.Write()
    logger.info(f"Mesh saved to {filename}")


def export_surface_mesh(
    filename: str | bytes | os.PathLike[str] | os.PathLike[bytes],
    mesh: Mesh | gus.Faces,
):
    """Write a mesh to disk.

    ``.vtk`` files keep polygons of any arity and the vertex normals, every
    other suffix is written by gustaf through meshio as triangles.
    """
    export_filename = pathlib.Path(os.fsdecode(filename))
    ext = export_filename.suffix.lower()
    if isinstance(mesh, gus.Faces):
        mesh = Mesh.from_arrays(mesh.vertices, mesh.faces)
    match ext:
        case ".vtk":
            _export_surface_mesh_vtk(mesh, export_filename)
        case _:
            gus.io.meshio.export(export_filename, mesh.to_gus())
