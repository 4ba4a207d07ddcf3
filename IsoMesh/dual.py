"""
Dual Mesh
=========

Builds the topological dual of a polygon mesh: every input face becomes a
vertex at its centroid and every input vertex with at least three incident
faces becomes a polygon joining the centroids of those faces.

The faces around a vertex are ordered counter-clockwise about the vertex
normal, so a mesh with outward normals yields a dual with outward winding.
"""

import logging
import math

import numpy as np

import IsoMesh
from IsoMesh.errors import IncidenceOverflowError
from IsoMesh.mesh import Mesh

logger = logging.getLogger(IsoMesh.__name__)

DEFAULT_MAX_INCIDENT_FACES = 16


def incident_faces(mesh: Mesh, max_incident_faces: int = DEFAULT_MAX_INCIDENT_FACES):
    """Faces touching each vertex, in order of face index.

    Raises
    ------
    IncidenceOverflowError
        If a vertex touches more than ``max_incident_faces`` faces.
    """
    incidence = [[] for _ in range(mesh.vertex_count)]
    for face_index, face in enumerate(mesh.faces):
        for vertex in dict.fromkeys(face):
            if len(incidence[vertex]) == max_incident_faces:
                raise IncidenceOverflowError(
                    f"Vertex {vertex} has more than {max_incident_faces} incident faces"
                )
            incidence[vertex].append(face_index)
    return incidence


def _normalize(vector):
    length = np.linalg.norm(vector)
    return vector / length if length > 0 else vector


def order_around(center, normal, midpoints) -> np.ndarray:
    """Sort points counter-clockwise about ``normal`` through ``center``.

    The first point is the reference. Each point is turned into a hand vector
    ``normal x (point - center)`` and its angle to the reference hand vector
    is measured in ``[0, 2 pi)``.

    Returns
    -------
    np.ndarray
        Indices into ``midpoints`` in ascending angle order.
    """
    hands = np.cross(normal, midpoints - center)
    lengths = np.linalg.norm(hands, axis=1, keepdims=True)
    hands = np.divide(hands, lengths, out=np.zeros_like(hands), where=lengths > 0)
    reference = hands[0]
    crossed = np.cross(reference, hands)
    angles = np.arctan2(np.linalg.norm(crossed, axis=1), hands @ reference)
    angles = np.where(crossed @ normal < 0, -angles, angles)
    angles = np.where(angles < 0, angles + 2 * math.pi, angles)
    return np.argsort(angles, kind="stable")


def dual_mesh(mesh: Mesh, max_incident_faces: int = DEFAULT_MAX_INCIDENT_FACES) -> Mesh:
    """Compute the dual of a polygon mesh.

    Parameters
    ----------
    mesh : Mesh
        Input polygon mesh. Vertex normals define the orientation of the dual
        faces, zero normals fall back to the area-weighted face normals.
    max_incident_faces : int, default DEFAULT_MAX_INCIDENT_FACES
        Upper bound of faces around one vertex.

    Returns
    -------
    Mesh
        Dual mesh with one vertex per input face and one face per input
        vertex that has three or more incident faces.
    """
    incidence = incident_faces(mesh, max_incident_faces)
    positions = mesh.vertices
    normals = mesh.normals
    face_normals = mesh.face_normals()

    dual = Mesh()
    centroids = np.zeros((mesh.face_count, 3))
    for face_index, face in enumerate(mesh.faces):
        corners = list(face)
        centroids[face_index] = positions[corners].mean(axis=0)
        dual.add_vertex(
            centroids[face_index], _normalize(normals[corners].mean(axis=0))
        )

    skipped = 0
    for vertex, faces in enumerate(incidence):
        if len(faces) < 3:
            skipped += 1
            continue
        normal = normals[vertex]
        if not np.any(normal):
            normal = face_normals[faces].sum(axis=0)
        if np.any(normal):
            order = order_around(
                positions[vertex], _normalize(normal), centroids[faces]
            )
        else:
            logger.warning(f"Vertex {vertex} has no normal, keeping face order")
            order = range(len(faces))
        dual.add_face([faces[i] for i in order])

    logger.debug(
        f"Dual of {mesh!r} has {dual.face_count} faces, "
        f"skipped {skipped} low valence vertices"
    )
    return dual
