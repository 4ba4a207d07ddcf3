from IsoMesh.sdf_primitives import SphereSDF, TorusSDF
from IsoMesh.classification import Lattice
from IsoMesh.algorithms import Algorithm, extract_isosurface
from IsoMesh.mesh import export_surface_mesh

sphere = SphereSDF(center=[0, 0, 0], radius=0.6)
lattice = Lattice(32, [[-1, -1, -1], [1, 1, 1]])

for algorithm in Algorithm:
    mesh = extract_isosurface(sphere, lattice, algorithm)
    export_surface_mesh(f"sphere_{algorithm.value}.vtk", mesh)

torus = TorusSDF(center=[0, 0, 0], R=0.5, r=0.2)
mesh = extract_isosurface(
    torus,
    Lattice(48, [[-0.8, -0.8, -0.3], [0.8, 0.8, 0.3]]),
    Algorithm.ELASTIC_SURFACE_NETS,
    iterations=500,
)
export_surface_mesh("torus.obj", mesh)
