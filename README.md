# aidatt

Tools for charged-particle tracks described as helices in a solenoidal
magnetic field. Track parameters use the L3 convention
(omega, tan(lambda), phi0, d0, z0) with a reference point and a 5x5
covariance matrix. Lengths are in cm, momenta in GeV; the only dependency
is numpy.

## Modules

- `aidatt.track`: `TrackParameters` (parameters, covariance, reference point,
  indexable by `HelixParameter`), `FitResults`, the index enums
  `HelixParameter` and `PerigeeParameter`, and the accessors
  `calculate_omega`, `calculate_curvature`, `calculate_tan_lambda`,
  `calculate_lambda`, `calculate_phi0`, `calculate_d0`, `calculate_z0`.
  These accept a `TrackParameters` or a plain sequence of five values.
- `aidatt.fields`: `ConstantSolenoidBField`, a field that is the same
  everywhere with only a z component (`field`, `field_at`, `bx`, `by`, `bz`).
- `aidatt.intersections`: `Circle`, `StraightLine` and the analytic
  intersections `intersect_circle_circle`, `intersect_circle_straight_line`
  and `intersect_straight_line_straight_line`, each returning a list of
  `(x, y)` points. A negative radius, a negative line distance or a zero
  normal raises `ValueError`.
- `aidatt.helix`: circle radius and centre, point of closest approach,
  azimuth and path length at a point, positions, tangent and momentum at a
  path length (`point_at`, `calculate_tangent`, `momentum_at`,
  `momentum_at_pca`; the momentum functions take the field `bz` as an
  argument), `calculate_start_helix` through three points, and
  `move_helix_to`, which moves a track to a new reference point in place and
  can carry the covariance along.
- `aidatt.surfaces`: `Surface` (built with `Surface.z_cylinder`,
  `Surface.cone`, `Surface.z_plane`, `Surface.z_disk`, `Surface.plane`),
  `SurfaceType`, `Intersection`, and the functions
  `intersect_with_surface`, `intersect_with_z_cylinder`,
  `intersect_with_z_plane`, `intersect_with_z_disk`, `intersect_with_z_cone`
  and `intersect_with_surface_newton`. They return an `Intersection`
  (`s`, `point`) or `None`; `mode` picks the negative (-1), positive (+1) or
  shortest (0) solution.
- `aidatt.jacobians`: `calculate_q_over_p`, the Jacobians
  `curvilinear_to_perigee_jacobian`, `perigee_to_l3_jacobian`,
  `l3_to_perigee_jacobian`, `curvilinear_to_l3_jacobian`, the local
  curvilinear axes `local_curvilinear_system`, and the 2x2
  `local_to_measurement_projection` for one- or two-dimensional
  measurements.
- `aidatt.propagation`: the abstract `Propagation` with
  `AnalyticalPropagation` (exact helix in a constant field) and
  `SimplifiedPropagation` (quadratic in the arc length); `jacobian(...)`
  returns the 5x5 propagation matrix in curvilinear parameters.
- `aidatt.lcio`: `TrackState`, an in-memory track state in millimetres with
  the LCIO parameter order and lower-triangle covariance, and the conversions
  `read_track_state` and `create_track_state`.
- `aidatt.materials`: `Material`, `EnergyLoss`, the multiple-scattering
  angle (`compute_qms`, `compute_qms_for_helix`), `compute_bethe_bloch`, and
  energy loss through a surface (`compute_energy_loss`,
  `compute_energy_loss_for_track`). The default mass is the pion mass
  `PION_MASS`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
import math
from aidatt.track import TrackParameters
from aidatt.helix import calculate_radius, calculate_x_from_s, calculate_y_from_s

track = TrackParameters([0.1, 1.0, math.pi / 4, 0.0, 0.0])
print(calculate_radius(track))              # 10.0
s = 10.0 * math.pi / 4
print(calculate_x_from_s(s, track))         # about 7.0711
print(calculate_y_from_s(s, track))         # about 2.9289
```

```python
from aidatt.intersections import Circle, intersect_circle_circle

points = intersect_circle_circle(Circle(0.0, 0.0, 1.0), Circle(1.0, 1.0, 1.0))
print(points)   # approximately [(1.0, 0.0), (0.0, 1.0)]
```

```python
from aidatt.surfaces import Surface, intersect_with_surface

barrel = Surface.z_cylinder(radius=5.0, half_length=20.0)
hit = intersect_with_surface(barrel, track, mode=1)
if hit is not None:
    print(hit.s, hit.point)
```

## What it does not do

The package is a library of calculations. It contains no track fitter, no
detector geometry description or global field map (fields and surfaces are
built by the caller, and `bz` is passed in explicitly), no reading or
writing of event files (a `TrackState` lives only in memory), and no
command-line program.