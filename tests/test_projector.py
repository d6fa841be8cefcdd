"""Tests for the PolarProjector and ProjectionConfig."""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from audio_terrain.errors import InvalidGeometryError
from audio_terrain.noise import NoiseField
from audio_terrain.palette import ring_palette
from audio_terrain.projector import PolarProjector, ProjectionConfig, ring_candidates
from audio_terrain.terrain import HeightGrid, ScrollState


def _flat_grid(cols, rows, elevation=0.0):
    """stand-in grid with constant elevation."""
    return SimpleNamespace(cols=cols, rows=rows, elevations=np.full((cols, rows), elevation))


CONFIG = ProjectionConfig(center_x=100.0, center_y=80.0, zoom=1.5, radius=30.0, hollow_radius=10.0, rotation=0.25)


class TestProjectionConfig:
    """Tests for ProjectionConfig.for_viewport."""

    def test_for_viewport(self) -> None:
        """test that radius is a third of the short side and hollow a third of that."""
        # when
        config = ProjectionConfig.for_viewport(900, 600)

        # then
        assert (config.center_x, config.center_y) == (450.0, 300.0)
        assert config.radius == pytest.approx(200.0)
        assert config.hollow_radius == pytest.approx(200.0 / 3.0)

    @pytest.mark.parametrize("width, height", [(0, 100), (100, -5)])
    def test_invalid_viewport(self, width, height) -> None:
        with pytest.raises(InvalidGeometryError):
            ProjectionConfig.for_viewport(width, height)


class TestRingCandidates:
    """Tests for ring_candidates."""

    def test_closure(self) -> None:
        """test that a ring has cols + 1 candidates and closes on column 0."""
        # when
        candidates = ring_candidates(8, 4, 1, 30.0)

        # then
        assert len(candidates) == 9
        assert candidates[0][0] == candidates[-1][0] == 0.0

    def test_outer_rows_have_larger_radius(self) -> None:
        """test expansion semantics: row 0 is the outer ring."""
        radii = [ring_candidates(4, 4, row, 30.0)[0][1] for row in range(4)]
        assert radii == [22.5, 15.0, 7.5, 0.0]

    def test_angles_evenly_spaced(self) -> None:
        candidates = ring_candidates(4, 2, 0, 10.0)
        assert [theta for theta, _ in candidates] == pytest.approx(
            [0.0, math.pi / 2, math.pi, 3 * math.pi / 2, 0.0])


class TestProject:
    """Tests for PolarProjector.project."""

    def test_hollow_radius_skips_vertices(self) -> None:
        """test that rings inside the hollow emit nothing."""
        # given
        grid = _flat_grid(4, 4)

        # when
        rings = PolarProjector().project(grid, CONFIG)

        # then (radii are 22.5, 15, 7.5 and 0 against a hollow of 10)
        assert [len(points) for points in rings] == [5, 5, 0, 0]

    def test_radius_equal_to_hollow_is_kept(self) -> None:
        """test that only r strictly below the hollow radius is skipped."""
        config = ProjectionConfig(0.0, 0.0, radius=30.0, hollow_radius=15.0)
        rings = PolarProjector().project(_flat_grid(4, 4), config)
        assert [len(points) for points in rings] == [5, 5, 0, 0]

    def test_loop_closes(self) -> None:
        """test that first and last vertex coincide."""
        rings = PolarProjector().project(_flat_grid(6, 3, elevation=4.0), CONFIG)
        assert rings[0][0] == rings[0][-1]

    def test_elevation_lifts_points(self) -> None:
        """test that elevation is subtracted from y only."""
        # given
        flat = PolarProjector().project(_flat_grid(4, 4), CONFIG)
        raised = PolarProjector().project(_flat_grid(4, 4, elevation=5.0), CONFIG)

        # then
        for (fx, fy), (rx, ry) in zip(flat[0], raised[0]):
            assert rx == fx
            assert ry == pytest.approx(fy - 5.0)

    def test_point_positions(self) -> None:
        """test the cartesian conversion of the outer ring."""
        rings = PolarProjector().project(_flat_grid(4, 4), CONFIG)
        assert rings[0][1] == pytest.approx((0.0, 22.5))
        assert rings[0][2] == pytest.approx((-22.5, 0.0))


class TestProjectAndDraw:
    """Tests for PolarProjector.project_and_draw."""

    def test_call_sequence(self, recording_surface) -> None:
        """test clear, one transform, one path per row and a final reset."""
        # when
        PolarProjector().project_and_draw(_flat_grid(4, 4), recording_surface, CONFIG)

        # then
        names = recording_surface.names()
        assert names[0] == "clear"
        assert recording_surface.calls[1] == ("set_transform", (100.0, 80.0), 1.5, 0.25)
        assert names[-1] == "reset_transform"
        assert names.count("begin_path") == 4
        assert names.count("stroke") == 4
        assert names.count("line_to") == 10
        assert names.count("set_transform") == 1

    def test_outer_ring_drawn_first(self, recording_surface) -> None:
        """test draw order matches row order (outer to inner)."""
        PolarProjector().project_and_draw(_flat_grid(4, 4), recording_surface, CONFIG)
        first_x, first_y = recording_surface.points()[0]
        assert (first_x, first_y) == pytest.approx((22.5, 0.0))

    def test_transform_reset_when_stroke_fails(self, recording_surface) -> None:
        """test that the transform never leaks into the next frame."""
        # given
        def broken_stroke():
            raise RuntimeError("surface lost")
        recording_surface.stroke = broken_stroke

        # when / then
        with pytest.raises(RuntimeError):
            PolarProjector().project_and_draw(_flat_grid(4, 4), recording_surface, CONFIG)
        assert recording_surface.names()[-1] == "reset_transform"

    def test_palette_sets_ring_colors(self, recording_surface) -> None:
        """test that surfaces supporting colours get one per ring."""
        # given
        colors = []
        recording_surface.set_stroke_color = colors.append
        palette = ring_palette(3, (200, 200, 200), (0, 0, 0))

        # when
        PolarProjector(palette).project_and_draw(_flat_grid(5, 3), recording_surface, CONFIG)

        # then
        assert colors == [(200, 200, 200), (100, 100, 100), (0, 0, 0)]


class TestEndToEnd:
    """The 4x4 scenario: noise + grid + projector give a reproducible vertex stream."""

    @staticmethod
    def _run(noise, surface):
        grid = HeightGrid(4, 4)
        grid.update(noise, ScrollState(flying=0.0, depth=0.0), [0.0, 0.0, 0.0, 0.0])
        config = ProjectionConfig(center_x=0.0, center_y=0.0, radius=30.0, hollow_radius=10.0)
        PolarProjector().project_and_draw(grid, surface, config)
        return surface.points()

    def test_repeatable_vertex_stream(self, noise, recording_surface, surface_factory, fixed_table) -> None:
        """test that repeated runs emit exactly the same (x, y) pairs."""
        # when
        first = self._run(noise, recording_surface)
        second = self._run(NoiseField(permutation_table=fixed_table), surface_factory())

        # then
        assert len(first) == 10
        assert first == second
