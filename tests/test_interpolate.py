"""Tests for frame interpolation."""

import numpy as np
import pytest

from mdhist.trajectory import blend_frames, interpolated_length


class TestBlendFrames:
    """Tests for blend_frames."""

    def test_exact_amplitude_keeps_recorded_frames(self):
        """Test that recorded frames reappear every ninter - 1 frames."""
        values = np.array([[0.0, 1.0], [2.0, 5.0], [10.0, -3.0]])
        out = blend_frames(values, ninter=4)
        assert len(out) == 7
        for k in range(3):
            np.testing.assert_array_equal(out[3 * k], values[k])

    def test_linear_between_frames(self):
        """Test that inserted frames lie on the segment."""
        out = blend_frames(np.array([0.0, 3.0]), ninter=4)
        np.testing.assert_allclose(out, [0.0, 1.0, 2.0, 3.0])

    def test_partial_amplitude_keeps_duplicates(self):
        """Test lengths and content for an amplitude below 1."""
        values = np.array([0.0, 4.0, 8.0])
        out = blend_frames(values, ninter=3, amplitude=0.5)
        assert len(out) == 6
        # Each segment runs from its last frame halfway back to its first
        np.testing.assert_allclose(out, [2.0, 3.0, 4.0, 6.0, 7.0, 8.0])


class TestInterpolatedLength:
    """Tests for interpolated_length."""

    @pytest.mark.parametrize(
        "ntime, ninter, amplitude, expected",
        [(2, 2, 1.0, 2), (5, 3, 1.0, 9), (5, 3, 0.5, 12), (3, 10, 1.0 - 1e-12, 19)],
    )
    def test_lengths(self, ntime, ninter, amplitude, expected):
        """Test output lengths with and without duplicate removal."""
        assert interpolated_length(ntime, ninter, amplitude) == expected


class TestInterpolateSegment:
    """Tests for in-place interpolation of trajectories."""

    def test_md_trajectory(self, make_random_trajectory):
        """Test that every series is blended consistently."""
        traj = make_random_trajectory(n_frames=4)
        original = traj.copy()
        traj.interpolate(3)
        assert traj.ntime == 7
        assert traj.md.capacity == traj.ntime_available == 7
        for k in range(4):
            np.testing.assert_array_equal(traj.positions[2 * k], original.positions[k])
            np.testing.assert_array_equal(traj.velocities[2 * k], original.velocities[k])
            assert traj.time[2 * k] == original.time[k]
        np.testing.assert_allclose(
            traj.positions[1], 0.5 * (original.positions[0] + original.positions[1])
        )

    def test_generic_store(self, constant_trajectory):
        """Test interpolating a generic store."""
        store = constant_trajectory.store.copy()
        store.interpolate(5)
        assert store.ntime == 17
        np.testing.assert_allclose(np.diff(store.time), 25.0)

    def test_append_after_interpolation(self, constant_trajectory):
        """Test that the trajectory keeps growing after interpolation."""
        traj = constant_trajectory
        traj.interpolate(2)
        traj.append_frame(1000.0, np.zeros((4, 3)), np.eye(3) * 20.0)
        assert traj.ntime == 6

    @pytest.mark.parametrize(
        "ninter, amplitude", [(1, 1.0), (3, 0.0), (3, 1.5), (3, -0.2)]
    )
    def test_invalid_parameters(self, constant_trajectory, ninter, amplitude):
        """Test that invalid parameters leave the trajectory unmodified."""
        with pytest.raises(ValueError):
            constant_trajectory.interpolate(ninter, amplitude)
        assert constant_trajectory.ntime == 5

    def test_single_frame(self, build_trajectory):
        """Test that one frame cannot be interpolated."""
        traj = build_trajectory(np.zeros((1, 4, 3)))
        with pytest.raises(ValueError, match="at least 2 frames"):
            traj.interpolate(3)
