"""Tests for merging trajectory segments."""

import logging

import numpy as np
import pytest

from mdhist.trajectory import MDTrajectory, TrajectoryStore, match_atoms, merge_segments


def reversed_copy(traj, time_offset):
    """Same atoms listed in reverse order, shifted in time."""
    order = np.arange(traj.n_atoms)[::-1]
    species = traj.species_of_atom[order]
    out = MDTrajectory.create(species, traj.atomic_numbers)
    for itime in range(traj.ntime):
        out.append_frame(
            traj.time[itime] + time_offset,
            traj.positions[itime][order],
            traj.cell[itime],
            velocities=traj.velocities[itime][order],
            temperature=traj.temperature[itime],
        )
    return out


def without_velocities(traj):
    """Same frames and temperatures, but no recorded velocities."""
    out = MDTrajectory.create(traj.species_of_atom, traj.atomic_numbers, has_velocities=False)
    for itime in range(traj.ntime):
        out.append_frame(
            traj.time[itime],
            traj.positions[itime],
            traj.cell[itime],
            temperature=traj.temperature[itime],
        )
    return out


class TestMatchAtoms:
    """Tests for atom reconciliation."""

    def test_identity(self, constant_trajectory):
        """Test that identical orderings map to themselves."""
        order = match_atoms(constant_trajectory.store, constant_trajectory.store)
        np.testing.assert_array_equal(order, np.arange(4))

    def test_reversed(self, make_random_trajectory):
        """Test recovering a reversed ordering species by species."""
        traj = make_random_trajectory(n_frames=3, species=(0, 1, 0, 1))
        other = reversed_copy(traj, 0.0)
        order = match_atoms(traj.store, other.store)
        np.testing.assert_array_equal(order, [3, 2, 1, 0])

    def test_different_species(self):
        """Test that different compositions cannot be mapped."""
        a = TrajectoryStore([0, 0], [1])
        b = TrajectoryStore([0, 0], [8])
        for store in (a, b):
            store.append_frame(0.0, np.zeros((2, 3)), np.eye(3))
        with pytest.raises(ValueError, match="Unable to map structures"):
            match_atoms(a, b)


class TestMergeSegments:
    """Tests for merge_segments."""

    def test_self_merge_doubles(self, make_random_trajectory):
        """Test that merging a trajectory with itself doubles it."""
        traj = make_random_trajectory(n_frames=6)
        original = traj.copy()
        traj.merge(traj)
        assert traj.ntime == 12
        np.testing.assert_array_equal(traj.positions[:6], original.positions)
        np.testing.assert_array_equal(traj.velocities[:6], original.velocities)
        np.testing.assert_array_equal(traj.positions[6:], original.positions)
        np.testing.assert_array_equal(traj.temperature[6:], original.temperature)

    def test_entropy_is_concatenated(self, constant_trajectory):
        """Test that electronic entropy follows its own series."""
        first = constant_trajectory
        first.md.frames["entropy"][: first.ntime] = 1.0
        second = first.copy()
        second.md.frames["entropy"][: second.ntime] = 2.0
        second.md.frames["kinetic_energy"][: second.ntime] = 5.0
        first.merge(second)
        np.testing.assert_array_equal(first.entropy, [1.0] * 5 + [2.0] * 5)

    def test_reconcile_reversed_order(self, make_random_trajectory):
        """Test that reconciliation restores the base atom order."""
        first = make_random_trajectory(n_frames=3, species=(0, 1, 0, 1))
        second = reversed_copy(first, first.time[-1] + first.dtion)
        first.merge(second, reconcile=True)
        assert first.ntime == 6
        np.testing.assert_array_equal(first.velocities[3:], first.velocities[:3])
        np.testing.assert_array_equal(first.positions[3:], first.positions[:3])

    def test_try_to_map_default(self, make_random_trajectory):
        """Test that the base setting enables reconciliation by default."""
        first = make_random_trajectory(n_frames=3, species=(0, 1, 0, 1))
        first.store.try_to_map = True
        second = reversed_copy(first, 0.0)
        first.merge(second)
        np.testing.assert_array_equal(first.velocities[3:], first.velocities[:3])

    def test_species_mismatch_without_reconcile(self, make_random_trajectory):
        """Test that atom-by-atom species must match without reconciliation."""
        first = make_random_trajectory(n_frames=3, species=(0, 1, 0, 1))
        second = reversed_copy(first, 0.0)
        with pytest.raises(ValueError, match="reconcile=True"):
            merge_segments(first, second, reconcile=False)
        assert first.ntime == 3

    def test_atom_count_mismatch_leaves_base(self, constant_trajectory, build_trajectory):
        """Test that a failed merge does not modify the base."""
        other = build_trajectory(np.zeros((2, 3, 3)), species=(0, 0, 1))
        before = constant_trajectory.copy()
        with pytest.raises(ValueError):
            constant_trajectory.merge(other)
        assert constant_trajectory.ntime == before.ntime
        np.testing.assert_array_equal(constant_trajectory.positions, before.positions)

    def test_generic_into_md_zero_fills(self, constant_trajectory):
        """Test that MD observables of appended generic frames are zero."""
        store = constant_trajectory.store.copy()
        constant_trajectory.merge(store)
        assert constant_trajectory.ntime == 10
        np.testing.assert_array_equal(constant_trajectory.temperature[5:], 0.0)
        np.testing.assert_array_equal(constant_trajectory.velocities[5:], 0.0)
        np.testing.assert_array_equal(
            constant_trajectory.positions[5:], constant_trajectory.positions[:5]
        )

    def test_velocities_only_in_appended(self, constant_trajectory):
        """Test that a base without velocities gets zeros for its own frames."""
        base = without_velocities(constant_trajectory)
        base.merge(constant_trajectory)
        assert base.has_velocities
        assert base.ntime == 10
        np.testing.assert_array_equal(base.velocities[:5], 0.0)
        np.testing.assert_array_equal(base.velocities[5:], constant_trajectory.velocities)
        np.testing.assert_array_equal(base.temperature[5:], 300.0)

    def test_velocities_only_in_base(self, constant_trajectory):
        """Test that appended frames without velocities get zeros."""
        expected = constant_trajectory.velocities.copy()
        constant_trajectory.merge(without_velocities(constant_trajectory))
        assert constant_trajectory.ntime == 10
        np.testing.assert_array_equal(constant_trajectory.velocities[:5], expected)
        np.testing.assert_array_equal(constant_trajectory.velocities[5:], 0.0)
        np.testing.assert_array_equal(constant_trajectory.temperature[5:], 300.0)

    def test_md_into_generic(self, constant_trajectory):
        """Test that a generic base only takes generic series."""
        store = constant_trajectory.store.copy()
        store.merge(constant_trajectory)
        assert store.ntime == 10
        assert not hasattr(store, "velocities")

    def test_warns_on_time_step(self, constant_trajectory, build_trajectory, caplog):
        """Test the frame spacing consistency warning."""
        other = build_trajectory(
            np.repeat(constant_trajectory.velocities[:1], 3, axis=0),
            dtion=50.0,
            temperature=300.0,
        )
        with caplog.at_level(logging.WARNING, logger="mdhist.trajectory.merge"):
            constant_trajectory.merge(other)
        assert "Frame spacings differ" in caplog.text
        assert constant_trajectory.ntime == 8

    def test_warns_on_temperature(self, constant_trajectory, caplog):
        """Test the mean temperature consistency warning."""
        other = constant_trajectory.copy()
        other.md.frames["temperature"][: other.ntime] = 1000.0
        with caplog.at_level(logging.WARNING, logger="mdhist.trajectory.merge"):
            constant_trajectory.merge(other)
        assert "Temperatures seem very different" in caplog.text

    def test_no_warning_for_consistent_segments(self, constant_trajectory, caplog):
        """Test that consistent segments merge silently."""
        other = constant_trajectory.copy()
        with caplog.at_level(logging.WARNING, logger="mdhist.trajectory.merge"):
            constant_trajectory.merge(other)
        assert caplog.text == ""
