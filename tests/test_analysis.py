"""Tests for analysis subsystem."""

import numpy as np
import pytest

from mdhist import units
from mdhist.analysis import (
    PhononDensityOfStates,
    SpeciesSeries,
    VelocityAutocorrelation,
    acf,
)
from mdhist.analysis.spectral import pdos as pdos_module
from mdhist.analysis.spectral.pdos import frequency_axis, gaussian_smearing
from mdhist.parallel import ThreadBackend


class TestAcf:
    """Tests for the autocorrelation primitive."""

    def test_matches_direct_sum(self):
        """Test against the direct definition."""
        rng = np.random.default_rng(1)
        x = rng.normal(size=(17, 2))
        result = acf(x)
        n = len(x)
        for k in (0, 1, 5, 16):
            expected = np.sum(x[: n - k] * x[k:], axis=0) / (n - k)
            np.testing.assert_allclose(result[k], expected, atol=1e-12)

    def test_one_dimensional(self):
        """Test that 1-D input gives one channel."""
        assert acf(np.ones(8)).shape == (8, 1)
        np.testing.assert_allclose(acf(np.ones(8))[:, 0], 1.0)

    @pytest.mark.parametrize(
        "data", [np.zeros((0, 3)), np.array([1.0, np.nan]), np.zeros((2, 2, 2))]
    )
    def test_invalid_input(self, data):
        """Test that unusable input is rejected."""
        with pytest.raises(ValueError):
            acf(data)


class TestVelocityAutocorrelation:
    """Tests for VACF analyzer."""

    def test_creation(self):
        """Test VACF creation."""
        vacf = VelocityAutocorrelation()
        assert vacf.name == "vacf"
        assert vacf.backend.name == "serial"

    def test_constant_velocities(self, constant_trajectory):
        """Test that constant velocities give a constant VACF."""
        traj = constant_trajectory
        series = VelocityAutocorrelation().compute(traj, 0, traj.ntime)

        assert isinstance(series, SpeciesSeries)
        assert series.values.shape == (3, 5)
        assert series.labels == ["All", "Si", "O"]
        v2 = np.sum(traj.velocities[0] ** 2, axis=1)
        expected = [v2.sum() / 12, v2[:2].sum() / 6, v2[2:].sum() / 6]
        np.testing.assert_allclose(
            series.values, np.array(expected)[:, None] * units.VACF_TO_NM2_PS2 * np.ones(5)
        )

    def test_species_conservation(self, make_random_trajectory):
        """Test that the aggregate is the count-weighted sum of species."""
        traj = make_random_trajectory(n_frames=40, species=(0, 1, 1, 1))
        series = VelocityAutocorrelation().compute(traj, 3, 40)
        counts = traj.species_counts()
        weighted = sum(3 * counts[s] * series.species(s) for s in range(traj.n_species))
        np.testing.assert_allclose(3 * traj.n_atoms * series.all, weighted, rtol=1e-10)

    def test_window_length(self, make_random_trajectory):
        """Test that lags run over the window."""
        traj = make_random_trajectory(n_frames=20)
        result = VelocityAutocorrelation().analyze(traj, 5, 15)
        assert result["vacf"].shape == (3, 10)
        np.testing.assert_allclose(result["time"], np.arange(10) * traj.dtion_ps)
        assert result["n_frames"] == 10

    def test_empty_window(self, constant_trajectory):
        """Test that an empty window is reported as a VACF failure."""
        with pytest.raises(RuntimeError, match="VACF calculation failed") as excinfo:
            VelocityAutocorrelation().compute(constant_trajectory, 2, 2)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_generic_store(self, constant_trajectory):
        """Test that a segment without velocities cannot be analyzed."""
        with pytest.raises(RuntimeError, match="VACF calculation failed"):
            VelocityAutocorrelation().compute(constant_trajectory.store, 0, 5)

    def test_thread_backend_matches_serial(self, make_random_trajectory):
        """Test that the threads backend reproduces serial results."""
        traj = make_random_trajectory(n_frames=50)
        serial = VelocityAutocorrelation().compute(traj, 0, 50)
        threaded = VelocityAutocorrelation(ThreadBackend(n_workers=3), min_chunk=4).compute(
            traj, 0, 50
        )
        np.testing.assert_allclose(threaded.values, serial.values, rtol=1e-12)

    def test_diffusion_coefficient(self, constant_trajectory):
        """Test the VACF integral per row."""
        d = VelocityAutocorrelation().compute_diffusion_coefficient(constant_trajectory)
        assert d.shape == (3,)
        assert np.all(d > 0)


class TestGaussianSmearing:
    """Tests for spectral smearing."""

    def test_delta_peak(self):
        """Test that a single sample becomes a Gaussian at its position."""
        n = 200
        spectrum = np.zeros(n)
        spectrum[50] = 1.0
        sigma = 0.02
        out = gaussian_smearing(spectrum, sigma)
        assert np.argmax(out) == 50
        grid = np.arange(n) / n
        expected = np.exp(-((grid - 0.25) ** 2) / (2 * sigma**2)) / (sigma * np.sqrt(2 * np.pi))
        np.testing.assert_allclose(out, expected, atol=1e-12)

    def test_block_size_irrelevant(self):
        """Test that blocking does not change the result."""
        rng = np.random.default_rng(3)
        spectrum = rng.random(37)
        np.testing.assert_allclose(
            gaussian_smearing(spectrum, 0.1, block=4),
            gaussian_smearing(spectrum, 0.1),
            rtol=1e-12,
        )


class TestPhononDensityOfStates:
    """Tests for PDOS analyzer."""

    def test_constant_velocities_peak_at_zero(self, constant_trajectory):
        """Test that a constant VACF transforms to the zero-frequency bin."""
        series = PhononDensityOfStates().compute(constant_trajectory, 0, 5)
        assert series.values.shape == (3, 5)
        assert np.all(series.values[:, 0] > 0)
        np.testing.assert_allclose(
            series.values[:, 1:], 0.0, atol=1e-12 * series.values[0, 0]
        )

    def test_dct_normalization(self, constant_trajectory):
        """Test the unnormalized DCT-II convention."""
        vacf = VelocityAutocorrelation().compute(constant_trajectory, 0, 5)
        series = PhononDensityOfStates().compute(constant_trajectory, 0, 5)
        np.testing.assert_allclose(series.values[:, 0], 2 * 5 * vacf.values[:, 0])

    def test_default_smearing(self, constant_trajectory):
        """Test that the default smearing is 5% of the mean temperature."""
        result = PhononDensityOfStates().analyze(constant_trajectory)
        assert result["tsmear"] == pytest.approx(15.0)
        assert result["pdos"].shape == (3, 5)
        np.testing.assert_allclose(
            result["frequency"], frequency_axis(5, constant_trajectory.dtion_ps)
        )

    def test_frequency_axis(self):
        """Test the frequency spacing up to the Nyquist frequency."""
        axis = frequency_axis(10, 0.05)
        assert axis[0] == 0.0
        assert axis[1] == pytest.approx(units.THZ_TO_MEV / (2 * 0.05 * 10))

    def test_negative_smearing(self, constant_trajectory):
        """Test that negative smearing fails validation."""
        with pytest.raises(ValueError, match="tsmear needs to be positive"):
            PhononDensityOfStates().analyze(constant_trajectory, tsmear=-1.0)
        with pytest.raises(ValueError, match="tsmear needs to be positive"):
            PhononDensityOfStates().compute(constant_trajectory, 0, 5, sigma=-1.0)

    def test_missing_transform(self, constant_trajectory, monkeypatch):
        """Test that a missing transform library is reported."""
        monkeypatch.setattr(pdos_module, "HAS_SCIPY_FFT", False)
        with pytest.raises(ImportError, match="scipy"):
            PhononDensityOfStates().compute(constant_trajectory, 0, 5)

    def test_thread_backend_matches_serial(self, make_random_trajectory):
        """Test that per-row transforms agree across backends."""
        traj = make_random_trajectory(n_frames=32)
        serial = PhononDensityOfStates().analyze(traj, tsmear=20.0)
        threaded = PhononDensityOfStates(ThreadBackend(n_workers=2)).analyze(traj, tsmear=20.0)
        np.testing.assert_allclose(threaded["pdos"], serial["pdos"], rtol=1e-12)

    def test_rows_are_cosine_transforms(self, make_random_trajectory):
        """Test that unsmeared rows are the DCT-II of the VACF rows on a thread pool."""
        scipy_fft = pytest.importorskip("scipy.fft")
        traj = make_random_trajectory(n_frames=24)
        backend = ThreadBackend(n_workers=3)
        vacf = VelocityAutocorrelation(backend=backend).compute(traj, 0, 24)
        pdos = PhononDensityOfStates(backend).compute(traj, 0, 24)
        expected = scipy_fft.dct(vacf.values, type=2, axis=1)
        np.testing.assert_allclose(pdos.values, expected, atol=1e-12 * np.abs(expected).max())
