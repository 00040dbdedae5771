"""Tests for utility helper functions."""

import pytest


class TestLodSuffix:
    """Tests for lod_suffix."""

    def test_one_based(self) -> None:
        """Level 1 is the first generated level."""
        from notso_lod.utils import lod_suffix

        assert lod_suffix(1) == "_LOD1"
        assert lod_suffix(12) == "_LOD12"

    def test_zero_rejected(self) -> None:
        from notso_lod.utils import lod_suffix

        with pytest.raises(ValueError):
            lod_suffix(0)


class TestExceedsSize:
    """Tests for exceeds_size."""

    def test_either_axis(self) -> None:
        """Exceeding in either axis counts."""
        from notso_lod.utils import exceeds_size

        assert exceeds_size((1024, 256), (512, 512))
        assert exceeds_size((256, 1024), (512, 512))
        assert not exceeds_size((512, 512), (512, 512))
        assert not exceeds_size((128, 64), (512, 512))


class TestFitWithin:
    """Tests for fit_within."""

    def test_square(self) -> None:
        from notso_lod.utils import fit_within

        assert fit_within((1024, 1024), (512, 512)) == (512, 512)

    def test_keeps_aspect(self) -> None:
        from notso_lod.utils import fit_within

        assert fit_within((2048, 1024), (512, 512)) == (512, 256)
        assert fit_within((1024, 2048), (512, 128)) == (64, 128)

    def test_never_upscales(self) -> None:
        from notso_lod.utils import fit_within

        assert fit_within((100, 50), (512, 512)) == (100, 50)

    def test_minimum_one_pixel(self) -> None:
        from notso_lod.utils import fit_within

        assert fit_within((4096, 1), (64, 64)) == (64, 1)
