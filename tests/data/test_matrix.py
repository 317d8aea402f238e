"""Tests for data/matrix.py"""

import sys

import pytest
import torch

from tiled_matmul.data import Matrix, MatrixShape


class TestMatrix:
    def test_row_major_layout(self):
        m = Matrix(torch.arange(6, dtype=torch.float32), height=2, width=3)

        assert m.element(0, 2) == 2.0
        assert m.element(1, 0) == 3.0
        assert m.as_2d().tolist() == [[0.0, 1.0, 2.0], [3.0, 4.0, 5.0]]
        assert m.numel == 6

    def test_as_2d_shares_storage(self):
        m = Matrix.zeros(2, 2)
        m.as_2d()[1, 0] = 7.0

        assert m.data[2].item() == 7.0

    def test_from_rows(self):
        m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])

        assert (m.height, m.width) == (3, 2)
        assert m.element(2, 1) == 6.0

    def test_element_out_of_range(self):
        with pytest.raises(IndexError):
            Matrix.zeros(2, 2).element(2, 0)

    @pytest.mark.parametrize(
        "data,height,width,message",
        [
            (torch.zeros(6), 0, 6, "positive"),
            (torch.zeros(2, 3), 2, 3, "flat"),
            (torch.zeros(6, dtype=torch.float64), 2, 3, "float32"),
            (torch.zeros(5), 2, 3, "expected 2x3"),
        ],
    )
    def test_invalid_buffers(self, data, height, width, message):
        with pytest.raises(ValueError, match=message):
            Matrix(data, height, width)

    def test_random_is_seeded_and_in_unit_interval(self):
        first = Matrix.random(8, 8, torch.Generator().manual_seed(2006))
        second = Matrix.random(8, 8, torch.Generator().manual_seed(2006))
        other = Matrix.random(8, 8, torch.Generator().manual_seed(2007))

        assert torch.equal(first.data, second.data)
        assert not torch.equal(first.data, other.data)
        assert float(first.data.min()) >= 0.0
        assert float(first.data.max()) < 1.0

    def test_clone_is_independent(self):
        m = Matrix.zeros(2, 2)
        c = m.clone()
        c.data[0] = 1.0

        assert m.data[0].item() == 0.0


class TestMatrixShape:
    def test_dims_and_flop_count(self):
        shape = MatrixShape(64, 32, 96)

        assert shape.a_dims == (64, 32)
        assert shape.b_dims == (32, 96)
        assert shape.c_dims == (64, 96)
        assert shape.flop_count == 2 * 64 * 32 * 96

    def test_for_device(self):
        assert MatrixShape.for_device(32, 5) == MatrixShape(640, 320, 320)
        assert MatrixShape.for_device(16, 2) == MatrixShape(128, 64, 64)
        with pytest.raises(ValueError):
            MatrixShape.for_device(16, 0)

    def test_grid(self):
        assert MatrixShape(64, 32, 96).grid(32) == (3, 2)
        assert MatrixShape.square(16).grid(16) == (1, 1)

    def test_validate(self):
        MatrixShape(32, 64, 16).validate(16)
        MatrixShape(30, 7, 5).validate()

        with pytest.raises(ValueError, match="width_a=40 is not a multiple"):
            MatrixShape(32, 40, 32).validate(16)
        with pytest.raises(ValueError, match="height_a must be > 0"):
            MatrixShape(0, 16, 16).validate(16)

    def test_str(self):
        assert str(MatrixShape(4, 2, 3)) == "A(4x2), B(2x3), C(4x3)"


if __name__ == "__main__":
    pytest.main(sys.argv)
