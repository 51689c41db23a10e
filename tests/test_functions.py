import pytest

from mpmcore.functions import ConstantFunction, LinearFunction


class TestTimeFunctions:

    def test_constant(self):
        function = ConstantFunction(2.5)
        assert function.value(0.0) == 2.5
        assert function(100.0) == 2.5

    def test_linear_interpolates(self):
        function = LinearFunction([0.0, 1.0, 3.0], [0.0, 2.0, 0.0])

        assert function.value(0.5) == pytest.approx(1.0)
        assert function.value(2.0) == pytest.approx(1.0)

    def test_linear_holds_end_values(self):
        function = LinearFunction([0.0, 1.0], [1.0, 3.0])

        assert function.value(-5.0) == pytest.approx(1.0)
        assert function.value(5.0) == pytest.approx(3.0)

    @pytest.mark.parametrize("xs, fxs", [
        ([0.0], [1.0]),
        ([0.0, 1.0], [1.0]),
        ([0.0, 0.0], [1.0, 2.0]),
        ([1.0, 0.0], [1.0, 2.0]),
    ])
    def test_invalid_tables(self, xs, fxs):
        with pytest.raises(ValueError):
            LinearFunction(xs, fxs)
