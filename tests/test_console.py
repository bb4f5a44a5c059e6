import unittest

from ring_traffic.config import DEFAULT_ITERATIONS
from ring_traffic.io.console import run_interactive
from ring_traffic.model.simulation import Simulation


def _reader(lines):
    it = iter(lines)

    def read() -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    return read


class ConsoleLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.out = []
        self.sim = Simulation()

    def _lane_lines(self):
        return [line for line in self.out if line and set(line) <= {"■", "□"}]

    def test_prints_every_step(self) -> None:
        rounds = run_interactive(self.sim, _reader(["■□□□", "2", "n"]), self.out.append)

        self.assertEqual(rounds, 1)
        self.assertEqual(self._lane_lines(), ["■□□□", "□■□□", "□□■□"])

    def test_bad_step_count_falls_back(self) -> None:
        run_interactive(self.sim, _reader(["■□□□", "many", "n"]), self.out.append)
        self.assertEqual(len(self._lane_lines()), DEFAULT_ITERATIONS + 1)

    def test_end_of_input_stops(self) -> None:
        rounds = run_interactive(self.sim, _reader(["■□", "1"]), self.out.append)
        self.assertEqual(rounds, 1)
        self.assertEqual(self._lane_lines(), ["■□", "□■"])

    def test_repeat_resets_simulation(self) -> None:
        rounds = run_interactive(
            self.sim,
            _reader(["■□□□", "1", "y", "□■", "0", "no"]),
            self.out.append,
        )

        self.assertEqual(rounds, 2)
        self.assertEqual(len(self.sim.lanes), 1)
        self.assertEqual(str(self.sim.lanes[0]), "□■")


if __name__ == '__main__':
    unittest.main()
