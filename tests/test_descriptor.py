import unittest

from ring_traffic.io.descriptor import parse_occupancy, render_occupancy
from ring_traffic.model.simulation import Simulation


class DescriptorTests(unittest.TestCase):
    def test_both_alphabets_and_noise(self) -> None:
        self.assertEqual(parse_occupancy("■□ 1-0x"), [True, False, True, False])
        self.assertEqual(parse_occupancy("■□"), parse_occupancy("10"))

    def test_missing_descriptor_is_empty_lane(self) -> None:
        self.assertEqual(parse_occupancy(None), [])
        self.assertEqual(parse_occupancy("abc"), [])
        self.assertEqual(Simulation().add_lane(None).length, 0)

    def test_render(self) -> None:
        self.assertEqual(render_occupancy([True, False, False, True]), "■□□■")
        self.assertEqual(render_occupancy([]), "")

    def test_lane_rendering_survives_reparse(self) -> None:
        rendered = str(Simulation().add_lane("0110 0101"))
        self.assertEqual(rendered, "□■■□□■□■")
        self.assertEqual(str(Simulation().add_lane(rendered)), rendered)


if __name__ == '__main__':
    unittest.main()
