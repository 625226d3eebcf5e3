"""
Tennis half-court geometry in metres.

The coordinate system has its origin at the left end of the net, x running
along the net towards the right sideline and y increasing towards the
baseline.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CourtLayout:
    width: float = 8.23          # singles sideline to sideline
    length: float = 11.885       # net to baseline
    service_line: float = 6.40   # net to service line

    def reference_points(self) -> np.ndarray:
        """Eight calibration reference points as an 8 x 2 array.

        Order: net-left, net-right, baseline-left, baseline-right corners,
        then the T, left and right service-line ends, and the net centre.
        """
        w, l, s = self.width, self.length, self.service_line
        return np.array([
            [0,     0],
            [w,     0],
            [0,     l],
            [w,     l],
            [w / 2, s],
            [0,     s],
            [w,     s],
            [w / 2, 0],
        ], dtype=float)

    def corners(self) -> np.ndarray:
        return self.reference_points()[:4]

    def court_lines(self) -> list:
        """Line segments ``((x0, y0), (x1, y1))`` for drawing the court."""
        w, l, s = self.width, self.length, self.service_line
        return [
            ((0, 0), (w, 0)),          # net
            ((0, l), (w, l)),          # baseline
            ((0, 0), (0, l)),          # left sideline
            ((w, 0), (w, l)),          # right sideline
            ((0, s), (w, s)),          # service line
            ((w / 2, 0), (w / 2, s)),  # centre service line
        ]
