# dedupimport -keep unnamed

import math
import math as m


class Circle:
  unit = m.pi

  def area(self, r):
    return m.pi * r ** 2


def scale(factor=m.e):
  return [math for math in range(int(m.tau))]


hypot = lambda a, b: m.sqrt(a * a + b * b)
