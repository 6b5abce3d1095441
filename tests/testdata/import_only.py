# dedupimport -keep first -i

import typing as t
import typing

x: t.Any = typing.cast(int, 1)
