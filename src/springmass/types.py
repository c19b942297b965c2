import numpy as np
import numpy.typing as npt

from springmass.models import Point, Spring

VEC = npt.NDArray[np.float64]
MASK = npt.NDArray[np.bool_]
INDEX = npt.NDArray[np.int32]
GEN_GRID = tuple[list[Point], list[Spring]]
VIEW = npt.NDArray[np.float32]
PROJ = npt.NDArray[np.float32]
