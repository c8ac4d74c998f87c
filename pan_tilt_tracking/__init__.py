"""Pan/tilt calibration and smooth-pursuit package – re-export high-level API."""
from .calibrator import CalibratingPanTiltController, CalibrationCancelled  # noqa: F401
from .common import (                                                        # noqa: F401
    DetectionResult, PanTiltAxis, PanTiltSetting, Resolution,
    UnsupportedAxisError,
)
from .config import (                                                        # noqa: F401
    AppConfig, CalibrationConfig, CameraConfig, ColourDetectorConfig,
    DetectorConfig, PanTiltConfig, PursuitConfig, StorageConfig,
)
from .pursuit import PursuitController                                       # noqa: F401
from .readings import (                                                      # noqa: F401
    AxesCalibrationReadings, AxisCalibrationReadings,
    PanTiltCalibrationReadings, ReadingSet,
)
from .regression import LinearRegressor                                      # noqa: F401
from .repository import CalibrationReadingsRepository                        # noqa: F401
from .trajectory import Stopwatch, TimeTarget                                # noqa: F401
