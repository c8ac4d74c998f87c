"""Typed configuration blobs for the whole system."""
from dataclasses import dataclass, field
from typing import Optional, Tuple


# ---------------------- Camera ----------------------
@dataclass
class CameraConfig:
    device_index: int = 0
    width: int = 640
    height: int = 480
    fps_request: int = 30
    use_v4l2: bool = True
    fourcc_str: str = "MJPG"


# ------------------- Colour detector ----------------
@dataclass
class ColourDetectorConfig:
    hsv_lower: Tuple[int, int, int] = (0, 120, 70)     # H 0‒179, S/V 0‒255
    hsv_upper: Tuple[int, int, int] = (10, 255, 255)
    min_contour_area_px: int = 60
    blur_kernel: int = 5                               # odd, 0 disables


# --------------------- Face detector ----------------
@dataclass
class DetectorConfig:
    model_selection: int = 0
    min_detection_confidence: float = 0.5
    min_bbox_size_for_tracking: int = 20


# ---------------------- PanTilt ---------------------
@dataclass
class PanTiltConfig:
    port: Optional[str] = None          # Set to "/dev/ttyACM0" or COM-port to enable
    baudrate: int = 250_000
    pan_range_deg: Tuple[float, float] = (-90.0, 90.0)   # 0 % .. 100 %
    tilt_range_deg: Tuple[float, float] = (-45.0, 45.0)
    invert_pan_output: bool = False
    invert_tilt_output: bool = False
    use_blocking_moves: bool = True
    home_on_startup: bool = True
    rest_on_shutdown: bool = True


# -------------------- Calibration -------------------
@dataclass
class CalibrationConfig:
    saccade_increment_pct: float = 0.3
    max_deviation_pct: float = 60.0
    capture_buffer_burn: int = 2        # first buffered frame is stale
    servo_settle_time_s: float = 0.75
    centre_pan_pct: float = 50.0
    centre_tilt_pct: float = 50.0
    verbose: bool = True


# ---------------------- Pursuit ---------------------
@dataclass
class PursuitConfig:
    move_duration_s: float = 0.4
    error_deadzone_px: int = 8
    min_retarget_pct: float = 0.5
    smoother_alpha: Optional[float] = 0.5   # None disables smoothing
    max_cmd_rate_hz: float = 50.0


# ---------------------- Storage ---------------------
@dataclass
class StorageConfig:
    calibration_path: str = "calibration.json"
    csv_path: Optional[str] = "calibration.csv"


@dataclass
class AppConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    colour: ColourDetectorConfig = field(default_factory=ColourDetectorConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    pantilt: PanTiltConfig = field(default_factory=PanTiltConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    pursuit: PursuitConfig = field(default_factory=PursuitConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
