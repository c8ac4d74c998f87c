"""Frame -> DetectionResult adapters (colour blob and MediaPipe face)."""
from typing import Optional

import cv2
import numpy as np

from pan_tilt_tracking.common import NOT_FOUND, DetectionResult
from pan_tilt_tracking.config import ColourDetectorConfig, DetectorConfig


class ColourDetector:
    """Centroid of the largest blob inside an HSV range."""

    def __init__(self, config: ColourDetectorConfig):
        self.config = config

    def mask(self, frame_bgr: np.ndarray) -> np.ndarray:
        k = self.config.blur_kernel
        if k and k > 1:
            frame_bgr = cv2.GaussianBlur(frame_bgr, (k, k), 0)
        hsv = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2HSV)
        lower = np.array(self.config.hsv_lower, dtype=np.uint8)
        upper = np.array(self.config.hsv_upper, dtype=np.uint8)
        return cv2.inRange(hsv, lower, upper)

    def detect(self, frame_bgr: Optional[np.ndarray]) -> DetectionResult:
        if frame_bgr is None:
            return NOT_FOUND
        contours, _ = cv2.findContours(
            self.mask(frame_bgr), cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
        )
        if not contours:
            return NOT_FOUND
        largest = max(contours, key=cv2.contourArea)
        if cv2.contourArea(largest) < self.config.min_contour_area_px:
            return NOT_FOUND
        m = cv2.moments(largest)
        if m["m00"] == 0:
            return NOT_FOUND
        return DetectionResult(True, (m["m10"] / m["m00"], m["m01"] / m["m00"]))

    def close(self) -> None:
        pass


class MediaPipeFaceDetector:
    """Centre of the most confident face bounding box."""

    def __init__(self, config: DetectorConfig):
        import mediapipe as mp

        self.config = config
        self.detector = mp.solutions.face_detection.FaceDetection(
            model_selection=config.model_selection,
            min_detection_confidence=config.min_detection_confidence,
        )

    def detect(self, frame_bgr: Optional[np.ndarray]) -> DetectionResult:
        if frame_bgr is None:
            return NOT_FOUND
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        results = self.detector.process(rgb)
        ih, iw = rgb.shape[:2]

        best = None
        for det in results.detections or []:
            bb = det.location_data.relative_bounding_box
            w, h = bb.width * iw, bb.height * ih
            if w < self.config.min_bbox_size_for_tracking or h < self.config.min_bbox_size_for_tracking:
                continue
            conf = float(det.score[0]) if det.score else 0.0
            if best is None or conf > best[0]:
                best = (conf, bb.xmin * iw + w / 2.0, bb.ymin * ih + h / 2.0)

        if best is None:
            return NOT_FOUND
        return DetectionResult(True, (best[1], best[2]))

    def close(self) -> None:
        self.detector.close()
