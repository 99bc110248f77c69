"""Value objects package."""
from .recognition import (
    Candidate,
    ClusteringOutcome,
    ClusteringResult,
    FrameRecognition,
    MatchResult,
    RecognitionNotice,
    RecognitionStatus,
    RecognizedFace,
)

__all__ = [
    "Candidate",
    "ClusteringOutcome",
    "ClusteringResult",
    "FrameRecognition",
    "MatchResult",
    "RecognitionNotice",
    "RecognitionStatus",
    "RecognizedFace",
]
