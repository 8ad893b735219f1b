"""StrokeEngine - Multi-stroke pointer gesture capture and point-cloud classification."""

__version__ = "0.1.0"

from stroke_engine.errors import (
    StrokeEngineError,
    InvalidGesture,
    InsufficientPoints,
    NoTemplates,
    TemplateLoadError,
)
from stroke_engine.points import Point, Gesture, Template
from stroke_engine.capture import (
    StrokeCapture,
    CaptureRegion,
    CaptureState,
    FinalizePolicy,
    PointerSample,
)
from stroke_engine.templates import TemplateLibrary
from stroke_engine.recognizer import PointCloudRecognizer, ClassificationResult
from stroke_engine.decision import Decision, DecisionGate, decide
from stroke_engine.queue import GestureQueue, QueueSlot, SlotScale
from stroke_engine.config import EngineConfig
from stroke_engine.session import GestureSession, TickResult, SessionStats
from stroke_engine.recorder import SampleRecorder, SamplePlayer
from stroke_engine.profiler import TickProfiler
