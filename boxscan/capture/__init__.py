"""
Image acquisition (camera / upload) and the capture-to-container pipeline.
"""

from boxscan.capture.CapturePipeline import (
    CapturePipeline,
    CaptureResult,
    CaptureState,
    ContainerIdGenerator,
)

__all__ = ['CapturePipeline', 'CaptureResult', 'CaptureState', 'ContainerIdGenerator']
