"""
BoxScan inventory: build an inventory of storage containers by hand or by
running object detection over a camera frame or an uploaded photo.
"""

__version__ = "1.0.0"
