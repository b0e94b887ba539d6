from boxscan.classifier.ItemClassifier import (
    ClassificationResult,
    ThresholdProfile,
    format_item_label,
    to_items,
)

__all__ = ['ClassificationResult', 'ThresholdProfile', 'format_item_label', 'to_items']
