"""Dataset helpers."""

from .data_loading import load_dataset, train_test_split_xy

__all__ = ["load_dataset", "train_test_split_xy"]
