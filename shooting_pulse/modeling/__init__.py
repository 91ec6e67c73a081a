"""
Shooting Pulse - Modeling

Borough classification on the filtered shooting table.
"""

from shooting_pulse.modeling.classifier import BoroughClassifier, TrainingResult, diagonal_total

__all__ = ["BoroughClassifier", "TrainingResult", "diagonal_total"]
