from .reflection import AnonymizedReflection, ContextType, ReflectionCategory
from .wellness_metric import WellnessMetric
from .pattern_insight import PatternCode, PatternInsight
from .emotional_labor import EmotionalLaborEntry
from .attestation import AttestationReceipt, AttestationVerification, ReceiptType

__all__ = [
    "AnonymizedReflection",
    "ContextType",
    "ReflectionCategory",
    "WellnessMetric",
    "PatternCode",
    "PatternInsight",
    "EmotionalLaborEntry",
    "AttestationReceipt",
    "AttestationVerification",
    "ReceiptType",
]
