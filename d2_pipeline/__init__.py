"""
D2 Pipeline Module

Weighted close probability, risk and priority for individual deals plus
pipeline-level velocity, metrics and recommendations.
"""

from .stage_schema import StageTableSchema, resolve_stage_table_path, validate_stage_table
from .types import (
    Deal,
    DealQuality,
    DealStage,
    MonthlyPipelineValue,
    PipelineMetrics,
    PipelineVelocityMetrics,
    Priority,
    StageProbability,
    WeightedDeal,
    parse_stage,
)
from .weighted import (
    assess_deal_quality,
    calculate_expected_close_date,
    calculate_priority,
    calculate_risk_score,
    calculate_velocity_metrics,
    calculate_velocity_score,
    calculate_weighted_probability,
    enrich_deal,
    enrich_deals,
    generate_pipeline_metrics,
    generate_recommendations,
    get_stage_base_probability,
    get_stage_config,
    load_stage_probabilities,
    normalize_deal_size,
)

__all__ = [
    # Service
    "assess_deal_quality",
    "calculate_expected_close_date",
    "calculate_priority",
    "calculate_risk_score",
    "calculate_velocity_metrics",
    "calculate_velocity_score",
    "calculate_weighted_probability",
    "enrich_deal",
    "enrich_deals",
    "generate_pipeline_metrics",
    "generate_recommendations",
    "get_stage_base_probability",
    "get_stage_config",
    "load_stage_probabilities",
    "normalize_deal_size",
    # Stage table
    "StageTableSchema",
    "resolve_stage_table_path",
    "validate_stage_table",
    # Types
    "Deal",
    "DealQuality",
    "DealStage",
    "MonthlyPipelineValue",
    "PipelineMetrics",
    "PipelineVelocityMetrics",
    "Priority",
    "StageProbability",
    "WeightedDeal",
    "parse_stage",
]
