from dealer_query.stages.base import PipelineStage
from dealer_query.stages.composer import AnswerComposer, format_mileage, format_price
from dealer_query.stages.intent import IntentExtractor
from dealer_query.stages.safety import QuerySafetyFilter, validate_sql
from dealer_query.stages.synthesizer import QuerySynthesizer, build_statement
from dealer_query.stages.verifier import ResultVerifier, detect_result_type

__all__ = [
    "PipelineStage",
    "IntentExtractor",
    "QuerySynthesizer",
    "QuerySafetyFilter",
    "ResultVerifier",
    "AnswerComposer",
    "build_statement",
    "validate_sql",
    "detect_result_type",
    "format_price",
    "format_mileage",
]
