"""
Trade record schema for journalmigrate.

- decoding: RawField classification of loosely-typed legacy values
- models: pydantic models for the enhanced record shape
- workflow: review workflow construction and stage transitions
- validation: the enhanced record invariants as Result-returning checks
- instruments: lot and pip scaling
"""

from journalmigrate.records.decoding import (
    Invalid,
    Missing,
    Number,
    RawField,
    Sequence,
    Text,
    classify,
    decode_legacy,
    decode_number,
    decode_tags,
    decode_text,
    normalize_tags,
)
from journalmigrate.records.instruments import (
    LOT_SIZES,
    TWO_DECIMAL_QUOTES,
    pip_size,
    signed_pips,
    units_for,
)
from journalmigrate.records.models import (
    DEFAULT_ACCOUNT_ID,
    EnhancedRecord,
    ReviewData,
    ReviewStage,
    ReviewWorkflow,
    TradeNotes,
)
from journalmigrate.records.results import Err, Ok, Result, ValidationIssue
from journalmigrate.records.validation import (
    BACKWARD_COMPATIBLE_FIELDS,
    is_backward_compatible,
    parse_enhanced,
    validate_enhanced,
    validate_stored,
)
from journalmigrate.records.workflow import (
    DEFAULT_REVIEW_STAGES,
    calculate_progress,
    create_default_workflow,
    is_review_complete,
    mark_review_complete,
    update_stage,
)

__all__ = [
    # Decoding
    "RawField",
    "Missing",
    "Text",
    "Number",
    "Sequence",
    "Invalid",
    "classify",
    "decode_legacy",
    "decode_number",
    "decode_text",
    "decode_tags",
    "normalize_tags",
    # Instruments
    "LOT_SIZES",
    "TWO_DECIMAL_QUOTES",
    "pip_size",
    "signed_pips",
    "units_for",
    # Models
    "DEFAULT_ACCOUNT_ID",
    "EnhancedRecord",
    "ReviewData",
    "ReviewStage",
    "ReviewWorkflow",
    "TradeNotes",
    # Results
    "Ok",
    "Err",
    "Result",
    "ValidationIssue",
    # Validation
    "BACKWARD_COMPATIBLE_FIELDS",
    "validate_enhanced",
    "parse_enhanced",
    "validate_stored",
    "is_backward_compatible",
    # Workflow
    "DEFAULT_REVIEW_STAGES",
    "create_default_workflow",
    "calculate_progress",
    "is_review_complete",
    "update_stage",
    "mark_review_complete",
]
