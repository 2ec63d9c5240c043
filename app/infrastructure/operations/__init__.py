"""Operation result types and status enums.

Standardized result types shared by the AWS client layer, the attempt
store backends and wrapped business operations.
"""

from infrastructure.operations.classifiers import classify_aws_error
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_aws_error",
]
