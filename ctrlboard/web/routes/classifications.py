"""Classification routes for the ctrlboard API.

Lets admins try a code/name pair against a (draft or configured) mapping
before saving it.
"""

from __future__ import annotations

from fastapi import APIRouter

from ctrlboard.classification.classifier import quick_detect
from ctrlboard.classification.mapping import ClassificationMapping
from ctrlboard.models import ClassificationResult
from ctrlboard.web.dependencies import get_mapping
from ctrlboard.web.models import ClassificationTestRequest

router = APIRouter(prefix="/api/classifications", tags=["classifications"])


@router.post("/test", response_model=ClassificationResult)
def test_classification(request: ClassificationTestRequest):
    """Classify one code/name/service-type triple."""
    if request.mapping is not None:
        mapping = ClassificationMapping.from_dict(request.mapping)
    else:
        mapping = get_mapping()
    return quick_detect(request.code, request.name, request.service_type, mapping)
