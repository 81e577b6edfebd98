"""Derive a concrete processing plan from a partially specified request."""

from typing import Optional

from image_worker.core.constants import (
    DEFAULT_FIT,
    DEFAULT_HEIGHT,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_WIDTH,
    FILTER_ORDER,
)
from image_worker.models.transform import (
    FilterOperation,
    ResizeOptions,
    TransformPlan,
    TransformRequest,
)


def resolve_dimensions(request: TransformRequest) -> ResizeOptions:
    """Resolve target width/height and fit.

    A single given dimension is kept and the other left open so the aspect
    ratio is preserved. With both or neither given, missing values take the
    defaults (800x600) and fit becomes "contain" unless set explicitly.
    """
    width = request.width
    height = request.height
    fit = request.fit.value if request.fit else None

    if width and not height:
        height = None
    elif height and not width:
        width = None
    else:
        width = width or DEFAULT_WIDTH
        height = height or DEFAULT_HEIGHT
        if not fit:
            fit = DEFAULT_FIT

    return ResizeOptions(
        width=width,
        height=height,
        fit=fit,
        position=request.position.value if request.position else None,
        background=request.background,
        without_enlargement=bool(request.without_enlargement),
        without_reduction=bool(request.without_reduction),
    )


def resolve_filters(request: TransformRequest) -> tuple[FilterOperation, ...]:
    """Collect the requested filters in their fixed application order."""
    operations = []
    for name in FILTER_ORDER:
        value = getattr(request, name)
        # Zero and False both mean "not requested"
        if not value:
            continue
        if isinstance(value, bool):
            operations.append(FilterOperation(name=name))
        else:
            operations.append(FilterOperation(name=name, value=float(value)))
    return tuple(operations)


def plan_transform(
    request: TransformRequest, detected_format: Optional[str]
) -> TransformPlan:
    """Build the immutable plan for a transform request. No I/O."""
    if request.format:
        output_format = request.format.value
    else:
        output_format = detected_format or DEFAULT_OUTPUT_FORMAT

    return TransformPlan(
        resize=resolve_dimensions(request),
        filters=resolve_filters(request),
        format=output_format,
        quality=request.quality or DEFAULT_QUALITY,
    )
