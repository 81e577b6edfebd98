"""Service layer for image transformation."""

import asyncio
from typing import Optional

import httpx
import structlog

from image_worker.core.conversion.decoder import ImageDecoder
from image_worker.core.conversion.encoder import ImageEncoder
from image_worker.core.conversion.output import finalize_output
from image_worker.core.conversion.planner import plan_transform
from image_worker.core.sources import resolve_source
from image_worker.models.transform import TransformRequest, TransformResponse

logger = structlog.get_logger()


class TransformService:
    """Runs the resolve, decode, plan, encode and output steps in sequence."""

    def __init__(self):
        """Initialize transform service."""
        self.decoder = ImageDecoder()
        self.encoder = ImageEncoder()

    async def transform(
        self,
        request: TransformRequest,
        client: Optional[httpx.AsyncClient] = None,
    ) -> TransformResponse:
        """
        Transform an image according to a request.

        Args:
            request: Validated transform request
            client: Optional HTTP client used for URL sources

        Returns:
            TransformResponse describing the encoded image

        Raises:
            InvalidParamsError: Bad source, unsupported format or bad options
            InternalError: Network, codec or filesystem failure
        """
        start_time = asyncio.get_running_loop().time()

        source = await resolve_source(request, client=client)

        # Pillow work is CPU-bound, keep it off the event loop
        loop = asyncio.get_running_loop()
        decoded = await loop.run_in_executor(None, self.decoder.open_image, source.data)

        plan = plan_transform(request, decoded.format)
        logger.info(
            "Transform planned",
            source=source.kind,
            detected_format=decoded.format,
            output_format=plan.format,
            width=plan.resize.width,
            height=plan.resize.height,
            fit=plan.resize.fit,
            filters=[operation.name for operation in plan.filters],
        )

        try:
            encoded = await loop.run_in_executor(
                None, self.encoder.encode, decoded.image, plan
            )
        finally:
            decoded.image.close()

        response = await finalize_output(encoded, request, source.kind)

        logger.info(
            "Transform completed",
            output_format=response.format,
            width=response.width,
            height=response.height,
            output_size=response.size,
            saved_to=response.saved_to,
            processing_time=round(asyncio.get_running_loop().time() - start_time, 3),
        )
        return response


# Create singleton instance
transform_service = TransformService()
