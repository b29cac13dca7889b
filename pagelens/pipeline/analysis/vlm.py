import logging

from pagelens.models.manager import ModelManager
from pagelens.models.providers.base import ModelError

from .errors import VisionError
from .types import NO_DESCRIPTION

logger = logging.getLogger(__name__)


class VisionDescriptionClient:
    def __init__(self, model_manager: ModelManager, vision_task: str = "vision"):
        self.model_manager = model_manager
        self.vision_task = vision_task

    async def describe(self, image_data_uri: str, prompt_ref: str) -> str:
        """
        One image, one prompt, one completion.

        An empty completion is not an error: it yields NO_DESCRIPTION. Only a
        failed upstream call raises VisionError.
        """
        try:
            response = await self.model_manager.call(
                task=self.vision_task,
                prompt_ref=prompt_ref,
                images=[image_data_uri],
            )
        except ModelError as e:
            raise VisionError(e.message, status_code=e.status_code) from e

        if not response.has_completion:
            logger.info(f"Vision model returned no completion for {prompt_ref}")
            return NO_DESCRIPTION
        return response.content
