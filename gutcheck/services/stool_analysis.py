"""Stool photo classification against the Bristol Stool Scale."""

import base64
import json
import re
from datetime import date

from pydantic import ValidationError

from gutcheck.clients.openrouter import OpenRouterClient
from gutcheck.models.analysis import StoolAnalysisResult
from gutcheck.models.entries import Entry
from gutcheck.services.entries import EntryRepository
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

DEFAULT_BRISTOL_TYPE = 4

NOT_STOOL_INSIGHT = "Please upload an actual stool photo for analysis"

ANALYSIS_PROMPT = """You are a medical analysis assistant specializing in bowel health.

Analyze this image and compare it to the Bristol Stool Scale (types 1-7):

**Type 1:** Hard, separate lumps like nuts - SEVERE CONSTIPATION
**Type 2:** Sausage-shaped but lumpy - MILD CONSTIPATION
**Type 3:** Sausage with cracks on its surface - NORMAL (Ideal)
**Type 4:** Smooth, soft sausage or snake - NORMAL (Ideal)
**Type 5:** Soft blobs with clear-cut edges - LACKS FIBER
**Type 6:** Fluffy pieces with ragged edges - MILD DIARRHEA
**Type 7:** Watery, no solid pieces - SEVERE DIARRHEA

CRITICAL: First determine if this is actually human stool/feces. If it's food, objects, or clearly not poop, you MUST return {"isPoop": false}.

If it IS poop, analyze and return ONLY a valid JSON object in this EXACT format:
{
  "isPoop": true,
  "bristol_type": <number 1-7>,
  "color": "Brown" OR "Dark Brown" OR "Light Brown" OR "Green" OR "Yellow" OR "Black" OR "Red",
  "texture": "Hard" OR "Normal" OR "Soft" OR "Liquid" OR "Mushy",
  "hydration_level": "Well Hydrated" OR "Adequate" OR "Dehydrated" OR "Over-hydrated",
  "ai_insight": "<concise actionable advice on what to do and what this may mean>"
}

IMPORTANT for ai_insight field:
- Keep it to 1-2 sentences maximum
- Focus on actionable steps and what this MAY signify
- DO NOT summarize or repeat the bristol type, color, texture, or hydration
- Only provide forward-looking advice and potential health implications

Choose the BEST matching option from the choices above for each field.

ONLY return valid JSON, no other text."""


class StoolAnalysisError(Exception):
    """The vision model's reply could not be turned into a classification."""


def parse_analysis(content: str) -> StoolAnalysisResult:
    """Turn the model's reply into a classification.

    Args:
        content: Raw reply text, expected to contain one JSON object

    Returns:
        Parsed result; non-stool images yield an empty classification

    Raises:
        StoolAnalysisError: If no usable JSON object is present
    """
    match = JSON_OBJECT.search(content)
    if not match:
        raise StoolAnalysisError("Invalid JSON response from AI")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise StoolAnalysisError(f"Invalid JSON response from AI: {e}") from e

    if not isinstance(data, dict) or not data.get("isPoop"):
        return StoolAnalysisResult(is_poop=False, ai_insight=NOT_STOOL_INSIGHT)

    bristol_type = data.get("bristol_type")
    if isinstance(bristol_type, int | float) and not isinstance(bristol_type, bool):
        bristol_type = int(bristol_type)
        if not 1 <= bristol_type <= 7:
            logger.warning(f"Model returned out-of-range Bristol type {bristol_type}, using {DEFAULT_BRISTOL_TYPE}")
            bristol_type = DEFAULT_BRISTOL_TYPE
    else:
        bristol_type = None

    try:
        return StoolAnalysisResult(
            is_poop=True,
            bristol_type=bristol_type,
            color=data.get("color"),
            texture=data.get("texture"),
            hydration_level=data.get("hydration_level"),
            ai_insight=data.get("ai_insight"),
        )
    except ValidationError as e:
        raise StoolAnalysisError(f"Unexpected analysis fields: {e}") from e


class StoolImageAnalyzer:
    """Classifies stool photos with a vision-language model."""

    def __init__(
        self,
        client: OpenRouterClient,
        entries: EntryRepository | None = None,
        model: str = "anthropic/claude-sonnet-4.5",
    ):
        """Initialize the analyzer.

        Args:
            client: OpenRouter client
            entries: Repository that classified photos are logged to, if any
            model: Vision-capable model identifier
        """
        self.client = client
        self.entries = entries
        self.model = model

    async def analyze(
        self, image: bytes, image_format: str = "jpeg", user_id: str | None = None
    ) -> StoolAnalysisResult:
        """Classify a single photo, logging it as an entry when a user is given.

        Args:
            image: Raw image bytes
            image_format: "jpeg" or "png"
            user_id: Owner of the new entry; nothing is stored when omitted

        Returns:
            Classification result, with ``entry_id`` set when an entry was stored

        Raises:
            LLMError: If the model request fails
            StoolAnalysisError: If the reply is empty or not valid JSON
            RowStoreError: If storing the entry fails
        """
        image_format = "png" if image_format.lower() == "png" else "jpeg"
        data_uri = f"data:image/{image_format};base64,{base64.b64encode(image).decode('ascii')}"

        logger.info(f"Analyzing {len(image)} byte {image_format} image with {self.model}")
        result = await self.client.create_completion(
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": data_uri}},
                        {"type": "text", "text": ANALYSIS_PROMPT},
                    ],
                }
            ],
            model=self.model,
            temperature=0.3,
            max_tokens=500,
        )

        if not result.content:
            raise StoolAnalysisError("No response from AI")

        analysis = parse_analysis(result.content)

        if analysis.is_poop and user_id and self.entries is not None:
            entry = await self.entries.create_entry(
                Entry(
                    user_id=user_id,
                    entry_date=date.today(),
                    bristol_type=analysis.bristol_type,
                    color=analysis.color,
                    texture=analysis.texture,
                    hydration_level=analysis.hydration_level,
                    ai_insight=analysis.ai_insight,
                )
            )
            logger.info(f"Stored entry {entry.id} for user {user_id}")
            analysis = analysis.model_copy(update={"entry_id": entry.id})

        return analysis
