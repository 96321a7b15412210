"""
Client for the external grading service.

Sends the stitched submission image to an OpenAI-compatible vision model and
turns its JSON answer into a GradingDocument. The service is treated as a black
box that may fail; callers get either a document or a ProducerError.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

import openai
from pydantic import BaseModel, Field, ValidationError

from ..config import (
    GRADER_MAX_TOKENS,
    GRADER_MODEL_NAME,
    GRADER_TEMPERATURE,
    GRADER_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
)
from ..grading import GradingDocument, MalformedProducerResponse, ProducerUnavailable

logger = logging.getLogger(__name__)

GRADING_PROMPT = """You are an expert math teacher's assistant specializing in grading handwritten math homework. Your analysis must follow the curriculum and problem style of the Israeli matriculation exam Math B 35381.

Analyze the provided image containing a student's work. Identify each distinct problem and provide a detailed breakdown. The output MUST be a single JSON object.

**CRITICAL REQUIREMENT: All text fields must be bilingual, containing both an English ("en") and Hebrew ("he") translation.**

The JSON object must contain two keys:
1.  "overall_score": An integer representing the final calculated grade for the entire test, out of 100.
2.  "problem_breakdown": An array of objects, one per problem.

Each object in "problem_breakdown" must contain:
1.  "problem_description": A bilingual object describing the problem (e.g. {"en": "Question 1: Solving a linear equation", "he": "שאלה 1: פתרון משוואה לינארית"}).
2.  "score": The student's integer score for this problem.
3.  "max_score": The integer maximum possible score for this problem (e.g. 25).
4.  "feedback": A bilingual summary for the **student** explaining the score and how to improve.
5.  "teacher_recommendation": A bilingual summary for the **teacher**: what the student understood, where they struggled, and which concepts to reinforce.
6.  "errors": An array with one object per mistake. Empty if the problem is solved perfectly.

Each object in "errors" must contain:
1.  "error_type": One of "minor_slip", "procedural_error", "conceptual_error".
2.  "deduction": A positive integer number of points deducted.
3.  "explanation": A bilingual explanation of the mistake that quotes the incorrect step from the student's work (e.g. "The student calculated 5 * 8 as 35 instead of 40.").
4.  "hint": A bilingual, actionable hint for avoiding this kind of mistake.
5.  "boundingBox": {"x", "y", "width", "height"} locating the mistake on the image, each a fraction between 0 and 1 of the image size, origin top-left.

Rubric and deduction guidelines:
- "minor_slip": arithmetic mistakes, copy errors, sign errors. Deduction: 1-3 points.
- "procedural_error": incorrect application of a known procedure (distributing terms, order of operations). Deduction: 4-7 points.
- "conceptual_error": fundamental misunderstanding of a concept (wrong formula, incorrect logic). Deduction: 8-15 points.

Ensure all bounding boxes are accurate and normalized. Every string meant for display MUST use the bilingual {"en": "...", "he": "..."} format."""

USER_INSTRUCTION = "Analyze the student's work in the provided image and provide a detailed breakdown according to the instructions."

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class GraderConfig(BaseModel):
    """Configuration for the grading model.

    Any OpenAI-compatible endpoint works: set ``api_base`` to its URL and
    ``model_name`` to the model it serves.
    """
    model_name: str = Field(default=GRADER_MODEL_NAME, description="Vision-capable chat model")
    api_base: Optional[str] = Field(default=OPENAI_BASE_URL, description="Base URL for the API")
    api_key: Optional[str] = Field(default=OPENAI_API_KEY or None, description="API key")
    temperature: float = Field(default=GRADER_TEMPERATURE, description="Sampling temperature (0-2)")
    max_tokens: int = Field(default=GRADER_MAX_TOKENS, description="Maximum number of tokens to generate")
    timeout: float = Field(default=GRADER_TIMEOUT, description="Timeout in seconds for API requests")


class GradingProducer:
    """Grades a submission image with a vision model."""

    def __init__(self, config: Optional[Union[Dict[str, Any], GraderConfig]] = None, client=None):
        if config is None:
            self.config = GraderConfig()
        elif isinstance(config, dict):
            self.config = GraderConfig(**config)
        else:
            self.config = config
        self._client = client

    @property
    def client(self):
        """Lazy load the async OpenAI client."""
        if self._client is None:
            client_kwargs: Dict[str, Any] = {"timeout": self.config.timeout, "max_retries": 0}
            if self.config.api_base:
                client_kwargs["base_url"] = self.config.api_base
            if self.config.api_key:
                client_kwargs["api_key"] = self.config.api_key
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client

    def build_messages(self, image_base64: str, mime_type: str = "image/jpeg") -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": GRADING_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
                    {"type": "text", "text": USER_INSTRUCTION},
                ],
            },
        ]

    @staticmethod
    def parse_response(text: Optional[str]) -> GradingDocument:
        """Parse the model's answer, tolerating a markdown code fence around the JSON."""
        if not text or not text.strip():
            raise MalformedProducerResponse("The grading service returned an empty response")

        cleaned = _FENCE_RE.sub("", text.strip()).strip()
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise MalformedProducerResponse("The grading service did not return valid JSON", details=str(e)) from e

        if not isinstance(payload, dict):
            raise MalformedProducerResponse("The grading service returned JSON that is not an object")
        try:
            return GradingDocument.from_wire(payload)
        except ValidationError as e:
            raise MalformedProducerResponse(
                "The grading service returned a document with missing or malformed fields",
                details=str(e),
            ) from e

    async def grade(self, image_base64: str, mime_type: str = "image/jpeg") -> GradingDocument:
        """Grade one stitched submission image.

        Raises:
            ProducerUnavailable: The service could not be reached or answered with an error.
            MalformedProducerResponse: The answer is not a valid grading document.
        """
        try:
            completion = await self.client.chat.completions.create(
                model=self.config.model_name,
                messages=self.build_messages(image_base64, mime_type),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            logger.error(f"Grading service call failed: {e}")
            raise ProducerUnavailable(
                "The AI grading service is temporarily unavailable. Please try again.",
                details=str(e),
            ) from e

        if not completion.choices:
            raise MalformedProducerResponse("The grading service returned no choices")
        choice = completion.choices[0]
        if choice.finish_reason == "length":
            raise MalformedProducerResponse("The grading service response was truncated")

        document = self.parse_response(choice.message.content)
        logger.info(
            f"Grading service returned {len(document.problem_breakdown)} problem(s), "
            f"overall score {document.overall_score}"
        )
        return document
