import base64
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Union

import fitz  # PyMuPDF
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import IMAGE_MIME_TYPES
from errors import ConversionError, ParseError
from prompts import PAGE_ANALYSIS_PROMPT, build_evaluation_prompt

log = logging.getLogger(__name__)

PAGE_GROUP_SIZE = 3


class ScoredCategory(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    points: Union[int, float] = Field(..., description="Score out of 5 points")
    commentary: str


class EvaluationResult(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    glow: List[str]
    grow: List[str]
    action_items: List[str]
    claim: ScoredCategory
    support: ScoredCategory
    organization: ScoredCategory
    graphics: ScoredCategory
    summary: str


class Stage(str, Enum):
    CONVERTING = "converting"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PhaseTimings:
    conversion: float = 0.0
    analysis: float = 0.0
    aggregation: float = 0.0

    def as_strings(self) -> Dict[str, str]:
        return {
            "conversion": f"{self.conversion:.2f}",
            "analysis": f"{self.analysis:.2f}",
            "aggregation": f"{self.aggregation:.2f}",
        }


@dataclass
class GradingOutcome:
    evaluation: EvaluationResult
    results: List[str]
    page_count: int
    timings: PhaseTimings = field(default_factory=PhaseTimings)


def rasterize_pages(
    buffer: bytes, dpi: int = 100, image_format: str = "png"
) -> Iterator[Dict[str, Any]]:
    """
    Renders every page of a PDF held in memory, in page order
    Yields: image_url message parts carrying each page as a base64 data URL
    """
    mime_type = IMAGE_MIME_TYPES[image_format]
    try:
        document = fitz.open(stream=buffer, filetype="pdf")
    except Exception as e:
        raise ConversionError(f"Could not open document: {e}") from e

    with document:
        for page in document:
            try:
                pixmap = page.get_pixmap(dpi=dpi)
                image_bytes = pixmap.tobytes(output=image_format)
            except Exception as e:
                raise ConversionError(f"Could not render page {page.number + 1}: {e}") from e

            encoded = base64.b64encode(image_bytes).decode("utf-8")
            yield {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
            }


def group_pages(pages: Iterable[Dict[str, Any]], size: int = PAGE_GROUP_SIZE) -> Iterator[List[Dict[str, Any]]]:
    group = []
    for page in pages:
        group.append(page)
        if len(group) == size:
            yield group
            group = []
    if group:
        yield group


def analyze_page_groups(pages: Iterable[Dict[str, Any]], client) -> List[str]:
    """
    Sends each group of pages to the model together with the grading rubric, one group at a time
    Returns: One analysis per group, in page order
    """
    results = []
    for index, group in enumerate(group_pages(pages)):
        log.debug(f"Analyzing group {index + 1} ({len(group)} pages)")
        content = [{"type": "text", "text": PAGE_ANALYSIS_PROMPT}, *group]
        results.append(client.complete(content))
    return results


def parse_evaluation(text: str) -> EvaluationResult:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Model response is not valid JSON: {e}") from e

    try:
        return EvaluationResult.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Model response does not match the evaluation schema: {e}") from e


def aggregate_analyses(analyses: List[str], client) -> EvaluationResult:
    """
    Asks the model for an overall evaluation of the document based on the group analyses
    Returns: The parsed EvaluationResult
    """
    response_text = client.complete(build_evaluation_prompt(analyses))
    return parse_evaluation(response_text)


def process_document(
    buffer: bytes, client, dpi: int = 100, image_format: str = "png"
) -> GradingOutcome:
    """
    Main function that runs conversion, group analysis and aggregation in sequence
    Any failure is logged with the stage it happened in and re-raised
    """
    timings = PhaseTimings()
    stage = Stage.CONVERTING
    try:
        log.debug(f"Stage: {stage.value}")
        started = time.perf_counter()
        pages = list(rasterize_pages(buffer, dpi=dpi, image_format=image_format))
        timings.conversion = time.perf_counter() - started
        log.info(f"Converted document into {len(pages)} page images")

        stage = Stage.ANALYZING
        log.debug(f"Stage: {stage.value}")
        started = time.perf_counter()
        results = analyze_page_groups(pages, client)
        timings.analysis = time.perf_counter() - started
        log.info(f"Analyzed {len(results)} page groups")

        stage = Stage.AGGREGATING
        log.debug(f"Stage: {stage.value}")
        started = time.perf_counter()
        evaluation = aggregate_analyses(results, client)
        timings.aggregation = time.perf_counter() - started
    except Exception:
        log.error(f"Stage: {Stage.FAILED.value} (while {stage.value})")
        raise

    log.debug(f"Stage: {Stage.DONE.value}")
    return GradingOutcome(
        evaluation=evaluation,
        results=results,
        page_count=len(pages),
        timings=timings,
    )
