import base64
import json
import re
from typing import Any, List

import fitz
import openai

from .errors import ConfigurationError, ExtractionError, MalformedInputError
from .logging import get_logger
from .validation import validate_batch

log = get_logger(__name__)

IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}
PDF_TYPE = "application/pdf"
ALLOWED_UPLOAD_TYPES = IMAGE_TYPES | {PDF_TYPE}
PDF_DPI = 200


# ============================================================
# PROMPT
# ============================================================
def create_ai_prompt() -> str:
    return """
You extract class sessions from a screenshot of a weekly university timetable.

HOW TO READ THE GRID:
1. Identify the 5 day columns: Monday (leftmost), Tuesday, Wednesday, Thursday, Friday (rightmost).
2. For each day column, scan from top to bottom (8:00AM to 7:00PM).
3. Every filled box in a day column is one class session.
4. Adjacent boxes with different text are DIFFERENT classes.
5. Some classes (labs) span several time slots; report them once with their full span.

DAY ASSIGNMENT RULES:
- Only assign a class to the column it actually appears in.
- Never copy a class from one day column to another.
- A course may legitimately appear on several days (lectures, tutorials, labs).
- The same course in the same time slot on several days is almost always a mistake: check the image.

FOR EACH CLASS SESSION EXTRACT:
- day: one of "Monday", "Tuesday", "Wednesday", "Thursday", "Friday"
- start_time: 12-hour format like "9:00AM", "2:00PM"
- end_time: 12-hour format like "9:50AM", "2:50PM"
- course_code: e.g. "CS F213", "ECE F241"
- course_name: full course name
- class_type: "Lecture", "Tutorial" or "Lab"
- location: room or venue
- instructor: name, or "Staff" if not shown

FINAL CHECK:
- Every class is in the correct day column.
- Classes in the same column do not overlap.
- end_time is after start_time.

OUTPUT FORMAT (STRICT):
- Output ONLY a JSON array of objects with exactly the keys above.
- No markdown, no backticks, no commentary.
""".strip()


# ============================================================
# PARSE MODEL JSON
# ============================================================
def parse_model_json(response_content: str) -> List[Any]:
    """Pull the JSON array of class sessions out of the model's reply.

    Items are returned untouched; they still need ``validate_batch``.
    """
    text = (response_content or "").strip()

    # strip markdown fences
    if text.startswith("```json"):
        text = text[7:].strip()
    if text.startswith("```"):
        text = text[3:].strip()
    if text.endswith("```"):
        text = text[:-3].strip()

    m = re.search(r"\[.*\]", text, re.DOTALL)
    if not m:
        raise ExtractionError(
            "Failed to parse AI response. Please try uploading a clearer image.",
            details="No JSON array found in model output",
        )
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError(
            "Failed to parse AI response. Please try uploading a clearer image.",
            details=f"Invalid JSON response from AI service: {e.msg}",
        ) from e
    if not isinstance(data, list):
        raise ExtractionError(
            "Failed to parse AI response. Please try uploading a clearer image.",
            details="Top-level JSON must be an array",
        )
    return data


# ============================================================
# AI PROCESSING
# ============================================================
class TimetableExtractor:
    """Sends timetable images to an OpenAI vision model."""

    def __init__(
        self, client: "openai.OpenAI", model: str, max_pdf_pages: int = 5
    ) -> None:
        self._client = client
        self._model = model
        self._max_pdf_pages = max_pdf_pages

    @classmethod
    def from_settings(cls, settings) -> "TimetableExtractor":
        if not settings.openai_api_key:
            raise ConfigurationError(
                "API configuration error. Please contact support.",
                details="OPENAI_API_KEY is not set",
            )
        return cls(
            openai.OpenAI(api_key=settings.openai_api_key),
            settings.openai_model,
            max_pdf_pages=settings.max_pdf_pages,
        )

    def call_model_on_image_bytes(self, image_bytes: bytes, mime: str) -> str:
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        data_url = f"data:{mime};base64,{b64}"

        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "system",
                        "content": "You extract class sessions from university timetables.",
                    },
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": create_ai_prompt()},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    },
                ],
            )
        except openai.OpenAIError as e:
            log.error("ai_request_failed", model=self._model, error=str(e))
            raise ExtractionError(
                "The AI service could not process the timetable. Please try again.",
                details=type(e).__name__,
            ) from e
        return (resp.choices[0].message.content or "").strip()

    def extract(self, file_bytes: bytes, mime_type: str) -> List[Any]:
        """Extract and validate class sessions from an uploaded image or PDF."""
        classes: List[Any] = []

        if mime_type == PDF_TYPE:
            try:
                doc = fitz.open(stream=file_bytes, filetype="pdf")
            except RuntimeError as e:  # fitz.FileDataError
                raise MalformedInputError("Could not read the PDF file", details=str(e)) from e
            try:
                # one paid model call per page
                if doc.page_count > self._max_pdf_pages:
                    raise MalformedInputError(
                        f"PDF has too many pages (at most {self._max_pdf_pages} allowed)",
                        details=f"Uploaded PDF has {doc.page_count} pages",
                    )
                for page in doc:
                    pix = page.get_pixmap(dpi=PDF_DPI)
                    model_text = self.call_model_on_image_bytes(pix.tobytes("png"), "image/png")
                    classes.extend(parse_model_json(model_text))
            finally:
                doc.close()
        elif mime_type in IMAGE_TYPES:
            img_mime = "image/jpeg" if "jp" in mime_type else "image/png"
            model_text = self.call_model_on_image_bytes(file_bytes, img_mime)
            classes.extend(parse_model_json(model_text))
        else:
            raise MalformedInputError(
                "Invalid file type. Please upload a JPG, PNG or PDF file."
            )

        # model output is untrusted; same checks as user edits
        errors = validate_batch(classes)
        if errors:
            log.warning("ai_output_invalid", error_count=len(errors))
            raise ExtractionError(
                "Invalid data structure received from AI service",
                details=", ".join(errors),
            )

        log.info("timetable_extracted", classes=len(classes), mime_type=mime_type)
        return classes
