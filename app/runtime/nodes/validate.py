# app/runtime/nodes/validate.py
from __future__ import annotations

from typing import Any, Dict, List

from pocketflow import AsyncNode

from app.config import settings
from app.core.errors import ValidationError
from app.schemas.assessment import AssessmentData, PhotoInput, SymptomData

KINDS = ("symptom", "emergency", "photo", "summary")


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


class RequestValidateNode(AsyncNode):
    """First node of every AI flow; nothing external is touched until it passes.
    - prep_async: pick the request fields for this kind
    - exec_async: pure checks, raises ValidationError
    - post_async: normalise symptoms and route
    """

    def __init__(self, kind: str, *, max_photo_bytes: int | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if kind not in KINDS:
            raise ValueError(f"unknown assessment kind: {kind}")
        self.kind = kind
        self.max_photo_bytes = max_photo_bytes or settings.max_photo_bytes

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "dog_id": shared.get("dog_id"),
            "symptom_data": shared.get("symptom_data"),
            "assessment_data": shared.get("assessment_data"),
            "photo": shared.get("photo"),
        }

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        if self.kind == "photo":
            self._check_photo(prep["photo"])
            return {}

        if _blank(prep["dog_id"]):
            raise ValidationError("Missing required field: dogId")

        if self.kind == "symptom":
            data: SymptomData | None = prep["symptom_data"]
            if data is None or _blank(data.type) or _blank(data.title):
                raise ValidationError("Symptom type and title are required")
            return {}

        if self.kind == "emergency":
            data: AssessmentData | None = prep["assessment_data"]
            symptoms: List[str] = [s.strip() for s in (data.symptoms if data else []) if not _blank(s)]
            if not symptoms:
                raise ValidationError("Select at least one symptom before requesting an assessment")
            return {"symptoms": list(dict.fromkeys(symptoms))}

        return {}

    def _check_photo(self, photo: PhotoInput | None) -> None:
        if photo is None or not photo.content:
            raise ValidationError("No photo uploaded")
        if not (photo.mime_type or "").startswith("image/"):
            raise ValidationError(f"Only image files are allowed (got {photo.mime_type or 'unknown'})")
        if len(photo.content) > self.max_photo_bytes:
            raise ValidationError(
                f"Photo exceeds the size limit of {self.max_photo_bytes} bytes"
            )

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        if "symptoms" in exec_res:
            data: AssessmentData = prep["assessment_data"]
            shared["assessment_data"] = data.model_copy(update={"symptoms": exec_res["symptoms"]})
        return "ok"
