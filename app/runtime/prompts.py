# app/runtime/prompts.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from app.schemas.assessment import AssessmentData, SymptomData

SYMPTOM_SYSTEM_PROMPT = (
    "You are a veterinary AI assistant specializing in dog health analysis. "
    "Analyze the symptoms provided and give professional insights while emphasizing that this "
    "is not a replacement for veterinary care. "
    "Always err on the side of caution and recommend professional veterinary consultation when in doubt. "
    "Provide practical, actionable advice for dog owners."
)

PHOTO_SYSTEM_PROMPT = (
    "You are a veterinary AI assistant specializing in visual analysis of dog health images. "
    "Analyze the photo carefully and provide insights about any visible health concerns. "
    "Be thorough but cautious - recommend professional veterinary consultation for any concerning findings. "
    "Focus on observable conditions like skin issues, wounds, swelling, discharge, posture, "
    "or other visible abnormalities."
)

EMERGENCY_SYSTEM_PROMPT = (
    "You are a veterinary emergency triage AI assistant. "
    "Assess the urgency of the dog's condition and provide immediate guidance. "
    "This is critical - lives may depend on accurate triage. Err on the side of caution. "
    "Provide clear guidance on timeframe for veterinary care and immediate actions."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a veterinary AI assistant writing health summaries for dog owners. "
    "Keep the summary informative but accessible to pet owners."
)


def _age(age: Optional[int]) -> str:
    return f"{age} years" if age is not None else "unknown"


def _weight(weight: Optional[float]) -> str:
    return f"{weight:g} lbs" if weight is not None else "unknown"


def _dog_lines(dog: Dict[str, Any]) -> List[str]:
    return [
        f"- Breed: {dog.get('breed') or 'unknown'}",
        f"- Age: {_age(dog.get('age'))}",
        f"- Weight: {_weight(dog.get('weight'))}",
    ]


def symptom_prompt(symptom: SymptomData, dog: Dict[str, Any]) -> str:
    lines = ["Analyze these dog symptoms:", "", "Dog Information:", *_dog_lines(dog), ""]
    lines += [
        "Symptom Details:",
        f"- Type: {symptom.type}",
        f"- Title: {symptom.title}",
        f"- Description: {symptom.description or 'No additional description'}",
        f"- Owner-reported severity: {symptom.severity or 'Not specified'}",
        "",
        "Please provide a thorough analysis focusing on:",
        "1. Severity assessment based on the symptoms",
        "2. Urgency level for veterinary care",
        "3. Detailed insights about potential causes",
        "4. Specific recommendations for the owner",
        "5. Whether immediate veterinary attention is required",
        "6. Any emergency warnings if the symptoms suggest serious conditions",
    ]
    return "\n".join(lines)


def emergency_prompt(data: AssessmentData, dog: Dict[str, Any], history: List[str]) -> str:
    vitals = data.vital_signs.provided() if data.vital_signs else {}
    lines = ["EMERGENCY ASSESSMENT REQUEST:", "", "Dog Information:", *_dog_lines(dog)]
    lines.append(f"- Medical History: {', '.join(history) if history else 'None provided'}")
    lines += ["", "Current Symptoms:", *(f"- {s}" for s in data.symptoms), ""]
    lines += [
        f"Symptom Duration: {data.duration}",
        f"Owner-assessed Severity: {data.severity}",
        f"Current Behavior: {data.current_behavior}",
        "",
        "Vital Signs (if available):",
    ]
    if vitals:
        lines += [f"- {k}: {v}" for k, v in vitals.items()]
    else:
        lines.append("No vital signs provided")
    lines += [
        "",
        "Please perform emergency triage assessment:",
        "1. Determine urgency level (non-urgent, urgent, emergency)",
        "2. Specify timeframe for veterinary care needed",
        "3. Provide reasoning for the assessment",
        "4. List immediate actions the owner should take",
        "5. Identify any red flag symptoms",
        "6. Determine if veterinary care is required",
        "",
        "CRITICAL: For any life-threatening symptoms (difficulty breathing, seizures, unconsciousness, "
        "severe bleeding, bloat symptoms, etc.), classify as EMERGENCY.",
    ]
    return "\n".join(lines)


def photo_prompt(context: Optional[str]) -> str:
    note = f"Context provided by owner: {context}" if context else "No additional context provided"
    return "\n".join([
        "Analyze this dog health photo and provide detailed insights:",
        "",
        note,
        "",
        "Please examine the image for:",
        "1. Visible skin conditions, lesions, or abnormalities",
        "2. Signs of injury, swelling, or inflammation",
        "3. Discharge from eyes, nose, or ears",
        "4. Posture or mobility indicators",
        "5. Overall physical condition",
        "6. Any concerning visual symptoms",
        "",
        "Provide a comprehensive analysis with specific observations and recommendations.",
    ])


def summary_prompt(dog: Dict[str, Any], records: List[Dict[str, Any]]) -> str:
    lines = [
        "Generate a comprehensive health summary for this dog:",
        "",
        "Dog Information:",
        f"- Name: {dog.get('name') or 'unknown'}",
        *_dog_lines(dog),
        "",
        "Recent Health Records:",
    ]
    if not records:
        lines.append("No health records logged yet")
    for i, r in enumerate(records, start=1):
        recorded = r.get("recorded_at")
        lines += [
            f"{i}. {str(r['type']).upper()} - {r['title']}",
            f"   - Severity: {r.get('severity') or 'Not specified'}",
            f"   - Description: {r.get('description') or 'No description'}",
            f"   - Date: {recorded.date().isoformat() if recorded else 'unknown'}",
        ]
    lines += [
        "",
        "Please provide:",
        "1. Overall health trend analysis",
        "2. Patterns or recurring issues",
        "3. Breed-specific considerations",
        "4. Preventive care recommendations",
        "5. Areas that may need veterinary attention",
        "6. Positive health indicators",
    ]
    return "\n".join(lines)
