"""Stub analysis provider for development and tests.

Returns canned model text without calling external APIs. The reply is
chosen by sniffing the prompt, so the same stub serves meal and body jobs
as well as text-only advice.
"""

import json
from typing import Any, Dict, List, Optional

from photo_analysis.domain.jobs.ports import PhotoPayload

STUB_MEAL_RESPONSE: Dict[str, Any] = {
    "foodItems": ["cơm trắng", "thịt kho", "rau muống xào"],
    "estimatedCalories": 650,
    "protein": 32,
    "carbohydrates": 80,
    "fat": 18,
    "confidence": 0.9,
    "warnings": [],
    "recommendations": ["Thêm rau xanh để cân bằng bữa ăn"],
}

STUB_BODY_RESPONSE: Dict[str, Any] = {
    "muscleDefinition": "medium",
    "bodyComposition": "balanced",
    "posture": "good",
    "fitnessLevel": "intermediate",
    "observations": ["Vai và tay có độ săn chắc tốt"],
    "recommendations": ["Duy trì tập luyện sức mạnh 3 buổi mỗi tuần"],
    "confidence": 0.88,
}


STUB_NUTRITION_RESPONSE: Dict[str, Any] = {
    "dailyCalories": 2100,
    "macros": {"protein": 140, "carbs": 230, "fat": 70},
    "mealTiming": ["7:00", "12:00", "16:00", "19:00"],
    "foodSuggestions": {
        "breakfast": ["phở gà", "trứng luộc"],
        "lunch": ["cơm gạo lứt", "cá hấp"],
        "dinner": ["ức gà nướng", "rau luộc"],
        "snacks": ["sữa chua", "chuối"],
    },
    "supplements": [],
    "hydration": "2-3 lít mỗi ngày",
    "tips": ["Ăn đủ đạm trong mỗi bữa"],
}

STUB_WORKOUT_RESPONSE: Dict[str, Any] = {
    "frequency": "3-4 buổi mỗi tuần",
    "workouts": [
        {
            "day": "Ngày 1 - Thân trên",
            "exercises": [{"name": "Hít đất", "sets": 3, "reps": "8-12", "rest": "60 giây"}],
        }
    ],
    "progression": "Tăng 5% khối lượng mỗi 2 tuần",
    "safetyTips": ["Khởi động kỹ trước khi tập"],
    "estimatedDuration": 45,
}

STUB_PROGRESS_RESPONSE: Dict[str, Any] = {
    "progressAssessment": "positive",
    "workingWell": ["Tập luyện đều đặn"],
    "improvements": ["Ngủ đủ giấc"],
    "recommendations": ["Giữ nhịp độ hiện tại"],
    "motivation": "Bạn đang đi đúng hướng!",
    "nextSteps": ["Theo dõi cân nặng hàng tuần"],
}

_ADVICE_MARKERS = (
    ("nutrition recommendations", STUB_NUTRITION_RESPONSE),
    ("workout recommendations", STUB_WORKOUT_RESPONSE),
    ("progress data", STUB_PROGRESS_RESPONSE),
)


class StubAnalysisProvider:
    """
    Stub implementation of IAnalysisProvider.

    Wraps the JSON in a short sentence the way real models tend to, so the
    parser's object extraction is exercised too. Records every call.
    """

    def __init__(
        self,
        meal_response: Optional[Dict[str, Any]] = None,
        body_response: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._meal = meal_response if meal_response is not None else STUB_MEAL_RESPONSE
        self._body = body_response if body_response is not None else STUB_BODY_RESPONSE
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "stub"

    def is_available(self) -> bool:
        return True

    def _pick(self, prompt: str, image: Optional[PhotoPayload]) -> Dict[str, Any]:
        if image is None:
            for marker, reply in _ADVICE_MARKERS:
                if marker in prompt:
                    return reply
        return self._body if "body progress" in prompt else self._meal

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate(self, prompt: str, image: Optional[PhotoPayload] = None) -> str:
        self.calls.append(prompt)
        payload = self._pick(prompt.lower(), image)
        return f"Here is the analysis:\n{json.dumps(payload, ensure_ascii=False)}"
