# weekly plan generator — personalised wellness plans from mood patterns
# asks gemini for a json plan; anything that does not decode into a usable
# plan is replaced by a deterministic template keyed on the primary mood

import logging
from collections import Counter
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from calmmind.errors import GatewayError
from calmmind.services.gemini import GeminiGateway, extract_json_object

logger = logging.getLogger(__name__)

EXERCISE_TYPES = ("breathing", "journaling", "mindfulness", "behavioral", "cognitive", "physical")
DIFFICULTIES = ("easy", "medium", "hard")

MIN_DURATION = 5
MAX_DURATION = 30
DEFAULT_DURATION = 10
MIN_EXERCISES = 2
MAX_EXERCISES = 7

AI_PLAN_CONFIDENCE = 0.85
TEMPLATE_PLAN_CONFIDENCE = 0.75


PLAN_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "You are a compassionate AI wellness coach. You design practical, evidence-based weekly wellness "
     "plans drawing on CBT, mindfulness, positive psychology and general wellness practices."),
    ("human", """Create a personalized weekly wellness plan for someone with the following emotional patterns:

Primary Mood: {primary_mood} (appeared {frequency} times)
Average Intensity: {intensity}/10
Key Emotions: {key_emotions}
Recent Context: {recent_entries}

Include:
1. A compassionate, encouraging title for the plan
2. A brief description of the plan's approach
3. The main target area for improvement
4. 3-4 key insights about their emotional patterns
5. 5-7 specific exercises, each with a title, a brief description, a type (breathing, journaling, mindfulness, behavioral, cognitive, or physical), a duration in minutes (5-30), a difficulty (easy, medium, hard), 3-4 step-by-step instructions and 2-3 benefits

Respond with ONLY JSON of this structure:
{{
  "title": "Plan title",
  "description": "Plan description",
  "targetArea": "Main focus area",
  "insights": ["insight1", "insight2", "insight3"],
  "exercises": [
    {{
      "title": "Exercise title",
      "description": "Exercise description",
      "type": "exercise_type",
      "duration": 15,
      "difficulty": "easy",
      "instructions": ["step1", "step2", "step3"],
      "benefits": ["benefit1", "benefit2"]
    }}
  ]
}}"""),
])


PLAN_TEMPLATES = {
    "sad": {
        "title": "Brightening Days Plan",
        "description": "Gentle activities to lift your spirits and build emotional resilience",
        "target_area": "Mood Enhancement & Emotional Support",
    },
    "anxious": {
        "title": "Finding Calm Plan",
        "description": "Evidence-based techniques to reduce anxiety and build inner peace",
        "target_area": "Anxiety Management & Stress Reduction",
    },
    "frustrated": {
        "title": "Emotional Balance Plan",
        "description": "Healthy strategies to process frustration and develop emotional regulation",
        "target_area": "Emotional Regulation & Stress Management",
    },
    "neutral": {
        "title": "Wellness Foundation Plan",
        "description": "Building positive habits and emotional resilience for overall well-being",
        "target_area": "General Wellness & Preventive Care",
    },
    "happy": {
        "title": "Sustaining Joy Plan",
        "description": "Strategies to maintain and amplify positive emotional experiences",
        "target_area": "Positive Psychology & Well-being Enhancement",
    },
}

DEFAULT_INSIGHTS = {
    "sad": [
        "Sadness is a natural emotion that helps us process difficult experiences",
        "Small, consistent activities can gradually lift your mood over time",
        "Connection with others and nature provides powerful emotional support",
    ],
    "anxious": [
        "Anxiety often stems from worry about future events - grounding helps",
        "Regular breathing exercises retrain your nervous system's stress response",
        "Breaking overwhelming thoughts into smaller parts makes them manageable",
    ],
    "frustrated": [
        "Frustration often signals that something important to you needs attention",
        "Physical movement is one of the fastest ways to shift emotional states",
        "Processing emotions through writing provides clarity and perspective",
    ],
    "happy": [
        "Positive emotions can be cultivated and sustained through practice",
        "Gratitude and mindfulness naturally amplify feelings of happiness",
        "Sharing joy with others multiplies its positive impact",
    ],
    "neutral": [
        "Neutral periods are perfect opportunities to build emotional resilience",
        "Small daily practices create significant long-term improvements",
        "Prevention-focused activities help maintain emotional stability",
    ],
}

BASE_EXERCISES = [
    {
        "title": "Daily Gratitude Practice",
        "description": "Write down three things you're grateful for each day",
        "type": "journaling",
        "duration": 5,
        "difficulty": "easy",
        "instructions": [
            "Set aside 5 minutes each morning or evening",
            "Write down 3 specific things you're grateful for today",
            "Include why you're grateful for each item",
            "Notice how this practice affects your mood over time",
        ],
        "benefits": ["Increases positive emotions", "Improves overall well-being"],
    },
    {
        "title": "Mindful Breathing",
        "description": "A simple breathing technique to center yourself and reduce stress",
        "type": "breathing",
        "duration": 10,
        "difficulty": "easy",
        "instructions": [
            "Find a comfortable seated position",
            "Breathe in slowly for 4 counts",
            "Hold for 4 counts",
            "Breathe out slowly for 6 counts",
        ],
        "benefits": ["Reduces stress", "Improves focus"],
    },
]

MOOD_EXERCISES = {
    "sad": [
        {
            "title": "Sunshine Walk",
            "description": "Take a gentle walk outdoors to boost mood naturally",
            "type": "physical",
            "duration": 20,
            "difficulty": "easy",
            "instructions": [
                "Choose a route with natural light if possible",
                "Walk at a comfortable, unhurried pace",
                "Notice colors, sounds, and textures around you",
                "Take deep breaths of fresh air",
            ],
            "benefits": ["Increases serotonin", "Improves mood naturally"],
        },
    ],
    "anxious": [
        {
            "title": "5-4-3-2-1 Grounding",
            "description": "Use your senses to ground yourself in the present moment",
            "type": "mindfulness",
            "duration": 10,
            "difficulty": "easy",
            "instructions": [
                "Name 5 things you can see around you",
                "Name 4 things you can touch",
                "Name 3 things you can hear",
                "Name 2 things you can smell",
            ],
            "benefits": ["Reduces anxiety", "Grounds you in the present"],
        },
    ],
    "frustrated": [
        {
            "title": "Emotion Processing Journal",
            "description": "Explore and process frustrating emotions through writing",
            "type": "journaling",
            "duration": 15,
            "difficulty": "medium",
            "instructions": [
                "Describe the situation that triggered frustration",
                "Identify the specific emotions you're feeling",
                "Explore what values or needs weren't met",
                "Brainstorm healthy ways to address the situation",
            ],
            "benefits": ["Increases emotional awareness", "Provides healthy outlet"],
        },
    ],
}


def build_mood_pattern(analyses: list[dict]) -> dict | None:
    """summarise recent analyses (newest first) into the plan prompt inputs.
    returns None when there is nothing to base a plan on."""
    if not analyses:
        return None

    counts = Counter(a["primary_mood"] for a in analyses)
    # newest first, so the first mood reaching the top count is the most recent
    top_count = max(counts.values())
    primary_mood = next(a["primary_mood"] for a in analyses if counts[a["primary_mood"]] == top_count)

    matching = [a for a in analyses if a["primary_mood"] == primary_mood]
    key_emotions: list[str] = []
    for analysis in matching:
        for emotion in analysis.get("key_emotions") or []:
            if emotion not in key_emotions:
                key_emotions.append(emotion)

    recent_entries = [
        a["raw_content"][:100]
        for a in analyses
        if a.get("raw_content") and len(a["raw_content"]) > 20
    ][:3]

    return {
        "primary_mood": primary_mood,
        "frequency": len(matching),
        "intensity": round(sum(a["intensity"] for a in matching) / len(matching), 1),
        "key_emotions": key_emotions[:5],
        "recent_entries": recent_entries,
    }


def validate_exercise_type(value: Any) -> str:
    return value if value in EXERCISE_TYPES else "mindfulness"


def validate_duration(value: Any) -> int:
    try:
        minutes = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_DURATION
    return max(MIN_DURATION, min(MAX_DURATION, minutes))


def validate_difficulty(value: Any) -> str:
    return value if value in DIFFICULTIES else "easy"


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if str(item).strip()]


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def validate_exercises(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    exercises = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        exercises.append({
            "title": _text(item.get("title"), "Wellness Exercise"),
            "description": _text(item.get("description"), "A helpful wellness activity"),
            "type": validate_exercise_type(item.get("type")),
            "duration": validate_duration(item.get("duration")),
            "difficulty": validate_difficulty(item.get("difficulty")),
            "instructions": _string_list(item.get("instructions")),
            "benefits": _string_list(item.get("benefits")),
        })
    return exercises[:MAX_EXERCISES]


def template_plan(primary_mood: str) -> dict:
    """deterministic plan used whenever the ai plan is unusable"""
    template = PLAN_TEMPLATES.get(primary_mood, PLAN_TEMPLATES["neutral"])
    exercises = [dict(e) for e in BASE_EXERCISES + MOOD_EXERCISES.get(primary_mood, [])]
    return {
        **template,
        "confidence": TEMPLATE_PLAN_CONFIDENCE,
        "insights": list(DEFAULT_INSIGHTS.get(primary_mood, DEFAULT_INSIGHTS["neutral"])),
        "exercises": exercises,
    }


def parse_plan(text: str, primary_mood: str) -> dict:
    """strict parse-or-template of a plan reply"""
    try:
        payload = extract_json_object(text)
    except ValueError as e:
        logger.warning(f"Plan response was not json, using template: {e}")
        return template_plan(primary_mood)

    exercises = validate_exercises(payload.get("exercises"))
    if len(exercises) < MIN_EXERCISES:
        logger.warning(f"Plan response had {len(exercises)} usable exercises, using template")
        return template_plan(primary_mood)

    template = template_plan(primary_mood)
    insights = _string_list(payload.get("insights")) or template["insights"]
    return {
        "title": _text(payload.get("title"), template["title"]),
        "description": _text(payload.get("description"), template["description"]),
        "target_area": _text(payload.get("targetArea"), template["target_area"]),
        "confidence": AI_PLAN_CONFIDENCE,
        "insights": insights,
        "exercises": exercises,
    }


class PlanGenerator:
    """weekly plan generation through the ai gateway"""

    def __init__(self, gateway: GeminiGateway):
        self.gateway = gateway

    async def generate_weekly_plan(self, pattern: dict) -> dict:
        inputs = {
            "primary_mood": pattern["primary_mood"],
            "frequency": pattern["frequency"],
            "intensity": pattern["intensity"],
            "key_emotions": ", ".join(pattern.get("key_emotions", [])) or "none recorded",
            "recent_entries": " | ".join(pattern.get("recent_entries", [])[:2]) or "none",
        }
        try:
            text = await self.gateway.generate(PLAN_PROMPT, inputs)
        except GatewayError as e:
            logger.error(f"Plan generation failed, using template: {e}")
            return template_plan(pattern["primary_mood"])
        return parse_plan(text, pattern["primary_mood"])
