# dashboard derivations over daily mood summaries
# stats cards, the 7-day mood series and generated insight lines

from collections import Counter
from datetime import date, timedelta

POSITIVE_MOODS = ("happy", "peaceful", "excited")

MOOD_ADVICE = {
    "happy": "Enjoy these positive moments and consider what's contributing to your happiness.",
    "peaceful": "Your calm state is wonderful. Try to maintain these peaceful practices in your routine.",
    "excited": "Your enthusiasm is great! Make sure to balance high energy with adequate rest.",
    "sad": "It's okay to feel sad sometimes. Consider gentle activities that bring you comfort.",
    "anxious": "Anxiety is manageable. Try breathing exercises, meditation, or talking to someone you trust.",
    "frustrated": "Frustration is a signal. Identify what's causing it and consider constructive ways to address it.",
    "neutral": "Neutral moods are perfectly normal. They can be a stable foundation for personal growth.",
}

MOOD_EMOJI = {
    "happy": "😊",
    "peaceful": "😌",
    "excited": "🤩",
    "sad": "😔",
    "anxious": "😰",
    "frustrated": "😠",
    "neutral": "😐",
}


def _mean_intensity(summaries: list[dict]) -> float:
    return sum(s["average_intensity"] for s in summaries) / len(summaries)


def _trend_label(summaries: list[dict]) -> str:
    """compare the 3 most recent days with the 3 oldest (summaries newest first)"""
    window = min(3, len(summaries))
    recent = _mean_intensity(summaries[:window])
    older = _mean_intensity(summaries[-window:])
    if recent > older + 0.5:
        return "Improving"
    if recent < older - 0.5:
        return "Declining"
    return "Stable"


def _weekly_series(summaries: list[dict], today: date) -> list[dict]:
    by_date = {s["date"]: s for s in summaries}
    series = []
    for days_ago in range(6, -1, -1):
        day = today - timedelta(days=days_ago)
        summary = by_date.get(day.isoformat())
        if summary:
            mood = summary["primary_mood"]
            series.append({
                "date": day.isoformat(),
                "day": day.strftime("%a"),
                "mood": mood,
                "emoji": MOOD_EMOJI.get(mood, MOOD_EMOJI["neutral"]),
                "intensity": summary["average_intensity"],
                "confidence": round(summary.get("overall_confidence", 0) * 100),
                "analysis_count": summary.get("analysis_count", 0),
            })
        else:
            series.append({
                "date": day.isoformat(),
                "day": day.strftime("%a"),
                "mood": "neutral",
                "emoji": MOOD_EMOJI["neutral"],
                "intensity": 5,
                "confidence": 0,
                "analysis_count": 0,
            })
    return series


def generate_insights(summaries: list[dict]) -> list[str]:
    if not summaries:
        return ["Start tracking your mood to see personalized insights."]

    insights = []
    total = len(summaries)

    mood_counts = Counter(s["primary_mood"] for s in summaries)
    dominant_mood, dominant_count = mood_counts.most_common(1)[0]
    dominant_pct = round(dominant_count / total * 100)
    if dominant_pct > 50:
        advice = MOOD_ADVICE.get(dominant_mood, "Every emotion has value and teaches us something about ourselves.")
        insights.append(f"Your most common mood has been {dominant_mood} ({dominant_pct}% of days). {advice}")

    avg_intensity = _mean_intensity(summaries)
    if avg_intensity > 7:
        insights.append(
            "You've been experiencing intense emotions lately. Remember to practice self-care "
            "and reach out for support when needed."
        )
    elif avg_intensity < 4:
        insights.append(
            "Your emotional intensity has been relatively low. Consider engaging in activities "
            "that bring you joy and energy."
        )

    avg_analyses = sum(s.get("analysis_count", 0) for s in summaries) / total
    if avg_analyses > 3:
        insights.append(
            "Great job staying engaged with your mental health tracking! Your consistent input "
            "helps us provide better insights."
        )
    elif avg_analyses < 1:
        insights.append(
            "Try to engage more frequently with journaling, voice sessions, or chat to get more "
            "accurate mood insights."
        )

    if total >= 3:
        recent_positive = len([s for s in summaries[:3] if s["primary_mood"] in POSITIVE_MOODS])
        if recent_positive >= 2:
            insights.append("You've had mostly positive moods recently! Keep up the good mental health practices.")
        elif recent_positive == 0:
            insights.append(
                "The past few days have been challenging. Remember that it's okay to have difficult "
                "days, and consider reaching out for support."
            )

    emotion_counts = Counter(e for s in summaries for e in (s.get("key_emotions") or []))
    top_emotions = [emotion for emotion, _ in emotion_counts.most_common(3)]
    if top_emotions:
        insights.append(f"Your most frequent emotions have been: {', '.join(top_emotions)}. Notice any patterns?")

    return insights or ["Keep tracking your mood to discover personalized insights."]


def process_mood_data(summaries: list[dict], today: date) -> dict:
    """dashboard payload from daily summaries ordered newest first"""
    if not summaries:
        return {
            "days_tracked": 0,
            "positive_days_percentage": 0,
            "mood_trend": "N/A",
            "weekly_data": [],
            "insights": ["Start tracking your mood to see insights here."],
        }

    days_tracked = len(summaries)
    positive_days = len([s for s in summaries if s["primary_mood"] in POSITIVE_MOODS])

    return {
        "days_tracked": days_tracked,
        "positive_days_percentage": round(positive_days / days_tracked * 100),
        "mood_trend": _trend_label(summaries),
        "weekly_data": _weekly_series(summaries, today),
        "insights": generate_insights(summaries),
    }
