"""
Grading helpers for generated quizzes.

Letter grades are adaptive for short quizzes: with only a handful of
questions a single miss moves the percentage a lot, so the bands are wider.
"""
import re
from typing import Dict, List, Optional

from quizforge.models import Question, Quiz

PASSING_PERCENTAGE = 60
SHORT_ANSWER_KEYWORD_RATIO = 0.5

GRADE_DESCRIPTIONS = {
    "A": "Excellent",
    "B": "Good",
    "C": "Average",
    "D": "Poor",
    "F": "Failing",
}


def calculate_percentage(score, total) -> int:
    if not total:
        return 0
    # half-up rounding
    return int(float(score) / float(total) * 100 + 0.5)


def get_adaptive_grade(percentage: int, total_questions: int) -> str:
    if total_questions <= 3:
        if percentage >= 100:
            return "A"
        if percentage >= 67:
            return "B"
        if percentage >= 33:
            return "C"
        return "F"
    if total_questions <= 5:
        bands = ((90, "A"), (80, "B"), (60, "C"), (40, "D"))
    else:
        bands = ((90, "A"), (75, "B"), (60, "C"), (45, "D"))
    for threshold, grade in bands:
        if percentage >= threshold:
            return grade
    return "F"


def get_letter_grade(percentage, total_questions: Optional[int] = None) -> str:
    score = int(float(percentage or 0) + 0.5)
    if total_questions and total_questions <= 10:
        return get_adaptive_grade(score, total_questions)
    for threshold, grade in ((90, "A"), (80, "B"), (70, "C"), (60, "D")):
        if score >= threshold:
            return grade
    return "F"


def get_grade_description(grade: str) -> str:
    return GRADE_DESCRIPTIONS.get(grade, "Unknown")


def get_grade_info(score, total) -> Dict:
    percentage = calculate_percentage(score, total)
    letter_grade = get_letter_grade(percentage, int(total or 0))
    return {
        "score": int(score or 0),
        "total": int(total or 0),
        "percentage": percentage,
        "letterGrade": letter_grade,
        "description": get_grade_description(letter_grade),
        "isPassing": percentage >= PASSING_PERCENTAGE,
    }


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower()).rstrip(".!?")


def check_answer(question: Question, answer: str) -> bool:
    """Exact match for mcq and fill-in-the-blank; keyword coverage for short answers."""
    given = _normalize(answer)
    if not given:
        return False
    if given == _normalize(question.correct_answer):
        return True
    if question.type != "short":
        return False

    keywords = [k.lower() for k in question.keywords if k]
    if not keywords:
        return False
    hits = sum(1 for k in keywords if re.search(rf"\b{re.escape(k)}\b", given))
    return hits / len(keywords) >= SHORT_ANSWER_KEYWORD_RATIO


def grade_quiz(quiz: Quiz, answers: List[str]) -> Dict:
    results = []
    for index, question in enumerate(quiz.questions):
        answer = answers[index] if index < len(answers) else ""
        results.append({
            "index": index,
            "isCorrect": check_answer(question, answer),
            "correctAnswer": question.correct_answer,
            "topic": question.topic,
        })
    score = sum(1 for r in results if r["isCorrect"])
    weak_topics = sorted({r["topic"] for r in results if not r["isCorrect"]})
    return {**get_grade_info(score, len(quiz.questions)), "results": results, "weakTopics": weak_topics}
